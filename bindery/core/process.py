import logging
import threading
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger("bindery.process")


class Usage(BaseModel):
    model_config = ConfigDict(frozen=True)

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    # True when the provider reported nothing and we approximated
    estimated: bool = False


def estimate_tokens(text: str) -> int:
    # Rough approximation: 4 chars per token
    return len(text) // 4


def extract_usage(response: Any, messages: Sequence[Any] = ()) -> Usage:
    """
    Reads token counts off a langchain AIMessage.
    Order: usage_metadata, provider response_metadata, then a character estimate.
    """
    usage_metadata = getattr(response, "usage_metadata", None)
    if usage_metadata:
        prompt = usage_metadata.get("input_tokens", 0) or 0
        completion = usage_metadata.get("output_tokens", 0) or 0
        return Usage(
            prompt_tokens=prompt,
            completion_tokens=completion,
            total_tokens=usage_metadata.get("total_tokens") or prompt + completion,
        )

    metadata = getattr(response, "response_metadata", None) or {}
    token_usage = metadata.get("token_usage")
    if isinstance(token_usage, dict) and token_usage:
        prompt = token_usage.get("prompt_tokens", 0) or 0
        completion = token_usage.get("completion_tokens", 0) or 0
        return Usage(
            prompt_tokens=prompt,
            completion_tokens=completion,
            total_tokens=token_usage.get("total_tokens") or prompt + completion,
        )
    if "prompt_eval_count" in metadata or "eval_count" in metadata:
        # Ollama reports its own counters
        prompt = metadata.get("prompt_eval_count", 0) or 0
        completion = metadata.get("eval_count", 0) or 0
        return Usage(prompt_tokens=prompt, completion_tokens=completion, total_tokens=prompt + completion)

    prompt = sum(estimate_tokens(str(getattr(m, "content", m))) for m in messages)
    completion = estimate_tokens(str(getattr(response, "content", "") or ""))
    return Usage(prompt_tokens=prompt, completion_tokens=completion, total_tokens=prompt + completion, estimated=True)


class LlmInvocation(BaseModel):
    """One completed transport call. Immutable once created."""
    model_config = ConfigDict(frozen=True)

    llm: str = Field(..., description="Name of the Llm that was called.")
    usage: Usage
    agent_name: str
    timestamp: datetime = Field(..., description="When the whole call (not the attempt) started.")
    running_time: timedelta

    @field_validator("running_time")
    @classmethod
    def non_negative(cls, v: timedelta) -> timedelta:
        return v if v >= timedelta(0) else timedelta(0)


ProcessListener = Callable[[Any], None]


class AgentProcess:
    """
    The caller side of an invocation: who is asking, what it has spent so far,
    and who wants to hear about its events.
    History is append-only and safe to record into from several threads.
    """

    def __init__(self, agent_name: str, listeners: Optional[List[ProcessListener]] = None):
        self.agent_name = agent_name
        self._listeners: List[ProcessListener] = list(listeners or [])
        self._invocations: List[LlmInvocation] = []
        self._lock = threading.Lock()

    @property
    def llm_invocations(self) -> List[LlmInvocation]:
        with self._lock:
            return list(self._invocations)

    def record_llm_invocation(self, invocation: LlmInvocation):
        with self._lock:
            self._invocations.append(invocation)
        logger.debug(f"[{self.agent_name}] recorded invocation of {invocation.llm}: {invocation.usage}")

    def add_listener(self, listener: ProcessListener):
        with self._lock:
            self._listeners.append(listener)

    def on_process_event(self, event: Any):
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(event)

    def usage_summary(self) -> Dict[str, Any]:
        invocations = self.llm_invocations
        return {
            "calls": len(invocations),
            "prompt_tokens": sum(i.usage.prompt_tokens for i in invocations),
            "completion_tokens": sum(i.usage.completion_tokens for i in invocations),
            "total_tokens": sum(i.usage.total_tokens for i in invocations),
            "running_time": sum((i.running_time for i in invocations), timedelta(0)),
            "by_llm": sorted({i.llm for i in invocations}),
        }
