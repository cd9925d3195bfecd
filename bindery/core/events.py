import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional

from .process import AgentProcess


@dataclass(frozen=True)
class ChatModelCallEvent:
    """Published right before a transport call, with exactly what is sent."""
    agent_name: str
    interaction_id: str
    output_type: Any
    messages: List[Any]
    attempt: int
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class LlmResponseEvent:
    agent_name: str
    interaction_id: str
    output_type: Any
    response: Any
    running_time: timedelta
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class LlmRequestEvent:
    """
    Marks the start of one top-level call. Its timestamp is the call start used
    by every invocation record the call produces, however many attempts it takes.
    """

    def __init__(self, agent_process: AgentProcess, output_type: Any, interaction: Any, prompt: str):
        self.agent_process = agent_process
        self.output_type = output_type
        self.interaction = interaction
        self.prompt = prompt
        self.timestamp = datetime.now(timezone.utc)
        self._started = time.monotonic()

    def elapsed(self) -> timedelta:
        return timedelta(seconds=max(0.0, time.monotonic() - self._started))

    def call_event(self, messages: List[Any], attempt: int = 1) -> ChatModelCallEvent:
        return ChatModelCallEvent(
            agent_name=self.agent_process.agent_name,
            interaction_id=self.interaction.id,
            output_type=self.output_type,
            messages=list(messages),
            attempt=attempt,
        )

    def response_event(self, response: Any, running_time: Optional[timedelta] = None) -> LlmResponseEvent:
        return LlmResponseEvent(
            agent_name=self.agent_process.agent_name,
            interaction_id=self.interaction.id,
            output_type=self.output_type,
            response=response,
            running_time=running_time if running_time is not None else self.elapsed(),
        )
