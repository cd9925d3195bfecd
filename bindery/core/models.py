import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

from .prompts import KnowledgeCutoffContributor, PromptContributor


@dataclass
class Llm:
    """
    A concrete model we can call.
    `model` is the chat transport: anything exposing invoke(messages) -> AIMessage,
    normally a langchain BaseChatModel.
    """
    name: str
    model: Any
    provider: str = "unknown"
    prompt_contributors: List[PromptContributor] = field(default_factory=list)
    knowledge_cutoff_date: Optional[date] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def all_prompt_contributors(self) -> List[PromptContributor]:
        """Model-owned contributors, knowledge cutoff last."""
        contributors = list(self.prompt_contributors)
        if self.knowledge_cutoff_date is not None:
            contributors.append(KnowledgeCutoffContributor(self.knowledge_cutoff_date))
        return contributors


@dataclass
class LlmOptions:
    criteria: Optional[Any] = None
    temperature: Optional[float] = None


@dataclass
class LlmInteraction:
    """Per-call configuration."""
    llm: LlmOptions = field(default_factory=LlmOptions)
    tools: List[Any] = field(default_factory=list)
    prompt_contributors: List[PromptContributor] = field(default_factory=list)
    # None means "use LlmOperationsPromptsProperties.generate_examples_by_default"
    generate_examples: Optional[bool] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
