import logging
from abc import ABC, abstractmethod
from datetime import date
from typing import List, Sequence

from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage

logger = logging.getLogger("bindery.prompt")


class PromptContributor(ABC):
    """A fragment of system-level guidance layered into the outgoing prompt."""

    @abstractmethod
    def contribution(self) -> str:
        pass


class PromptContribution(PromptContributor):
    def __init__(self, text: str):
        self.text = text

    def contribution(self) -> str:
        return self.text

    def __repr__(self):
        return f"PromptContribution({self.text[:40]!r})"


class KnowledgeCutoffContributor(PromptContributor):
    def __init__(self, cutoff: date):
        self.cutoff = cutoff

    def contribution(self) -> str:
        return f"Your knowledge cutoff is {self.cutoff.strftime('%B %Y')}."


class CurrentDateContributor(PromptContributor):
    def contribution(self) -> str:
        return f"The current date is {date.today().isoformat()}."


def join_contributions(contributors: Sequence[PromptContributor]) -> str:
    return "\n".join(c.contribution() for c in contributors)


def build_prompt_messages(user_text: str, contributors: Sequence[PromptContributor]) -> List[BaseMessage]:
    """
    Interaction contributors come first in the sequence, model contributors after.
    The system message is omitted entirely when there is nothing to say.
    """
    messages: List[BaseMessage] = []
    system_text = join_contributions(contributors)
    if system_text:
        messages.append(SystemMessage(content=system_text))
    messages.append(HumanMessage(content=user_text))
    return messages


def maybe_instruction(prompt: str, maybe_fragment: str) -> str:
    return f"Instruction: <{prompt}>\n\n{maybe_fragment}"


def with_format_instructions(messages: List[BaseMessage], format_instructions: str) -> List[BaseMessage]:
    """Returns a copy with the format guidance appended to the user message."""
    if not format_instructions:
        return list(messages)
    *head, user = messages
    return head + [HumanMessage(content=f"{user.content}\n{format_instructions}")]
