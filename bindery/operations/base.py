import logging
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Optional, Type, TypeVar

from ..core.events import LlmRequestEvent
from ..core.maybe import Result
from ..core.models import LlmInteraction
from ..core.process import AgentProcess
from ..core.tools import IdentityToolDecorator, ToolDecorator

logger = logging.getLogger("bindery.operations")

O = TypeVar("O")


class AbstractLlmOperations(ABC):
    """
    Public entry points for turning a prompt into a typed value.
    Subclasses implement the two do_* methods against a real transport.
    """

    def __init__(self, tool_decorator: Optional[ToolDecorator] = None):
        self.tool_decorator = tool_decorator or IdentityToolDecorator()

    def generate(self, prompt: str, interaction: LlmInteraction, agent_process: AgentProcess) -> str:
        return self.create_object(prompt, interaction, str, agent_process)

    def create_object(
        self,
        prompt: str,
        interaction: LlmInteraction,
        output_type: Type[O],
        agent_process: AgentProcess,
    ) -> O:
        interaction = self._decorate_tools(interaction, agent_process)
        llm_request_event = LlmRequestEvent(agent_process, output_type, interaction, prompt)
        result = self.do_transform(prompt, interaction, output_type, llm_request_event)
        agent_process.on_process_event(llm_request_event.response_event(result))
        return result

    def create_object_if_possible(
        self,
        prompt: str,
        interaction: LlmInteraction,
        output_type: Type[O],
        agent_process: AgentProcess,
    ) -> Result[O]:
        interaction = self._decorate_tools(interaction, agent_process)
        llm_request_event = LlmRequestEvent(agent_process, output_type, interaction, prompt)
        result = self.do_transform_if_possible(prompt, interaction, output_type, llm_request_event)
        agent_process.on_process_event(llm_request_event.response_event(result))
        return result

    def transform(
        self,
        prompt: str,
        interaction: LlmInteraction,
        output_type: Type[O],
        llm_request_event: Optional[LlmRequestEvent] = None,
    ) -> O:
        """Lower-level entry: no process, no events, no usage recording unless an event is passed."""
        return self.do_transform(prompt, interaction, output_type, llm_request_event)

    def _decorate_tools(self, interaction: LlmInteraction, agent_process: AgentProcess) -> LlmInteraction:
        if not interaction.tools:
            return interaction
        return replace(interaction, tools=self.tool_decorator.decorate_all(interaction.tools, agent_process))

    @abstractmethod
    def do_transform(
        self,
        prompt: str,
        interaction: LlmInteraction,
        output_type: Type[O],
        llm_request_event: Optional[LlmRequestEvent],
    ) -> O:
        pass

    @abstractmethod
    def do_transform_if_possible(
        self,
        prompt: str,
        interaction: LlmInteraction,
        output_type: Type[O],
        llm_request_event: LlmRequestEvent,
    ) -> Result[O]:
        pass
