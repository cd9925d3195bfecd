import itertools
import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Type, TypeVar

from langchain_core.messages import AIMessage, BaseMessage, ToolMessage

from ..binding.converters import JsonOutputConverter, OutputConverter, SuppressThinkingConverter, WithExampleConverter
from ..core.config import LlmDataBindingProperties, LlmOperationsPromptsProperties
from ..core.errors import TransportError
from ..core.events import LlmRequestEvent
from ..core.maybe import MaybeReturn, Result
from ..core.models import Llm, LlmInteraction, LlmOptions
from ..core.process import LlmInvocation, extract_usage
from ..core.prompts import build_prompt_messages, maybe_instruction, with_format_instructions
from ..core.selection import DEFAULT_AUTO_RESOLVER, AutoLlmSelectionCriteriaResolver, ModelProvider, resolve_criteria
from ..core.templates import TemplateRenderer
from ..core.tools import ToolDecorator, ToolRegistry
from .base import AbstractLlmOperations

logger = logging.getLogger("bindery.operations.chat_model")

O = TypeVar("O")


@dataclass
class LlmInvocationResources:
    """The Llm we're calling and the configured transport we'll call it through."""
    llm: Llm
    model: Any
    tools: ToolRegistry


class ChatModelLlmOperations(AbstractLlmOperations):
    """
    LlmOperations over a langchain chat model.

    Every transport call and its binding run inside the data-binding retry
    template, so a malformed response costs one attempt and nothing more.
    Transport and selection failures are not retried here.
    """

    def __init__(
        self,
        model_provider: ModelProvider,
        template_renderer: TemplateRenderer,
        auto_resolver: AutoLlmSelectionCriteriaResolver = DEFAULT_AUTO_RESOLVER,
        data_binding: Optional[LlmDataBindingProperties] = None,
        prompts: Optional[LlmOperationsPromptsProperties] = None,
        tool_decorator: Optional[ToolDecorator] = None,
        max_tool_rounds: int = 8,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        super().__init__(tool_decorator)
        self.model_provider = model_provider
        self.template_renderer = template_renderer
        self.auto_resolver = auto_resolver
        self.data_binding = data_binding or LlmDataBindingProperties()
        self.prompts = prompts or LlmOperationsPromptsProperties()
        self.max_tool_rounds = max_tool_rounds
        self._sleep = sleep

    # --- Strict ---

    def do_transform(
        self,
        prompt: str,
        interaction: LlmInteraction,
        output_type: Type[O],
        llm_request_event: Optional[LlmRequestEvent] = None,
    ) -> O:
        resources = self._get_llm_invocation_resources(interaction)
        messages = build_prompt_messages(prompt, self._prompt_contributors(interaction, resources.llm))

        converter: Optional[OutputConverter] = None
        if output_type is not str:
            converter = WithExampleConverter(
                delegate=SuppressThinkingConverter(JsonOutputConverter(output_type)),
                output_type=output_type,
                if_possible=False,
                generate_examples=self.should_generate_examples(interaction),
            )
            messages = with_format_instructions(messages, converter.get_format())

        attempts = itertools.count(1)

        def attempt() -> O:
            response = self._call(resources, messages, llm_request_event, next(attempts))
            text = response_text(response)
            if converter is None:
                return text
            return converter.convert(text)

        return self.data_binding.retry_template(sleep=self._sleep).execute(attempt)

    # --- Tolerant ---

    def do_transform_if_possible(
        self,
        prompt: str,
        interaction: LlmInteraction,
        output_type: Type[O],
        llm_request_event: LlmRequestEvent,
    ) -> Result[O]:
        maybe_fragment = self.template_renderer.render_loaded_template(self.prompts.maybe_prompt_template, {})
        resources = self._get_llm_invocation_resources(interaction)
        messages = build_prompt_messages(
            maybe_instruction(prompt, maybe_fragment),
            self._prompt_contributors(interaction, resources.llm),
        )

        converter = WithExampleConverter(
            delegate=SuppressThinkingConverter(JsonOutputConverter(MaybeReturn[output_type])),
            output_type=output_type,
            if_possible=True,
            generate_examples=self.should_generate_examples(interaction),
        )
        messages = with_format_instructions(messages, converter.get_format())

        attempts = itertools.count(1)

        def attempt() -> Result[O]:
            response = self._call(resources, messages, llm_request_event, next(attempts))
            envelope = converter.convert(response_text(response))
            return envelope.to_result()

        return self.data_binding.retry_template(sleep=self._sleep).execute(attempt)

    # --- Plumbing ---

    def should_generate_examples(self, interaction: LlmInteraction) -> bool:
        if self.prompts.generate_examples_by_default:
            return interaction.generate_examples is not False
        return interaction.generate_examples is True

    def _prompt_contributors(self, interaction: LlmInteraction, llm: Llm) -> list:
        return list(interaction.prompt_contributors) + llm.all_prompt_contributors()

    def _get_llm_invocation_resources(self, interaction: LlmInteraction) -> LlmInvocationResources:
        options: LlmOptions = interaction.llm
        criteria = resolve_criteria(options.criteria, self.auto_resolver)
        llm = self.model_provider.get_llm(criteria)
        model = llm.model

        if options.temperature is not None:
            if "temperature" in getattr(type(model), "model_fields", {}):
                model = model.model_copy(update={"temperature": options.temperature})
            else:
                logger.debug(f"{llm.name} does not expose a temperature; ignoring {options.temperature}")

        if interaction.tools:
            model = model.bind_tools(interaction.tools)
        return LlmInvocationResources(llm=llm, model=model, tools=ToolRegistry(interaction.tools))

    def _call(
        self,
        resources: LlmInvocationResources,
        messages: List[BaseMessage],
        llm_request_event: Optional[LlmRequestEvent],
        attempt: int,
    ) -> AIMessage:
        """One transport exchange, following tool calls until the model answers."""
        conversation = list(messages)
        for _ in range(self.max_tool_rounds + 1):
            if llm_request_event is not None:
                llm_request_event.agent_process.on_process_event(
                    llm_request_event.call_event(conversation, attempt)
                )
            try:
                response = resources.model.invoke(conversation)
            except Exception as e:
                raise TransportError(f"Call to {resources.llm.name} failed: {e}") from e

            self.record_usage(resources.llm, response, conversation, llm_request_event)

            tool_calls = getattr(response, "tool_calls", None) or []
            if not tool_calls:
                return response

            conversation.append(response)
            for call in tool_calls:
                output = resources.tools.execute(call["name"], **(call.get("args") or {}))
                conversation.append(ToolMessage(content=str(output), tool_call_id=call.get("id") or call["name"]))

        raise TransportError(f"{resources.llm.name} kept requesting tools after {self.max_tool_rounds} rounds.")

    def record_usage(
        self,
        llm: Llm,
        response: Any,
        messages: List[BaseMessage],
        llm_request_event: Optional[LlmRequestEvent],
    ) -> Optional[LlmInvocation]:
        usage = extract_usage(response, messages)
        logger.debug(f"Usage is {usage}")
        if llm_request_event is None:
            return None
        invocation = LlmInvocation(
            llm=llm.name,
            usage=usage,
            agent_name=llm_request_event.agent_process.agent_name,
            timestamp=llm_request_event.timestamp,
            running_time=llm_request_event.elapsed(),
        )
        llm_request_event.agent_process.record_llm_invocation(invocation)
        return invocation


def response_text(response: Any) -> str:
    content = getattr(response, "content", response)
    if isinstance(content, list):
        # Multi-part content: keep the text parts in order
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type") == "text":
                parts.append(part.get("text", ""))
        return "".join(parts)
    return content if content is not None else ""
