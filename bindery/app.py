import logging
from typing import Any, Optional, Type

from rich.console import Console
from rich.logging import RichHandler

from .core.config import DATA_BINDING_PROFILES, LlmDataBindingProperties, LlmOperationsPromptsProperties
from .core.maybe import Result
from .core.models import LlmInteraction, LlmOptions
from .core.process import AgentProcess
from .core.selection import ModelProvider
from .core.templates import PromptTemplateRenderer
from .drivers.factory import build_llm
from .operations.chat_model import ChatModelLlmOperations


def configure_logging(level: str = "WARNING"):
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True)]
    )


class BinderyApp:
    """
    Wires one provider-backed model into ChatModelLlmOperations
    and keeps a single AgentProcess for the invocation history.
    """

    def __init__(
        self,
        model: str = "qwen2.5-coder:7b",
        provider: str = "ollama",
        agent_name: str = "bindery-cli",
        binding_profile: str = "DEFAULT",
        max_attempts: Optional[int] = None,
        backoff_ms: Optional[int] = None,
        generate_examples_by_default: bool = True,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
    ):
        self.console = Console()
        llm = build_llm(provider, model, api_key=api_key, base_url=base_url)
        self.provider = ModelProvider([llm])

        binding = DATA_BINDING_PROFILES.get(binding_profile)
        if binding is None:
            raise ValueError(f"Unknown binding profile: {binding_profile}. Known: {list(DATA_BINDING_PROFILES)}")
        if max_attempts is not None or backoff_ms is not None:
            binding = LlmDataBindingProperties(
                name=f"{binding.name}+overrides",
                max_attempts=max_attempts if max_attempts is not None else binding.max_attempts,
                fixed_backoff_millis=backoff_ms if backoff_ms is not None else binding.fixed_backoff_millis,
            )

        self.operations = ChatModelLlmOperations(
            model_provider=self.provider,
            template_renderer=PromptTemplateRenderer(),
            data_binding=binding,
            prompts=LlmOperationsPromptsProperties(generate_examples_by_default=generate_examples_by_default),
        )
        self.process = AgentProcess(agent_name)

    def run(
        self,
        instruction: str,
        output_type: Type[Any] = str,
        if_possible: bool = False,
        temperature: Optional[float] = None,
        generate_examples: Optional[bool] = None,
    ) -> Any:
        interaction = LlmInteraction(
            llm=LlmOptions(temperature=temperature),
            generate_examples=generate_examples,
        )
        if if_possible:
            return self.operations.create_object_if_possible(instruction, interaction, output_type, self.process)
        return self.operations.create_object(instruction, interaction, output_type, self.process)

    def render(self, result: Any):
        if isinstance(result, Result):
            if result.is_failure:
                self.console.print(f"[bold yellow]Model declined:[/bold yellow] {result.error}")
                return
            result = result.value
        if hasattr(result, "model_dump_json"):
            self.console.print_json(result.model_dump_json())
        else:
            self.console.print(result)
