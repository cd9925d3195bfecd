from dataclasses import dataclass
from typing import Callable, Dict, Optional, Sequence

from .retry import RetryListener, RetryTemplate


@dataclass(frozen=True)
class LlmDataBindingProperties:
    """
    Retry behaviour for binding model output to a type.
    Smaller models often need several attempts to produce conforming JSON.
    """
    name: str = "DEFAULT"
    max_attempts: int = 10
    fixed_backoff_millis: int = 30

    def retry_template(
        self,
        listeners: Sequence[RetryListener] = (),
        sleep: Optional[Callable[[float], None]] = None,
    ) -> RetryTemplate:
        kwargs = {"sleep": sleep} if sleep is not None else {}
        return RetryTemplate(
            max_attempts=self.max_attempts,
            backoff_millis=self.fixed_backoff_millis,
            listeners=listeners,
            **kwargs,
        )


@dataclass(frozen=True)
class LlmOperationsPromptsProperties:
    # Template for the tolerant-mode instruction fragment
    maybe_prompt_template: str = "maybe_prompt_contribution"
    generate_examples_by_default: bool = True


# --- PRESETS ---

DEFAULT_BINDING = LlmDataBindingProperties()

PATIENT_BINDING = LlmDataBindingProperties(
    name="PATIENT",
    max_attempts=20,
    fixed_backoff_millis=250,
)

FAIL_FAST_BINDING = LlmDataBindingProperties(
    name="FAIL_FAST",
    max_attempts=1,
    fixed_backoff_millis=0,
)

DATA_BINDING_PROFILES: Dict[str, LlmDataBindingProperties] = {
    "DEFAULT": DEFAULT_BINDING,
    "PATIENT": PATIENT_BINDING,
    "FAIL_FAST": FAIL_FAST_BINDING,
}
