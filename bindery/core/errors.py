from typing import Optional


class BinderyError(Exception):
    """Root of every error raised by bindery."""


class SelectionError(BinderyError):
    """No model could be resolved for the requested criteria. Never retried."""


class NoSuitableModelException(SelectionError):
    def __init__(self, criteria, available: Optional[list] = None):
        self.criteria = criteria
        self.available = available or []
        super().__init__(f"No LLM matches {criteria!r}. Available: {self.available}")


class BindingError(BinderyError):
    """
    Raw model text could not be bound to the target type.
    This is the only error the retry template treats as transient.
    """

    def __init__(self, message: str, raw_text: Optional[str] = None):
        self.raw_text = raw_text
        if raw_text is not None:
            message = f"{message} Content preview: {raw_text[:100]}..."
        super().__init__(message)


class TransportError(BinderyError):
    """The chat model call itself failed."""


class LlmProtocolFailure(BinderyError):
    """
    The model used the failure field of the maybe envelope.
    Returned inside a Result, not raised by the operations.
    """


class ToolNotFoundError(BinderyError):
    """The model asked for a tool the interaction does not provide. Never retried."""


class TemplateNotFoundError(BinderyError):
    pass


class TemplateRenderError(BinderyError):
    pass
