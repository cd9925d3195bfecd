from .core.errors import BinderyError, BindingError, LlmProtocolFailure, NoSuitableModelException, SelectionError, ToolNotFoundError, TransportError
from .core.maybe import MaybeReturn, Result
from .core.models import Llm, LlmInteraction, LlmOptions
from .core.process import AgentProcess, LlmInvocation
from .core.selection import ModelProvider
from .operations.chat_model import ChatModelLlmOperations

__all__ = [
    "AgentProcess",
    "BinderyError",
    "BindingError",
    "ChatModelLlmOperations",
    "Llm",
    "LlmInteraction",
    "LlmInvocation",
    "LlmOptions",
    "LlmProtocolFailure",
    "MaybeReturn",
    "ModelProvider",
    "NoSuitableModelException",
    "Result",
    "SelectionError",
    "TransportError",
]
