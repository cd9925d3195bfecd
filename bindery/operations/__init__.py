from .base import AbstractLlmOperations
from .chat_model import ChatModelLlmOperations

__all__ = ["AbstractLlmOperations", "ChatModelLlmOperations"]
