from .converters import (
    JsonOutputConverter,
    OutputConverter,
    SuppressThinkingConverter,
    WithExampleConverter,
    strip_thinking,
)
from .examples import generate_example

__all__ = [
    "JsonOutputConverter",
    "OutputConverter",
    "SuppressThinkingConverter",
    "WithExampleConverter",
    "generate_example",
    "strip_thinking",
]
