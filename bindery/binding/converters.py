import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any

from pydantic import TypeAdapter, ValidationError

from ..core.errors import BindingError
from .examples import generate_example

logger = logging.getLogger("bindery.binding")

_THINKING_BLOCK = re.compile(r"<(think|thinking|reasoning)>.*?</\1>", re.DOTALL | re.IGNORECASE)
_DANGLING_THINKING_END = re.compile(
    r"^(?!\s*(?:[{\[]|```)).*?</(?:think|thinking|reasoning)>", re.DOTALL | re.IGNORECASE
)
_CODE_BLOCK = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL)


def strip_thinking(text: str) -> str:
    """Removes reasoning traces some models emit ahead of their answer."""
    text = _THINKING_BLOCK.sub("", text)
    # Some models drop the opening tag and only close it. Only a leading
    # preamble up to the first close tag is removed, never the payload itself.
    text = _DANGLING_THINKING_END.sub("", text)
    return text.strip()


class OutputConverter(ABC):
    @abstractmethod
    def get_format(self) -> str:
        """Guidance appended to the prompt so the model knows the expected shape."""
        pass

    @abstractmethod
    def convert(self, text: str) -> Any:
        """Returns the bound value or raises BindingError."""
        pass


class JsonOutputConverter(OutputConverter):
    """
    Binds JSON text to any type pydantic can validate
    (BaseModel subclasses, dataclasses, TypedDicts, containers).
    """

    def __init__(self, output_type: Any):
        self.output_type = output_type
        self._adapter = TypeAdapter(output_type)

    def json_schema(self) -> dict:
        return self._adapter.json_schema()

    def get_format(self) -> str:
        schema = json.dumps(self.json_schema(), indent=2)
        return (
            "\nYour response should be in JSON format.\n"
            "Do not include any explanations, only provide a RFC8259 compliant JSON response "
            "following this format without deviation.\n"
            "Do not include markdown code blocks in your response.\n"
            f"Here is the JSON Schema instance your output must adhere to:\n```{schema}```\n"
        )

    def _validate(self, data: Any) -> Any:
        return self._adapter.validate_python(data)

    def convert(self, text: str) -> Any:
        if text is None or not text.strip():
            raise BindingError(f"Empty response where {self._type_name()} was expected.")

        # 0. Pre-cleaning: Remove Markdown Code Blocks
        match = _CODE_BLOCK.search(text)
        content = match.group(1) if match else text

        # 1. Clean parse
        last_error: Exception = None
        try:
            return self._validate(json.loads(content))
        except (json.JSONDecodeError, ValidationError, ValueError) as e:
            last_error = e

        # 2. Candidate iteration: every '{' or '[' that starts a decodable value
        decoder = json.JSONDecoder()
        pos = 0
        while True:
            starts = [p for p in (content.find("{", pos), content.find("[", pos)) if p != -1]
            if not starts:
                break
            pos = min(starts)
            try:
                obj, end = decoder.raw_decode(content, pos)
            except json.JSONDecodeError:
                pos += 1
                continue
            try:
                return self._validate(obj)
            except (ValidationError, ValueError) as e:
                # Valid JSON, wrong shape
                last_error = e
                pos = end

        # 3. Repair single quotes and Python literals (common with small models)
        repaired = content.replace("'", '"')
        repaired = repaired.replace("True", "true").replace("False", "false").replace("None", "null")
        start = repaired.find("{")
        end = repaired.rfind("}") + 1
        if start != -1 and end != 0:
            try:
                return self._validate(json.loads(repaired[start:end]))
            except (json.JSONDecodeError, ValidationError, ValueError) as e:
                if not isinstance(last_error, ValidationError):
                    last_error = e

        raise BindingError(
            f"Could not bind response to {self._type_name()}: {_first_line(last_error)}.",
            raw_text=text,
        )

    def _type_name(self) -> str:
        return getattr(self.output_type, "__name__", repr(self.output_type))


class SuppressThinkingConverter(OutputConverter):
    """Strips reasoning preambles, then hands the canonical content to its delegate."""

    def __init__(self, delegate: OutputConverter):
        self.delegate = delegate

    def get_format(self) -> str:
        return self.delegate.get_format()

    def convert(self, text: str) -> Any:
        stripped = strip_thinking(text or "")
        if stripped != (text or "").strip():
            logger.debug("Suppressed thinking block in model output")
        return self.delegate.convert(stripped)


class WithExampleConverter(OutputConverter):
    """
    Adds an illustrative example to the delegate's format guidance.
    In if_possible mode the example shows both envelope shapes.
    """

    def __init__(self, delegate: OutputConverter, output_type: Any, if_possible: bool, generate_examples: bool):
        self.delegate = delegate
        self.output_type = output_type
        self.if_possible = if_possible
        self.generate_examples = generate_examples

    def get_format(self) -> str:
        base = self.delegate.get_format()
        if not self.generate_examples:
            return base
        schema = TypeAdapter(self.output_type).json_schema()
        example = generate_example(schema)
        if self.if_possible:
            return (
                f"{base}\nExample of success:\n{json.dumps({'success': example}, indent=2)}\n"
                f"Example of failure:\n{json.dumps({'failure': 'Not enough information to answer.'}, indent=2)}\n"
            )
        return f"{base}\nExample:\n{json.dumps(example, indent=2)}\n"

    def convert(self, text: str) -> Any:
        return self.delegate.convert(text)


def _first_line(error: Exception) -> str:
    if error is None:
        return "no JSON value found"
    return str(error).splitlines()[0]
