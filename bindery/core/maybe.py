import logging
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from .errors import LlmProtocolFailure

logger = logging.getLogger("bindery.maybe")

T = TypeVar("T")

NO_REASON_GIVEN = "No result or failure reason provided"


class Result(Generic[T]):
    """Success xor failure. Failures carry an exception instead of raising it."""

    __slots__ = ("_value", "_error")

    def __init__(self, value: Optional[T] = None, error: Optional[BaseException] = None):
        if error is not None and value is not None:
            raise ValueError("Result cannot hold both a value and an error.")
        self._value = value
        self._error = error

    @classmethod
    def ok(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: BaseException) -> "Result[T]":
        return cls(error=error)

    @property
    def is_success(self) -> bool:
        return self._error is None

    @property
    def is_failure(self) -> bool:
        return self._error is not None

    @property
    def value(self) -> Optional[T]:
        return self._value

    @property
    def error(self) -> Optional[BaseException]:
        return self._error

    def get_or_none(self) -> Optional[T]:
        return self._value if self.is_success else None

    def get_or_raise(self) -> T:
        if self._error is not None:
            raise self._error
        return self._value

    def __eq__(self, other):
        if not isinstance(other, Result):
            return NotImplemented
        if self.is_failure or other.is_failure:
            return (type(self._error), str(self._error)) == (type(other._error), str(other._error))
        return self._value == other._value

    def __repr__(self):
        if self.is_success:
            return f"Result.ok({self._value!r})"
        return f"Result.failure({self._error!r})"


class MaybeReturn(BaseModel, Generic[T]):
    """
    Envelope the model fills in tolerant mode.
    One of success or failure must be set, but not both.
    Parameterize per call: MaybeReturn[MyModel].
    """
    # Objects with other keys are not envelopes and must fail validation
    model_config = ConfigDict(extra="forbid")

    success: Optional[T] = Field(None, description="The requested structure, if it could be produced.")
    failure: Optional[str] = Field(None, description="Why the requested structure could not be produced.")

    def to_result(self) -> Result[T]:
        if self.success is not None:
            if self.failure is not None:
                logger.warning(f"LLM set both success and failure; keeping success. Failure was: {self.failure}")
            return Result.ok(self.success)
        return Result.failure(LlmProtocolFailure(self.failure or NO_REASON_GIVEN))
