import logging
import time
from typing import Callable, Optional, Sequence, Tuple, Type, TypeVar, Union

from .errors import BindingError

logger = logging.getLogger("bindery.retry")

T = TypeVar("T")

# (attempt, max_attempts, error)
RetryListener = Callable[[int, int, BaseException], None]


class RetryTemplate:
    """
    Bounded retry with a backoff between attempts.

    Attempting -> Success      the callable returned
    Attempting -> Attempting   a retryable error; listeners notified, backoff slept
    Attempting -> Exhausted    max_attempts reached; the last error is re-raised

    Anything not listed in retry_on propagates on first occurrence.
    Instances hold no per-call state and may be shared between threads.
    """

    def __init__(
        self,
        max_attempts: int = 10,
        backoff_millis: Union[float, Callable[[int], float]] = 30,
        retry_on: Tuple[Type[BaseException], ...] = (BindingError,),
        listeners: Sequence[RetryListener] = (),
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1.")
        self.max_attempts = max_attempts
        self.backoff_millis = backoff_millis
        self.retry_on = tuple(retry_on)
        self.listeners = tuple(listeners)
        self._sleep = sleep

    def backoff_for(self, attempt: int) -> float:
        """Milliseconds to wait after the given (1-based) failed attempt."""
        if callable(self.backoff_millis):
            return max(0.0, float(self.backoff_millis(attempt)))
        return max(0.0, float(self.backoff_millis))

    def execute(self, fn: Callable[[], T]) -> T:
        last_error: Optional[BaseException] = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                return fn()
            except self.retry_on as e:
                last_error = e
                self._on_error(attempt, e)
                if attempt < self.max_attempts:
                    delay = self.backoff_for(attempt)
                    if delay > 0:
                        self._sleep(delay / 1000.0)

        logger.warning(f"Retries exhausted after {self.max_attempts} attempts: {last_error}")
        raise last_error

    def _on_error(self, attempt: int, error: BaseException):
        logger.info(f"Retry attempt {attempt} of {self.max_attempts} due to: {error or 'Unknown error'}")
        for listener in self.listeners:
            listener(attempt, self.max_attempts, error)
