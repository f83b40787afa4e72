import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Iterator, Optional, TypeVar

logger = logging.getLogger('backoff_executor')

T = TypeVar('T')

RETRYABLE_CODES = {429, 500, 502, 503}
RETRYABLE_PHRASES = ('overloaded', 'rate limit', 'unavailable')
_CODE_FIELDS = ('code', 'status', 'status_code', 'http_status')


class RetryClass(str, Enum):
    TRANSIENT = "TRANSIENT"
    FATAL = "FATAL"


@dataclass
class RetryState:
    """Bookkeeping for a single execute() call."""
    attempt: int
    max_retries: int
    base_delay_ms: int

    def next_delay_ms(self) -> int:
        return self.base_delay_ms * (2 ** self.attempt)

    @property
    def is_last_attempt(self) -> bool:
        return self.attempt >= self.max_retries


def _field(source: Any, name: str) -> Any:
    if isinstance(source, dict):
        return source.get(name)
    return getattr(source, name, None)


def _codes(error: Any) -> Iterator[int]:
    nested = _field(error, 'error')
    for source in (error, nested):
        if source is None:
            continue
        for name in _CODE_FIELDS:
            value = _field(source, name)
            if isinstance(value, bool) or value is None:
                continue
            try:
                yield int(value)
            except (TypeError, ValueError):
                continue


def _messages(error: Any) -> Iterator[str]:
    if isinstance(error, BaseException):
        yield str(error)
    for source in (error, _field(error, 'error')):
        if source is None:
            continue
        message = _field(source, 'message')
        if isinstance(message, str):
            yield message


def classify_retryable(error: Any) -> RetryClass:
    """Decide whether a remote failure is worth another attempt.

    The remote service has no stable machine-readable error taxonomy, so
    besides the HTTP-style status we fall back to matching phrases in the
    error message. Keep every such rule in this function.
    """
    if error is None:
        return RetryClass.FATAL

    if any(code in RETRYABLE_CODES for code in _codes(error)):
        return RetryClass.TRANSIENT

    for message in _messages(error):
        lowered = message.lower()
        if any(phrase in lowered for phrase in RETRYABLE_PHRASES):
            return RetryClass.TRANSIENT

    return RetryClass.FATAL


class BackoffExecutor:
    """Retry an async remote call with pure exponential backoff."""

    def __init__(
        self,
        max_retries: int = 3,
        base_delay_ms: int = 1000,
        deadline_seconds: Optional[float] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if base_delay_ms < 0:
            raise ValueError("base_delay_ms must be >= 0")
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.deadline_seconds = deadline_seconds
        self._sleep = sleep
        self._clock = clock

    async def execute(
        self,
        fn: Callable[[], Awaitable[T]],
        max_retries: Optional[int] = None,
        base_delay_ms: Optional[int] = None,
        context: str = '',
    ) -> T:
        """
        Await fn() until it succeeds, fails fatally or runs out of retries.

        Args:
            fn: Zero-argument callable returning a fresh awaitable per attempt
            max_retries: Override for this call (fn runs at most max_retries + 1 times)
            base_delay_ms: Override for this call
            context: Prefix for the retry log lines

        Raises:
            The last error raised by fn.
        """
        state = RetryState(
            attempt=0,
            max_retries=self.max_retries if max_retries is None else max_retries,
            base_delay_ms=self.base_delay_ms if base_delay_ms is None else base_delay_ms,
        )
        started = self._clock()
        prefix = f"{context} - " if context else ''

        while True:
            try:
                return await fn()
            except Exception as e:
                if classify_retryable(e) is RetryClass.FATAL:
                    logger.warning(f"{prefix}Non-retryable error: {e}")
                    raise
                if state.is_last_attempt:
                    logger.error(f"{prefix}All {state.max_retries} retries exhausted: {e}")
                    raise

                delay_ms = state.next_delay_ms()
                if self.deadline_seconds is not None:
                    elapsed = self._clock() - started
                    if elapsed + delay_ms / 1000 > self.deadline_seconds:
                        logger.warning(
                            f"{prefix}Deadline of {self.deadline_seconds}s reached, giving up after "
                            f"attempt {state.attempt + 1}"
                        )
                        raise

                logger.info(
                    f"{prefix}Retry attempt {state.attempt + 1}/{state.max_retries} "
                    f"after {delay_ms}ms delay..."
                )
                await self._sleep(delay_ms / 1000)
                state.attempt += 1
