"""
Bounded retry executor with per-stage retry predicates
"""
import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Tuple, TypeVar

from autorecognition.core.exceptions import (
    DeviceOfflineError,
    LowConfidenceError,
    MalformedDataError,
    MaxRetriesExceededError,
    NoTextFoundError,
    OCRProcessingError,
    RecognitionCancelledError,
    RecognitionError,
    TransientNetworkError,
)
from autorecognition.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

RetryPredicate = Callable[[BaseException], bool]
RetryCallback = Callable[[int, BaseException, float], Any]
SleepFunc = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry budget and delay schedule

    The schedule is front-loaded rather than exponential; attempts past its
    end reuse the last delay.
    """
    max_retries: int = 3
    delays: Tuple[float, ...] = (1.0, 2.0, 5.0)

    def delay_for(self, retry_number: int) -> float:
        """Delay before retry number `retry_number` (1-based)"""
        if not self.delays:
            return 0.0
        return self.delays[min(retry_number - 1, len(self.delays) - 1)]


@dataclass(frozen=True)
class RetryAdvice:
    """User-facing hint for a failed operation"""
    should_retry: bool
    message: str
    suggestion: str


def always_retry(error: BaseException) -> bool:
    return True


def should_retry_recognition(error: BaseException) -> bool:
    """
    Retry timeouts, connection failures and engine hiccups

    An offline device will not recover within the retry window, and a
    screenshot without readable text stays unreadable.
    """
    if isinstance(error, (DeviceOfflineError, NoTextFoundError, LowConfidenceError)):
        return False
    return isinstance(
        error, (TransientNetworkError, OCRProcessingError, TimeoutError, ConnectionError)
    )


def should_retry_parsing(error: BaseException) -> bool:
    """Never retry malformed data or deterministic extraction failures"""
    if isinstance(error, MalformedDataError):
        return False
    if isinstance(error, RecognitionError):
        return isinstance(error, TransientNetworkError) and not isinstance(error, DeviceOfflineError)
    return isinstance(error, (TimeoutError, ConnectionError))


def retry_advice(error: BaseException) -> RetryAdvice:
    if isinstance(error, DeviceOfflineError):
        return RetryAdvice(False, "No network connection", "Make sure the device is online")
    if isinstance(error, (TransientNetworkError, TimeoutError)):
        return RetryAdvice(True, "Network timeout", "The network is slow, try again shortly")
    if isinstance(error, ConnectionError):
        return RetryAdvice(True, "Server connection failed", "The server may be temporarily unavailable")
    if isinstance(error, MalformedDataError):
        return RetryAdvice(False, "Invalid data", "Try again with a different screenshot")
    if isinstance(error, RecognitionError):
        return RetryAdvice(False, error.user_message, error.recovery_suggestion)
    return RetryAdvice(True, "Unknown error", "Please try again later")


class RetryExecutor:
    """
    Runs an async operation, retrying failures the predicate accepts

    Attempts run strictly one after another. The executor keeps no retry
    state between calls, so concurrent callers may share it; retry progress
    is reported through `on_retry`.
    """

    def __init__(
        self,
        policy: RetryPolicy = RetryPolicy(),
        sleep: SleepFunc = asyncio.sleep
    ):
        """
        Args:
            policy: Retry budget and delay schedule
            sleep: Awaitable sleep, replaceable in tests
        """
        self.policy = policy
        self._sleep = sleep

    async def execute_with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        retry_predicate: RetryPredicate = always_retry,
        on_retry: Optional[RetryCallback] = None,
        is_cancelled: Optional[Callable[[], bool]] = None
    ) -> T:
        """
        Execute `operation` with bounded retries

        Args:
            operation: Zero-argument coroutine factory
            retry_predicate: Decides whether an error is worth retrying
            on_retry: Called with (retry number, error, delay) before each sleep
            is_cancelled: Checked after every sleep; True aborts the loop

        Returns:
            The operation result

        Raises:
            MaxRetriesExceededError: Every attempt failed with a retryable error
            RecognitionCancelledError: Cancellation observed after a sleep
            Exception: A non-retryable error, unchanged
        """
        attempt = 0

        while attempt <= self.policy.max_retries:
            try:
                result = await operation()
            except Exception as e:
                logger.warning(
                    "Operation failed",
                    attempt=attempt + 1,
                    max_attempts=self.policy.max_retries + 1,
                    error=str(e),
                    error_type=type(e).__name__
                )

                if not retry_predicate(e):
                    raise

                if attempt >= self.policy.max_retries:
                    raise MaxRetriesExceededError(e, attempts=attempt + 1) from e

                attempt += 1
                delay = self.policy.delay_for(attempt)

                if on_retry is not None:
                    on_retry(attempt, e, delay)

                await self._sleep(delay)

                if is_cancelled is not None and is_cancelled():
                    raise RecognitionCancelledError()
                continue

            return result

        # Unreachable with max_retries >= 0
        raise RuntimeError("retry loop exited without a result")
