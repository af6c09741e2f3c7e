from __future__ import annotations

import asyncio

import pytest

from autorecognition.core.exceptions import (
    DeviceOfflineError,
    LowConfidenceError,
    MalformedDataError,
    MaxRetriesExceededError,
    NoTextFoundError,
    NoValidAmountFoundError,
    OCRProcessingError,
    RecognitionCancelledError,
    TransientNetworkError,
)
from autorecognition.services.retry_executor import (
    RetryExecutor,
    RetryPolicy,
    retry_advice,
    should_retry_parsing,
    should_retry_recognition,
)


class FlakyOperation:
    def __init__(self, failures, result="ok"):
        self.failures = list(failures)
        self.result = result
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.failures:
            raise self.failures.pop(0)
        return self.result


@pytest.mark.asyncio
async def test_succeeds_after_two_retries(recording_sleep):
    executor = RetryExecutor(RetryPolicy(), sleep=recording_sleep)
    operation = FlakyOperation([TransientNetworkError(), TransientNetworkError()])

    result = await executor.execute_with_retry(operation, should_retry_recognition)

    assert result == "ok"
    assert operation.calls == 3
    assert recording_sleep.delays == [1.0, 2.0]
    assert sum(recording_sleep.delays) == 1.0 + 2.0


@pytest.mark.asyncio
async def test_always_failing_operation_makes_max_retries_plus_one_attempts(recording_sleep):
    executor = RetryExecutor(RetryPolicy(max_retries=3), sleep=recording_sleep)
    operation = FlakyOperation([TransientNetworkError()] * 10)

    with pytest.raises(MaxRetriesExceededError) as exc_info:
        await executor.execute_with_retry(operation)

    assert operation.calls == 4
    assert exc_info.value.attempts == 4
    assert isinstance(exc_info.value.cause, TransientNetworkError)
    assert recording_sleep.delays == [1.0, 2.0, 5.0]


@pytest.mark.asyncio
async def test_schedule_reuses_last_delay(recording_sleep):
    executor = RetryExecutor(RetryPolicy(max_retries=5, delays=(1.0, 2.0)), sleep=recording_sleep)

    with pytest.raises(MaxRetriesExceededError):
        await executor.execute_with_retry(FlakyOperation([TimeoutError()] * 10))

    assert recording_sleep.delays == [1.0, 2.0, 2.0, 2.0, 2.0]


@pytest.mark.asyncio
async def test_zero_retries_makes_one_attempt(recording_sleep):
    executor = RetryExecutor(RetryPolicy(max_retries=0), sleep=recording_sleep)
    operation = FlakyOperation([TransientNetworkError()])

    with pytest.raises(MaxRetriesExceededError):
        await executor.execute_with_retry(operation)

    assert operation.calls == 1
    assert recording_sleep.delays == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error, predicate",
    [
        (DeviceOfflineError(), should_retry_recognition),
        (NoTextFoundError(), should_retry_recognition),
        (LowConfidenceError(), should_retry_recognition),
        (MalformedDataError(), should_retry_parsing),
        (NoValidAmountFoundError(), should_retry_parsing),
    ],
)
async def test_non_retryable_errors_propagate_unchanged(recording_sleep, error, predicate):
    executor = RetryExecutor(sleep=recording_sleep)
    operation = FlakyOperation([error])

    with pytest.raises(type(error)) as exc_info:
        await executor.execute_with_retry(operation, predicate)

    assert exc_info.value is error
    assert operation.calls == 1
    assert recording_sleep.delays == []


@pytest.mark.asyncio
async def test_on_retry_reports_each_retry(recording_sleep):
    executor = RetryExecutor(sleep=recording_sleep)
    seen = []

    def on_retry(retry_number, error, delay):
        seen.append((retry_number, type(error).__name__, delay))

    await executor.execute_with_retry(
        FlakyOperation([OCRProcessingError(), ConnectionError()]),
        should_retry_recognition,
        on_retry=on_retry,
    )

    assert seen == [
        (1, "OCRProcessingError", 1.0),
        (2, "ConnectionError", 2.0),
    ]


@pytest.mark.asyncio
async def test_cancellation_observed_after_sleep(recording_sleep):
    executor = RetryExecutor(sleep=recording_sleep)
    operation = FlakyOperation([TransientNetworkError()] * 3)

    with pytest.raises(RecognitionCancelledError):
        await executor.execute_with_retry(operation, is_cancelled=lambda: True)

    assert operation.calls == 1
    assert recording_sleep.delays == [1.0]


@pytest.mark.parametrize(
    "error, recognition, parsing",
    [
        (TransientNetworkError(), True, True),
        (TimeoutError(), True, True),
        (ConnectionError(), True, True),
        (OCRProcessingError(), True, False),
        (DeviceOfflineError(), False, False),
        (MalformedDataError(), False, False),
        (NoValidAmountFoundError(), False, False),
        (ValueError(), False, False),
    ],
)
def test_stage_predicates(error, recognition, parsing):
    assert should_retry_recognition(error) is recognition
    assert should_retry_parsing(error) is parsing


def test_retry_advice():
    assert retry_advice(DeviceOfflineError()).should_retry is False
    assert retry_advice(TimeoutError()).should_retry is True
    assert retry_advice(MalformedDataError()).should_retry is False

    advice = retry_advice(NoTextFoundError())
    assert advice.message == NoTextFoundError.user_message
    assert advice.suggestion == NoTextFoundError.recovery_suggestion


@pytest.mark.asyncio
async def test_shared_executor_keeps_retry_numbers_per_call(recording_sleep):
    executor = RetryExecutor(sleep=recording_sleep)
    seen = {"first": [], "second": []}

    def recorder(name):
        return lambda retry_number, error, delay: seen[name].append(retry_number)

    results = await asyncio.gather(
        executor.execute_with_retry(
            FlakyOperation([TransientNetworkError()] * 2, result="first"),
            on_retry=recorder("first"),
        ),
        executor.execute_with_retry(
            FlakyOperation([TransientNetworkError()], result="second"),
            on_retry=recorder("second"),
        ),
    )

    assert results == ["first", "second"]
    assert seen == {"first": [1, 2], "second": [1]}
    assert not hasattr(executor, "retry_count")
