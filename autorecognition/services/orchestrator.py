"""
Recognition orchestrator: drives one attempt at a time through
confirmation → capture → recognition → parsing → result
"""
import asyncio
import time
import uuid
from functools import partial
from typing import Awaitable, Callable, Optional, Set

from PIL import Image

from autorecognition.core.exceptions import (
    ExpenseSubmissionError,
    InvalidStateTransitionError,
    PermissionDeniedError,
    RecognitionCancelledError,
    ScreenCaptureFailedError,
)
from autorecognition.core.logging import get_logger
from autorecognition.infrastructure.collaborators import (
    ExpenseSink,
    ScreenCaptureSource,
    TriggerSource,
)
from autorecognition.models.domain import ExpenseDraft, OCRResult, RecognitionResult, ResultEdits
from autorecognition.models.state import (
    CancelledState,
    CapturingScreenState,
    FailedState,
    FailureInfo,
    IdleState,
    ParsingState,
    RecognitionSnapshot,
    RecognizingState,
    SuccessState,
    WaitingForConfirmationState,
)
from autorecognition.observability import metrics
from autorecognition.services.category_scorer import CategoryScorer
from autorecognition.services.extraction_engine import ExtractionEngine
from autorecognition.services.retry_executor import (
    RetryExecutor,
    should_retry_parsing,
    should_retry_recognition,
)
from autorecognition.services.state_channel import StateChannel
from autorecognition.services.text_recognizer import TextRecognizer

logger = get_logger(__name__)

SleepFunc = Callable[[float], Awaitable[object]]


class AttemptToken:
    """Identity and cancellation flag of one recognition attempt"""

    def __init__(self):
        self.attempt_id = uuid.uuid4().hex
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def is_cancelled(self) -> bool:
        return self.cancelled


class RecognitionOrchestrator:
    """
    State machine coordinating the recognition pipeline

    All mutations happen on the event loop; observers read snapshots from the
    state channel. At most one attempt is active: a trigger is ignored unless
    the state is idle, failed or cancelled. Results that arrive for an attempt
    that is no longer current are dropped.
    """

    def __init__(
        self,
        recognizer: TextRecognizer,
        extraction_engine: ExtractionEngine,
        category_scorer: CategoryScorer,
        retry_executor: RetryExecutor,
        capture_source: ScreenCaptureSource,
        channel: Optional[StateChannel] = None,
        expense_sink: Optional[ExpenseSink] = None,
        enabled: bool = True,
        requires_confirmation: bool = True,
        confirmation_timeout: float = 2.0,
        cancel_cooldown: float = 1.0,
        sleep: SleepFunc = asyncio.sleep
    ):
        """
        Args:
            recognizer: Text recognition adapter
            extraction_engine: Field extraction
            category_scorer: Category suggestion
            retry_executor: Retry wrapper for the recognition and parsing stages
            capture_source: Supplies the screen image
            channel: Snapshot holder (a new one if None)
            expense_sink: Receives confirmed drafts
            enabled: Feature switch; triggers are ignored when off
            requires_confirmation: Run the confirmation countdown before capturing
            confirmation_timeout: Countdown length in seconds
            cancel_cooldown: Delay before a cancelled attempt returns to idle
            sleep: Awaitable sleep, replaceable in tests
        """
        self.recognizer = recognizer
        self.extraction_engine = extraction_engine
        self.category_scorer = category_scorer
        self.retry_executor = retry_executor
        self.capture_source = capture_source
        self.channel = channel or StateChannel()
        self.expense_sink = expense_sink
        self.enabled = enabled
        self.requires_confirmation = requires_confirmation
        self.confirmation_timeout = confirmation_timeout
        self.cancel_cooldown = cancel_cooldown
        self._sleep = sleep

        self._token: Optional[AttemptToken] = None
        self._tasks: Set[asyncio.Task] = set()
        self._trigger_source: Optional[TriggerSource] = None
        self._confirming = False

    @property
    def snapshot(self) -> RecognitionSnapshot:
        return self.channel.snapshot

    @property
    def state(self):
        return self.channel.state

    # Public operations

    def trigger(self) -> bool:
        """
        Start a new attempt

        Must be called from the event loop thread.

        Returns:
            True if an attempt was started, False if the trigger was ignored
        """
        if not self.enabled:
            logger.info("Trigger ignored, auto recognition disabled")
            return False

        state = self.state
        if not state.can_start_new_recognition:
            logger.info("Trigger ignored, attempt in progress", state=state.status.value)
            return False

        token = AttemptToken()
        self._token = token
        self._transition(
            token,
            WaitingForConfirmationState(),
            attempt_id=token.attempt_id,
            progress=0.0
        )
        self._spawn(self._run_attempt(token))
        return True

    def cancel(self) -> bool:
        """
        Cancel the active attempt

        The state becomes Cancelled immediately and returns to Idle after the
        cooldown unless a new attempt has started meanwhile.
        """
        token = self._token
        if token is None or not self.state.can_cancel:
            return False

        token.cancel()
        self.capture_source.clear()
        self._transition(token, CancelledState(), is_retrying=False)
        self._spawn(self._reset_after_cooldown(token))
        return True

    async def confirm(self, edits: Optional[ResultEdits] = None) -> ExpenseDraft:
        """
        Accept the recognized result and hand the expense draft downstream

        The state stays Success until the sink accepts the draft, so a failed
        submission can be confirmed again.

        Raises:
            InvalidStateTransitionError: No successful result to confirm, or a
                confirmation is already being submitted
            ExpenseSubmissionError: The sink rejected the draft
        """
        state = self.state
        if not isinstance(state, SuccessState):
            raise InvalidStateTransitionError(
                "There is no recognition result to confirm",
                details={"state": state.status.value}
            )
        if self._confirming:
            raise InvalidStateTransitionError(
                "The result is already being confirmed",
                details={"state": state.status.value}
            )

        result = state.result
        if edits is not None:
            result = result.apply_edits(edits)
        draft = result.to_expense_draft()

        self._confirming = True
        try:
            if self.expense_sink is not None:
                await self.expense_sink.submit(draft)
        except Exception as e:
            logger.error(
                "Expense submission failed",
                error=str(e),
                error_type=type(e).__name__
            )
            raise ExpenseSubmissionError(
                f"Expense submission failed: {str(e)}",
                details={"error": str(e), "error_type": type(e).__name__}
            ) from e
        finally:
            self._confirming = False

        logger.info(
            "Recognition result confirmed",
            amount=str(draft.amount),
            category=draft.category.value,
            edited=edits is not None
        )
        if isinstance(self.state, SuccessState):
            self._reset_to_idle()
        return draft

    def abandon(self) -> bool:
        """Discard a successful result"""
        if not isinstance(self.state, SuccessState) or self._confirming:
            return False
        logger.info("Recognition result abandoned")
        self._reset_to_idle()
        return True

    def dismiss(self) -> bool:
        """Acknowledge a failure"""
        if not isinstance(self.state, FailedState):
            return False
        self._reset_to_idle()
        return True

    def attach_trigger_source(self, source: TriggerSource) -> None:
        self.detach_trigger_source()
        source.start(self.trigger)
        self._trigger_source = source

    def detach_trigger_source(self) -> None:
        if self._trigger_source is not None:
            self._trigger_source.stop()
            self._trigger_source = None

    async def shutdown(self) -> None:
        """Stop listening for triggers and cancel all in-flight work"""
        self.detach_trigger_source()
        if self._token is not None:
            self._token.cancel()

        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Orchestrator shut down", cancelled_tasks=len(tasks))

    # Attempt pipeline

    async def _run_attempt(self, token: AttemptToken) -> None:
        outcome = "cancelled"
        metrics.active_attempts.inc()
        try:
            if self.requires_confirmation and self.confirmation_timeout > 0:
                await self._sleep(self.confirmation_timeout)

            if not self._is_current(token) or not isinstance(self.state, WaitingForConfirmationState):
                return

            result = await self._process(token)
            if self._transition(token, SuccessState(result=result), progress=1.0):
                outcome = "success"
                logger.info(
                    "Recognition succeeded",
                    attempt_id=token.attempt_id,
                    amounts=[str(amount) for amount in result.amounts],
                    merchant=result.merchant_name,
                    category=result.suggested_category.value,
                    category_confidence=round(result.category_confidence, 3)
                )
        except RecognitionCancelledError:
            logger.info("Attempt cancelled", attempt_id=token.attempt_id)
        except Exception as e:
            if self._fail(token, e):
                outcome = "failed"
        finally:
            metrics.active_attempts.dec()
            metrics.record_attempt(outcome)

    async def _process(self, token: AttemptToken) -> RecognitionResult:
        self._transition(token, CapturingScreenState(), progress=0.1)
        image = await self._capture()
        self._ensure_current(token)

        self._transition(token, RecognizingState(), progress=0.3)
        ocr_result = await self.retry_executor.execute_with_retry(
            partial(self.recognizer.recognize, image),
            retry_predicate=should_retry_recognition,
            on_retry=partial(self._on_retry, token, "recognizing"),
            is_cancelled=token.is_cancelled
        )
        self._ensure_current(token)
        self._publish(token, progress=0.5, is_retrying=False)

        self._transition(token, ParsingState(), progress=0.7)
        result = await self.retry_executor.execute_with_retry(
            partial(self._parse, ocr_result),
            retry_predicate=should_retry_parsing,
            on_retry=partial(self._on_retry, token, "parsing"),
            is_cancelled=token.is_cancelled
        )
        self._ensure_current(token)
        self._publish(token, progress=0.9, is_retrying=False)
        return result

    async def _capture(self) -> Image.Image:
        start_time = time.time()
        try:
            image = await self.capture_source.capture_screen()
        except (PermissionDeniedError, ScreenCaptureFailedError):
            raise
        except Exception as e:
            raise ScreenCaptureFailedError(
                f"Screen capture failed: {str(e)}",
                details={"error": str(e), "error_type": type(e).__name__}
            )
        finally:
            metrics.record_stage_duration("capturing", time.time() - start_time)

        if image is None:
            raise ScreenCaptureFailedError("Screen capture returned no image")
        return image

    async def _parse(self, ocr_result: OCRResult) -> RecognitionResult:
        start_time = time.time()
        try:
            fields = self.extraction_engine.extract(ocr_result)
            suggestion = self.category_scorer.suggest(
                ocr_result.raw_text,
                merchant=fields.merchant_name,
                description=fields.description,
                amounts=fields.amounts
            )
            return RecognitionResult.from_extraction(fields, suggestion)
        finally:
            metrics.record_stage_duration("parsing", time.time() - start_time)

    def _on_retry(
        self,
        token: AttemptToken,
        stage: str,
        retry_number: int,
        error: BaseException,
        delay: float
    ) -> None:
        metrics.record_retry(stage)
        logger.warning(
            "Retrying stage",
            attempt_id=token.attempt_id,
            stage=stage,
            retry=retry_number,
            max_retries=self.retry_executor.policy.max_retries,
            delay=delay,
            error=str(error)
        )
        self._publish(
            token,
            retry_count=retry_number,
            is_retrying=True,
            phase=f"Retrying ({retry_number}/{self.retry_executor.policy.max_retries})..."
        )

    def _fail(self, token: AttemptToken, error: BaseException) -> bool:
        if not self._is_current(token):
            logger.debug("Dropping failure of stale attempt", attempt_id=token.attempt_id, error=str(error))
            return False

        info = FailureInfo.from_error(error)
        logger.error(
            "Recognition failed",
            attempt_id=token.attempt_id,
            kind=info.kind.value,
            error=str(error),
            error_type=type(error).__name__
        )
        metrics.record_failure(info.kind.value)
        return self._transition(token, FailedState(error=info), is_retrying=False)

    async def _reset_after_cooldown(self, token: AttemptToken) -> None:
        await self._sleep(self.cancel_cooldown)
        if self._token is token and isinstance(self.state, CancelledState):
            self._reset_to_idle()

    # State helpers

    def _is_current(self, token: AttemptToken) -> bool:
        return self._token is token and not token.cancelled

    def _ensure_current(self, token: AttemptToken) -> None:
        if not self._is_current(token):
            raise RecognitionCancelledError()

    def _transition(self, token: AttemptToken, state, **changes) -> bool:
        """Publish a new state for `token`; ignored if the attempt is stale"""
        if self._token is not token:
            return False
        if token.cancelled and not isinstance(state, CancelledState):
            return False

        previous = self.state
        self.channel.publish(state=state, phase=state.description, **changes)
        logger.info(
            "State transition",
            attempt_id=token.attempt_id,
            from_state=previous.status.value,
            to_state=state.status.value
        )
        return True

    def _publish(self, token: AttemptToken, **changes) -> None:
        if self._is_current(token):
            self.channel.publish(**changes)

    def _reset_to_idle(self) -> None:
        previous = self.state
        self._token = None
        self.channel.publish(state=IdleState(), attempt_id=None, phase=IdleState().description)
        logger.info("State transition", from_state=previous.status.value, to_state="idle")

    def _spawn(self, coroutine) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coroutine)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task
