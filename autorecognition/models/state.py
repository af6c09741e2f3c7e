"""
Recognition state machine models

The state is a discriminated union on ``status``; exactly one variant is
active at a time and only the success/failure variants carry a payload.
"""
from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from autorecognition.core.enums import ErrorKind, RecognitionStatus
from autorecognition.core.exceptions import RecognitionError
from autorecognition.models.domain import RecognitionResult


class FailureInfo(BaseModel):
    """Actionable description of a failed attempt"""
    model_config = ConfigDict(frozen=True)

    kind: ErrorKind = Field(..., description="Failure kind")
    message: str = Field(..., description="What went wrong")
    recovery_suggestion: str = Field("", description="What the user can do")

    @classmethod
    def from_error(cls, error: BaseException) -> "FailureInfo":
        if isinstance(error, RecognitionError):
            return cls(
                kind=error.kind,
                message=error.message,
                recovery_suggestion=error.recovery_suggestion,
            )
        return cls(
            kind=ErrorKind.UNKNOWN,
            message=f"Unexpected error: {error}",
            recovery_suggestion=RecognitionError.recovery_suggestion,
        )


class _BaseState(BaseModel):
    model_config = ConfigDict(frozen=True)

    @property
    def is_processing(self) -> bool:
        return self.status in (
            RecognitionStatus.CAPTURING_SCREEN,
            RecognitionStatus.RECOGNIZING,
            RecognitionStatus.PARSING,
        )

    @property
    def can_start_new_recognition(self) -> bool:
        return self.status in (
            RecognitionStatus.IDLE,
            RecognitionStatus.FAILED,
            RecognitionStatus.CANCELLED,
        )

    @property
    def can_cancel(self) -> bool:
        return self.status == RecognitionStatus.WAITING_FOR_CONFIRMATION or self.is_processing

    @property
    def is_terminal(self) -> bool:
        return self.status in (
            RecognitionStatus.SUCCESS,
            RecognitionStatus.FAILED,
            RecognitionStatus.CANCELLED,
        )

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self.status]


class IdleState(_BaseState):
    status: Literal[RecognitionStatus.IDLE] = RecognitionStatus.IDLE


class WaitingForConfirmationState(_BaseState):
    status: Literal[RecognitionStatus.WAITING_FOR_CONFIRMATION] = (
        RecognitionStatus.WAITING_FOR_CONFIRMATION
    )


class CapturingScreenState(_BaseState):
    status: Literal[RecognitionStatus.CAPTURING_SCREEN] = RecognitionStatus.CAPTURING_SCREEN


class RecognizingState(_BaseState):
    status: Literal[RecognitionStatus.RECOGNIZING] = RecognitionStatus.RECOGNIZING


class ParsingState(_BaseState):
    status: Literal[RecognitionStatus.PARSING] = RecognitionStatus.PARSING


class SuccessState(_BaseState):
    status: Literal[RecognitionStatus.SUCCESS] = RecognitionStatus.SUCCESS
    result: RecognitionResult


class FailedState(_BaseState):
    status: Literal[RecognitionStatus.FAILED] = RecognitionStatus.FAILED
    error: FailureInfo

    @property
    def description(self) -> str:
        return f"Recognition failed: {self.error.message}"


class CancelledState(_BaseState):
    status: Literal[RecognitionStatus.CANCELLED] = RecognitionStatus.CANCELLED


RecognitionState = Annotated[
    Union[
        IdleState,
        WaitingForConfirmationState,
        CapturingScreenState,
        RecognizingState,
        ParsingState,
        SuccessState,
        FailedState,
        CancelledState,
    ],
    Field(discriminator="status"),
]


_DESCRIPTIONS = {
    RecognitionStatus.IDLE: "Ready",
    RecognitionStatus.WAITING_FOR_CONFIRMATION: "Waiting for confirmation",
    RecognitionStatus.CAPTURING_SCREEN: "Capturing screen...",
    RecognitionStatus.RECOGNIZING: "Recognizing text...",
    RecognitionStatus.PARSING: "Parsing data...",
    RecognitionStatus.SUCCESS: "Recognition succeeded",
    RecognitionStatus.FAILED: "Recognition failed",
    RecognitionStatus.CANCELLED: "Cancelled",
}


class RecognitionSnapshot(BaseModel):
    """Read-only view of the orchestrator handed to observers"""
    model_config = ConfigDict(frozen=True)

    attempt_id: Optional[str] = Field(None, description="Current attempt id")
    state: RecognitionState = Field(default_factory=IdleState, description="Current state")
    progress: float = Field(0.0, ge=0.0, le=1.0, description="Attempt progress")
    phase: str = Field("", description="Human readable phase label")
    retry_count: int = Field(0, ge=0, description="Retries in the current stage")
    is_retrying: bool = Field(False, description="A retry is pending")
    updated_at: datetime = Field(default_factory=datetime.now)
