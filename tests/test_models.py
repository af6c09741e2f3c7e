from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import pytest
from pydantic import ValidationError

from autorecognition.core.enums import CategoryId, ErrorKind, RecognitionStatus
from autorecognition.core.exceptions import MaxRetriesExceededError, NoTextFoundError
from autorecognition.models.domain import BoundingBox, RecognitionResult, ResultEdits
from autorecognition.models.state import (
    CancelledState,
    FailedState,
    FailureInfo,
    IdleState,
    ParsingState,
    RecognitionSnapshot,
    SuccessState,
    WaitingForConfirmationState,
)


def make_result(**overrides) -> RecognitionResult:
    values = dict(
        amounts=[Decimal("25.80"), Decimal("3.5"), Decimal("25.80")],
        merchant_name="星巴克",
        description="拿铁",
        payment_method="wechat",
        suggested_category=CategoryId.FOOD,
        category_confidence=0.8,
        ocr_confidence=0.95,
        timestamp=datetime(2024, 3, 1, 12, 0),
    )
    values.update(overrides)
    return RecognitionResult(**values)


def test_amounts_are_normalized():
    result = make_result()
    assert result.amounts == [Decimal("3.50"), Decimal("25.80")]
    assert result.total_amount == Decimal("29.30")
    assert result.is_valid
    assert result.has_high_confidence_category


def test_non_positive_amounts_are_dropped():
    result = make_result(amounts=[Decimal("0"), Decimal("-1")])
    assert result.amounts == []
    assert not result.is_valid


def test_best_description_order():
    assert make_result().best_description == "星巴克"
    assert make_result(merchant_name=None).best_description == "拿铁"
    assert make_result(merchant_name=None, description=None).best_description == "Unknown expense"


def test_apply_edits_and_draft():
    edits = ResultEdits(
        selected_amount=Decimal("3.5"),
        description="早餐",
        date=datetime(2024, 2, 29),
        category=CategoryId.SHOPPING,
    )

    edited = make_result().apply_edits(edits)
    draft = edited.to_expense_draft()

    assert draft.amount == Decimal("3.50")
    assert draft.description == "早餐"
    assert draft.date == datetime(2024, 2, 29)
    assert draft.category == CategoryId.SHOPPING
    assert draft.payment_method == "wechat"
    assert draft.tags == []


def test_draft_defaults():
    draft = make_result(payment_method=None).to_expense_draft()
    assert draft.amount == Decimal("29.30")
    assert draft.payment_method == "cash"
    assert draft.date == datetime(2024, 3, 1, 12, 0)


def test_edits_reject_non_positive_amount():
    with pytest.raises(ValidationError):
        ResultEdits(selected_amount=Decimal("0"))


def test_bounding_box_from_points():
    box = BoundingBox.from_points([[10, 20], [110, 22], [110, 52], [10, 50]])
    assert (box.x, box.y, box.width, box.height) == (10, 20, 100, 32)


@pytest.mark.parametrize(
    "state, processing, can_start, can_cancel, terminal",
    [
        (IdleState(), False, True, False, False),
        (WaitingForConfirmationState(), False, False, True, False),
        (ParsingState(), True, False, True, False),
        (SuccessState(result=make_result()), False, False, False, True),
        (FailedState(error=FailureInfo.from_error(NoTextFoundError())), False, True, False, True),
        (CancelledState(), False, True, False, True),
    ],
)
def test_state_helpers(state, processing, can_start, can_cancel, terminal):
    assert state.is_processing is processing
    assert state.can_start_new_recognition is can_start
    assert state.can_cancel is can_cancel
    assert state.is_terminal is terminal


def test_failure_info_from_errors():
    info = FailureInfo.from_error(MaxRetriesExceededError(TimeoutError("slow"), attempts=4))
    assert info.kind == ErrorKind.MAX_RETRIES_EXCEEDED
    assert "4 attempts" in info.message
    assert info.recovery_suggestion

    unknown = FailureInfo.from_error(ValueError("bad"))
    assert unknown.kind == ErrorKind.UNKNOWN


def test_snapshot_round_trips_discriminated_state():
    snapshot = RecognitionSnapshot(state=SuccessState(result=make_result()), attempt_id="a")
    restored = RecognitionSnapshot.model_validate_json(snapshot.model_dump_json())

    assert restored.state.status == RecognitionStatus.SUCCESS
    assert restored.state.result.total_amount == Decimal("29.30")


def test_category_display_names():
    assert CategoryId.FOOD.display_name == "Food & Dining"
    assert all(category.display_name for category in CategoryId)
