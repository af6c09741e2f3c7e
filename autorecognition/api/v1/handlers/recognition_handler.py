"""
Recognition handlers - trigger, observe and resolve recognition attempts
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from autorecognition.api.dependencies import (
    get_capture_source,
    get_orchestrator,
    get_trigger_source,
)
from autorecognition.config import get_settings
from autorecognition.core.exceptions import (
    ExpenseSubmissionError,
    ImageValidationError,
    InvalidStateTransitionError,
)
from autorecognition.core.logging import get_logger
from autorecognition.infrastructure.collaborators import ManualTriggerSource, UploadedScreenCapture
from autorecognition.models.domain import ResultEdits
from autorecognition.models.requests import TriggerRequest
from autorecognition.models.responses import ActionResponse, ConfirmResponse, TriggerResponse
from autorecognition.models.state import RecognitionSnapshot
from autorecognition.services.orchestrator import RecognitionOrchestrator
from autorecognition.utils.image_utils import (
    decode_base64_image,
    validate_image_format,
    validate_image_size,
)

logger = get_logger(__name__)
router = APIRouter(prefix="/recognition", tags=["Recognition"])


@router.post("/trigger", response_model=TriggerResponse, status_code=status.HTTP_202_ACCEPTED)
async def trigger_recognition(
    request: TriggerRequest,
    orchestrator: RecognitionOrchestrator = Depends(get_orchestrator),
    capture_source: UploadedScreenCapture = Depends(get_capture_source),
    trigger_source: ManualTriggerSource = Depends(get_trigger_source)
) -> TriggerResponse:
    """
    Start a recognition on a screenshot

    The screenshot becomes the image of the next capture and the trigger
    signal is fired.

    Raises:
        HTTPException 400: Image validation failed
        HTTPException 409: An attempt is already in progress
        HTTPException 503: The orchestrator is not listening for triggers
    """
    settings = get_settings()

    if not orchestrator.state.can_start_new_recognition:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "error": "Recognition in progress",
                "state": orchestrator.state.status.value
            }
        )

    try:
        image_bytes = decode_base64_image(request.image)
        validate_image_size(image_bytes, settings.MAX_IMAGE_SIZE_MB)
        image_format = validate_image_format(image_bytes)
    except ImageValidationError as e:
        logger.warning("Image validation failed", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "Image validation failed",
                "message": e.message,
                "details": e.details
            }
        )

    if image_format.value not in settings.allowed_image_formats_list:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "Image validation failed",
                "message": f"Image format {image_format.value} is not allowed",
                "details": {"allowed_formats": settings.allowed_image_formats_list}
            }
        )

    if not trigger_source.is_started:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error": "Auto recognition is not running"}
        )

    capture_source.submit(image_bytes)
    accepted = bool(trigger_source.fire())
    if not accepted:
        capture_source.clear()

    logger.info("Trigger request handled", accepted=accepted, image_format=image_format.value)
    return TriggerResponse(accepted=accepted, state=orchestrator.snapshot)


@router.post("/cancel", response_model=ActionResponse)
async def cancel_recognition(
    orchestrator: RecognitionOrchestrator = Depends(get_orchestrator)
) -> ActionResponse:
    """Cancel the active attempt"""
    success = orchestrator.cancel()
    return ActionResponse(success=success, state=orchestrator.snapshot)


@router.post("/confirm", response_model=ConfirmResponse)
async def confirm_recognition(
    edits: Optional[ResultEdits] = None,
    orchestrator: RecognitionOrchestrator = Depends(get_orchestrator)
) -> ConfirmResponse:
    """
    Confirm the recognized result, optionally with edits

    Raises:
        HTTPException 409: There is no result to confirm
        HTTPException 502: The expense could not be saved downstream
    """
    try:
        draft = await orchestrator.confirm(edits)
    except InvalidStateTransitionError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "error": "Nothing to confirm",
                "message": e.message,
                "details": e.details
            }
        )
    except ExpenseSubmissionError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={
                "error": "Expense submission failed",
                "message": e.message,
                "details": e.details
            }
        )

    return ConfirmResponse(draft=draft, state=orchestrator.snapshot)


@router.post("/abandon", response_model=ActionResponse)
async def abandon_recognition(
    orchestrator: RecognitionOrchestrator = Depends(get_orchestrator)
) -> ActionResponse:
    """Discard the recognized result"""
    success = orchestrator.abandon()
    return ActionResponse(success=success, state=orchestrator.snapshot)


@router.post("/dismiss", response_model=ActionResponse)
async def dismiss_failure(
    orchestrator: RecognitionOrchestrator = Depends(get_orchestrator)
) -> ActionResponse:
    """Acknowledge a failed attempt"""
    success = orchestrator.dismiss()
    return ActionResponse(success=success, state=orchestrator.snapshot)


@router.get("/state", response_model=RecognitionSnapshot)
async def get_state(
    orchestrator: RecognitionOrchestrator = Depends(get_orchestrator)
) -> RecognitionSnapshot:
    """Current snapshot of the recognition state machine"""
    return orchestrator.snapshot
