"""
Health check handlers
"""
from fastapi import APIRouter, Depends

from autorecognition.api.dependencies import get_orchestrator
from autorecognition.config import get_settings
from autorecognition.models.responses import HealthResponse
from autorecognition.services.orchestrator import RecognitionOrchestrator

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("", response_model=HealthResponse)
@router.get("/", response_model=HealthResponse, include_in_schema=False)
async def health_check(
    orchestrator: RecognitionOrchestrator = Depends(get_orchestrator)
) -> HealthResponse:
    """
    Basic health check
    Confirms the service is up and reports OCR engine availability
    """
    settings = get_settings()

    return HealthResponse(
        status="healthy",
        version=settings.APP_VERSION,
        ocr_engine=settings.OCR_ENGINE,
        ocr_engine_available=orchestrator.recognizer.is_ready(),
        auto_recognition_enabled=orchestrator.enabled
    )


@router.get("/ready", response_model=HealthResponse)
async def readiness_check(
    orchestrator: RecognitionOrchestrator = Depends(get_orchestrator)
) -> HealthResponse:
    """
    Readiness check for Kubernetes
    Ready once the OCR engine can accept work
    """
    settings = get_settings()
    is_ready = orchestrator.recognizer.is_ready()

    return HealthResponse(
        status="ready" if is_ready else "not_ready",
        version=settings.APP_VERSION,
        ocr_engine=settings.OCR_ENGINE,
        ocr_engine_available=is_ready,
        auto_recognition_enabled=orchestrator.enabled
    )
