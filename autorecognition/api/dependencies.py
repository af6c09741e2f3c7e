"""
FastAPI dependencies for dependency injection
"""
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from functools import lru_cache

from autorecognition.config import get_settings
from autorecognition.core.enums import OCREngine
from autorecognition.core.exceptions import ConfigurationError
from autorecognition.core.logging import get_logger
from autorecognition.infrastructure.collaborators import (
    LoggingExpenseSink,
    ManualTriggerSource,
    UploadedScreenCapture,
)
from autorecognition.infrastructure.ocr_engines.base_engine import BaseOCREngine
from autorecognition.services.category_scorer import CategoryScorer
from autorecognition.services.category_taxonomy import load_taxonomy
from autorecognition.services.extraction_engine import ExtractionEngine
from autorecognition.services.orchestrator import RecognitionOrchestrator
from autorecognition.services.retry_executor import RetryExecutor, RetryPolicy
from autorecognition.services.state_channel import StateChannel
from autorecognition.services.text_recognizer import TextRecognizer

logger = get_logger(__name__)


@lru_cache()
def get_ocr_engine() -> BaseOCREngine:
    """
    Get the configured OCR engine (singleton)
    Initialized once and reused
    """
    settings = get_settings()

    # Engine packages are optional extras, import only the selected one
    if settings.OCR_ENGINE == OCREngine.PADDLEOCR:
        from autorecognition.infrastructure.ocr_engines.paddleocr_engine import PaddleOCREngine

        engine = PaddleOCREngine(
            use_angle_cls=settings.PADDLEOCR_USE_ANGLE_CLS,
            lang=settings.PADDLEOCR_LANG,
            use_gpu=settings.PADDLEOCR_USE_GPU,
            show_log=settings.PADDLEOCR_SHOW_LOG
        )
    elif settings.OCR_ENGINE == OCREngine.EASYOCR:
        from autorecognition.infrastructure.ocr_engines.easyocr_engine import EasyOCREngine

        engine = EasyOCREngine(
            languages=settings.easyocr_languages_list,
            gpu=settings.EASYOCR_USE_GPU
        )
    else:
        raise ConfigurationError(f"Unsupported OCR engine: {settings.OCR_ENGINE}")

    engine.initialize()
    return engine


@lru_cache()
def get_ocr_executor() -> ThreadPoolExecutor:
    """Pool for blocking OCR calls (singleton)"""
    settings = get_settings()
    return ThreadPoolExecutor(max_workers=settings.OCR_WORKERS, thread_name_prefix="ocr")


@lru_cache()
def get_text_recognizer() -> TextRecognizer:
    settings = get_settings()

    return TextRecognizer(
        engine=get_ocr_engine(),
        min_block_confidence=settings.OCR_MIN_BLOCK_CONFIDENCE,
        min_overall_confidence=settings.OCR_MIN_OVERALL_CONFIDENCE,
        max_dimension=settings.IMAGE_MAX_DIMENSION,
        min_dimension=settings.IMAGE_MIN_DIMENSION,
        contrast=settings.IMAGE_CONTRAST,
        brightness=settings.IMAGE_BRIGHTNESS,
        executor=get_ocr_executor()
    )


@lru_cache()
def get_extraction_engine() -> ExtractionEngine:
    settings = get_settings()
    return ExtractionEngine(max_amount=Decimal(str(settings.MAX_AMOUNT)))


@lru_cache()
def get_category_scorer() -> CategoryScorer:
    settings = get_settings()

    return CategoryScorer(
        taxonomy=load_taxonomy(settings.CATEGORY_TAXONOMY_PATH),
        low_confidence_floor=settings.CATEGORY_LOW_CONFIDENCE_FLOOR,
        fallback_confidence=settings.CATEGORY_FALLBACK_CONFIDENCE
    )


@lru_cache()
def get_capture_source() -> UploadedScreenCapture:
    """Capture source fed by the trigger endpoint (singleton)"""
    return UploadedScreenCapture()


@lru_cache()
def get_trigger_source() -> ManualTriggerSource:
    """Trigger source fired by the trigger endpoint (singleton)"""
    return ManualTriggerSource()


@lru_cache()
def get_orchestrator() -> RecognitionOrchestrator:
    """
    Get the recognition orchestrator (singleton)
    Wires every pipeline stage from settings
    """
    settings = get_settings()

    orchestrator = RecognitionOrchestrator(
        recognizer=get_text_recognizer(),
        extraction_engine=get_extraction_engine(),
        category_scorer=get_category_scorer(),
        retry_executor=RetryExecutor(
            RetryPolicy(
                max_retries=settings.RETRY_MAX_RETRIES,
                delays=settings.retry_delays_list
            )
        ),
        capture_source=get_capture_source(),
        channel=StateChannel(),
        expense_sink=LoggingExpenseSink(),
        enabled=settings.AUTO_RECOGNITION_ENABLED,
        requires_confirmation=settings.REQUIRES_CONFIRMATION,
        confirmation_timeout=settings.CONFIRMATION_TIMEOUT,
        cancel_cooldown=settings.CANCEL_COOLDOWN
    )

    logger.info(
        "Orchestrator created",
        ocr_engine=settings.OCR_ENGINE.value,
        enabled=settings.AUTO_RECOGNITION_ENABLED,
        max_retries=settings.RETRY_MAX_RETRIES
    )
    return orchestrator
