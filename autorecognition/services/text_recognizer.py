"""
Text recognition adapter: preprocessing → OCR engine → classified text blocks
"""
import asyncio
import re
import threading
import time
from concurrent.futures import Executor
from typing import List, Optional

from autorecognition.core.enums import TextBlockType
from autorecognition.core.exceptions import (
    LowConfidenceError,
    NoTextFoundError,
    OCRProcessingError,
    RecognitionError,
    TransientNetworkError,
)
from autorecognition.core.logging import get_logger
from autorecognition.core.vocabulary import (
    CURRENCY_SYMBOLS,
    CURRENCY_WORDS,
    MERCHANT_KEYWORDS,
    find_payment_method,
)
from autorecognition.infrastructure.ocr_engines.base_engine import BaseOCREngine, RawTextUnit
from autorecognition.models.domain import BoundingBox, OCRResult, TextBlock
from autorecognition.observability import metrics
from autorecognition.utils.image_utils import ImageInput, load_image, preprocess_image, to_numpy

logger = get_logger(__name__)

_NUMBER = r"\d[\d,]*"

AMOUNT_PATTERNS = [
    re.compile(rf"^[{CURRENCY_SYMBOLS}]?{_NUMBER}(?:\.\d+)?$"),  # ¥1,234.50 / 88
    re.compile(rf"^{_NUMBER}\.\d{{2}}元?$"),  # 25.80元
    re.compile(rf"^{_NUMBER}(?:\.\d+)?\s*{CURRENCY_WORDS}$"),  # 30元 / 12.5 rmb
]
DATE_PATTERNS = [
    re.compile(r"\d{4}-\d{1,2}-\d{1,2}"),
    re.compile(r"\d{4}/\d{1,2}/\d{1,2}"),
    re.compile(r"\d{4}年\d{1,2}月\d{1,2}日"),
]
TIME_PATTERN = re.compile(r"\d{1,2}:\d{2}")
WHITESPACE = re.compile(r"\s+")


def clean_text(text: str) -> str:
    """Trim and collapse whitespace"""
    return WHITESPACE.sub(" ", text.strip())


def classify_text(text: str) -> TextBlockType:
    """
    Classify a text unit; the first matching rule wins

    Order: amount, currency, date, time, merchant, header, general.
    """
    normalized = text.lower().strip()

    if any(pattern.match(normalized) for pattern in AMOUNT_PATTERNS):
        return TextBlockType.AMOUNT

    if any(symbol in normalized for symbol in CURRENCY_SYMBOLS):
        return TextBlockType.CURRENCY

    if any(pattern.search(normalized) for pattern in DATE_PATTERNS):
        return TextBlockType.DATE

    if TIME_PATTERN.search(normalized):
        return TextBlockType.TIME

    if len(text) > 3 and any(keyword in normalized for keyword in MERCHANT_KEYWORDS):
        return TextBlockType.MERCHANT

    if len(text) <= 10 and " " not in normalized:
        return TextBlockType.HEADER

    return TextBlockType.GENERAL


def build_text_block(unit: RawTextUnit, text: str) -> TextBlock:
    block_type = classify_text(text)
    is_potential_merchant = (
        block_type in (TextBlockType.MERCHANT, TextBlockType.HEADER)
        and find_payment_method(text) is None
    )
    return TextBlock(
        text=text,
        confidence=min(max(float(unit.confidence), 0.0), 1.0),
        bounding_box=BoundingBox.from_points(unit.bbox),
        block_type=block_type,
        is_potential_amount=block_type in (TextBlockType.AMOUNT, TextBlockType.CURRENCY),
        is_potential_merchant=is_potential_merchant,
    )


class RecognitionStats:
    """
    Running recognition statistics, logged every `log_every` calls

    Recorded from OCR worker threads, so updates are lock-guarded.
    """

    def __init__(self, log_every: int = 10):
        self.log_every = log_every
        self._lock = threading.Lock()
        self.recognition_count = 0
        self.success_count = 0
        self.total_processing_time = 0.0

    @property
    def success_rate(self) -> float:
        return self.success_count / self.recognition_count if self.recognition_count else 0.0

    @property
    def average_time_ms(self) -> float:
        if not self.recognition_count:
            return 0.0
        return self.total_processing_time / self.recognition_count * 1000

    def record(self, success: bool, processing_time: float) -> None:
        with self._lock:
            self.recognition_count += 1
            self.total_processing_time += processing_time
            if success:
                self.success_count += 1

            should_log = self.recognition_count % self.log_every == 0
            recognitions = self.recognition_count
            success_rate = self.success_rate
            average_time_ms = self.average_time_ms

        if should_log:
            logger.info(
                "OCR statistics",
                recognitions=recognitions,
                success_rate=round(success_rate, 3),
                average_time_ms=round(average_time_ms, 1)
            )


class TextRecognizer:
    """
    Wraps an OCR engine and turns its output into classified text blocks
    """

    def __init__(
        self,
        engine: BaseOCREngine,
        min_block_confidence: float = 0.3,
        min_overall_confidence: float = 0.5,
        max_dimension: int = 2048,
        min_dimension: int = 512,
        contrast: float = 1.2,
        brightness: float = 1.1,
        executor: Optional[Executor] = None
    ):
        """
        Args:
            engine: OCR engine
            min_block_confidence: Units below this confidence are discarded
            min_overall_confidence: Minimum mean confidence of surviving units
            max_dimension: Upper bound for the longest image side
            min_dimension: Lower bound for the shortest image side
            contrast: Contrast enhancement factor
            brightness: Brightness enhancement factor
            executor: Pool the blocking engine call runs in (loop default if None)
        """
        self.engine = engine
        self.min_block_confidence = min_block_confidence
        self.min_overall_confidence = min_overall_confidence
        self.max_dimension = max_dimension
        self.min_dimension = min_dimension
        self.contrast = contrast
        self.brightness = brightness
        self.executor = executor
        self.stats = RecognitionStats()

    async def recognize(self, image: ImageInput) -> OCRResult:
        """
        Recognize text on a screenshot without blocking the event loop

        Raises:
            NoTextFoundError: No unit survived filtering
            LowConfidenceError: Mean confidence is below the threshold
            OCRProcessingError: The engine failed
            TransientNetworkError: Timeout or connection failure
            DeviceOfflineError: Engine unreachable while offline
        """
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self.executor, self.recognize_sync, image)

    def recognize_sync(self, image: ImageInput) -> OCRResult:
        start_time = time.time()
        success = False
        try:
            result = self._recognize(image, start_time)
            success = True
            return result
        finally:
            elapsed = time.time() - start_time
            self.stats.record(success, elapsed)
            metrics.record_stage_duration("recognizing", elapsed)

    def _recognize(self, image: ImageInput, start_time: float) -> OCRResult:
        pil_image = load_image(image)
        prepared = preprocess_image(
            pil_image,
            max_dimension=self.max_dimension,
            min_dimension=self.min_dimension,
            contrast=self.contrast,
            brightness=self.brightness
        )

        try:
            output = self.engine.extract_text(to_numpy(prepared))
        except RecognitionError:
            raise
        except (TimeoutError, ConnectionError) as e:
            raise TransientNetworkError(
                f"OCR engine call failed: {str(e)}",
                details={"error": str(e), "error_type": type(e).__name__}
            )
        except Exception as e:
            logger.error("OCR engine failed", error=str(e))
            raise OCRProcessingError(
                f"OCR engine failed: {str(e)}",
                details={"error": str(e)}
            )

        blocks = self._build_blocks(output.units)

        if not blocks:
            logger.warning("No text survived filtering", raw_units=len(output.units))
            raise NoTextFoundError(details={"raw_units": len(output.units)})

        overall_confidence = sum(block.confidence for block in blocks) / len(blocks)
        if overall_confidence < self.min_overall_confidence:
            logger.warning(
                "Recognition confidence too low",
                overall_confidence=round(overall_confidence, 3),
                threshold=self.min_overall_confidence
            )
            raise LowConfidenceError(
                f"Recognition confidence too low: {overall_confidence:.2f}",
                details={"overall_confidence": overall_confidence}
            )

        processing_time_ms = int((time.time() - start_time) * 1000)
        logger.info(
            "Text recognized",
            blocks_count=len(blocks),
            overall_confidence=round(overall_confidence, 3),
            processing_time_ms=processing_time_ms,
            text=" | ".join(block.text for block in blocks)
        )

        return OCRResult(
            blocks=tuple(blocks),
            overall_confidence=overall_confidence,
            processing_time_ms=processing_time_ms,
            image_size=prepared.size
        )

    def _build_blocks(self, units: List[RawTextUnit]) -> List[TextBlock]:
        blocks = []
        for unit in units:
            if unit.confidence < self.min_block_confidence:
                continue
            text = clean_text(unit.text or "")
            if not text:
                continue
            blocks.append(build_text_block(unit, text))
        return blocks

    def is_ready(self) -> bool:
        return self.engine.is_available()
