"""
Wrapper for EasyOCR
"""
import time
from typing import Optional, List

import numpy as np
import easyocr

from autorecognition.infrastructure.ocr_engines.base_engine import (
    BaseOCREngine,
    EngineOutput,
    RawTextUnit
)
from autorecognition.core.exceptions import OCRProcessingError, ConfigurationError
from autorecognition.core.logging import get_logger

logger = get_logger(__name__)


class EasyOCREngine(BaseOCREngine):
    """
    EasyOCR wrapper - alternative engine selected with OCR_ENGINE=easyocr
    """

    def __init__(
            self,
            languages: List[str] = None,
            gpu: bool = False
    ):
        """
        Args:
            languages: Recognition languages
            gpu: Use GPU when available
        """
        self.languages = languages or ['ch_sim', 'en']
        self.gpu = gpu
        self.reader: Optional[easyocr.Reader] = None

        logger.info(
            "EasyOCR engine configured",
            languages=self.languages,
            gpu=self.gpu
        )

    def initialize(self) -> None:
        """Initialize EasyOCR"""
        try:
            logger.info("Initializing EasyOCR...")

            self.reader = easyocr.Reader(
                lang_list=self.languages,
                gpu=self.gpu,
                verbose=False
            )

            logger.info("EasyOCR initialized successfully")

        except Exception as e:
            logger.error("Failed to initialize EasyOCR", error=str(e))
            raise ConfigurationError(
                f"Failed to initialize EasyOCR: {str(e)}",
                details={"error": str(e)}
            )

    def extract_text(self, image: np.ndarray) -> EngineOutput:
        if self.reader is None:
            raise OCRProcessingError(
                "EasyOCR not initialized. Call initialize() first."
            )

        try:
            start_time = time.time()

            # readtext returns [([bbox], text, confidence), ...]
            logger.debug("Starting EasyOCR text extraction")
            results = self.reader.readtext(image)

            processing_time_ms = int((time.time() - start_time) * 1000)

            if not results:
                logger.warning("EasyOCR returned empty result")
                return EngineOutput(units=[], processing_time_ms=processing_time_ms)

            units = [
                RawTextUnit(
                    text=text,
                    confidence=float(confidence),
                    bbox=[[float(x), float(y)] for x, y in bbox]
                )
                for bbox, text, confidence in results
            ]

            logger.info(
                "EasyOCR extraction completed",
                units_count=len(units),
                processing_time_ms=processing_time_ms
            )

            return EngineOutput(units=units, processing_time_ms=processing_time_ms)

        except (TimeoutError, ConnectionError):
            raise
        except Exception as e:
            logger.error("EasyOCR extraction failed", error=str(e))
            raise OCRProcessingError(
                f"Failed to extract text with EasyOCR: {str(e)}",
                details={"error": str(e)}
            )

    def is_available(self) -> bool:
        return self.reader is not None

    def cleanup(self) -> None:
        """Release resources"""
        if self.reader is not None:
            logger.info("Cleaning up EasyOCR resources")
            self.reader = None
