"""
Wrapper for PaddleOCR
"""
import time
from typing import Optional

import numpy as np
from paddleocr import PaddleOCR

from autorecognition.infrastructure.ocr_engines.base_engine import (
    BaseOCREngine,
    EngineOutput,
    RawTextUnit
)
from autorecognition.core.exceptions import OCRProcessingError, ConfigurationError
from autorecognition.core.logging import get_logger

logger = get_logger(__name__)


class PaddleOCREngine(BaseOCREngine):
    """
    PaddleOCR wrapper - default engine, strong on mixed Chinese/Latin screens
    """

    def __init__(
        self,
        use_angle_cls: bool = True,
        lang: str = 'ch',
        use_gpu: bool = False,
        show_log: bool = False
    ):
        """
        Args:
            use_angle_cls: Use rotation angle classification
            lang: Recognition language ('ch', 'en', ...)
            use_gpu: Use GPU
            show_log: Show PaddleOCR logs
        """
        self.use_angle_cls = use_angle_cls
        self.lang = lang
        self.use_gpu = use_gpu
        self.show_log = show_log
        self.ocr: Optional[PaddleOCR] = None

        logger.info(
            "PaddleOCR engine configured",
            use_angle_cls=use_angle_cls,
            lang=lang,
            use_gpu=use_gpu
        )

    def initialize(self) -> None:
        """Initialize PaddleOCR"""
        try:
            logger.info("Initializing PaddleOCR...")

            self.ocr = PaddleOCR(
                use_angle_cls=self.use_angle_cls,
                lang=self.lang,
                use_gpu=self.use_gpu,
                show_log=self.show_log
            )

            logger.info("PaddleOCR initialized successfully")

        except Exception as e:
            logger.error("Failed to initialize PaddleOCR", error=str(e))
            raise ConfigurationError(
                f"Failed to initialize PaddleOCR: {str(e)}",
                details={"error": str(e)}
            )

    def extract_text(self, image: np.ndarray) -> EngineOutput:
        if self.ocr is None:
            raise OCRProcessingError(
                "PaddleOCR not initialized. Call initialize() first."
            )

        try:
            start_time = time.time()

            logger.debug("Starting PaddleOCR text extraction")
            result = self.ocr.ocr(image, cls=self.use_angle_cls)

            processing_time_ms = int((time.time() - start_time) * 1000)

            if not result or not result[0]:
                logger.warning("PaddleOCR returned empty result")
                return EngineOutput(units=[], processing_time_ms=processing_time_ms)

            units = []
            for line in result[0]:
                bbox = line[0]  # [[x1,y1], [x2,y2], [x3,y3], [x4,y4]]
                text, confidence = line[1][0], float(line[1][1])
                units.append(
                    RawTextUnit(
                        text=text,
                        confidence=confidence,
                        bbox=[[float(x), float(y)] for x, y in bbox]
                    )
                )

            logger.info(
                "PaddleOCR extraction completed",
                units_count=len(units),
                processing_time_ms=processing_time_ms
            )

            return EngineOutput(units=units, processing_time_ms=processing_time_ms)

        except (TimeoutError, ConnectionError):
            raise
        except Exception as e:
            logger.error("PaddleOCR extraction failed", error=str(e))
            raise OCRProcessingError(
                f"Failed to extract text with PaddleOCR: {str(e)}",
                details={"error": str(e)}
            )

    def is_available(self) -> bool:
        return self.ocr is not None

    def cleanup(self) -> None:
        """Release resources"""
        if self.ocr is not None:
            logger.info("Cleaning up PaddleOCR resources")
            self.ocr = None
