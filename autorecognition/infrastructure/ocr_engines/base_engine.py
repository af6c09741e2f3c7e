"""
Abstract base class for OCR engines
"""
from abc import ABC, abstractmethod
from typing import List
from dataclasses import dataclass, field

import numpy as np


@dataclass
class RawTextUnit:
    """Unclassified text unit as reported by an engine"""
    text: str
    confidence: float
    bbox: List[List[float]] = field(default_factory=list)  # [[x1,y1], [x2,y2], [x3,y3], [x4,y4]]


@dataclass
class EngineOutput:
    """Raw output of one engine call"""
    units: List[RawTextUnit]
    processing_time_ms: int


class BaseOCREngine(ABC):
    """
    Abstract base class for all OCR engines
    Defines a single interface over the different OCR libraries
    """

    @abstractmethod
    def initialize(self) -> None:
        """Initialize the OCR engine"""
        pass

    @abstractmethod
    def extract_text(self, image: np.ndarray) -> EngineOutput:
        """
        Extract text from an image

        Args:
            image: Image as a numpy array (RGB)

        Returns:
            EngineOutput with the raw recognized units

        Raises:
            OCRProcessingError: The engine failed
            TransientNetworkError: A remote engine timed out or lost its connection
            DeviceOfflineError: A remote engine is unreachable because the device is offline
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """
        Check engine availability

        Returns:
            True if the engine is ready
        """
        pass

    def cleanup(self) -> None:
        """Release resources (optional)"""
        pass
