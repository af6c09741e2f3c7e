from __future__ import annotations

import pytest

from autorecognition.models.domain import OCRResult, TextBlock
from autorecognition.services.category_scorer import CategoryScorer
from autorecognition.services.extraction_engine import ExtractionEngine
from autorecognition.services.text_recognizer import build_text_block

from fakes import STARBUCKS_TEXTS, RecordingSleep, ocr_result_from, unit


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def starbucks_result() -> OCRResult:
    return ocr_result_from(STARBUCKS_TEXTS)


@pytest.fixture
def extraction_engine() -> ExtractionEngine:
    return ExtractionEngine()


@pytest.fixture
def scorer() -> CategoryScorer:
    return CategoryScorer()


@pytest.fixture
def text_block():
    def _make(text: str, confidence: float = 0.95) -> TextBlock:
        return build_text_block(unit(text, confidence), text)
    return _make
