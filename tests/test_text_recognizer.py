from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from autorecognition.core.enums import TextBlockType
from autorecognition.core.exceptions import (
    DeviceOfflineError,
    LowConfidenceError,
    NoTextFoundError,
    OCRProcessingError,
    TransientNetworkError,
)
from autorecognition.services.text_recognizer import (
    RecognitionStats,
    TextRecognizer,
    classify_text,
    clean_text,
)

from fakes import STARBUCKS_TEXTS, FakeOCREngine, blank_image, png_bytes


@pytest.mark.parametrize(
    "text, expected",
    [
        ("¥25.80", TextBlockType.AMOUNT),
        ("25.80元", TextBlockType.AMOUNT),
        ("30元", TextBlockType.AMOUNT),
        ("1,234.50", TextBlockType.AMOUNT),
        ("合计¥30", TextBlockType.CURRENCY),
        ("2023-12-06", TextBlockType.DATE),
        ("2023年12月6日", TextBlockType.DATE),
        ("14:35", TextBlockType.TIME),
        ("星巴克咖啡店", TextBlockType.MERCHANT),
        ("微信支付", TextBlockType.HEADER),
        ("thank you for your visit", TextBlockType.GENERAL),
    ],
)
def test_classify_text(text, expected):
    assert classify_text(text) == expected


def test_classification_order_prefers_amount_over_date():
    # A bare amount never reaches the date rule
    assert classify_text("12.06") == TextBlockType.AMOUNT


def test_clean_text_collapses_whitespace():
    assert clean_text("  星巴克   咖啡 \n") == "星巴克 咖啡"


def test_payment_header_is_not_a_merchant_candidate(text_block):
    assert text_block("星巴克").is_potential_merchant is True
    assert text_block("微信支付").is_potential_merchant is False
    assert text_block("¥25.80").is_potential_amount is True


@pytest.mark.asyncio
async def test_recognize_returns_classified_blocks():
    recognizer = TextRecognizer(FakeOCREngine(STARBUCKS_TEXTS))

    result = await recognizer.recognize(blank_image())

    assert [block.text for block in result.blocks] == STARBUCKS_TEXTS
    assert result.overall_confidence == pytest.approx(0.95)
    assert result.raw_text == "星巴克 ¥25.80 微信支付"
    assert result.image_size == (600, 800)


@pytest.mark.asyncio
async def test_recognize_accepts_raw_bytes():
    recognizer = TextRecognizer(FakeOCREngine(STARBUCKS_TEXTS))
    result = await recognizer.recognize(png_bytes())
    assert len(result.blocks) == 3


@pytest.mark.asyncio
async def test_small_image_is_scaled_into_band():
    recognizer = TextRecognizer(FakeOCREngine(STARBUCKS_TEXTS))
    result = await recognizer.recognize(blank_image((200, 400)))
    assert min(result.image_size) == 512


@pytest.mark.asyncio
async def test_units_below_block_threshold_are_dropped():
    engine = FakeOCREngine(STARBUCKS_TEXTS, confidence=0.2)
    recognizer = TextRecognizer(engine)

    with pytest.raises(NoTextFoundError):
        await recognizer.recognize(blank_image())


@pytest.mark.asyncio
async def test_blank_units_are_dropped():
    recognizer = TextRecognizer(FakeOCREngine(["   ", ""]))

    with pytest.raises(NoTextFoundError):
        await recognizer.recognize(blank_image())


@pytest.mark.asyncio
async def test_low_mean_confidence_fails():
    recognizer = TextRecognizer(FakeOCREngine(STARBUCKS_TEXTS, confidence=0.4))

    with pytest.raises(LowConfidenceError):
        await recognizer.recognize(blank_image())


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "raised, expected",
    [
        (TimeoutError("slow"), TransientNetworkError),
        (ConnectionError("reset"), TransientNetworkError),
        (RuntimeError("boom"), OCRProcessingError),
        (DeviceOfflineError(), DeviceOfflineError),
    ],
)
async def test_engine_errors_are_mapped(raised, expected):
    recognizer = TextRecognizer(FakeOCREngine(STARBUCKS_TEXTS, errors=[raised]))

    with pytest.raises(expected):
        await recognizer.recognize(blank_image())


@pytest.mark.asyncio
async def test_statistics_track_successes_and_failures():
    engine = FakeOCREngine(STARBUCKS_TEXTS, errors=[RuntimeError("boom")])
    recognizer = TextRecognizer(engine)

    with pytest.raises(OCRProcessingError):
        await recognizer.recognize(blank_image())
    await recognizer.recognize(blank_image())

    assert recognizer.stats.recognition_count == 2
    assert recognizer.stats.success_rate == pytest.approx(0.5)


def test_statistics_survive_concurrent_recording():
    stats = RecognitionStats(log_every=1000)

    def record_many(success):
        for _ in range(2000):
            stats.record(success, 0.001)

    with ThreadPoolExecutor(max_workers=4) as pool:
        list(pool.map(record_many, [True, False, True, False]))

    assert stats.recognition_count == 8000
    assert stats.success_count == 4000
    assert stats.success_rate == pytest.approx(0.5)


def test_is_ready_reflects_engine():
    engine = FakeOCREngine()
    recognizer = TextRecognizer(engine)
    assert recognizer.is_ready() is True
    engine.available = False
    assert recognizer.is_ready() is False
