from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import pytest

from autorecognition.core.exceptions import NoValidAmountFoundError
from autorecognition.models.domain import CategorySuggestion, RecognitionResult
from autorecognition.core.enums import CategoryId
from autorecognition.services.extraction_engine import ExtractionEngine

from fakes import ocr_result_from


def test_starbucks_payment_screen(extraction_engine, starbucks_result):
    fields = extraction_engine.extract(starbucks_result)

    assert fields.merchant_name == "星巴克"
    assert fields.amounts == [Decimal("25.80")]
    assert fields.payment_method == "wechat"
    assert fields.description == "星巴克"
    assert fields.raw_text == "星巴克 ¥25.80 微信支付"


def test_no_numeric_text_fails(extraction_engine):
    result = ocr_result_from(["星巴克", "微信支付", "谢谢惠顾"])

    with pytest.raises(NoValidAmountFoundError):
        extraction_engine.extract(result)


def test_multiple_amounts_sum(extraction_engine):
    fields = extraction_engine.extract(ocr_result_from(["¥25.80", "¥3.50"]))
    suggestion = CategorySuggestion(category=CategoryId.OTHER, confidence=0.1)

    result = RecognitionResult.from_extraction(fields, suggestion)

    assert result.amounts == [Decimal("3.50"), Decimal("25.80")]
    assert result.total_amount == Decimal("29.30")
    assert result.is_valid


@pytest.mark.parametrize(
    "texts",
    [
        ["¥25.80", "25.80元", "25.80"],
        ["合计 ¥1,234.50", "¥0.00", "¥12"],
        ["订单号 20231206", "$9.99", "€9.99", "30元", "12 rmb"],
    ],
)
def test_amounts_are_positive_unique_and_sorted(extraction_engine, texts):
    amounts = extraction_engine.extract(ocr_result_from(texts)).amounts

    assert all(amount > 0 for amount in amounts)
    assert len(amounts) == len(set(amounts))
    assert amounts == sorted(amounts)


def test_decimal_fraction_is_not_read_as_separate_amount(extraction_engine):
    assert extraction_engine.extract(ocr_result_from(["25.80元"])).amounts == [Decimal("25.80")]


def test_thousands_separator(extraction_engine):
    assert set(extraction_engine.parse_amounts("¥1,234.50")) == {Decimal("1234.50")}


def test_anchor_does_not_read_a_following_date_as_amount(extraction_engine):
    result = ocr_result_from(["Due date 2023-12-06", "Coffee"])

    with pytest.raises(NoValidAmountFoundError):
        extraction_engine.extract(result)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Balance due 42.50 on 2023-12-06", [Decimal("42.50")]),
        ("Total 18", [Decimal("18")]),
        ("Due 14:30", []),
    ],
)
def test_anchored_amounts(extraction_engine, text, expected):
    assert sorted(set(extraction_engine.parse_amounts(text))) == expected


def test_amounts_above_limit_are_ignored():
    engine = ExtractionEngine(max_amount=Decimal("1000"))
    assert engine.parse_amount_string("5000") is None
    assert engine.parse_amount_string("999.99") == Decimal("999.99")
    assert engine.parse_amount_string("0") is None


def test_amount_blocks_take_precedence(extraction_engine, text_block):
    blocks = [text_block("会员卡余额 88.00 元"), text_block("¥25.80")]
    assert extraction_engine.extract_amounts(blocks) == [Decimal("25.80")]


def test_falls_back_to_all_blocks(extraction_engine, text_block):
    blocks = [text_block("支付成功 共计 18.50 元")]
    assert extraction_engine.extract_amounts(blocks) == [Decimal("18.50")]


def test_longest_merchant_wins(extraction_engine, text_block):
    blocks = [text_block("星巴克"), text_block("星巴克咖啡店"), text_block("¥25.80")]
    assert extraction_engine.extract_merchant_name(blocks) == "星巴克咖啡店"


def test_description_keyword_block(extraction_engine, text_block):
    blocks = [text_block("¥25.80"), text_block("商品 拿铁咖啡 大杯")]
    assert extraction_engine.extract_description(blocks) == "商品 拿铁咖啡 大杯"


@pytest.mark.parametrize(
    "text, expected",
    [
        ("2023-12-06 14:35", datetime(2023, 12, 6)),
        ("2023/12/06", datetime(2023, 12, 6)),
        ("06-12-2023", datetime(2023, 12, 6)),
        ("2023年12月6日", datetime(2023, 12, 6)),
        ("12月6日 14:35", datetime(2024, 12, 6)),
    ],
)
def test_date_formats(text_block, text, expected):
    engine = ExtractionEngine(clock=lambda: datetime(2024, 3, 1))
    assert engine.extract_date([text_block(text)]) == expected


def test_invalid_calendar_date_is_skipped(extraction_engine, text_block):
    assert extraction_engine.extract_date([text_block("2023-13-45")]) is None


@pytest.mark.parametrize(
    "text, expected",
    [
        ("微信支付", "wechat"),
        ("支付宝", "alipay"),
        ("Apple Pay", "apple_pay"),
        ("信用卡支付", "credit_card"),
        ("现金", "cash"),
    ],
)
def test_payment_methods(extraction_engine, text_block, text, expected):
    assert extraction_engine.extract_payment_method([text_block(text)]) == expected


def test_optional_field_failure_does_not_fail_extraction(extraction_engine, starbucks_result, monkeypatch):
    def broken(blocks):
        raise ValueError("broken")

    monkeypatch.setattr(extraction_engine, "extract_date", broken)

    fields = extraction_engine.extract(starbucks_result)
    assert fields.detected_date is None
    assert fields.amounts == [Decimal("25.80")]


def test_extraction_is_deterministic(extraction_engine, starbucks_result):
    assert extraction_engine.extract(starbucks_result) == extraction_engine.extract(starbucks_result)
