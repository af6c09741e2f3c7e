from __future__ import annotations

import json
from decimal import Decimal

import pytest

from autorecognition.core.enums import CategoryId
from autorecognition.core.exceptions import ConfigurationError
from autorecognition.services.category_scorer import CategoryScorer, is_whole_word
from autorecognition.services.category_taxonomy import (
    DEFAULT_TAXONOMY,
    AmountBand,
    CategoryTaxonomy,
    load_taxonomy,
)


def test_starbucks_is_food(scorer):
    suggestion = scorer.suggest(
        "星巴克 ¥25.80 微信支付",
        merchant="星巴克",
        description="星巴克",
        amounts=[Decimal("25.80")],
    )

    assert suggestion.category == CategoryId.FOOD
    assert suggestion.confidence > 0.5
    assert suggestion.matched_keywords == ["星巴克"]


def test_best_category_wins(scorer):
    suggestion = scorer.suggest("滴滴出行 网约车 车费 ¥32.00", merchant="滴滴出行")
    assert suggestion.category == CategoryId.TRANSPORT
    assert "滴滴" in suggestion.matched_keywords


def test_merchant_boost_raises_score(scorer):
    plain = scorer.suggest("沃尔玛 ¥88.00")
    boosted = scorer.suggest("沃尔玛 ¥88.00", merchant="沃尔玛")
    assert boosted.category == CategoryId.SHOPPING
    assert boosted.confidence > plain.confidence


@pytest.mark.parametrize(
    "amount, expected",
    [
        ("25", CategoryId.FOOD),
        ("50", CategoryId.FOOD),
        ("120", CategoryId.SHOPPING),
        ("500", CategoryId.BILLS),
        ("5000", CategoryId.TRAVEL),
    ],
)
def test_amount_band_fallback(scorer, amount, expected):
    suggestion = scorer.suggest("付款成功", amounts=[Decimal(amount)])

    assert suggestion.category == expected
    assert suggestion.confidence == pytest.approx(0.3)
    assert suggestion.matched_keywords == []


def test_fallback_uses_largest_amount(scorer):
    suggestion = scorer.suggest("付款成功", amounts=[Decimal("10"), Decimal("150")])
    assert suggestion.category == CategoryId.SHOPPING


def test_nothing_known_is_other(scorer):
    suggestion = scorer.suggest("付款成功")

    assert suggestion.category == CategoryId.OTHER
    assert suggestion.confidence == pytest.approx(0.1)
    assert suggestion.matched_keywords == []


@pytest.mark.parametrize(
    "text, merchant",
    [
        ("星巴克 ¥25.80", "星巴克"),
        ("付款成功", None),
        ("", None),
        (" ".join(DEFAULT_TAXONOMY.keywords[CategoryId.FOOD]), " ".join(DEFAULT_TAXONOMY.keywords[CategoryId.FOOD])),
        ("电影 影院 ktv 酒店 机票", None),
    ],
)
def test_confidence_bounds_and_fallback_keywords(scorer, text, merchant):
    suggestion = scorer.suggest(text, merchant=merchant, amounts=[Decimal("20")])

    assert 0.0 <= suggestion.confidence <= 1.0
    used_fallback = suggestion.reason.startswith("No keyword matched")
    assert (suggestion.matched_keywords == []) == used_fallback


def test_ties_keep_first_category():
    taxonomy = CategoryTaxonomy(
        keywords={
            CategoryId.FOOD: {"combo": 5.0},
            CategoryId.SHOPPING: {"combo": 5.0},
        },
        amount_bands=[AmountBand(upper=None, category=CategoryId.OTHER)],
    )
    suggestion = CategoryScorer(taxonomy).suggest("combo")
    assert suggestion.category == CategoryId.FOOD


def test_is_whole_word():
    assert is_whole_word("星巴克 咖啡", "咖啡")
    assert not is_whole_word("星巴克咖啡", "咖啡")
    assert is_whole_word("uber trip", "uber")


def test_load_default_taxonomy():
    assert load_taxonomy(None) is DEFAULT_TAXONOMY


def test_load_taxonomy_from_json(tmp_path):
    path = tmp_path / "taxonomy.json"
    path.write_text(
        json.dumps(
            {
                "keywords": {"transport": {"taxi": 1.0}},
                "amount_bands": [{"upper": None, "category": "other"}],
            }
        ),
        encoding="utf-8",
    )

    taxonomy = load_taxonomy(str(path))
    suggestion = CategoryScorer(taxonomy).suggest("taxi")

    assert suggestion.category == CategoryId.TRANSPORT
    assert suggestion.confidence == pytest.approx(1.0)


@pytest.mark.parametrize("content", ["{not json", json.dumps({"keywords": {}})])
def test_invalid_taxonomy_raises(tmp_path, content):
    path = tmp_path / "taxonomy.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ConfigurationError):
        load_taxonomy(str(path))


def test_missing_taxonomy_file_raises(tmp_path):
    with pytest.raises(ConfigurationError):
        load_taxonomy(str(tmp_path / "missing.json"))
