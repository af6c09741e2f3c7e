"""
Weighted keyword scoring of expense categories
"""
import re
from decimal import Decimal
from typing import Dict, Optional, Sequence

from autorecognition.core.logging import get_logger
from autorecognition.models.domain import CategorySuggestion
from autorecognition.services.category_taxonomy import CategoryTaxonomy, DEFAULT_TAXONOMY

logger = get_logger(__name__)

MERCHANT_BOOST = 1.5
DESCRIPTION_BOOST = 1.2
WHOLE_WORD_BOOST = 1.3


def _clamp(value: float) -> float:
    return min(max(value, 0.0), 1.0)


def is_whole_word(text: str, keyword: str) -> bool:
    """Keyword delimited by whitespace or the string boundaries"""
    return re.search(rf"(?<!\S){re.escape(keyword)}(?!\S)", text) is not None


class CategoryScorer:
    """
    Ranks categories against recognized text

    score = (sum of weighted matches / keyword count) * (0.7 + 0.3 * match ratio)
    """

    def __init__(
        self,
        taxonomy: CategoryTaxonomy = DEFAULT_TAXONOMY,
        low_confidence_floor: float = 0.1,
        fallback_confidence: float = 0.3,
        minimal_confidence: float = 0.1
    ):
        """
        Args:
            taxonomy: Keyword weights and amount bands
            low_confidence_floor: Best keyword score below this uses the amount fallback
            fallback_confidence: Confidence of an amount-band guess
            minimal_confidence: Confidence of the default category when nothing is known
        """
        self.taxonomy = taxonomy
        self.low_confidence_floor = low_confidence_floor
        self.fallback_confidence = fallback_confidence
        self.minimal_confidence = minimal_confidence

    def suggest(
        self,
        all_text: str,
        merchant: Optional[str] = None,
        description: Optional[str] = None,
        amounts: Sequence[Decimal] = ()
    ) -> CategorySuggestion:
        """
        Suggest a category

        Args:
            all_text: Every recognized block joined together
            merchant: Extracted merchant name
            description: Extracted description
            amounts: Extracted amounts, used only by the fallback

        Returns:
            CategorySuggestion with confidence in [0, 1]
        """
        combined = " ".join(part for part in (all_text, merchant, description) if part).lower()
        merchant_lower = (merchant or "").lower()
        description_lower = (description or "").lower()

        best_category = self.taxonomy.default_category
        best_score = 0.0
        best_matches = []
        scores: Dict[str, float] = {}

        for category, keywords in self.taxonomy.keywords.items():
            if not keywords:
                continue

            weighted_total = 0.0
            matches = []
            for keyword, weight in keywords.items():
                needle = keyword.lower()
                if needle not in combined:
                    continue

                score = weight
                if needle in merchant_lower:
                    score *= MERCHANT_BOOST
                if needle in description_lower:
                    score *= DESCRIPTION_BOOST
                if is_whole_word(combined, needle):
                    score *= WHOLE_WORD_BOOST

                weighted_total += score
                matches.append(keyword)

            keyword_count = len(keywords)
            match_ratio = len(matches) / keyword_count
            final_score = (weighted_total / keyword_count) * (0.7 + 0.3 * match_ratio)
            scores[category.value] = round(final_score, 4)

            if final_score > best_score:
                best_category = category
                best_score = final_score
                best_matches = matches

        if best_score < self.low_confidence_floor:
            suggestion = self._fallback(amounts)
        else:
            suggestion = CategorySuggestion(
                category=best_category,
                confidence=_clamp(best_score),
                matched_keywords=best_matches,
                reason=f"Matched keywords: {', '.join(best_matches)}"
            )

        logger.debug(
            "Category suggested",
            category=suggestion.category.value,
            confidence=round(suggestion.confidence, 3),
            matched_keywords=suggestion.matched_keywords,
            scores=scores
        )
        return suggestion

    def _fallback(self, amounts: Sequence[Decimal]) -> CategorySuggestion:
        if not amounts:
            return CategorySuggestion(
                category=self.taxonomy.default_category,
                confidence=_clamp(self.minimal_confidence),
                matched_keywords=[],
                reason="No keyword matched and no amount available"
            )

        largest = max(amounts)
        category = self.taxonomy.category_for_amount(largest)
        return CategorySuggestion(
            category=category,
            confidence=_clamp(self.fallback_confidence),
            matched_keywords=[],
            reason=f"No keyword matched; guessed from amount {largest}"
        )

