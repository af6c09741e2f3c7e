"""
Extraction of expense fields from classified OCR text blocks
"""
import re
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Callable, Iterable, List, Optional

from autorecognition.core.exceptions import NoValidAmountFoundError
from autorecognition.core.logging import get_logger
from autorecognition.core.vocabulary import (
    CURRENCY_WORDS,
    DESCRIPTION_KEYWORDS,
    find_payment_method,
)
from autorecognition.models.domain import ExtractedFields, OCRResult, TextBlock, normalize_amounts

logger = get_logger(__name__)

_NUMBER = r"(\d[\d,]*\.?\d*)"


class ExtractionEngine:
    """
    Turns an OCRResult into amounts, merchant, description, date and payment method

    Only amount extraction can fail the stage; all other fields are
    best-effort and fall back to None.
    """

    # Applied in order, every match of every pattern is collected
    AMOUNT_PATTERNS = [
        re.compile(rf"[¥￥]\s*{_NUMBER}"),                      # ¥123.45
        re.compile(rf"\$\s*{_NUMBER}"),                        # $123.45
        re.compile(rf"€\s*{_NUMBER}"),                         # €123.45
        re.compile(r"(?<![\d.])(\d[\d,]*\.\d{2})元?"),        # 123.45元
        re.compile(r"(?<![\d.])(\d[\d,]*)元"),              # 123元
        re.compile(rf"(?<![\d.])(\d[\d,]*(?:\.\d+)?)\s*{CURRENCY_WORDS}", re.IGNORECASE),  # 12 rmb
        re.compile(r"(?<![\d.])(\d[\d,]*\.\d+)"),           # 123.45
        re.compile(
            rf"(?:总计|合计|应付|实付|小计|subtotal|total|amount due|balance|due)\D*?{_NUMBER}(?![\d.,]*[-/:年月]\d)",
            re.IGNORECASE
        ),                                                     # total 123.45, not a date or time
    ]

    DATE_PATTERNS = [
        re.compile(r"(?P<year>\d{4})-(?P<month>\d{1,2})-(?P<day>\d{1,2})"),    # 2023-12-06
        re.compile(r"(?P<year>\d{4})/(?P<month>\d{1,2})/(?P<day>\d{1,2})"),    # 2023/12/06
        re.compile(r"(?P<day>\d{1,2})-(?P<month>\d{1,2})-(?P<year>\d{4})"),    # 06-12-2023
        re.compile(r"(?P<day>\d{1,2})/(?P<month>\d{1,2})/(?P<year>\d{4})"),    # 06/12/2023
        re.compile(r"(?P<year>\d{4})年(?P<month>\d{1,2})月(?P<day>\d{1,2})日"),  # 2023年12月6日
        re.compile(r"(?P<month>\d{1,2})月(?P<day>\d{1,2})日"),                 # 12月6日
    ]

    DESCRIPTION_MIN_LENGTH = 3
    DESCRIPTION_MAX_LENGTH = 50

    def __init__(
        self,
        max_amount: Decimal = Decimal("999999.99"),
        clock: Callable[[], datetime] = datetime.now
    ):
        """
        Args:
            max_amount: Larger matches are treated as noise (phone numbers, order ids)
            clock: Reference clock; supplies the year for dates written without one
        """
        self.max_amount = Decimal(str(max_amount))
        self.clock = clock

    def extract(self, ocr_result: OCRResult) -> ExtractedFields:
        """
        Extract expense fields

        Args:
            ocr_result: Classified blocks of one recognition

        Returns:
            ExtractedFields with at least one amount

        Raises:
            NoValidAmountFoundError: No positive amount found in any block
        """
        blocks = list(ocr_result.blocks)

        amounts = self.extract_amounts(blocks)
        if not amounts:
            logger.warning("No valid amount found", blocks_count=len(blocks))
            raise NoValidAmountFoundError(details={"blocks_count": len(blocks)})

        merchant_name = self._best_effort("merchant", self.extract_merchant_name, blocks)
        description = self._best_effort(
            "description", self.extract_description, blocks, merchant_name
        )
        detected_date = self._best_effort("date", self.extract_date, blocks)
        payment_method = self._best_effort("payment_method", self.extract_payment_method, blocks)

        fields = ExtractedFields(
            amounts=amounts,
            description=description,
            merchant_name=merchant_name,
            detected_date=detected_date,
            payment_method=payment_method,
            raw_text=ocr_result.raw_text,
            ocr_confidence=ocr_result.overall_confidence
        )

        logger.info(
            "Fields extracted",
            amounts=[str(amount) for amount in fields.amounts],
            merchant=merchant_name,
            description=description,
            payment_method=payment_method
        )
        return fields

    def _best_effort(self, field: str, extractor: Callable, *args):
        try:
            return extractor(*args)
        except Exception as e:
            logger.warning("Field extraction failed", field=field, error=str(e))
            return None

    # Amounts

    def extract_amounts(self, blocks: List[TextBlock]) -> List[Decimal]:
        """Amounts from potential-amount blocks, falling back to every block"""
        amounts = self._amounts_from(block.text for block in blocks if block.is_potential_amount)
        if not amounts:
            amounts = self._amounts_from(block.text for block in blocks)
        return normalize_amounts(amounts)

    def _amounts_from(self, texts: Iterable[str]) -> List[Decimal]:
        amounts = []
        for text in texts:
            amounts.extend(self.parse_amounts(text))
        return amounts

    def parse_amounts(self, text: str) -> List[Decimal]:
        amounts = []
        for pattern in self.AMOUNT_PATTERNS:
            for match in pattern.finditer(text):
                amount = self.parse_amount_string(match.group(1))
                if amount is not None:
                    amounts.append(amount)
        return amounts

    def parse_amount_string(self, amount_string: str) -> Optional[Decimal]:
        """Strip thousands separators; keep only positive amounts within limits"""
        try:
            amount = Decimal(amount_string.replace(",", ""))
        except InvalidOperation:
            return None
        if not amount.is_finite() or amount <= 0 or amount > self.max_amount:
            return None
        return amount

    # Merchant / description

    def extract_merchant_name(self, blocks: List[TextBlock]) -> Optional[str]:
        """Longest potential-merchant text, first occurrence wins ties"""
        candidates = [block.text for block in blocks if block.is_potential_merchant]
        if not candidates:
            return None
        return max(candidates, key=len)

    def extract_description(
        self,
        blocks: List[TextBlock],
        merchant_name: Optional[str] = None
    ) -> Optional[str]:
        if merchant_name:
            return merchant_name

        for block in blocks:
            for keyword in DESCRIPTION_KEYWORDS:
                if keyword in block.text.lower() and len(block.text) > len(keyword):
                    return block.text

        candidates = [
            block.text for block in blocks
            if not block.is_potential_amount
            and self.DESCRIPTION_MIN_LENGTH <= len(block.text) <= self.DESCRIPTION_MAX_LENGTH
        ]
        if not candidates:
            return None
        return max(candidates, key=len)

    # Date

    def extract_date(self, blocks: List[TextBlock]) -> Optional[datetime]:
        """First date pattern that yields a real calendar date"""
        for block in blocks:
            for pattern in self.DATE_PATTERNS:
                match = pattern.search(block.text)
                if not match:
                    continue
                parts = match.groupdict()
                year = int(parts["year"]) if parts.get("year") else self.clock().year
                try:
                    return datetime(year, int(parts["month"]), int(parts["day"]))
                except ValueError:
                    continue
        return None

    # Payment method

    def extract_payment_method(self, blocks: List[TextBlock]) -> Optional[str]:
        for block in blocks:
            method = find_payment_method(block.text)
            if method is not None:
                return method.value
        return None
