"""
Domain models - business entities of the recognition pipeline
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from autorecognition.core.enums import CategoryId, TextBlockType

CENTS = Decimal("0.01")


def normalize_amounts(amounts: Sequence[Decimal]) -> List[Decimal]:
    """Quantize to cents, drop non-positive values, dedupe and sort ascending"""
    normalized = {Decimal(amount).quantize(CENTS) for amount in amounts}
    return sorted(amount for amount in normalized if amount > 0)


class BoundingBox(BaseModel):
    """Axis-aligned position of a text block in the image"""
    model_config = ConfigDict(frozen=True)

    x: float = Field(0.0, description="Left edge")
    y: float = Field(0.0, description="Top edge")
    width: float = Field(0.0, ge=0.0, description="Width")
    height: float = Field(0.0, ge=0.0, description="Height")

    @classmethod
    def from_points(cls, points: Sequence[Sequence[float]]) -> "BoundingBox":
        """Build a rect from an engine quadrilateral [[x1,y1], ..., [x4,y4]]"""
        if not points:
            return cls()
        xs = [float(point[0]) for point in points]
        ys = [float(point[1]) for point in points]
        return cls(
            x=min(xs),
            y=min(ys),
            width=max(xs) - min(xs),
            height=max(ys) - min(ys),
        )


class TextBlock(BaseModel):
    """Classified block of recognized text"""
    model_config = ConfigDict(frozen=True)

    text: str = Field(..., description="Recognized text")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Engine confidence")
    bounding_box: BoundingBox = Field(default_factory=BoundingBox, description="Position")
    block_type: TextBlockType = Field(TextBlockType.GENERAL, description="Classified type")
    is_potential_amount: bool = Field(False, description="Block may hold an amount")
    is_potential_merchant: bool = Field(False, description="Block may name the merchant")


class OCRResult(BaseModel):
    """Result of one recognition call"""
    model_config = ConfigDict(frozen=True)

    blocks: Tuple[TextBlock, ...] = Field(..., min_length=1, description="Surviving blocks")
    overall_confidence: float = Field(..., ge=0.0, le=1.0, description="Mean block confidence")
    processing_time_ms: int = Field(0, ge=0, description="Recognition time in milliseconds")
    image_size: Tuple[int, int] = Field((0, 0), description="Preprocessed image (width, height)")

    @property
    def raw_text(self) -> str:
        """All block texts joined by spaces"""
        return " ".join(block.text for block in self.blocks)


class CategorySuggestion(BaseModel):
    """Category recommendation for an expense"""
    category: CategoryId = Field(..., description="Suggested category")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Suggestion confidence")
    matched_keywords: List[str] = Field(default_factory=list, description="Contributing keywords")
    reason: str = Field("", description="Human readable explanation")


class ExtractedFields(BaseModel):
    """Partial result produced by the extraction engine"""
    amounts: List[Decimal] = Field(..., min_length=1, description="Candidate amounts")
    description: Optional[str] = None
    merchant_name: Optional[str] = None
    detected_date: Optional[datetime] = None
    payment_method: Optional[str] = None
    raw_text: str = ""
    ocr_confidence: float = Field(0.0, ge=0.0, le=1.0)

    @field_validator("amounts")
    @classmethod
    def _normalize_amounts(cls, value: List[Decimal]) -> List[Decimal]:
        return normalize_amounts(value)


class ExpenseDraft(BaseModel):
    """Create-expense payload handed downstream after confirmation"""
    amount: Decimal = Field(..., gt=0, description="Expense amount")
    category: CategoryId = Field(..., description="Expense category")
    description: str = Field(..., description="Expense description")
    date: datetime = Field(..., description="Transaction time")
    location: Optional[str] = None
    payment_method: str = Field("cash", description="Payment method")
    tags: List[str] = Field(default_factory=list)


class ResultEdits(BaseModel):
    """User edits applied during confirmation"""
    selected_amount: Optional[Decimal] = Field(None, gt=0, description="Chosen amount")
    description: Optional[str] = Field(None, description="Edited description")
    date: Optional[datetime] = Field(None, description="Edited transaction time")
    category: Optional[CategoryId] = Field(None, description="Overridden category")


class RecognitionResult(BaseModel):
    """Structured expense candidate recognized from a screenshot"""
    amounts: List[Decimal] = Field(..., description="Recognized amounts, ascending")
    description: Optional[str] = Field(None, description="Goods or service description")
    merchant_name: Optional[str] = Field(None, description="Merchant name")
    detected_date: Optional[datetime] = Field(None, description="Detected transaction date")
    payment_method: Optional[str] = Field(None, description="Detected payment method")
    raw_text: str = Field("", description="All recognized text")
    suggested_category: CategoryId = Field(CategoryId.OTHER, description="Suggested category")
    category_confidence: float = Field(0.0, ge=0.0, le=1.0)
    ocr_confidence: float = Field(0.0, ge=0.0, le=1.0)
    timestamp: datetime = Field(default_factory=datetime.now, description="Recognition time")

    # Set during user review
    selected_amount: Optional[Decimal] = Field(None, description="Amount chosen by the user")
    edited_description: Optional[str] = None
    edited_date: Optional[datetime] = None

    @field_validator("amounts")
    @classmethod
    def _normalize_amounts(cls, value: List[Decimal]) -> List[Decimal]:
        return normalize_amounts(value)

    @computed_field
    @property
    def total_amount(self) -> Decimal:
        return sum(self.amounts, Decimal("0.00"))

    @property
    def is_valid(self) -> bool:
        return self.total_amount > 0 and bool(self.amounts)

    @property
    def has_high_confidence_category(self) -> bool:
        return self.category_confidence > 0.7

    @property
    def best_description(self) -> str:
        """Edited description, then merchant name, then description"""
        if self.edited_description:
            return self.edited_description
        if self.merchant_name:
            return self.merchant_name
        return self.description or "Unknown expense"

    @property
    def final_amount(self) -> Decimal:
        return self.selected_amount if self.selected_amount is not None else self.total_amount

    @classmethod
    def from_extraction(
        cls,
        fields: ExtractedFields,
        suggestion: CategorySuggestion,
    ) -> "RecognitionResult":
        return cls(
            amounts=fields.amounts,
            description=fields.description,
            merchant_name=fields.merchant_name,
            detected_date=fields.detected_date,
            payment_method=fields.payment_method,
            raw_text=fields.raw_text,
            suggested_category=suggestion.category,
            category_confidence=suggestion.confidence,
            ocr_confidence=fields.ocr_confidence,
        )

    def apply_edits(self, edits: ResultEdits) -> "RecognitionResult":
        """Return a copy with user edits applied"""
        update = {}
        if edits.selected_amount is not None:
            update["selected_amount"] = Decimal(edits.selected_amount).quantize(CENTS)
        if edits.description is not None:
            update["edited_description"] = edits.description.strip() or None
        if edits.date is not None:
            update["edited_date"] = edits.date
        if edits.category is not None:
            update["suggested_category"] = edits.category
        return self.model_copy(update=update)

    def to_expense_draft(self) -> ExpenseDraft:
        return ExpenseDraft(
            amount=self.final_amount,
            category=self.suggested_category,
            description=self.best_description,
            date=self.edited_date or self.detected_date or self.timestamp,
            payment_method=self.payment_method or "cash",
        )
