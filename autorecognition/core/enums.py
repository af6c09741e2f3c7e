"""
Enums for type safety
"""
from enum import Enum


class OCREngine(str, Enum):
    """OCR engines"""
    PADDLEOCR = "paddleocr"
    EASYOCR = "easyocr"


class ImageFormat(str, Enum):
    """Image formats"""
    JPG = "jpg"
    JPEG = "jpeg"
    PNG = "png"
    WEBP = "webp"


class TextBlockType(str, Enum):
    """Classification of a recognized text unit"""
    AMOUNT = "amount"
    CURRENCY = "currency"
    DATE = "date"
    TIME = "time"
    MERCHANT = "merchant"
    HEADER = "header"
    GENERAL = "general"


class CategoryId(str, Enum):
    """Expense categories"""
    FOOD = "food"
    TRANSPORT = "transport"
    ENTERTAINMENT = "entertainment"
    SHOPPING = "shopping"
    BILLS = "bills"
    HEALTHCARE = "healthcare"
    EDUCATION = "education"
    TRAVEL = "travel"
    OTHER = "other"

    @property
    def display_name(self) -> str:
        return _CATEGORY_DISPLAY_NAMES[self]


_CATEGORY_DISPLAY_NAMES = {
    CategoryId.FOOD: "Food & Dining",
    CategoryId.TRANSPORT: "Transport",
    CategoryId.ENTERTAINMENT: "Entertainment",
    CategoryId.SHOPPING: "Shopping",
    CategoryId.BILLS: "Bills",
    CategoryId.HEALTHCARE: "Healthcare",
    CategoryId.EDUCATION: "Education",
    CategoryId.TRAVEL: "Travel",
    CategoryId.OTHER: "Other",
}


class PaymentMethod(str, Enum):
    """Payment methods"""
    WECHAT = "wechat"
    ALIPAY = "alipay"
    CASH = "cash"
    BANK_CARD = "bank_card"
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    APPLE_PAY = "apple_pay"
    CARD = "card"


class ErrorKind(str, Enum):
    """Failure kinds carried by a failed recognition attempt"""
    PERMISSION_DENIED = "permission_denied"
    CAPTURE_FAILED = "capture_failed"
    NO_TEXT_FOUND = "no_text_found"
    LOW_CONFIDENCE = "low_confidence"
    NO_VALID_AMOUNT_FOUND = "no_valid_amount_found"
    OCR_FAILED = "ocr_failed"
    TRANSIENT_NETWORK_ERROR = "transient_network_error"
    DEVICE_OFFLINE = "device_offline"
    MALFORMED_DATA = "malformed_data"
    MAX_RETRIES_EXCEEDED = "max_retries_exceeded"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"


class RecognitionStatus(str, Enum):
    """Discriminator of the recognition state machine"""
    IDLE = "idle"
    WAITING_FOR_CONFIRMATION = "waiting_for_confirmation"
    CAPTURING_SCREEN = "capturing_screen"
    RECOGNIZING = "recognizing"
    PARSING = "parsing"
    SUCCESS = "success"
    FAILED = "failed"
    CANCELLED = "cancelled"
