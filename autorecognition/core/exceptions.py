"""
Custom exceptions for the auto-recognition service
"""
from typing import Optional

from autorecognition.core.enums import ErrorKind


class RecognitionError(Exception):
    """Base exception for the recognition pipeline"""

    kind: ErrorKind = ErrorKind.UNKNOWN
    user_message: str = "Recognition failed for an unknown reason"
    recovery_suggestion: str = "Please try again; contact support if the problem persists"

    def __init__(self, message: Optional[str] = None, details: dict = None):
        self.message = message or self.user_message
        self.details = details or {}
        super().__init__(self.message)


class ImageValidationError(RecognitionError):
    """Submitted image could not be validated"""
    kind = ErrorKind.CAPTURE_FAILED
    user_message = "The submitted screenshot is not a valid image"
    recovery_suggestion = "Submit a JPEG, PNG or WEBP screenshot within the size limit"


class ConfigurationError(RecognitionError):
    """Configuration error"""
    user_message = "The recognition service is misconfigured"


class PermissionDeniedError(RecognitionError):
    """Screen capture permission is missing"""
    kind = ErrorKind.PERMISSION_DENIED
    user_message = "Screen recording permission is required for auto recognition"
    recovery_suggestion = "Allow screen recording for the app in system settings"


class ScreenCaptureFailedError(RecognitionError):
    """Screen image could not be acquired"""
    kind = ErrorKind.CAPTURE_FAILED
    user_message = "Taking a screenshot failed"
    recovery_suggestion = "Try again and make sure the app has enough permissions"


class NoTextFoundError(RecognitionError):
    """No text unit survived recognition filtering"""
    kind = ErrorKind.NO_TEXT_FOUND
    user_message = "No text was recognized on the screen"
    recovery_suggestion = "Make sure the screen content is clearly visible"


class LowConfidenceError(RecognitionError):
    """Mean confidence of recognized text is too low"""
    kind = ErrorKind.LOW_CONFIDENCE
    user_message = "Recognized text is too unclear to use"
    recovery_suggestion = "Avoid busy backgrounds and make sure the text is sharp"


class NoValidAmountFoundError(RecognitionError):
    """Extraction produced no positive amount"""
    kind = ErrorKind.NO_VALID_AMOUNT_FOUND
    user_message = "No valid amount was found on the screen"
    recovery_suggestion = "Make sure the screen shows a clear payment amount"


class OCRProcessingError(RecognitionError):
    """OCR engine failed while extracting text"""
    kind = ErrorKind.OCR_FAILED
    user_message = "Text recognition failed"
    recovery_suggestion = "Make sure the screen content is clearly visible and try again"


class TransientNetworkError(RecognitionError):
    """Timeout or connection failure; retrying may help"""
    kind = ErrorKind.TRANSIENT_NETWORK_ERROR
    user_message = "A network error interrupted recognition"
    recovery_suggestion = "The network seems slow, try again shortly"


class DeviceOfflineError(RecognitionError):
    """The device has no network connection"""
    kind = ErrorKind.DEVICE_OFFLINE
    user_message = "The device is offline"
    recovery_suggestion = "Make sure the device is connected to the internet"


class MalformedDataError(RecognitionError):
    """Data could not be decoded; retrying cannot fix it"""
    kind = ErrorKind.MALFORMED_DATA
    user_message = "Recognition data could not be decoded"
    recovery_suggestion = "Try again with a different screenshot"


class MaxRetriesExceededError(RecognitionError):
    """Retry budget exhausted; wraps the last underlying error"""
    kind = ErrorKind.MAX_RETRIES_EXCEEDED
    user_message = "Recognition kept failing after several retries"
    recovery_suggestion = "Check the network connection and try again later"

    def __init__(self, cause: BaseException, attempts: int):
        self.cause = cause
        self.attempts = attempts
        super().__init__(
            f"Maximum retries exceeded after {attempts} attempts: {cause}",
            details={
                "attempts": attempts,
                "cause": str(cause),
                "cause_type": type(cause).__name__,
            },
        )


class RecognitionCancelledError(RecognitionError):
    """Attempt was cancelled by the user"""
    kind = ErrorKind.CANCELLED
    user_message = "Recognition was cancelled"
    recovery_suggestion = ""


class InvalidStateTransitionError(RecognitionError):
    """Operation is not allowed in the current recognition state"""
    user_message = "This action is not available right now"
    recovery_suggestion = "Wait for the current recognition to finish"


class ExpenseSubmissionError(RecognitionError):
    """Downstream expense creation failed; the result is kept for another try"""
    user_message = "The expense could not be saved"
    recovery_suggestion = "Confirm again once the connection is back"
