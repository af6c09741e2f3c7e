"""
Pydantic models for API responses
"""
from pydantic import BaseModel, Field

from autorecognition.core.enums import OCREngine
from autorecognition.models.domain import ExpenseDraft
from autorecognition.models.state import RecognitionSnapshot


class TriggerResponse(BaseModel):
    """Outcome of a trigger request"""
    accepted: bool = Field(..., description="A new attempt was started")
    state: RecognitionSnapshot = Field(..., description="State after the trigger")


class ActionResponse(BaseModel):
    """Outcome of cancel, abandon and dismiss"""
    success: bool = Field(..., description="The action was applied")
    state: RecognitionSnapshot = Field(..., description="State after the action")


class ConfirmResponse(BaseModel):
    """Confirmed expense draft"""
    draft: ExpenseDraft = Field(..., description="Expense handed downstream")
    state: RecognitionSnapshot = Field(..., description="State after confirmation")


class HealthResponse(BaseModel):
    """Health check response"""
    status: str = Field(..., description="Service status")
    version: str = Field(..., description="Application version")
    ocr_engine: OCREngine = Field(..., description="Configured OCR engine")
    ocr_engine_available: bool = Field(..., description="OCR engine is ready")
    auto_recognition_enabled: bool = Field(..., description="Feature switch")
