"""
Pydantic models for incoming requests
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator


class TriggerRequest(BaseModel):
    """Start a recognition on a submitted screenshot"""
    image: str = Field(
        ...,
        description="Screenshot as base64",
        min_length=100
    )

    @field_validator('image')
    @classmethod
    def validate_image_not_empty(cls, v: str) -> str:
        """Reject blank images"""
        if not v or not v.strip():
            raise ValueError("Image cannot be empty")
        return v.strip()

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "image": "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg=="
            }
        }
    )
