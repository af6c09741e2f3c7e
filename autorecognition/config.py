"""
Application configuration via Pydantic Settings
"""
from typing import List, Optional, Tuple

from pydantic_settings import BaseSettings, SettingsConfigDict

from autorecognition.core.enums import OCREngine


class Settings(BaseSettings):
    """Settings loaded from environment variables"""

    # Application Settings
    APP_NAME: str = "auto-recognition-service"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # CORS Settings
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Feature switch
    AUTO_RECOGNITION_ENABLED: bool = True

    # OCR engine selection
    OCR_ENGINE: OCREngine = OCREngine.PADDLEOCR
    OCR_WORKERS: int = 2

    # PaddleOCR Settings
    PADDLEOCR_USE_ANGLE_CLS: bool = True
    PADDLEOCR_LANG: str = "ch"
    PADDLEOCR_USE_GPU: bool = False
    PADDLEOCR_SHOW_LOG: bool = False

    # EasyOCR Settings
    EASYOCR_LANGUAGES: str = "ch_sim,en"
    EASYOCR_USE_GPU: bool = False

    # Recognition thresholds
    OCR_MIN_BLOCK_CONFIDENCE: float = 0.3
    OCR_MIN_OVERALL_CONFIDENCE: float = 0.5

    # Preprocessing band and enhancement
    IMAGE_MAX_DIMENSION: int = 2048
    IMAGE_MIN_DIMENSION: int = 512
    IMAGE_CONTRAST: float = 1.2
    IMAGE_BRIGHTNESS: float = 1.1

    # Retry policy
    RETRY_MAX_RETRIES: int = 3
    RETRY_DELAYS: str = "1.0,2.0,5.0"

    # Orchestrator timing (seconds)
    REQUIRES_CONFIRMATION: bool = True
    CONFIRMATION_TIMEOUT: float = 2.0
    CANCEL_COOLDOWN: float = 1.0

    # Category scoring
    CATEGORY_LOW_CONFIDENCE_FLOOR: float = 0.1
    CATEGORY_FALLBACK_CONFIDENCE: float = 0.3
    CATEGORY_TAXONOMY_PATH: Optional[str] = None

    # Amount limits
    MAX_AMOUNT: float = 999999.99

    # Image Settings
    MAX_IMAGE_SIZE_MB: int = 10
    ALLOWED_IMAGE_FORMATS: str = "jpg,jpeg,png,webp"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True
    )

    @property
    def easyocr_languages_list(self) -> List[str]:
        """Parse EasyOCR languages into a list"""
        return [lang.strip() for lang in self.EASYOCR_LANGUAGES.split(",")]

    @property
    def retry_delays_list(self) -> Tuple[float, ...]:
        """Parse the retry delay schedule into seconds"""
        return tuple(
            float(delay.strip()) for delay in self.RETRY_DELAYS.split(",") if delay.strip()
        )

    @property
    def allowed_origins_list(self) -> List[str]:
        """Parse CORS origins into a list"""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    @property
    def allowed_image_formats_list(self) -> List[str]:
        """Parse image formats into a list"""
        return [fmt.strip() for fmt in self.ALLOWED_IMAGE_FORMATS.split(",")]


# Singleton instance
_settings: Settings = None


def get_settings() -> Settings:
    """Get settings (singleton)"""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
