"""
Image helpers: decoding, validation and OCR preprocessing
"""
import base64
import binascii
import io
from typing import Tuple, Union

import numpy as np
from PIL import Image, ImageEnhance, ImageFilter

from autorecognition.core.exceptions import ImageValidationError
from autorecognition.core.enums import ImageFormat
from autorecognition.core.logging import get_logger

logger = get_logger(__name__)

ImageInput = Union[Image.Image, bytes, np.ndarray]


def decode_base64_image(base64_string: str) -> bytes:
    """
    Decode a base64 string into bytes

    Args:
        base64_string: Image as base64

    Returns:
        Decoded image bytes

    Raises:
        ImageValidationError: Decoding failed
    """
    # Strip a data:image prefix if present
    if "base64," in base64_string:
        base64_string = base64_string.split("base64,")[1]

    try:
        image_bytes = base64.b64decode(base64_string, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageValidationError(
            f"Failed to decode base64 image: {str(e)}",
            details={"error": str(e)}
        )

    if not image_bytes:
        raise ImageValidationError("Decoded image is empty")

    return image_bytes


def validate_image_format(image_bytes: bytes) -> ImageFormat:
    """
    Check the image format

    Args:
        image_bytes: Image bytes

    Returns:
        Image format

    Raises:
        ImageValidationError: Format is not supported
    """
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            format_lower = img.format.lower() if img.format else "unknown"
    except Exception as e:
        raise ImageValidationError(
            f"Failed to validate image format: {str(e)}",
            details={"error": str(e)}
        )

    try:
        return ImageFormat(format_lower)
    except ValueError:
        raise ImageValidationError(
            f"Unsupported image format: {format_lower}",
            details={
                "format": format_lower,
                "supported_formats": [f.value for f in ImageFormat]
            }
        )


def validate_image_size(image_bytes: bytes, max_size_mb: int = 10) -> None:
    """
    Check the image size

    Args:
        image_bytes: Image bytes
        max_size_mb: Maximum size in megabytes

    Raises:
        ImageValidationError: Size limit exceeded
    """
    size_mb = len(image_bytes) / (1024 * 1024)

    if size_mb > max_size_mb:
        raise ImageValidationError(
            f"Image size {size_mb:.2f}MB exceeds maximum {max_size_mb}MB",
            details={
                "size_mb": round(size_mb, 2),
                "max_size_mb": max_size_mb
            }
        )


def load_image(image: ImageInput) -> Image.Image:
    """
    Normalize any supported input into an RGB PIL image

    Raises:
        ImageValidationError: The input cannot be read as an image
    """
    try:
        if isinstance(image, Image.Image):
            pil_image = image
        elif isinstance(image, np.ndarray):
            pil_image = Image.fromarray(image)
        else:
            pil_image = Image.open(io.BytesIO(image))
            pil_image.load()
    except Exception as e:
        raise ImageValidationError(
            f"Failed to read image: {str(e)}",
            details={"error": str(e)}
        )

    if pil_image.mode != 'RGB':
        pil_image = pil_image.convert('RGB')
    return pil_image


def calculate_optimal_size(
    size: Tuple[int, int],
    max_dimension: int = 2048,
    min_dimension: int = 512
) -> Tuple[int, int]:
    """
    Fit an image size into the recognition band, keeping the aspect ratio

    The longest side is capped at max_dimension; otherwise the shortest side
    is raised to min_dimension.
    """
    width, height = size
    if width <= 0 or height <= 0:
        return size

    longest = max(width, height)
    shortest = min(width, height)

    if longest > max_dimension:
        scale = max_dimension / longest
    elif shortest < min_dimension:
        scale = min_dimension / shortest
    else:
        return size

    return max(1, round(width * scale)), max(1, round(height * scale))


def enhance_image(
    image: Image.Image,
    contrast: float = 1.2,
    brightness: float = 1.1
) -> Image.Image:
    """Contrast/brightness boost followed by an unsharp mask"""
    enhanced = ImageEnhance.Contrast(image).enhance(contrast)
    enhanced = ImageEnhance.Brightness(enhanced).enhance(brightness)
    return enhanced.filter(ImageFilter.UnsharpMask(radius=2.5, percent=50, threshold=0))


def preprocess_image(
    image: Image.Image,
    max_dimension: int = 2048,
    min_dimension: int = 512,
    contrast: float = 1.2,
    brightness: float = 1.1
) -> Image.Image:
    """
    Resize into the recognition band and enhance

    Each step falls back to its input on failure, so preprocessing never
    aborts recognition.
    """
    try:
        target_size = calculate_optimal_size(image.size, max_dimension, min_dimension)
        resized = image if target_size == image.size else image.resize(
            target_size, Image.Resampling.LANCZOS
        )
    except Exception as e:
        logger.warning("Image resize failed, using original", error=str(e))
        return image

    try:
        return enhance_image(resized, contrast=contrast, brightness=brightness)
    except Exception as e:
        logger.warning("Image enhancement failed, using resized image", error=str(e))
        return resized


def to_numpy(image: Image.Image) -> np.ndarray:
    """PIL image to an RGB numpy array for the OCR engines"""
    return np.array(image)
