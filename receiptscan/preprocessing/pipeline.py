"""Image preprocessing applied before OCR.

Receipt photos are often large and low-contrast. Downscaling keeps
recognition time bounded, and a grayscale contrast stretch makes faint
thermal print easier for Tesseract to read.
"""

import cv2
import numpy as np

from receiptscan.utils.config import PreprocessingConfig
from receiptscan.utils.logger import get_logger

logger = get_logger(__name__)


def resize_to_width(image: np.ndarray, max_width: int) -> np.ndarray:
    """Downscale an image so it is at most ``max_width`` pixels wide.

    Args:
        image: Input image (RGB, RGBA or grayscale).
        max_width: Maximum width in pixels; narrower images are returned as is.

    Returns:
        Resized image with the original aspect ratio.
    """
    height, width = image.shape[:2]
    if width <= max_width:
        return image
    new_height = max(1, round(height * max_width / width))
    return cv2.resize(image, (max_width, new_height), interpolation=cv2.INTER_AREA)


def to_grayscale(image: np.ndarray) -> np.ndarray:
    """Convert an RGB or RGBA image to single-channel grayscale."""
    if image.ndim == 2:
        return image
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_RGBA2GRAY)
    return cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)


def stretch_contrast(image: np.ndarray, factor: float) -> np.ndarray:
    """Apply a linear contrast stretch around mid-gray.

    Args:
        image: Input image.
        factor: Contrast multiplier; 1.0 leaves the image unchanged.

    Returns:
        ``uint8`` image with ``p * factor + 128 * (1 - factor)`` clamped to 0..255.
    """
    intercept = 128.0 * (1.0 - factor)
    stretched = image.astype(np.float32) * factor + intercept
    return np.clip(stretched, 0, 255).astype(np.uint8)


class PreprocessingPipeline:
    """Configurable receipt image preprocessing.

    Args:
        config: Preprocessing configuration controlling which steps to apply.
    """

    def __init__(self, config: PreprocessingConfig) -> None:
        self.config = config

    def process(self, image: np.ndarray) -> np.ndarray:
        """Run the enabled preprocessing steps on an image.

        Args:
            image: Decoded document image.

        Returns:
            Image ready for OCR.
        """
        if not self.config.enabled:
            return image

        result = resize_to_width(image, self.config.max_width)

        if self.config.grayscale:
            result = to_grayscale(result)

        if self.config.contrast != 1.0:
            result = stretch_contrast(result, self.config.contrast)

        logger.debug(
            "Preprocessed image %s -> %s", image.shape, result.shape
        )
        return result
