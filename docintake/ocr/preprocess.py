"""Image cleanup applied before local tesseract recognition."""

import cv2
import numpy as np
from PIL import Image

from docintake.utils.logger import get_logger

logger = get_logger(__name__)


def to_gray(image: np.ndarray) -> np.ndarray:
    """Convert an RGB or RGBA array to grayscale; gray input is returned as is."""
    if image.ndim == 3:
        code = cv2.COLOR_RGBA2GRAY if image.shape[2] == 4 else cv2.COLOR_RGB2GRAY
        return cv2.cvtColor(image, code)
    return image


def binarize_otsu(image: np.ndarray) -> np.ndarray:
    """Binarize with Otsu's automatic threshold.

    Args:
        image: RGB, RGBA, or grayscale array.

    Returns:
        Array with pixel values 0 or 255.
    """
    gray = to_gray(image)
    _, binary = cv2.threshold(gray, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
    return binary


def prepare_for_ocr(image: Image.Image, binarize: bool = True) -> Image.Image:
    """Return a grayscale (optionally binarized) copy of a page image."""
    array = np.array(image.convert("RGB"))
    result = binarize_otsu(array) if binarize else to_gray(array)
    logger.debug("Prepared %dx%d image for OCR", result.shape[1], result.shape[0])
    return Image.fromarray(result)
