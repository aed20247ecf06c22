"""Screenshot preprocessing ahead of OCR."""

import logging
import os
from pathlib import Path
from typing import Optional, Union

import cv2
import numpy as np
from PIL import Image, ImageOps

from .utils import SUPPORTED_EXTENSIONS

DEFAULT_MAX_WIDTH = 2000

# 3x3 sharpening kernel for anti-aliased UI text
_SHARPEN_KERNEL = np.array([[0, -1, 0], [-1, 5, -1], [0, -1, 0]], dtype=np.float32)


def max_width_from_env(default: int = DEFAULT_MAX_WIDTH) -> int:
    """Width bound from ``OCR_MAX_WIDTH``, falling back to ``default``."""
    raw = os.getenv('OCR_MAX_WIDTH')
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"OCR_MAX_WIDTH must be an integer, got {raw!r}")
    if value <= 0:
        raise ValueError("OCR_MAX_WIDTH must be > 0")
    return value


class DocumentPreprocessor:
    """Loads run-sheet screenshots and prepares them for OCR."""

    def __init__(self, max_width: Optional[int] = None, logger: Optional[logging.Logger] = None):
        self.max_width = max_width or max_width_from_env()
        self.logger = logger or logging.getLogger(__name__)

    def process(self, file_path: Union[str, Path]) -> np.ndarray:
        """
        Load and preprocess a screenshot.

        Args:
            file_path: Path to the image file

        Returns:
            Preprocessed 3-channel (BGR) image

        Raises:
            ValueError: If the format is unsupported or the image cannot be read
        """
        file_path = Path(file_path)
        extension = file_path.suffix.lower()
        if extension not in SUPPORTED_EXTENSIONS:
            raise ValueError(f"Unsupported file format: {extension}")

        image = self.load_image(file_path)
        self.logger.debug("Loaded image: shape=%s, dtype=%s", image.shape, image.dtype)

        processed = self.preprocess(image)
        self.logger.debug("Preprocessed: shape=%s", processed.shape)
        return processed

    @staticmethod
    def load_image(file_path: Path) -> np.ndarray:
        """Read with Pillow (EXIF orientation applied) into an RGB or RGBA array."""
        try:
            with Image.open(file_path) as img:
                img = ImageOps.exif_transpose(img)
                mode = 'RGBA' if 'A' in img.getbands() else 'RGB'
                return np.array(img.convert(mode))
        except OSError as e:
            raise ValueError(f"Error loading image {file_path}: {e}")

    @staticmethod
    def flatten_alpha(image: np.ndarray) -> np.ndarray:
        """Composite an RGBA image onto white; other images pass through."""
        if image.ndim != 3 or image.shape[2] != 4:
            return image
        rgb = image[:, :, :3].astype(np.float32)
        alpha = image[:, :, 3:4].astype(np.float32) / 255.0
        flat = rgb * alpha + 255.0 * (1.0 - alpha)
        return flat.astype(np.uint8)

    def resize_for_ocr(self, image: np.ndarray) -> np.ndarray:
        """
        Downscale to at most ``max_width`` pixels wide, keeping aspect ratio.

        Narrower images are never upscaled.
        """
        h, w = image.shape[:2]
        if w <= self.max_width:
            return image
        scale = self.max_width / w
        return cv2.resize(image, (self.max_width, max(1, int(round(h * scale)))), interpolation=cv2.INTER_AREA)

    def preprocess(self, image: np.ndarray) -> np.ndarray:
        """
        Apply preprocessing to improve OCR accuracy on UI screenshots.

        Args:
            image: RGB, RGBA or grayscale array

        Returns:
            Grayscale content as a 3-channel BGR image
        """
        flat = self.flatten_alpha(image)
        if flat.ndim == 3:
            gray = cv2.cvtColor(flat, cv2.COLOR_RGB2GRAY)
        else:
            gray = flat

        gray = self.resize_for_ocr(gray)
        sharpened = cv2.filter2D(gray, -1, _SHARPEN_KERNEL)
        normalized = cv2.normalize(sharpened, None, 0, 255, cv2.NORM_MINMAX)

        # PaddleOCR expects 3 channels
        return cv2.cvtColor(normalized, cv2.COLOR_GRAY2BGR)
