"""OCR extraction using PaddleOCR."""

import logging
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np
from paddleocr import PaddleOCR

from .models import OCRResult, TextFragment

_Box = Tuple[float, float, float, float]


def _box_from_poly(poly: Any) -> Optional[_Box]:
    """Axis-aligned ``(x1, y1, x2, y2)`` from a 4-point polygon or an x1,y1,x2,y2 box."""
    points = np.asarray(poly, dtype=float)
    if points.ndim == 2 and points.shape[0] >= 4 and points.shape[1] >= 2:
        xs, ys = points[:, 0], points[:, 1]
        return float(xs.min()), float(ys.min()), float(xs.max()), float(ys.max())
    if points.ndim == 1 and points.shape[0] == 4:
        x1, y1, x2, y2 = (float(v) for v in points)
        return x1, y1, x2, y2
    return None


def split_line(text: str, box: _Box) -> List[TextFragment]:
    """
    Split one recognized text line into word fragments.

    PaddleOCR boxes whole lines; the layout heuristics need words, so each
    word gets the slice of the line box proportional to its character
    offset and length.
    """
    x1, y1, x2, y2 = box
    width = max(x2 - x1, 0.0)
    height = max(y2 - y1, 0.0)
    length = len(text)
    if length == 0:
        return []

    fragments = []
    offset = 0
    for word in text.split():
        start = text.index(word, offset)
        offset = start + len(word)
        fragments.append(TextFragment(
            text=word,
            x=round(x1 + width * start / length, 1),
            y=round(y1, 1),
            width=round(width * len(word) / length, 1),
            height=round(height, 1),
        ))
    return fragments


class OCRExtractor:
    """Handles OCR extraction from run-sheet screenshots using PaddleOCR."""

    def __init__(self, lang: str = 'en', logger: Optional[logging.Logger] = None):
        """
        Initialize OCR extractor.

        Args:
            lang: Language code for OCR (default: 'en')
            logger: Optional logger for diagnostics
        """
        self.logger = logger or logging.getLogger(__name__)
        self.ocr = PaddleOCR(
            use_angle_cls=True,  # Enable angle classification for rotated text
            lang=lang,
            det_db_box_thresh=0.3,  # Lower threshold for faint calendar text
            det_db_unclip_ratio=2.0,  # Expand detected boxes slightly
        )

    def _lines(self, result: Sequence[Any]) -> List[Tuple[str, _Box]]:
        """
        Normalize PaddleOCR output to ``(text, box)`` lines.

        Older releases return ``[[poly, (text, score)], ...]`` per page; newer
        pipelines return one dict-like page with ``rec_texts`` and
        ``rec_polys`` (or ``rec_boxes``).
        """
        if not result:
            return []

        first = result[0]
        lines: List[Tuple[str, _Box]] = []

        if hasattr(first, 'get') and first.get('rec_texts') is not None:
            texts = first.get('rec_texts') or []
            polys = first.get('rec_polys')
            if polys is None:
                polys = first.get('rec_boxes')
            if polys is None:
                polys = []
            for text, poly in zip(texts, polys):
                box = _box_from_poly(poly)
                if box and str(text).strip():
                    lines.append((str(text).strip(), box))
            return lines

        for line in first if isinstance(first, list) else result:
            try:
                poly, (text, _score) = line[0], line[1]
            except (IndexError, TypeError, ValueError):
                self.logger.warning("Skipping malformed OCR line: %r", line)
                continue
            box = _box_from_poly(poly)
            if box and str(text).strip():
                lines.append((str(text).strip(), box))
        return lines

    def extract(self, image: np.ndarray) -> OCRResult:
        """
        Run OCR on a preprocessed image.

        Args:
            image: Input image as numpy array (BGR)

        Returns:
            OCRResult with word-level fragments in image pixel space

        Raises:
            ValueError: If the image is empty
        """
        if image is None or not isinstance(image, np.ndarray) or image.size == 0:
            raise ValueError("OCR input must be a non-empty image array")

        height, width = image.shape[:2]
        lines = self._lines(self.ocr.ocr(image))
        lines.sort(key=lambda line: (line[1][1], line[1][0]))

        fragments = [f for text, box in lines for f in split_line(text, box)]
        self.logger.debug("OCR found %d lines, %d word fragments", len(lines), len(fragments))

        return OCRResult(
            full_text='\n'.join(text for text, _ in lines),
            fragments=fragments,
            image_width=float(width),
            image_height=float(height),
        )
