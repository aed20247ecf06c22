"""Clinician column and time-label column detection for calendar-view screenshots."""

import logging
import math
from typing import List, Optional, Sequence

from .config import ExtractionConfig
from .layout import clinician_headers, header_band
from .models import ColumnDetectionResult, DetectedColumn, TextFragment
from .utils import is_time_label, join_text


class ColumnDetector:
    """Detects per-clinician column boundaries that a reviewer can then adjust."""

    def __init__(self, config: Optional[ExtractionConfig] = None, logger: Optional[logging.Logger] = None):
        self.config = config or ExtractionConfig()
        self.logger = logger or logging.getLogger(__name__)

    def detect(
        self,
        fragments: Sequence[TextFragment],
        image_width: float,
        image_height: float,
    ) -> ColumnDetectionResult:
        """
        Detect clinician columns and the optional time-label column.

        Args:
            fragments: Merged OCR fragments for the whole screenshot
            image_width: Image width in pixels
            image_height: Image height in pixels

        Returns:
            ColumnDetectionResult; a non-calendar screenshot gets one
            full-width column and no time column
        """
        headers = clinician_headers(fragments, image_height, self.config)
        if len(headers) < self.config.min_clinician_headers:
            return self._single_column(image_width, image_height, is_calendar_view=False)

        time_fragments = self.time_label_fragments(fragments, image_width)
        columns = self._clinician_columns(fragments, headers, time_fragments, image_width, image_height)
        if not columns:
            self.logger.warning(
                "Calendar view with %d headers but no usable columns; using full width",
                len(headers),
            )
            return self._single_column(image_width, image_height, is_calendar_view=True)

        time_column = self._time_column(time_fragments, image_width, columns[0].x_start)

        self.logger.debug("Detected %d clinician columns", len(columns))
        for column in columns:
            self.logger.debug("  - %s: x=%s-%s", column.clinician_name, column.x_start, column.x_end)

        return ColumnDetectionResult(
            columns=columns,
            time_column=time_column,
            image_width=image_width,
            image_height=image_height,
            is_calendar_view=True,
        )

    def time_label_fragments(self, fragments: Sequence[TextFragment], image_width: float) -> List[TextFragment]:
        """Time-label fragments on the left side of the image, top to bottom."""
        limit = image_width * self.config.time_column_max_x_ratio
        labels = [f for f in fragments if f.x < limit and is_time_label(f.text)]
        return sorted(labels, key=lambda f: (f.y, f.x))

    def _single_column(self, image_width: float, image_height: float, is_calendar_view: bool) -> ColumnDetectionResult:
        column = DetectedColumn(
            id='col-1',
            clinician_name=None,
            x_start=0,
            x_end=image_width,
            x_start_percent=0,
            x_end_percent=100,
        )
        return ColumnDetectionResult(
            columns=[column],
            time_column=None,
            image_width=image_width,
            image_height=image_height,
            is_calendar_view=is_calendar_view,
        )

    def _clinician_name(
        self,
        header: TextFragment,
        band: Sequence[TextFragment],
        next_header_x: Optional[float],
    ) -> str:
        right_limit = header.x + self.config.header_name_x_span
        if next_header_x is not None:
            right_limit = min(right_limit, next_header_x)
        adjacent = [
            f for f in band
            if abs(f.y - header.y) < self.config.header_name_y_tolerance
            and header.x <= f.x < right_limit
        ]
        return join_text(sorted(adjacent, key=lambda f: f.x)).strip()

    def _time_labels_end(self, time_fragments: Sequence[TextFragment], image_width: float) -> float:
        if not time_fragments:
            return math.floor(image_width * self.config.default_time_labels_end_ratio)
        return math.floor(max(f.right for f in time_fragments) + self.config.time_column_right_padding)

    def _clinician_columns(
        self,
        fragments: Sequence[TextFragment],
        headers: Sequence[TextFragment],
        time_fragments: Sequence[TextFragment],
        image_width: float,
        image_height: float,
    ) -> List[DetectedColumn]:
        band = header_band(fragments, image_height, self.config)
        xs = [h.x for h in headers]
        first_start = min(self._time_labels_end(time_fragments, image_width), xs[0])

        columns: List[DetectedColumn] = []
        for i, header in enumerate(headers):
            next_x = xs[i + 1] if i + 1 < len(xs) else None
            x_start = first_start if i == 0 else math.floor((xs[i - 1] + header.x) / 2)
            x_end = math.floor((header.x + next_x) / 2) if next_x is not None else image_width
            x_start = max(0, min(x_start, image_width))
            x_end = max(0, min(x_end, image_width))

            name = self._clinician_name(header, band, next_x) or f"Column {len(columns) + 1}"
            column = DetectedColumn.from_pixels(
                f"col-{len(columns) + 1}", name, x_start, x_end, image_width
            )
            if column.x_end <= column.x_start or column.x_end_percent <= column.x_start_percent:
                self.logger.warning("Dropping collapsed column for %r at x=%s", name, header.x)
                continue
            columns.append(column)
        return columns

    def _time_column(
        self,
        time_fragments: Sequence[TextFragment],
        image_width: float,
        first_column_start: float,
    ) -> Optional[DetectedColumn]:
        if len(time_fragments) < self.config.min_time_column_labels:
            return None

        x_start = max(0, min(f.x for f in time_fragments) - self.config.time_column_left_padding)
        x_end = min(image_width, max(f.right for f in time_fragments) + self.config.time_column_right_padding)
        x_end = min(x_end, first_column_start)

        column = DetectedColumn.from_pixels('time-col', None, x_start, x_end, image_width, is_time_column=True)
        if column.x_end <= column.x_start or column.x_end_percent <= column.x_start_percent:
            return None
        return column


def detect_columns(
    fragments: Sequence[TextFragment],
    image_width: float,
    image_height: float,
    config: Optional[ExtractionConfig] = None,
    logger: Optional[logging.Logger] = None,
) -> ColumnDetectionResult:
    """Convenience wrapper around ColumnDetector.detect."""
    return ColumnDetector(config, logger).detect(fragments, image_width, image_height)


def crop_to_column(
    fragments: Sequence[TextFragment],
    column: DetectedColumn,
    image_height: float,
    config: Optional[ExtractionConfig] = None,
) -> List[TextFragment]:
    """Fragments inside ``[x_start, x_end)`` of a column and below the header line."""
    config = config or ExtractionConfig()
    header_limit = image_height * config.crop_header_ratio
    return [f for f in fragments if column.contains(f) and f.y > header_limit]
