"""Parser to extract structured appointments from run-sheet OCR results."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from .calendar_view import CalendarViewStrategy
from .column_detector import ColumnDetector
from .config import ExtractionConfig
from .layout import classify_layout
from .merger import merge_fragments
from .models import (
    ColumnDetectionResult,
    DetectedColumn,
    Layout,
    OCRResult,
    ParsedAppointment,
    RunSheetDocument,
    StrategyResult,
    TextFragment,
    TimeLabel,
)
from .normalizer import normalize_appointment
from .scoring import calculate_confidence
from .tabular_view import TabularViewStrategy
from .time_resolver import extract_time_labels, load_external_times, to_absolute

ExternalTimes = Union[str, Sequence[Any], None]


class RunSheetParser:
    """
    Turns OCR fragments of a run-sheet screenshot into scored appointments.

    The layout decides which strategy produces raw candidates; every
    candidate then goes through the same normalize and score stage. The
    parser holds only configuration, so one instance can serve concurrent
    screenshots.
    """

    def __init__(self, config: Optional[ExtractionConfig] = None, logger: Optional[logging.Logger] = None):
        self.config = config or ExtractionConfig()
        self.logger = logger or logging.getLogger(__name__)
        self.strategies = {
            Layout.CALENDAR: CalendarViewStrategy(self.config, self.logger),
            Layout.TABULAR: TabularViewStrategy(self.config, self.logger),
        }

    @property
    def calendar(self) -> CalendarViewStrategy:
        return self.strategies[Layout.CALENDAR]

    def _prepare(self, ocr_result: OCRResult) -> Tuple[List[TextFragment], float, float]:
        width, height = ocr_result.resolve_dimensions()
        fragments = merge_fragments(ocr_result.fragments, self.config)
        self.logger.debug(
            "Merged %d fragments into %d (image %sx%s)",
            len(ocr_result.fragments), len(fragments), width, height,
        )
        return fragments, width, height

    def _external_labels(self, external_times: ExternalTimes, image_height: float) -> List[TimeLabel]:
        labels = load_external_times(external_times, self.logger)
        return to_absolute(labels, image_height) if labels else []

    def _finalize(self, raw: Sequence[ParsedAppointment]) -> List[ParsedAppointment]:
        return [calculate_confidence(normalize_appointment(a)) for a in raw]

    def analyze(
        self,
        ocr_result: OCRResult,
        external_times: ExternalTimes = None,
    ) -> StrategyResult:
        """
        Classify the layout and run the matching strategy.

        Returns:
            StrategyResult whose appointments are normalized and scored
        """
        fragments, width, height = self._prepare(ocr_result)
        layout = classify_layout(fragments, height, self.config)
        self.logger.info("Detected %s layout", layout.value)

        labels = self._external_labels(external_times, height) if layout is Layout.CALENDAR else []
        result = self.strategies[layout].parse(fragments, width, height, labels or None)
        return StrategyResult(
            layout=result.layout,
            appointments=self._finalize(result.appointments),
            columns=result.columns,
            time_column=result.time_column,
            time_labels=result.time_labels,
        )

    def parse_screenshot(
        self,
        ocr_result: OCRResult,
        external_times: ExternalTimes = None,
    ) -> List[ParsedAppointment]:
        """
        Parse a full screenshot of either layout.

        Args:
            ocr_result: OCR output for the screenshot
            external_times: Optional time labels (``[{"time", "yPercent"}]``)
                used instead of local time-column detection

        Returns:
            Normalized, scored appointments in visual order
        """
        return self.analyze(ocr_result, external_times).appointments

    def parse_single_column(
        self,
        ocr_result: OCRResult,
        clinician_name: Optional[str] = None,
        external_times: ExternalTimes = None,
    ) -> List[ParsedAppointment]:
        """
        Parse a crop holding exactly one clinician column.

        Time labels come from ``external_times`` when usable, otherwise
        from time labels found in the crop itself. The header strip at the
        top of the crop is ignored.
        """
        fragments, _, height = self._prepare(ocr_result)
        labels = self._external_labels(external_times, height) or extract_time_labels(fragments, height)

        header_limit = height * self.config.crop_header_ratio
        body = [f for f in fragments if f.y > header_limit]
        raw = self.calendar.parse_column(
            body, clinician_name, labels, self.config.single_column_time_distance
        )
        return self._finalize(raw)

    def parse_columns(
        self,
        ocr_result: OCRResult,
        columns: Sequence[Union[DetectedColumn, Dict[str, Any]]],
        external_times: ExternalTimes = None,
    ) -> List[ParsedAppointment]:
        """
        Parse a full screenshot using caller-supplied (possibly edited) columns.

        Columns may be DetectedColumn instances or their dict form; time
        columns are skipped.
        """
        fragments, width, height = self._prepare(ocr_result)
        resolved = [
            c if isinstance(c, DetectedColumn) else DetectedColumn.from_dict(c, width)
            for c in columns
        ]
        labels = self._external_labels(external_times, height)
        if not labels:
            labels = extract_time_labels(self.calendar.detector.time_label_fragments(fragments, width), height)
        raw = self.calendar.parse_columns(fragments, resolved, height, labels)
        return self._finalize(raw)

    def detect_columns(self, ocr_result: OCRResult) -> ColumnDetectionResult:
        fragments, width, height = self._prepare(ocr_result)
        return ColumnDetector(self.config, self.logger).detect(fragments, width, height)

    def extract_time_labels(self, ocr_result: OCRResult) -> List[TimeLabel]:
        """Normalized time labels with ``y_percent`` from a time-column crop."""
        fragments, _, height = self._prepare(ocr_result)
        return extract_time_labels(fragments, height)

    def parse_document(
        self,
        file_path: str,
        ocr_result: OCRResult,
        clinician_name: Optional[str] = None,
        external_times: ExternalTimes = None,
        columns: Optional[Sequence[Union[DetectedColumn, Dict[str, Any]]]] = None,
    ) -> RunSheetDocument:
        """
        Parse OCR output into a RunSheetDocument.

        Args:
            file_path: Path to source file
            ocr_result: OCR output for the file
            clinician_name: Treat the input as a single-column crop for this clinician
            external_times: Optional shared time labels
            columns: Edited column boundaries to parse with

        Returns:
            RunSheetDocument with parsed appointments and layout metadata
        """
        width, height = ocr_result.resolve_dimensions()
        doc = RunSheetDocument(file_path=file_path, image_width=width, image_height=height)

        if columns is not None:
            doc.layout = Layout.CALENDAR
            doc.appointments = self.parse_columns(ocr_result, columns, external_times)
            doc.columns = [
                c if isinstance(c, DetectedColumn) else DetectedColumn.from_dict(c, width)
                for c in columns
            ]
        elif clinician_name is not None:
            doc.layout = Layout.CALENDAR
            doc.appointments = self.parse_single_column(ocr_result, clinician_name, external_times)
        else:
            result = self.analyze(ocr_result, external_times)
            doc.layout = result.layout
            doc.appointments = result.appointments
            doc.columns = result.columns
            doc.time_column = result.time_column
            doc.time_labels = result.time_labels

        doc.extraction_timestamp = datetime.now().isoformat()
        return doc
