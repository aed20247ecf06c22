"""Calendar-view strategy: per-clinician columns of stacked appointment cards."""

import logging
from typing import List, Optional, Sequence

from .clustering import cluster_fragments, cluster_top
from .column_detector import ColumnDetector, crop_to_column
from .config import ExtractionConfig
from .field_extractor import FieldExtractor
from .models import DetectedColumn, Layout, ParsedAppointment, StrategyResult, TextFragment, TimeLabel
from .time_resolver import extract_time_labels, resolve_time
from .utils import join_text, reading_order


class CalendarViewStrategy:
    """Column detection, clustering, time resolution and field extraction."""

    layout = Layout.CALENDAR

    def __init__(self, config: Optional[ExtractionConfig] = None, logger: Optional[logging.Logger] = None):
        self.config = config or ExtractionConfig()
        self.logger = logger or logging.getLogger(__name__)
        self.detector = ColumnDetector(self.config, self.logger)
        self.fields = FieldExtractor(self.config)

    def parse(
        self,
        fragments: Sequence[TextFragment],
        image_width: float,
        image_height: float,
        time_labels: Optional[Sequence[TimeLabel]] = None,
    ) -> StrategyResult:
        """
        Parse a full calendar screenshot.

        Args:
            fragments: Merged fragments for the whole image
            image_width: Image width in pixels
            image_height: Image height in pixels
            time_labels: Absolute-Y labels to use instead of the local time column

        Returns:
            StrategyResult with raw appointments, columns and the labels used
        """
        detection = self.detector.detect(fragments, image_width, image_height)
        if time_labels:
            labels = list(time_labels)
        else:
            labels = extract_time_labels(self.detector.time_label_fragments(fragments, image_width), image_height)
        self.logger.debug("Using %d time labels", len(labels))

        appointments = self.parse_columns(fragments, detection.columns, image_height, labels)
        return StrategyResult(
            layout=self.layout,
            appointments=appointments,
            columns=detection.columns,
            time_column=detection.time_column,
            time_labels=labels,
        )

    def parse_columns(
        self,
        fragments: Sequence[TextFragment],
        columns: Sequence[DetectedColumn],
        image_height: float,
        time_labels: Sequence[TimeLabel],
    ) -> List[ParsedAppointment]:
        """Parse every non-time column; columns sharing one label set use the tighter distance."""
        clinician_columns = [c for c in columns if not c.is_time_column]
        if len(clinician_columns) > 1:
            max_distance = self.config.shared_time_distance
        else:
            max_distance = self.config.single_column_time_distance

        appointments: List[ParsedAppointment] = []
        for column in clinician_columns:
            column_fragments = crop_to_column(fragments, column, image_height, self.config)
            self.logger.debug("Column %r: %d fragments", column.clinician_name, len(column_fragments))
            appointments.extend(
                self.parse_column(column_fragments, column.clinician_name, time_labels, max_distance)
            )
        return appointments

    def parse_column(
        self,
        fragments: Sequence[TextFragment],
        clinician_name: Optional[str],
        time_labels: Sequence[TimeLabel],
        max_distance: float,
    ) -> List[ParsedAppointment]:
        clusters = cluster_fragments(fragments, self.config.cluster_y_tolerance)
        self.logger.debug("Grouped into %d clusters", len(clusters))

        appointments = []
        for cluster in clusters:
            appointment = self.parse_cluster(cluster, clinician_name, time_labels, max_distance)
            if appointment:
                appointments.append(appointment)
        return appointments

    def parse_cluster(
        self,
        cluster: Sequence[TextFragment],
        clinician_name: Optional[str],
        time_labels: Sequence[TimeLabel],
        max_distance: float,
    ) -> Optional[ParsedAppointment]:
        """
        Turn one cluster into an appointment, or None when it carries
        neither a name nor a time (gridlines, icons, navigation chrome).
        """
        ordered = reading_order(cluster, self.config.line_y_tolerance)
        text = join_text(ordered)
        top = cluster_top(cluster)

        if self.fields.is_navigation(text):
            self.logger.debug("Skipping navigation cluster at y=%s: %.80s", top, text)
            return None

        appointment_time = resolve_time(text, top, time_labels, max_distance)
        name, appointment_type = self.fields.extract_name_and_type(ordered)

        if not name and not appointment_time:
            self.logger.debug("Discarding cluster at y=%s without name or time", top)
            return None

        return ParsedAppointment(
            patient_name=name,
            patient_phone=self.fields.extract_phone(text),
            appointment_time=appointment_time,
            appointment_type=appointment_type,
            clinician_name=clinician_name,
        )
