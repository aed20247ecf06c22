"""Tabular-view strategy: one appointment per text row under an optional header."""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from .config import ExtractionConfig
from .field_extractor import FieldExtractor
from .models import Layout, ParsedAppointment, StrategyResult, TextFragment, TimeLabel
from .utils import TIME_12HR_RE, TIME_24HR_RE, bucketed_mode, find_time, group_by_rows, join_text

# Header keyword -> column role; the first keyword present for a role wins.
_ROLE_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ('time', ('time',)),
    ('name', ('patient', 'name')),
    ('phone', ('phone', 'ph')),
    ('type', ('type', 'appt')),
    ('clinician', ('clinician', 'doctor')),
)


@dataclass(frozen=True)
class HeaderRow:
    """The detected header row and the x position of every keyword found in it."""
    index: int
    keyword_x: Dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class TableColumns:
    """Column roles for a table, as ``(x, role)`` bands sorted left to right."""
    time_x: Optional[float] = None
    bands: Tuple[Tuple[float, str], ...] = ()

    def has_role(self, role: str) -> bool:
        return any(r == role for _, r in self.bands)

    def role_of(self, fragment: TextFragment, slack: float) -> Optional[str]:
        """The band with the greatest x at or left of the fragment (plus slack)."""
        if not self.bands:
            return None
        role = self.bands[0][1]
        for x, band_role in self.bands:
            if x <= fragment.x + slack:
                role = band_role
        return role


class TabularViewStrategy:
    """Row-wise parsing for screenshots without per-clinician columns."""

    layout = Layout.TABULAR

    def __init__(self, config: Optional[ExtractionConfig] = None, logger: Optional[logging.Logger] = None):
        self.config = config or ExtractionConfig()
        self.logger = logger or logging.getLogger(__name__)
        self.fields = FieldExtractor(self.config)

    def parse(
        self,
        fragments: Sequence[TextFragment],
        image_width: float,
        image_height: float,
        time_labels: Optional[Sequence[TimeLabel]] = None,
    ) -> StrategyResult:
        """
        Parse a tabular screenshot.

        Each row holding a time yields one appointment. ``time_labels`` are
        accepted for interface parity and ignored; tables carry their own
        times.
        """
        rows = group_by_rows(fragments, self.config.tabular_row_tolerance, strict=False)
        header = self.detect_header_row(rows)
        columns = self.detect_columns(rows, header)
        self.logger.debug(
            "Table: %d rows, header row %s, time column x=%s",
            len(rows), header.index if header else None, columns.time_x,
        )

        appointments = []
        for index, row in enumerate(rows):
            if header and index == header.index:
                continue
            appointment = self.parse_row(row, columns)
            if appointment:
                appointments.append(appointment)

        return StrategyResult(layout=self.layout, appointments=appointments)

    def detect_header_row(self, rows: Sequence[Sequence[TextFragment]]) -> Optional[HeaderRow]:
        """The first of the top rows containing enough header keywords."""
        keywords = self.config.header_keywords
        for index, row in enumerate(rows[:self.config.header_search_rows]):
            words = [f.text.strip().lower().rstrip(':') for f in row]
            found = [kw for kw in keywords if kw in words]
            if len(found) < self.config.min_header_keywords:
                continue

            keyword_x: Dict[str, float] = {}
            for fragment, word in zip(row, words):
                if word in keywords and word not in keyword_x:
                    keyword_x[word] = fragment.x
            return HeaderRow(index=index, keyword_x=keyword_x)
        return None

    def detect_columns(
        self,
        rows: Sequence[Sequence[TextFragment]],
        header: Optional[HeaderRow],
    ) -> TableColumns:
        """
        Column roles from the header, or just the time column from the data.

        Without a header the time column is the most common x of time
        fragments, bucketed to ``mode_bucket_px``.
        """
        bands: List[Tuple[float, str]] = []
        if header:
            for role, keywords in _ROLE_KEYWORDS:
                for keyword in keywords:
                    if keyword in header.keyword_x:
                        bands.append((header.keyword_x[keyword], role))
                        break
        bands.sort()

        time_x = next((x for x, role in bands if role == 'time'), None)
        if time_x is None:
            xs = [
                f.x for row in rows for f in row
                if TIME_12HR_RE.search(f.text) or TIME_24HR_RE.search(f.text)
            ]
            time_x = bucketed_mode(xs, self.config.mode_bucket_px)

        return TableColumns(time_x=time_x, bands=tuple(bands))

    def _row_time(self, row: Sequence[TextFragment], columns: TableColumns) -> Optional[str]:
        candidates = [f for f in row if find_time(f.text)]
        if not candidates:
            return find_time(join_text(row))
        if columns.time_x is not None:
            best = min(candidates, key=lambda f: abs(f.x - columns.time_x))
        else:
            best = candidates[0]
        return find_time(best.text)

    def parse_row(self, row: Sequence[TextFragment], columns: TableColumns) -> Optional[ParsedAppointment]:
        """One appointment from one row, or None if the row has no time."""
        appointment_time = self._row_time(row, columns)
        if not appointment_time:
            return None

        text = join_text(row)
        phone = self.fields.extract_phone(text)

        if not columns.bands:
            name, appointment_type = self.fields.extract_name_and_type(row)
            return ParsedAppointment(
                patient_name=name,
                patient_phone=phone,
                appointment_time=appointment_time,
                appointment_type=appointment_type,
            )

        by_role: Dict[str, List[TextFragment]] = {}
        for fragment in row:
            role = columns.role_of(fragment, self.config.tabular_column_slack)
            by_role.setdefault(role, []).append(fragment)

        appointment_type = None
        if columns.has_role('type'):
            appointment_type = self.fields.match_type(join_text(by_role.get('type', [])))
        if appointment_type is None:
            appointment_type = self.fields.match_type(text)

        if columns.has_role('name'):
            name_source = by_role.get('name', [])
        else:
            name_source = [f for f in row if by_role.get('clinician') is None or f not in by_role['clinician']]
        name = self.fields.extract_name(name_source, appointment_type)

        clinician = join_text(by_role.get('clinician', [])).strip() or None

        return ParsedAppointment(
            patient_name=name,
            patient_phone=phone,
            appointment_time=appointment_time,
            appointment_type=appointment_type,
            clinician_name=clinician,
        )
