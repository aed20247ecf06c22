"""Data models for run-sheet screenshot extraction."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class Layout(Enum):
    """Visual layout of the source screenshot."""
    CALENDAR = "calendar"
    TABULAR = "tabular"


@dataclass(frozen=True)
class TextFragment:
    """One OCR-recognized word plus its bounding box, in source-image pixels."""
    text: str
    x: float
    y: float
    width: float = 0.0
    height: float = 0.0

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TextFragment':
        """
        Build a fragment from OCR collaborator output.

        Accepts both the nested wire shape
        ``{"text": ..., "boundingBox": {"x", "y", "width", "height"}}``
        and a flat ``{"text", "x", "y", "width", "height"}`` dict.
        """
        box = data.get('boundingBox') or data
        return cls(
            text=str(data.get('text', '')),
            x=float(box.get('x', 0) or 0),
            y=float(box.get('y', 0) or 0),
            width=float(box.get('width', 0) or 0),
            height=float(box.get('height', 0) or 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'text': self.text,
            'boundingBox': {
                'x': self.x,
                'y': self.y,
                'width': self.width,
                'height': self.height,
            },
        }


@dataclass(frozen=True)
class OCRResult:
    """OCR output for one image: full text, word fragments and optional dimensions."""
    full_text: str = ""
    fragments: List[TextFragment] = field(default_factory=list)
    image_width: Optional[float] = None
    image_height: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'OCRResult':
        raw_fragments = data.get('fragments')
        if raw_fragments is None:
            raw_fragments = data.get('blocks', [])
        fragments = [
            TextFragment.from_dict(item)
            for item in raw_fragments
            if isinstance(item, dict) and str(item.get('text', '')).strip()
        ]
        return cls(
            full_text=str(data.get('fullText', '') or ''),
            fragments=fragments,
            image_width=data.get('imageWidth'),
            image_height=data.get('imageHeight'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'fullText': self.full_text,
            'fragments': [f.to_dict() for f in self.fragments],
            'imageWidth': self.image_width,
            'imageHeight': self.image_height,
        }

    def resolve_dimensions(self) -> Tuple[float, float]:
        """
        Return ``(width, height)``, estimating missing values from fragment extents.

        The estimate is the furthest right/bottom fragment edge, and never
        less than 1 so percentage maths stays defined.
        """
        width = self.image_width
        height = self.image_height
        if not width:
            width = max((f.right for f in self.fragments), default=0.0)
        if not height:
            height = max((f.bottom for f in self.fragments), default=0.0)
        return float(width) if width and width > 0 else 1.0, float(height) if height and height > 0 else 1.0


def _to_percent(px: float, image_width: float) -> int:
    return int(round(px / image_width * 100)) if image_width > 0 else 0


@dataclass(frozen=True)
class DetectedColumn:
    """A clinician (or time-label) column in a calendar-view screenshot."""
    id: str
    clinician_name: Optional[str]
    x_start: float
    x_end: float
    x_start_percent: int
    x_end_percent: int
    is_time_column: bool = False

    @classmethod
    def from_pixels(
        cls,
        column_id: str,
        clinician_name: Optional[str],
        x_start: float,
        x_end: float,
        image_width: float,
        is_time_column: bool = False,
    ) -> 'DetectedColumn':
        return cls(
            id=column_id,
            clinician_name=clinician_name,
            x_start=x_start,
            x_end=x_end,
            x_start_percent=_to_percent(x_start, image_width),
            x_end_percent=_to_percent(x_end, image_width),
            is_time_column=is_time_column,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any], image_width: Optional[float] = None) -> 'DetectedColumn':
        """
        Load a column as returned by the column-editing UI.

        Pixel bounds win; when they are absent and ``image_width`` is known,
        they are rebuilt from the percent bounds.
        """
        start_pct = data.get('xStartPercent')
        end_pct = data.get('xEndPercent')
        x_start = data.get('xStart')
        x_end = data.get('xEnd')
        if x_start is None and start_pct is not None and image_width:
            x_start = start_pct / 100 * image_width
        if x_end is None and end_pct is not None and image_width:
            x_end = end_pct / 100 * image_width
        x_start = float(x_start or 0)
        x_end = float(x_end or 0)
        if start_pct is None:
            start_pct = _to_percent(x_start, image_width or 0)
        if end_pct is None:
            end_pct = _to_percent(x_end, image_width or 0)
        return cls(
            id=str(data.get('id', '')),
            clinician_name=data.get('clinicianName'),
            x_start=x_start,
            x_end=x_end,
            x_start_percent=int(start_pct),
            x_end_percent=int(end_pct),
            is_time_column=bool(data.get('isTimeColumn', False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'clinicianName': self.clinician_name,
            'xStart': self.x_start,
            'xEnd': self.x_end,
            'xStartPercent': self.x_start_percent,
            'xEndPercent': self.x_end_percent,
            'isTimeColumn': self.is_time_column,
        }

    def contains(self, fragment: TextFragment) -> bool:
        return self.x_start <= fragment.x < self.x_end


@dataclass(frozen=True)
class ColumnDetectionResult:
    """Columns detected in one screenshot, as handed to the column editor."""
    columns: List[DetectedColumn]
    time_column: Optional[DetectedColumn]
    image_width: float
    image_height: float
    is_calendar_view: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            'columns': [c.to_dict() for c in self.columns],
            'timeColumn': self.time_column.to_dict() if self.time_column else None,
            'imageWidth': self.image_width,
            'imageHeight': self.image_height,
            'isCalendarView': self.is_calendar_view,
        }


@dataclass(frozen=True)
class TimeLabel:
    """A time-of-day token used as a vertical reference point."""
    time: str
    y: float
    y_percent: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TimeLabel':
        y_percent = data.get('yPercent')
        return cls(
            time=str(data['time']),
            y=float(data.get('y', 0) or 0),
            y_percent=float(y_percent) if y_percent is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {'time': self.time, 'y': self.y, 'yPercent': self.y_percent}


@dataclass(frozen=True)
class ParsedAppointment:
    """A single appointment recovered from a screenshot."""
    patient_name: Optional[str] = None
    patient_phone: Optional[str] = None
    appointment_time: Optional[str] = None
    appointment_type: Optional[str] = None
    clinician_name: Optional[str] = None
    confidence: float = 0.0

    def needs_review(self, threshold: float = 0.6) -> bool:
        """True when the confidence is low enough to require a human check."""
        return self.confidence < threshold

    def to_dict(self) -> Dict[str, Any]:
        return {
            'patientName': self.patient_name,
            'patientPhone': self.patient_phone,
            'appointmentTime': self.appointment_time,
            'appointmentType': self.appointment_type,
            'clinicianName': self.clinician_name,
            'confidence': self.confidence,
        }

    def __str__(self) -> str:
        time = self.appointment_time or "??:??"
        name = self.patient_name or "(no name)"
        return f"{time} {name} [{self.confidence:.0%}]"


@dataclass
class RunSheetDocument:
    """Represents everything extracted from one screenshot."""
    file_path: str
    layout: Layout = Layout.TABULAR
    appointments: List[ParsedAppointment] = field(default_factory=list)

    # Layout metadata
    columns: List[DetectedColumn] = field(default_factory=list)
    time_column: Optional[DetectedColumn] = None
    time_labels: List[TimeLabel] = field(default_factory=list)
    image_width: Optional[float] = None
    image_height: Optional[float] = None
    extraction_timestamp: Optional[str] = None

    def get_appointments_by_clinician(self, clinician_name: Optional[str]) -> List[ParsedAppointment]:
        """Get all appointments for a specific clinician."""
        return [a for a in self.appointments if a.clinician_name == clinician_name]

    def __len__(self) -> int:
        return len(self.appointments)


@dataclass(frozen=True)
class StrategyResult:
    """Raw (un-normalized) output of one layout strategy plus the structure it found."""
    layout: Layout
    appointments: List[ParsedAppointment]
    columns: List[DetectedColumn] = field(default_factory=list)
    time_column: Optional[DetectedColumn] = None
    time_labels: List[TimeLabel] = field(default_factory=list)
