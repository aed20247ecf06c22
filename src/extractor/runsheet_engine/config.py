"""Tunable thresholds for run-sheet extraction."""

from dataclasses import dataclass, fields
from typing import Any, Dict, Tuple


# Ordered most specific first; first match wins.
DEFAULT_TYPE_PHRASES: Tuple[Tuple[str, str], ...] = (
    ('pre operative', 'Pre Operative'),
    ('pre op', 'Pre Op'),
    ('post operative', 'Post Operative'),
    ('post op', 'Post Op'),
    ('new patient', 'New Patient'),
    ('follow up', 'Follow Up'),
    ('consulting', 'Consulting'),
    ('urgent', 'Urgent'),
    ('review', 'Review'),
    ('consult', 'Consult'),
)

DEFAULT_CHROME_TOKENS: Tuple[str, ...] = ('Dr', 'AM', 'PM', 'all-day', '▾', '☑')

DEFAULT_NAVIGATION_WORDS: Tuple[str, ...] = (
    'print', 'today', 'week', 'day', 'search', 'legend', 'providers',
    'day notes', 'settings', 'all-day',
    'oct', 'october', 'september', 'november',
    'monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday',
)

DEFAULT_HEADER_KEYWORDS: Tuple[str, ...] = (
    'patient', 'time', 'clinician', 'doctor', 'ph', 'phone', 'appt', 'type', 'name',
)


@dataclass(frozen=True)
class ExtractionConfig:
    """
    Extraction thresholds, in source-image pixels unless noted.

    The defaults are calibrated on one practice-management screenshot
    format and may need recalibration for others.
    """

    # Fragment merging
    line_y_tolerance: float = 15.0
    phone_merge_max_gap: float = 50.0
    meridiem_merge_max_gap: float = 30.0

    # Layout classification / column detection (ratios of image size)
    header_band_ratio: float = 0.15
    crop_header_ratio: float = 0.12
    min_clinician_headers: int = 2
    header_name_y_tolerance: float = 20.0
    header_name_x_span: float = 250.0
    time_column_max_x_ratio: float = 0.3
    min_time_column_labels: int = 2
    time_column_left_padding: float = 10.0
    time_column_right_padding: float = 20.0
    default_time_labels_end_ratio: float = 0.25

    # Clustering and time resolution
    cluster_y_tolerance: float = 70.0
    single_column_time_distance: float = 100.0
    shared_time_distance: float = 80.0

    # Tabular fallback
    tabular_row_tolerance: float = 15.0
    header_search_rows: int = 4
    min_header_keywords: int = 2
    mode_bucket_px: int = 10
    tabular_column_slack: float = 10.0

    # Field extraction
    min_name_token_length: int = 2
    type_phrases: Tuple[Tuple[str, str], ...] = DEFAULT_TYPE_PHRASES
    chrome_tokens: Tuple[str, ...] = DEFAULT_CHROME_TOKENS
    navigation_words: Tuple[str, ...] = DEFAULT_NAVIGATION_WORDS
    header_keywords: Tuple[str, ...] = DEFAULT_HEADER_KEYWORDS

    # Output consumers flag anything below this for mandatory review
    review_threshold: float = 0.6

    def validate(self) -> None:
        for name in ('header_band_ratio', 'crop_header_ratio', 'time_column_max_x_ratio',
                     'default_time_labels_end_ratio', 'review_threshold'):
            if not (0.0 <= getattr(self, name) <= 1.0):
                raise ValueError(f"{name} must be within [0, 1]")
        for name in ('line_y_tolerance', 'phone_merge_max_gap', 'meridiem_merge_max_gap',
                     'header_name_y_tolerance', 'header_name_x_span', 'cluster_y_tolerance',
                     'single_column_time_distance', 'shared_time_distance',
                     'tabular_row_tolerance'):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be > 0")
        if self.time_column_left_padding < 0 or self.time_column_right_padding < 0:
            raise ValueError("time column padding must be >= 0")
        if self.tabular_column_slack < 0:
            raise ValueError("tabular_column_slack must be >= 0")
        if self.min_clinician_headers < 1:
            raise ValueError("min_clinician_headers must be >= 1")
        if self.min_time_column_labels < 1:
            raise ValueError("min_time_column_labels must be >= 1")
        if self.header_search_rows < 1 or self.min_header_keywords < 1:
            raise ValueError("header_search_rows and min_header_keywords must be >= 1")
        if self.mode_bucket_px < 1:
            raise ValueError("mode_bucket_px must be >= 1")
        if self.min_name_token_length < 1:
            raise ValueError("min_name_token_length must be >= 1")
        for entry in self.type_phrases:
            if len(entry) != 2 or not entry[0].strip():
                raise ValueError("type_phrases entries must be (pattern, display) pairs")

    def __post_init__(self) -> None:
        self.validate()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ExtractionConfig':
        """
        Build a config from overrides (e.g. a JSON file); unknown keys are rejected.

        List values are converted to tuples so the config stays hashable.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(unknown)}")

        overrides: Dict[str, Any] = {}
        for key, value in data.items():
            if key == 'type_phrases':
                value = tuple(tuple(pair) for pair in value)
            elif isinstance(value, list):
                value = tuple(value)
            overrides[key] = value
        return cls(**overrides)
