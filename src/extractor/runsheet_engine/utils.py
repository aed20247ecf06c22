"""Shared patterns, geometry helpers and validation for run-sheet processing."""

import math
import re
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from .models import RunSheetDocument, TextFragment

# Time patterns
TIME_12HR_RE = re.compile(r'\b(1[0-2]|0?[1-9]):?([0-5][0-9])?\s?(am|pm)\b', re.IGNORECASE)
TIME_24HR_RE = re.compile(r'\b([01]?[0-9]|2[0-3]):([0-5][0-9])\b')
TIME_LABEL_12HR_RE = re.compile(r'^(1[0-2]|0?[1-9]):?([0-5][0-9])?\s?(am|pm)$', re.IGNORECASE)
TIME_LABEL_24HR_RE = re.compile(r'^([01]?[0-9]|2[0-3]):([0-5][0-9])$')
TIME_STEM_RE = re.compile(r'^\d{1,2}:?\d{0,2}$')
MERIDIEM_RE = re.compile(r'^(am|pm)$', re.IGNORECASE)
CANONICAL_TIME_RE = re.compile(r'^\d{2}:\d{2}$')

# Australian phone patterns
PHONE_RE = re.compile(r'\b0[2-478]\d{2}\s?\d{3}\s?\d{3}\b')
PHONE_PREFIX_RE = re.compile(r'^0[24]\d{2}$')
PHONE_TRIPLE_RE = re.compile(r'^\d{3}$')
MERGED_PHONE_RE = re.compile(r'^0\d{3}\s\d{3}\s\d{3}$')
CANONICAL_PHONE_RE = re.compile(r'^0[2-478]\d{2} \d{3} \d{3}$')

SUPPORTED_EXTENSIONS = {'.png', '.jpg', '.jpeg', '.bmp', '.tiff', '.tif', '.webp'}


class ValidationError(Exception):
    """Custom exception for validation errors."""
    pass


def is_time_label(text: str) -> bool:
    """Check if a whole fragment is a time label such as "9am", "12:30pm" or "14:05"."""
    text = text.strip()
    return bool(TIME_LABEL_12HR_RE.match(text) or TIME_LABEL_24HR_RE.match(text))


def find_time(text: str) -> Optional[str]:
    """Return the first time found in text, preferring 12-hour matches."""
    match = TIME_12HR_RE.search(text) or TIME_24HR_RE.search(text)
    return match.group(0) if match else None


def join_text(fragments: Iterable[TextFragment]) -> str:
    return ' '.join(f.text for f in fragments)


def group_by_rows(
    fragments: Sequence[TextFragment],
    tolerance: float,
    strict: bool = True,
) -> List[List[TextFragment]]:
    """
    Group fragments into rows based on vertical position.

    A row is anchored on the y of its first fragment; a fragment joins the
    row while its distance to that anchor is below ``tolerance`` (or equal
    to it when ``strict`` is False). Rows come back top to bottom, each
    sorted left to right.
    """
    if not fragments:
        return []

    ordered = sorted(fragments, key=lambda f: (f.y, f.x))
    rows: List[List[TextFragment]] = []
    current_row = [ordered[0]]
    current_y = ordered[0].y

    for fragment in ordered[1:]:
        dy = abs(fragment.y - current_y)
        if dy < tolerance or (not strict and dy == tolerance):
            current_row.append(fragment)
        else:
            rows.append(sorted(current_row, key=lambda f: f.x))
            current_row = [fragment]
            current_y = fragment.y

    rows.append(sorted(current_row, key=lambda f: f.x))
    return rows


def reading_order(fragments: Sequence[TextFragment], tolerance: float) -> List[TextFragment]:
    """Sort fragments top-to-bottom, treating fragments within ``tolerance`` as one line."""
    return [f for row in group_by_rows(fragments, tolerance) for f in row]


def bucketed_mode(values: Sequence[float], bucket: int = 10) -> Optional[float]:
    """
    Most common value after rounding to the nearest ``bucket``.

    Ties go to the bucket that reached the winning count first.
    """
    if not values:
        return None

    counts = {}
    best_value = None
    best_count = 0
    for value in values:
        rounded = math.floor(value / bucket + 0.5) * bucket
        counts[rounded] = counts.get(rounded, 0) + 1
        if counts[rounded] > best_count:
            best_count = counts[rounded]
            best_value = rounded
    return best_value


def validate_file_path(file_path: str, supported_extensions: set = SUPPORTED_EXTENSIONS) -> Path:
    """
    Validate file path and extension.

    Args:
        file_path: Path to validate
        supported_extensions: Set of supported file extensions

    Returns:
        Validated Path object

    Raises:
        ValidationError: If validation fails
    """
    path = Path(file_path)

    if not path.exists():
        raise ValidationError(f"File not found: {path}")

    if not path.is_file():
        raise ValidationError(f"Path is not a file: {path}")

    if path.suffix.lower() not in supported_extensions:
        raise ValidationError(
            f"Unsupported file format: {path.suffix}. "
            f"Supported formats: {', '.join(sorted(supported_extensions))}"
        )

    return path


def validate_run_sheet(document: RunSheetDocument, review_threshold: float = 0.6) -> List[str]:
    """
    Validate an extracted run sheet and return warnings.

    Args:
        document: RunSheetDocument to validate
        review_threshold: Confidence below which an appointment needs review

    Returns:
        List of validation warning messages
    """
    warnings = []

    if not document.appointments:
        warnings.append("No appointments were extracted")
        return warnings

    missing_time = sum(1 for a in document.appointments if not a.appointment_time)
    if missing_time > 0:
        warnings.append(f"{missing_time} appointments missing time information")

    missing_name = sum(1 for a in document.appointments if not a.patient_name)
    if missing_name > 0:
        warnings.append(f"{missing_name} appointments missing patient name")

    needs_review = sum(1 for a in document.appointments if a.needs_review(review_threshold))
    if needs_review > 0:
        warnings.append(
            f"{needs_review} appointments need review (confidence < {review_threshold:.0%})"
        )

    return warnings


def format_confidence_report(document: RunSheetDocument) -> str:
    """
    Generate a confidence report for the extracted run sheet.

    Args:
        document: RunSheetDocument to analyze

    Returns:
        Formatted report string
    """
    if not document.appointments:
        return "No appointments to analyze"

    scores = [a.confidence for a in document.appointments]

    avg_score = sum(scores) / len(scores)
    min_score = min(scores)
    max_score = max(scores)

    high_confidence = sum(1 for s in scores if s >= 0.8)
    medium_confidence = sum(1 for s in scores if 0.6 <= s < 0.8)
    low_confidence = sum(1 for s in scores if s < 0.6)

    report = f"""
Confidence Report:
  Average: {avg_score:.2%}
  Range: {min_score:.2%} - {max_score:.2%}

  Distribution:
    High (≥80%): {high_confidence} appointments
    Medium (60-80%): {medium_confidence} appointments
    Low (<60%, review): {low_confidence} appointments
"""

    return report.strip()


def is_supported_file(file_path: str) -> bool:
    """
    Quick check if file is supported.

    Args:
        file_path: Path to check

    Returns:
        True if file extension is supported
    """
    return Path(file_path).suffix.lower() in SUPPORTED_EXTENSIONS
