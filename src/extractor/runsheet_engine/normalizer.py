"""Canonical forms for names, times, phones and appointment types."""

import re
from dataclasses import replace
from typing import Optional

from .models import ParsedAppointment
from .utils import TIME_12HR_RE

_TIME_24HR_LOOSE_RE = re.compile(r'(\d{1,2}):(\d{2})')


def title_case(name: str) -> str:
    """Title-case a name, e.g. " john SMITH" -> "John Smith"."""
    return ' '.join(word[:1].upper() + word[1:] for word in name.lower().split())


def normalize_time(value: str) -> str:
    """
    Convert a time to 24-hour ``HH:MM``.

    12-hour inputs map 12am to 00 and 12pm to 12, adding 12 for other pm
    hours; 24-hour inputs are zero-padded. Anything else is returned as is.
    """
    match = TIME_12HR_RE.search(value)
    if match:
        hours = int(match.group(1))
        minutes = int(match.group(2)) if match.group(2) else 0
        is_pm = match.group(3).lower() == 'pm'
        if is_pm and hours != 12:
            hours += 12
        if not is_pm and hours == 12:
            hours = 0
        return f"{hours:02d}:{minutes:02d}"

    match = _TIME_24HR_LOOSE_RE.search(value)
    if match:
        return f"{int(match.group(1)):02d}:{match.group(2)}"

    return value


def normalize_phone(phone: str) -> str:
    """Reformat a 10-digit number as ``dddd ddd ddd``; other digit counts are left alone."""
    digits = re.sub(r'\D', '', phone)
    if len(digits) == 10:
        return f"{digits[:4]} {digits[4:7]} {digits[7:]}"
    return phone


def normalize_type(appointment_type: Optional[str]) -> Optional[str]:
    if appointment_type is None:
        return None
    return appointment_type.strip() or None


def normalize_appointment(appointment: ParsedAppointment) -> ParsedAppointment:
    """Return a copy with every field in canonical form."""
    return replace(
        appointment,
        patient_name=(title_case(appointment.patient_name) or None) if appointment.patient_name else None,
        appointment_time=normalize_time(appointment.appointment_time) if appointment.appointment_time else None,
        patient_phone=normalize_phone(appointment.patient_phone) if appointment.patient_phone else None,
        appointment_type=normalize_type(appointment.appointment_type),
    )
