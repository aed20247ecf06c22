"""Heuristic confidence scoring for parsed appointments."""

from dataclasses import replace

from .models import ParsedAppointment
from .utils import CANONICAL_PHONE_RE, CANONICAL_TIME_RE

# (weight, check) pairs; every factor counts towards the denominator.
_FACTORS = (
    (1.0, lambda a: bool(a.appointment_time and CANONICAL_TIME_RE.match(a.appointment_time))),
    (1.0, lambda a: bool(a.patient_name and len(a.patient_name) >= 3)),
    (1.0, lambda a: bool(a.patient_phone and CANONICAL_PHONE_RE.match(a.patient_phone))),
    (0.5, lambda a: bool(a.appointment_type)),
)


def score_appointment(appointment: ParsedAppointment) -> float:
    """
    Weighted share of satisfied factors, rounded to 2 places.

    Time in HH:MM, name of 3+ characters and an AU phone in canonical form
    weigh 1 each; a type weighs 0.5. Recovering another correct field can
    only raise the score.
    """
    score = sum(weight for weight, check in _FACTORS if check(appointment))
    total = sum(weight for weight, _ in _FACTORS)
    return round(score / total, 2)


def calculate_confidence(appointment: ParsedAppointment) -> ParsedAppointment:
    return replace(appointment, confidence=score_appointment(appointment))
