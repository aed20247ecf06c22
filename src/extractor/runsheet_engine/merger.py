"""Repair OCR fragmentation of phone numbers, times and dash-prefixed names."""

from typing import List, Optional, Sequence, Tuple

from .config import ExtractionConfig
from .models import TextFragment
from .utils import (
    MERIDIEM_RE,
    PHONE_PREFIX_RE,
    PHONE_TRIPLE_RE,
    TIME_STEM_RE,
    group_by_rows,
)

_Merge = Optional[Tuple[TextFragment, List[TextFragment]]]


def _span(first: TextFragment, last: TextFragment, text: str) -> TextFragment:
    """A fragment covering ``first`` through ``last`` on one line."""
    return TextFragment(
        text=text,
        x=first.x,
        y=first.y,
        width=last.right - first.x,
        height=first.height,
    )


def _merge_phone(head: TextFragment, rest: List[TextFragment], max_gap: float) -> _Merge:
    """Join "0412" + "345" + "678" into one fragment; needs exactly three parts."""
    if not PHONE_PREFIX_RE.match(head.text):
        return None

    parts = [head]
    taken = set()
    for index, candidate in enumerate(rest):
        if len(parts) == 3:
            break
        if PHONE_TRIPLE_RE.match(candidate.text) and candidate.x - parts[-1].right < max_gap:
            parts.append(candidate)
            taken.add(index)

    if len(parts) != 3:
        return None

    merged = _span(head, parts[-1], ' '.join(p.text for p in parts))
    return merged, [f for i, f in enumerate(rest) if i not in taken]


def _merge_meridiem(head: TextFragment, rest: List[TextFragment], max_gap: float) -> _Merge:
    """Join a time stem with a trailing am/pm fragment, e.g. "12:30" + "pm"."""
    if not TIME_STEM_RE.match(head.text):
        return None

    for index, candidate in enumerate(rest):
        if MERIDIEM_RE.match(candidate.text) and candidate.x - head.right < max_gap:
            merged = _span(head, candidate, head.text + candidate.text)
            return merged, rest[:index] + rest[index + 1:]
    return None


def _merge_line(line: List[TextFragment], config: ExtractionConfig) -> List[TextFragment]:
    merged: List[TextFragment] = []
    pending = line
    while pending:
        head, rest = pending[0], pending[1:]
        result = (
            _merge_phone(head, rest, config.phone_merge_max_gap)
            or _merge_meridiem(head, rest, config.meridiem_merge_max_gap)
        )
        if result:
            fragment, pending = result
        else:
            fragment, pending = head, rest
            if fragment.text.startswith('-'):
                fragment = TextFragment(fragment.text[1:], fragment.x, fragment.y,
                                        fragment.width, fragment.height)
        if fragment.text:
            merged.append(fragment)
    return merged


def merge_fragments(
    fragments: Sequence[TextFragment],
    config: Optional[ExtractionConfig] = None,
) -> List[TextFragment]:
    """
    Merge fragments that OCR split apart.

    Fragments are put in reading order (lines within ``line_y_tolerance``),
    then each line is folded left to right. Rules, in priority order:

    1. ``0[24]dd`` followed by two 3-digit fragments within the phone gap
       become one space-joined phone fragment.
    2. A numeric time stem followed by ``am``/``pm`` within the meridiem gap
       is concatenated without a space.
    3. A leading ``-`` is stripped.

    Every fragment is consumed at most once; anything else passes through.
    The input is never modified.
    """
    config = config or ExtractionConfig()
    lines = group_by_rows(fragments, config.line_y_tolerance)
    return [f for line in lines for f in _merge_line(line, config)]
