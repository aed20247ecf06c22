"""Patient name, phone and appointment-type extraction from fragment groups."""

import re
from typing import List, Optional, Sequence, Tuple

from .config import ExtractionConfig
from .models import TextFragment
from .utils import (
    MERGED_PHONE_RE,
    PHONE_RE,
    TIME_12HR_RE,
    TIME_24HR_RE,
    group_by_rows,
    join_text,
)

_NAME_TOKEN_RE = re.compile(r"^[A-Z][a-zA-Z'\-]*$")
_DIGITS_RE = re.compile(r'^\d+$')


def _phrase_pattern(phrase: str) -> re.Pattern:
    words = [re.escape(w) for w in phrase.lower().split()]
    return re.compile(r'\b' + r'\s+'.join(words) + r'\b')


class FieldExtractor:
    """
    Token classification shared by the calendar and tabular strategies.

    Appointment types come from a closed phrase dictionary and take
    precedence over names: a word claimed by the matched type is never
    used as part of the patient name.
    """

    def __init__(self, config: Optional[ExtractionConfig] = None):
        self.config = config or ExtractionConfig()
        self._type_patterns = [
            (_phrase_pattern(pattern), display) for pattern, display in self.config.type_phrases
        ]
        self._navigation_re = re.compile(
            r'\b(?:' + '|'.join(re.escape(w) for w in self.config.navigation_words) + r')\b',
            re.IGNORECASE,
        ) if self.config.navigation_words else None
        self._chrome = set(self.config.chrome_tokens)

    def extract_phone(self, text: str) -> Optional[str]:
        match = PHONE_RE.search(text)
        return match.group(0) if match else None

    def match_type(self, text: str) -> Optional[str]:
        """First dictionary phrase found in ``text``, as its display form."""
        lowered = text.lower()
        for pattern, display in self._type_patterns:
            if pattern.search(lowered):
                return display
        return None

    def is_navigation(self, text: str) -> bool:
        """True for calendar chrome such as date headers and toolbar buttons."""
        return bool(self._navigation_re and self._navigation_re.search(text))

    def _is_excluded(self, text: str, type_words: set) -> bool:
        if len(text) < 2 or _DIGITS_RE.match(text):
            return True
        if MERGED_PHONE_RE.match(text):
            return True
        if TIME_12HR_RE.search(text) or TIME_24HR_RE.search(text):
            return True
        if text in self._chrome:
            return True
        return text.lower() in type_words

    def name_fragments(
        self,
        fragments: Sequence[TextFragment],
        appointment_type: Optional[str] = None,
    ) -> List[TextFragment]:
        """Fragments that look like name tokens once times, phones, type words and chrome are removed."""
        type_words = set(appointment_type.lower().split()) if appointment_type else set()
        names = []
        for fragment in fragments:
            text = fragment.text.strip()
            if self._is_excluded(text, type_words):
                continue
            if len(text) >= self.config.min_name_token_length and _NAME_TOKEN_RE.match(text):
                names.append(fragment)
        return names

    def extract_name(
        self,
        fragments: Sequence[TextFragment],
        appointment_type: Optional[str] = None,
    ) -> Optional[str]:
        """
        The first row of name-like tokens, left to right.

        The patient name is the first name-like line of a card; type and
        notes sit below it.
        """
        names = self.name_fragments(fragments, appointment_type)
        if not names:
            return None
        first_row = group_by_rows(names, self.config.line_y_tolerance)[0]
        return join_text(first_row)

    def extract_name_and_type(self, fragments: Sequence[TextFragment]) -> Tuple[Optional[str], Optional[str]]:
        ordered = group_by_rows(fragments, self.config.line_y_tolerance)
        flat = [f for row in ordered for f in row]
        appointment_type = self.match_type(join_text(flat))
        return self.extract_name(flat, appointment_type), appointment_type
