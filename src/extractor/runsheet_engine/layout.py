"""Calendar-view vs tabular-view classification."""

from typing import List, Optional, Sequence

from .config import ExtractionConfig
from .models import Layout, TextFragment

CLINICIAN_HEADER_TOKEN = 'Dr'


def header_band(
    fragments: Sequence[TextFragment],
    image_height: float,
    config: Optional[ExtractionConfig] = None,
) -> List[TextFragment]:
    """Fragments in the header band at the top of the image."""
    config = config or ExtractionConfig()
    limit = image_height * config.header_band_ratio
    return [f for f in fragments if f.y < limit]


def clinician_headers(
    fragments: Sequence[TextFragment],
    image_height: float,
    config: Optional[ExtractionConfig] = None,
) -> List[TextFragment]:
    """Header-band fragments whose text is exactly "Dr", sorted left to right."""
    band = header_band(fragments, image_height, config)
    return sorted((f for f in band if f.text == CLINICIAN_HEADER_TOKEN), key=lambda f: f.x)


def is_calendar_view(
    fragments: Sequence[TextFragment],
    image_height: float,
    config: Optional[ExtractionConfig] = None,
) -> bool:
    """
    A multi-clinician calendar repeats a "Dr" header once per column.

    A single clinician view or a plain table has at most one in the band.
    """
    config = config or ExtractionConfig()
    return len(clinician_headers(fragments, image_height, config)) >= config.min_clinician_headers


def classify_layout(
    fragments: Sequence[TextFragment],
    image_height: float,
    config: Optional[ExtractionConfig] = None,
) -> Layout:
    return Layout.CALENDAR if is_calendar_view(fragments, image_height, config) else Layout.TABULAR
