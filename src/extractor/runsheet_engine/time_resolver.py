"""Time-label discovery and per-cluster time resolution."""

import json
import logging
from typing import Any, List, Optional, Sequence, Union

from .models import TextFragment, TimeLabel
from .normalizer import normalize_time
from .utils import TIME_12HR_RE, is_time_label

logger = logging.getLogger(__name__)


def find_time_labels(fragments: Sequence[TextFragment]) -> List[TimeLabel]:
    """Fragments whose whole text is a time, as raw labels sorted top to bottom."""
    labels = [TimeLabel(time=f.text.strip(), y=f.y) for f in fragments if is_time_label(f.text)]
    return sorted(labels, key=lambda label: label.y)


def extract_time_labels(fragments: Sequence[TextFragment], image_height: float) -> List[TimeLabel]:
    """
    Extract reusable time labels from a time-column crop.

    Times are normalized to ``HH:MM`` and carry ``y_percent`` so they can be
    applied to other crops of the same screenshot with a different height.
    """
    height = image_height if image_height and image_height > 0 else 1.0
    return [
        TimeLabel(time=normalize_time(label.time), y=label.y, y_percent=label.y / height * 100)
        for label in find_time_labels(fragments)
    ]


def to_absolute(labels: Sequence[TimeLabel], image_height: float) -> List[TimeLabel]:
    """Re-anchor percent-positioned labels onto an image of ``image_height`` pixels."""
    absolute = []
    for label in labels:
        if label.y_percent is None:
            absolute.append(label)
        else:
            absolute.append(TimeLabel(label.time, label.y_percent / 100 * image_height, label.y_percent))
    return sorted(absolute, key=lambda label: label.y)


def load_external_times(
    raw: Union[str, Sequence[Any], None],
    log: Optional[logging.Logger] = None,
) -> List[TimeLabel]:
    """
    Parse caller-supplied time data (a JSON string or a list of dicts).

    Malformed input yields an empty list, which means "use local detection".
    Individual bad entries are skipped.
    """
    log = log or logger
    if raw is None:
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            log.warning("Ignoring unparsable external time data")
            return []
    if not isinstance(raw, (list, tuple)):
        log.warning("Ignoring external time data of type %s", type(raw).__name__)
        return []

    labels = []
    for entry in raw:
        if isinstance(entry, TimeLabel):
            labels.append(entry)
            continue
        try:
            label = TimeLabel.from_dict(entry)
        except (KeyError, TypeError, ValueError, AttributeError):
            log.warning("Skipping malformed external time entry: %r", entry)
            continue
        if not isinstance(entry['time'], str) or not is_time_label(entry['time']):
            log.warning("Skipping external time entry with unreadable time: %r", entry)
            continue
        labels.append(label)
    return labels


def embedded_time(text: str) -> Optional[str]:
    """A 12-hour time written inside the cluster text itself."""
    match = TIME_12HR_RE.search(text)
    return match.group(0) if match else None


def nearest_time_label(
    labels: Sequence[TimeLabel],
    y: float,
    max_distance: float,
) -> Optional[TimeLabel]:
    """The label closest to ``y``, if it is closer than ``max_distance``."""
    if not labels:
        return None
    nearest = min(labels, key=lambda label: abs(label.y - y))
    return nearest if abs(nearest.y - y) < max_distance else None


def resolve_time(
    cluster_text: str,
    cluster_y: float,
    labels: Sequence[TimeLabel],
    max_distance: float,
) -> Optional[str]:
    """
    Resolve a cluster's appointment time.

    An embedded 12-hour time wins outright; otherwise the nearest label
    within ``max_distance`` of the cluster's top edge; otherwise None.
    """
    found = embedded_time(cluster_text)
    if found:
        return found
    label = nearest_time_label(labels, cluster_y, max_distance)
    return label.time if label else None
