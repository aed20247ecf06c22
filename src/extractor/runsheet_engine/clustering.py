"""Vertical grouping of fragments into appointment-card clusters."""

from typing import List, Sequence

from .models import TextFragment


def cluster_fragments(fragments: Sequence[TextFragment], y_tolerance: float) -> List[List[TextFragment]]:
    """
    Group fragments into clusters by y position.

    A cluster starts at its first fragment's y and takes every following
    fragment with ``y - start_y <= y_tolerance``; the next fragment beyond
    that starts a new cluster. Clusters are not split by x, and come back
    in ascending y order.
    """
    if not fragments:
        return []

    ordered = sorted(fragments, key=lambda f: f.y)
    clusters: List[List[TextFragment]] = []
    current = [ordered[0]]
    start_y = ordered[0].y

    for fragment in ordered[1:]:
        if fragment.y - start_y <= y_tolerance:
            current.append(fragment)
        else:
            clusters.append(current)
            current = [fragment]
            start_y = fragment.y

    clusters.append(current)
    return clusters


def cluster_top(cluster: Sequence[TextFragment]) -> float:
    return min(f.y for f in cluster)
