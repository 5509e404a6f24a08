"""
Score synthesizer.

The restoration, clarity and quality scores reported in response headers
are cosmetic: they are summed from a per-label point table and do not
measure the image.
"""

from typing import Iterable, Mapping

from core.constants import SCORE_CEILING


def synthesize_score(
    table: Mapping[str, float],
    labels: Iterable[str],
    base: float,
    bonus: float = 0.0,
    ceiling: float = SCORE_CEILING,
) -> float:
    """
    ``min(ceiling, base + sum(table[label]) + bonus)`` rounded to one decimal.

    Labels missing from the table contribute nothing.

    Example:
        >>> synthesize_score({"Noise reduction": 0.3}, ["Noise reduction"], 7.0, 0.2)
        7.5
    """
    total = base + sum(table.get(label, 0.0) for label in labels) + bonus
    return round(min(ceiling, total), 1)
