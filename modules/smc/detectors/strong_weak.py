"""
modules/smc/detectors/strong_weak.py

Strong / Weak level classification

A pivot is strong once a structure break consumed it (price closed through
it), weak while it is still intact. Derived from the structure detectors'
consumption record, no separate detection pass.
"""

from typing import Collection, Iterable, List

from ..models.formations import StrongWeakLevel, SwingPoint


def classify_levels(pivots: Iterable[SwingPoint], consumed: Collection[tuple]) -> List[StrongWeakLevel]:
    """
    Args:
        pivots: Pivots in time order (any timescale)
        consumed: SwingPoint.key of every pivot consumed by a break

    Returns:
        One level per pivot, same order
    """
    return [
        StrongWeakLevel(
            time=pivot.time,
            price=pivot.price,
            type=pivot.kind,
            strength='strong' if pivot.key in consumed else 'weak',
            timescale=pivot.timescale,
        )
        for pivot in pivots
    ]
