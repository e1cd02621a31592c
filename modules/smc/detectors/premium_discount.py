"""
modules/smc/detectors/premium_discount.py

Premium / Discount zone of the current swing range

    equilibrium = (range top + range bottom) / 2
    premium     = [equilibrium, range top]
    discount    = [range bottom, equilibrium]

The range is defined by the latest confirmed swing high and swing low.
"""

from typing import Iterable, Optional

from ..models.formations import PremiumDiscountZone, SwingPoint


def calculate_premium_discount(
    swing_pivots: Iterable[SwingPoint],
    end_time: Optional[int],
) -> Optional[PremiumDiscountZone]:
    """
    Args:
        swing_pivots: Swing timescale pivots in time order
        end_time: Latest candle time

    Returns:
        The zone, or None until one high and one low pivot exist
    """
    last_high: Optional[SwingPoint] = None
    last_low: Optional[SwingPoint] = None
    for pivot in swing_pivots:
        if pivot.kind == 'high':
            last_high = pivot
        else:
            last_low = pivot

    if last_high is None or last_low is None or end_time is None:
        return None

    top = max(last_high.price, last_low.price)
    bottom = min(last_high.price, last_low.price)
    equilibrium = (top + bottom) / 2

    return PremiumDiscountZone(
        start_time=min(last_high.time, last_low.time),
        end_time=end_time,
        premium_top=top,
        premium_bottom=equilibrium,
        discount_top=equilibrium,
        discount_bottom=bottom,
    )
