"""
modules/smc/detectors/fvg_detector.py

Fair Value Gap detection

Three consecutive candles (a, b, c):
    - Bullish FVG: a.high < c.low  -> gap [a.high, c.low]
    - Bearish FVG: a.low > c.high  -> gap [c.high, a.low]

A gap is filled (one-way) by the first later candle whose range overlaps
[bottom, top].
"""

from typing import List, Optional, Sequence

import numpy as np

from core.logger_engine import get_logger
from .base_detector import BarContext, BaseDetector
from ..models.formations import Candle, FairValueGap

logger = get_logger("modules.smc.detectors.fvg")


def _gap_at(candles: Sequence[Candle], i: int) -> Optional[FairValueGap]:
    """Gap formed by the triple ending at bar i (b = i-1)"""
    a, b, c = candles[i - 2], candles[i - 1], candles[i]
    if a.high < c.low:
        return FairValueGap(time=b.time, top=c.low, bottom=a.high, bias='bullish', index=i - 1)
    if a.low > c.high:
        return FairValueGap(time=b.time, top=a.low, bottom=c.high, bias='bearish', index=i - 1)
    return None


def detect_fvgs(candles: Sequence[Candle]) -> List[FairValueGap]:
    """
    Batch FVG detection with fill state.

    Args:
        candles: Time-ordered candles

    Returns:
        Gaps ordered by bar
    """
    if len(candles) < 3:
        return []

    highs = np.array([c.high for c in candles], dtype=float)
    lows = np.array([c.low for c in candles], dtype=float)

    gaps: List[FairValueGap] = []
    for i in range(2, len(candles)):
        gap = _gap_at(candles, i)
        if gap is None:
            continue

        # First later candle overlapping [bottom, top]
        later_lows, later_highs = lows[i + 1:], highs[i + 1:]
        overlap = (later_lows <= gap.top) & (later_highs >= gap.bottom)
        if overlap.any():
            first = i + 1 + int(np.argmax(overlap))
            gap = gap.fill(candles[first].time)
        gaps.append(gap)

    return gaps


class FVGDetector(BaseDetector):
    """
    Streaming Fair Value Gap detector.

    Fill checks run before detection so the candle completing a gap never
    fills it.
    """

    def update(self, ctx: BarContext) -> List[FairValueGap]:
        candle = ctx.candle

        for position in list(self._active):
            gap = self._history[position]
            if candle.low <= gap.top and candle.high >= gap.bottom:
                self._replace_formation(position, gap.fill(candle.time))
                self._deactivate_formation(position)
                logger.verbose(f"FVG {gap.bias} filled", time=candle.time, top=gap.top, bottom=gap.bottom)

        if ctx.index < 2:
            return []

        gap = _gap_at(ctx.candles, ctx.index)
        if gap is None:
            return []

        self._add_formation(gap)
        logger.debug(f"FVG {gap.bias} [{gap.bottom}, {gap.top}]")
        return [gap]
