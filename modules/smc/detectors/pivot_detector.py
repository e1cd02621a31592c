"""
modules/smc/detectors/pivot_detector.py

Swing High/Low (pivot) detection

A bar j is a pivot high when its high is strictly above every high of the
`length` bars before it and not below any high of the `length` bars after
it, so the earliest of equal extremes wins. Low pivots mirror this with lows.
The look-ahead side is always complete: a pivot is confirmed `length` bars
after its own bar. At the start of history the look-back side is clipped
to the bars that exist.

Labels (HH/LH, HL/LL) compare against the previous pivot of the same kind;
the first high is HH and the first low is HL.
"""

from typing import List, Optional, Sequence

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from core.logger_engine import get_logger
from .base_detector import BarContext, BaseDetector
from ..models.formations import Candle, PivotKind, SwingPoint, Timescale

logger = get_logger("modules.smc.detectors.pivot")


def _label(kind: PivotKind, price: float, previous: Optional[float]) -> str:
    if kind == 'high':
        return 'HH' if previous is None or price > previous else 'LH'
    return 'HL' if previous is None or price > previous else 'LL'


def _pivot_mask(values: np.ndarray, length: int) -> np.ndarray:
    """Boolean mask of pivot highs in `values` (negate for lows)"""
    n = len(values)
    mask = np.zeros(n, dtype=bool)
    confirmable = n - length
    if confirmable <= 0:
        return mask

    padded = np.concatenate([np.full(length, -np.inf), values])
    left_max = sliding_window_view(padded, length)[:n].max(axis=1)
    right_max = sliding_window_view(values[1:], length).max(axis=1)

    head = values[:confirmable]
    mask[:confirmable] = (head > left_max[:confirmable]) & (head >= right_max)
    return mask


def detect_pivots(candles: Sequence[Candle], length: int, timescale: Timescale) -> List[SwingPoint]:
    """
    Batch pivot detection over a full candle history.

    Args:
        candles: Time-ordered candles
        length: Look-back / look-ahead width (>= 1)
        timescale: 'internal' or 'swing'

    Returns:
        Confirmed pivots ordered by bar (high before low on the same bar)
    """
    if length < 1:
        raise ValueError(f"length must be >= 1, got {length}")
    if not candles:
        return []

    highs = np.array([c.high for c in candles], dtype=float)
    lows = np.array([c.low for c in candles], dtype=float)
    high_mask = _pivot_mask(highs, length)
    low_mask = _pivot_mask(-lows, length)

    pivots: List[SwingPoint] = []
    prev_high: Optional[float] = None
    prev_low: Optional[float] = None

    for idx in np.flatnonzero(high_mask | low_mask):
        idx = int(idx)
        if high_mask[idx]:
            price = float(highs[idx])
            pivots.append(SwingPoint(
                time=candles[idx].time, price=price, kind='high',
                label=_label('high', price, prev_high), timescale=timescale, index=idx,
            ))
            prev_high = price
        if low_mask[idx]:
            price = float(lows[idx])
            pivots.append(SwingPoint(
                time=candles[idx].time, price=price, kind='low',
                label=_label('low', price, prev_low), timescale=timescale, index=idx,
            ))
            prev_low = price

    return pivots


class PivotDetector(BaseDetector):
    """
    Streaming pivot detector for one timescale.

    On every bar it checks the candidate `length` bars back, whose
    confirmation window has just closed. Emitted pivots are never relabelled.

    Args:
        length: Look-back / look-ahead width
        timescale: 'internal' or 'swing'
    """

    def __init__(self, length: int, timescale: Timescale):
        super().__init__({'length': length, 'timescale': timescale})
        self.length = length
        self.timescale = timescale
        self._prev_high: Optional[float] = None
        self._prev_low: Optional[float] = None

    def update(self, ctx: BarContext) -> List[SwingPoint]:
        candidate = ctx.index - self.length
        if candidate < 0:
            return []

        window = ctx.candles[max(0, candidate - self.length):ctx.index + 1]
        offset = candidate - max(0, candidate - self.length)
        pivot_bar = window[offset]
        before, after = window[:offset], window[offset + 1:]

        new_pivots: List[SwingPoint] = []

        if (all(pivot_bar.high > c.high for c in before)
                and all(pivot_bar.high >= c.high for c in after)):
            new_pivots.append(self._confirm(pivot_bar, 'high', candidate))

        if (all(pivot_bar.low < c.low for c in before)
                and all(pivot_bar.low <= c.low for c in after)):
            new_pivots.append(self._confirm(pivot_bar, 'low', candidate))

        return new_pivots

    def _confirm(self, candle: Candle, kind: PivotKind, index: int) -> SwingPoint:
        if kind == 'high':
            price = candle.high
            label = _label(kind, price, self._prev_high)
            self._prev_high = price
        else:
            price = candle.low
            label = _label(kind, price, self._prev_low)
            self._prev_low = price

        pivot = SwingPoint(
            time=candle.time, price=price, kind=kind, label=label,
            timescale=self.timescale, index=index,
        )
        self._add_formation(pivot, active=False)
        logger.debug(f"{self.timescale} pivot {kind} {label} @ {price}")
        return pivot

    def reset(self) -> None:
        super().reset()
        self._prev_high = None
        self._prev_low = None
