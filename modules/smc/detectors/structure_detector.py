"""
modules/smc/detectors/structure_detector.py

BOS (Break of Structure) and CHoCH (Change of Character) detection.

One trend state machine per timescale: neutral -> bullish / bearish.

    - Close above the tracked swing high:
        bearish -> CHoCH bullish, bullish -> BOS bullish,
        neutral -> bullish without an event
    - Close below the tracked swing low: mirrored

A pivot triggers at most one break. A newly confirmed pivot replaces the
tracked pivot of its kind and re-arms it. Breaks need at least one high and
one low pivot; until then the trend stays neutral.
"""

from dataclasses import replace
from typing import List, Set

from core.logger_engine import get_logger
from .base_detector import BarContext, BaseDetector
from ..models.formations import StructureEvent, SwingPoint, Timescale, TrendState

logger = get_logger("modules.smc.detectors.structure")


class StructureDetector(BaseDetector):
    """
    Market Structure detector for one timescale.

    BOS vs CHoCH:
        - BOS: break in the direction of the trend (continuation)
        - CHoCH: break against the trend (reversal)

    Args:
        timescale: 'internal' or 'swing'
    """

    def __init__(self, timescale: Timescale):
        super().__init__({'timescale': timescale})
        self.timescale = timescale
        self._state = TrendState(timescale=timescale)
        # Keys of pivots that triggered a break (strong levels)
        self._consumed: Set[tuple] = set()

    @property
    def state(self) -> TrendState:
        return self._state

    @property
    def trend(self) -> str:
        return self._state.direction

    @property
    def consumed_keys(self) -> Set[tuple]:
        return set(self._consumed)

    def update(self, ctx: BarContext) -> List[StructureEvent]:
        for pivot in ctx.new_pivots:
            if pivot.timescale != self.timescale:
                continue
            if pivot.kind == 'high':
                self._state = replace(self._state, last_swing_high=pivot, high_consumed=False)
            else:
                self._state = replace(self._state, last_swing_low=pivot, low_consumed=False)

        state = self._state
        if state.last_swing_high is None or state.last_swing_low is None:
            return []

        close = ctx.candle.close
        events: List[StructureEvent] = []

        if not state.high_consumed and close > state.last_swing_high.price:
            event = self._break(ctx, state.last_swing_high, 'bullish')
            if event:
                events.append(event)
            self._state = replace(self._state, direction='bullish', high_consumed=True)

        state = self._state
        if not state.low_consumed and close < state.last_swing_low.price:
            event = self._break(ctx, state.last_swing_low, 'bearish')
            if event:
                events.append(event)
            self._state = replace(self._state, direction='bearish', low_consumed=True)

        return events

    def _break(self, ctx: BarContext, pivot: SwingPoint, direction: str):
        """Consume the pivot; returns the event (None on first trend assignment)"""
        self._consumed.add(pivot.key)
        previous = self._state.direction

        if previous == 'neutral':
            logger.verbose(f"{self.timescale} trend set to {direction}", level=pivot.price)
            return None

        event = StructureEvent(
            time=ctx.candle.time,
            type='BOS' if previous == direction else 'CHoCH',
            direction=direction,
            timescale=self.timescale,
            level=pivot.price,
            pivot_time=pivot.time,
            index=ctx.index,
        )
        self._add_formation(event, active=False)
        logger.structure(
            f"{event.type} {direction} ({self.timescale})",
            level=pivot.price, close=ctx.candle.close, time=event.time,
        )
        return event

    def reset(self) -> None:
        super().reset()
        self._state = TrendState(timescale=self.timescale)
        self._consumed = set()
