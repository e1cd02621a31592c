"""
modules/smc/detectors/order_block_detector.py

Order Block Detector

The order block of a swing structure break is the last opposite-direction
candle before the break:
    - Bullish break: last down-close candle (close < open)
    - Bearish break: last up-close candle (close > open)

Mitigation (one-way):
    - Bullish OB: a later candle's low <= OB low
    - Bearish OB: a later candle's high >= OB high
"""

from typing import List, Optional, Sequence, Set

from core.logger_engine import get_logger
from .base_detector import BarContext, BaseDetector
from ..models.formations import Candle, OrderBlock, StructureEvent

logger = get_logger("modules.smc.detectors.order_block")


class OrderBlockDetector(BaseDetector):
    """
    Order Block Detector (swing timescale breaks only)

    Args:
        lookback: Bars searched backward from the break candle
    """

    def __init__(self, lookback: int = 20):
        super().__init__({'lookback': lookback})
        self.lookback = lookback
        self._keys: Set[tuple] = set()

    def update(self, ctx: BarContext) -> List[OrderBlock]:
        candle = ctx.candle

        # Existing blocks first: a block is only mitigated by later candles
        for position in list(self._active):
            block = self._history[position]
            if self._is_mitigated(block, candle):
                self._replace_formation(position, block.mitigate(candle.time))
                self._deactivate_formation(position)
                logger.verbose(f"OB {block.bias} mitigated", time=candle.time, low=block.low, high=block.high)

        new_blocks: List[OrderBlock] = []
        for event in ctx.new_events:
            if event.timescale != 'swing':
                continue
            block = self._find_order_block(ctx.candles, ctx.index, event)
            if block is None:
                continue
            key = (block.time, block.bias)
            if key in self._keys:
                continue
            self._keys.add(key)
            self._add_formation(block)
            new_blocks.append(block)

        return new_blocks

    def _find_order_block(
        self,
        candles: Sequence[Candle],
        break_index: int,
        event: StructureEvent,
    ) -> Optional[OrderBlock]:
        """Scan backward for the last opposite-direction candle"""
        stop = max(-1, break_index - self.lookback - 1)
        for i in range(break_index - 1, stop, -1):
            c = candles[i]
            opposite = c.is_bearish if event.direction == 'bullish' else c.is_bullish
            if opposite:
                return OrderBlock(
                    time=c.time,
                    high=c.high,
                    low=c.low,
                    bias=event.direction,
                    break_time=event.time,
                    index=i,
                )
        return None

    @staticmethod
    def _is_mitigated(block: OrderBlock, candle: Candle) -> bool:
        if block.bias == 'bullish':
            return candle.low <= block.low
        return candle.high >= block.high

    def reset(self) -> None:
        super().reset()
        self._keys = set()
