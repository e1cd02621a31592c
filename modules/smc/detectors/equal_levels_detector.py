"""
modules/smc/detectors/equal_levels_detector.py

Equal Highs / Equal Lows (liquidity pools)

Two pivots of the same kind and timescale are "equal" when they are
adjacent in the pivot sequence (no opposite-kind pivot between them) and
|p1 - p2| / p1 <= tolerance.
"""

from typing import List, Optional

from core.logger_engine import get_logger
from .base_detector import BarContext, BaseDetector
from ..models.formations import EqualHighLow, SwingPoint, Timescale

logger = get_logger("modules.smc.detectors.equal_levels")


def is_equal_level(price1: float, price2: float, tolerance: float) -> bool:
    """Relative distance check; a zero reference only matches zero"""
    if price1 == 0:
        return price2 == 0
    return abs(price1 - price2) / abs(price1) <= tolerance


class EqualLevelDetector(BaseDetector):
    """
    EQH / EQL detector for one timescale.

    Args:
        timescale: 'internal' or 'swing'
        tolerance: Relative price tolerance (0.001 = 0.1%)
    """

    def __init__(self, timescale: Timescale, tolerance: float = 0.001):
        super().__init__({'timescale': timescale, 'tolerance': tolerance})
        self.timescale = timescale
        self.tolerance = tolerance
        self._last_pivot: Optional[SwingPoint] = None

    def update(self, ctx: BarContext) -> List[EqualHighLow]:
        found: List[EqualHighLow] = []

        for pivot in ctx.new_pivots:
            if pivot.timescale != self.timescale:
                continue

            previous = self._last_pivot
            self._last_pivot = pivot
            if previous is None or previous.kind != pivot.kind:
                continue
            if not is_equal_level(previous.price, pivot.price, self.tolerance):
                continue

            pair = EqualHighLow(
                type='EQH' if pivot.kind == 'high' else 'EQL',
                time1=previous.time,
                time2=pivot.time,
                price1=previous.price,
                price2=pivot.price,
                timescale=self.timescale,
            )
            self._add_formation(pair, active=False)
            found.append(pair)
            logger.verbose(f"{pair.type} ({self.timescale})", price1=pair.price1, price2=pair.price2)

        return found

    def reset(self) -> None:
        super().reset()
        self._last_pivot = None
