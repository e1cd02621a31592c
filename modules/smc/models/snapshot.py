"""
modules/smc/models/snapshot.py

Immutable result snapshot of the SMC engine

Each collection is a time-ascending tuple. Consumers read snapshots only;
the engine replaces its snapshot after every update instead of mutating it.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Tuple

import pandas as pd

from .filters import (
    EqualLevelFilter,
    LevelFilter,
    StructureFilter,
    SwingPointFilter,
    ZoneFilter,
)
from .formations import (
    Direction,
    EqualHighLow,
    FairValueGap,
    OrderBlock,
    PremiumDiscountZone,
    StrongWeakLevel,
    StructureEvent,
    SwingPoint,
    Timescale,
)


@dataclass(frozen=True)
class SMCSnapshot:
    """
    All results of one engine state.

    Attributes:
        swing_points: Confirmed pivots of both timescales
        structures: BOS / CHoCH events of both timescales
        order_blocks: Order blocks (swing timescale)
        fair_value_gaps: Fair value gaps
        equal_highs_lows: EQH / EQL pairs
        strong_weak_levels: Pivot strength classification
        premium_discount_zone: Current swing range split (or None)
        swing_trend / internal_trend: Trend directions
        candle_count: Candles in history
        last_time: Latest candle time (None when empty)
    """
    swing_points: Tuple[SwingPoint, ...] = ()
    structures: Tuple[StructureEvent, ...] = ()
    order_blocks: Tuple[OrderBlock, ...] = ()
    fair_value_gaps: Tuple[FairValueGap, ...] = ()
    equal_highs_lows: Tuple[EqualHighLow, ...] = ()
    strong_weak_levels: Tuple[StrongWeakLevel, ...] = ()
    premium_discount_zone: Optional[PremiumDiscountZone] = None
    swing_trend: Direction = 'neutral'
    internal_trend: Direction = 'neutral'
    candle_count: int = 0
    last_time: Optional[int] = field(default=None)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def get_swing_points(self, criteria: Optional[SwingPointFilter] = None) -> Tuple[SwingPoint, ...]:
        return criteria.apply(self.swing_points) if criteria else self.swing_points

    def get_structures(self, criteria: Optional[StructureFilter] = None) -> Tuple[StructureEvent, ...]:
        return criteria.apply(self.structures) if criteria else self.structures

    def get_order_blocks(self, criteria: Optional[ZoneFilter] = None) -> Tuple[OrderBlock, ...]:
        return criteria.apply(self.order_blocks) if criteria else self.order_blocks

    def get_fair_value_gaps(self, criteria: Optional[ZoneFilter] = None) -> Tuple[FairValueGap, ...]:
        return criteria.apply(self.fair_value_gaps) if criteria else self.fair_value_gaps

    def get_equal_highs_lows(self, criteria: Optional[EqualLevelFilter] = None) -> Tuple[EqualHighLow, ...]:
        return criteria.apply(self.equal_highs_lows) if criteria else self.equal_highs_lows

    def get_strong_weak_levels(self, criteria: Optional[LevelFilter] = None) -> Tuple[StrongWeakLevel, ...]:
        return criteria.apply(self.strong_weak_levels) if criteria else self.strong_weak_levels

    def get_trend(self, timescale: Timescale = 'swing') -> Direction:
        """Trend direction of 'swing' (primary) or 'internal'"""
        if timescale == 'swing':
            return self.swing_trend
        if timescale == 'internal':
            return self.internal_trend
        raise ValueError(f"Unknown timescale: {timescale!r}")

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    @property
    def summary(self) -> Dict[str, Any]:
        """Counts per collection plus both trends"""
        return {
            'total_bars': self.candle_count,
            'swing_trend': self.swing_trend,
            'internal_trend': self.internal_trend,
            'swing_count': len(self.swing_points),
            'bos_count': sum(1 for e in self.structures if e.type == 'BOS'),
            'choch_count': sum(1 for e in self.structures if e.type == 'CHoCH'),
            'ob_count': len(self.order_blocks),
            'active_ob_count': sum(1 for ob in self.order_blocks if ob.is_active),
            'fvg_count': len(self.fair_value_gaps),
            'active_fvg_count': sum(1 for g in self.fair_value_gaps if g.is_active),
            'equal_hl_count': len(self.equal_highs_lows),
            'strong_level_count': sum(1 for lv in self.strong_weak_levels if lv.strength == 'strong'),
            'weak_level_count': sum(1 for lv in self.strong_weak_levels if lv.strength == 'weak'),
            'has_premium_discount': self.premium_discount_zone is not None,
        }

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready dict"""
        return {
            'swing_points': [p.to_dict() for p in self.swing_points],
            'structures': [e.to_dict() for e in self.structures],
            'order_blocks': [ob.to_dict() for ob in self.order_blocks],
            'fair_value_gaps': [g.to_dict() for g in self.fair_value_gaps],
            'equal_highs_lows': [eq.to_dict() for eq in self.equal_highs_lows],
            'strong_weak_levels': [lv.to_dict() for lv in self.strong_weak_levels],
            'premium_discount_zone': (
                self.premium_discount_zone.to_dict() if self.premium_discount_zone else None
            ),
            'swing_trend': self.swing_trend,
            'internal_trend': self.internal_trend,
            'candle_count': self.candle_count,
            'last_time': self.last_time,
        }


def records_to_dataframe(records: Iterable[Any]) -> pd.DataFrame:
    """Convert a record collection to a pandas DataFrame (one row per record)"""
    return pd.DataFrame([r.to_dict() for r in records])
