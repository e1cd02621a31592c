"""
modules/smc/models/formations.py

SMC record dataclasses
- Candle, SwingPoint, TrendState, StructureEvent, OrderBlock, FairValueGap,
  EqualHighLow, PremiumDiscountZone, StrongWeakLevel

All records are frozen. The one-way lifecycle flips (mitigated, filled)
produce a new record via dataclasses.replace.
"""

from dataclasses import dataclass, replace
from typing import Any, Literal, Mapping, Optional


Timescale = Literal['internal', 'swing']
PivotKind = Literal['high', 'low']
Bias = Literal['bullish', 'bearish']
Direction = Literal['bullish', 'bearish', 'neutral']

TIMESCALES = ('internal', 'swing')


def _pick(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    raise KeyError(f"Candle field missing, expected one of {keys}")


@dataclass(frozen=True)
class Candle:
    """
    OHLC bar.

    Attributes:
        time: Bar open time (epoch seconds, strictly increasing in history)
        open, high, low, close: Prices
    """
    time: int
    open: float
    high: float
    low: float
    close: float

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Candle":
        """
        Build from a dict.

        Accepts 'time'/'t' (epoch seconds) or 'timestamp' (epoch ms) and
        either full or single-letter price keys.
        """
        if 'time' in data or 't' in data:
            time = int(_pick(data, 'time', 't'))
        else:
            time = int(data['timestamp']) // 1000
        return cls(
            time=time,
            open=float(_pick(data, 'open', 'o')),
            high=float(_pick(data, 'high', 'h')),
            low=float(_pick(data, 'low', 'l')),
            close=float(_pick(data, 'close', 'c')),
        )

    @property
    def is_bullish(self) -> bool:
        """Up-close candle"""
        return self.close > self.open

    @property
    def is_bearish(self) -> bool:
        """Down-close candle"""
        return self.close < self.open

    def merge(self, update: "Candle") -> "Candle":
        """
        Fold a live update of the same bar into this one: open kept,
        high/low extended, close replaced.
        """
        return replace(
            self,
            high=max(self.high, update.high),
            low=min(self.low, update.low),
            close=update.close,
        )

    def to_dict(self) -> dict:
        return {
            'time': self.time,
            'open': self.open,
            'high': self.high,
            'low': self.low,
            'close': self.close,
        }


@dataclass(frozen=True)
class SwingPoint:
    """
    Confirmed pivot high/low.

    Attributes:
        time: Pivot bar time
        price: High (for 'high') or low (for 'low') of the pivot bar
        kind: 'high' or 'low'
        label: HH, HL, LH, LL (relative to the previous pivot of the same kind)
        timescale: 'internal' or 'swing'
        index: Pivot bar index
    """
    time: int
    price: float
    kind: PivotKind
    label: Literal['HH', 'HL', 'LH', 'LL']
    timescale: Timescale
    index: int

    @property
    def key(self) -> tuple:
        """Identity of the pivot (one per time, kind and timescale)"""
        return (self.timescale, self.kind, self.time)

    def to_dict(self) -> dict:
        return {
            'time': self.time,
            'price': self.price,
            'kind': self.kind,
            'label': self.label,
            'timescale': self.timescale,
            'index': self.index,
        }


@dataclass(frozen=True)
class TrendState:
    """
    Trend state of one timescale.

    Attributes:
        timescale: 'internal' or 'swing'
        direction: 'bullish', 'bearish' or 'neutral'
        last_swing_high / last_swing_low: Latest confirmed pivots
        high_consumed / low_consumed: The tracked pivot already triggered a break
    """
    timescale: Timescale
    direction: Direction = 'neutral'
    last_swing_high: Optional[SwingPoint] = None
    last_swing_low: Optional[SwingPoint] = None
    high_consumed: bool = False
    low_consumed: bool = False

    def to_dict(self) -> dict:
        return {
            'timescale': self.timescale,
            'direction': self.direction,
            'last_swing_high': self.last_swing_high.to_dict() if self.last_swing_high else None,
            'last_swing_low': self.last_swing_low.to_dict() if self.last_swing_low else None,
            'high_consumed': self.high_consumed,
            'low_consumed': self.low_consumed,
        }


@dataclass(frozen=True)
class StructureEvent:
    """
    Break of Structure / Change of Character.

    Attributes:
        time: Break candle time
        type: 'BOS' (continuation) or 'CHoCH' (reversal)
        direction: 'bullish' (high broken) or 'bearish' (low broken)
        timescale: 'internal' or 'swing'
        level: Price of the broken pivot
        pivot_time: Time of the broken pivot
        index: Break candle index
    """
    time: int
    type: Literal['BOS', 'CHoCH']
    direction: Bias
    timescale: Timescale
    level: float
    pivot_time: int
    index: int

    def to_dict(self) -> dict:
        return {
            'time': self.time,
            'type': self.type,
            'direction': self.direction,
            'timescale': self.timescale,
            'level': self.level,
            'pivot_time': self.pivot_time,
            'index': self.index,
        }


@dataclass(frozen=True)
class OrderBlock:
    """
    Last opposite-direction candle before a swing structure break.

    Attributes:
        time: Order block candle time
        high / low: Candle range
        bias: Bias of the break that created it
        break_time: Time of the structure break
        index: Order block candle index
        mitigated: Price traded back through the block (one-way)
        mitigated_time: First candle time that mitigated it
    """
    time: int
    high: float
    low: float
    bias: Bias
    break_time: int
    index: int
    mitigated: bool = False
    mitigated_time: Optional[int] = None

    @property
    def is_active(self) -> bool:
        return not self.mitigated

    def mitigate(self, time: int) -> "OrderBlock":
        return replace(self, mitigated=True, mitigated_time=time)

    def to_dict(self) -> dict:
        return {
            'time': self.time,
            'high': self.high,
            'low': self.low,
            'bias': self.bias,
            'break_time': self.break_time,
            'index': self.index,
            'mitigated': self.mitigated,
            'mitigated_time': self.mitigated_time,
        }


@dataclass(frozen=True)
class FairValueGap:
    """
    Fair Value Gap (3-bar imbalance)

    Attributes:
        time: Middle candle time
        top / bottom: Gap boundaries
        bias: 'bullish' (gap up) or 'bearish' (gap down)
        index: Middle candle index
        filled: A later candle traded into the gap (one-way)
        filled_time: First candle time that filled it
    """
    time: int
    top: float
    bottom: float
    bias: Bias
    index: int
    filled: bool = False
    filled_time: Optional[int] = None

    @property
    def size(self) -> float:
        return self.top - self.bottom

    @property
    def is_active(self) -> bool:
        return not self.filled

    def fill(self, time: int) -> "FairValueGap":
        return replace(self, filled=True, filled_time=time)

    def to_dict(self) -> dict:
        return {
            'time': self.time,
            'top': self.top,
            'bottom': self.bottom,
            'bias': self.bias,
            'index': self.index,
            'filled': self.filled,
            'filled_time': self.filled_time,
        }


@dataclass(frozen=True)
class EqualHighLow:
    """Two adjacent same-kind pivots within tolerance (EQH / EQL)"""
    type: Literal['EQH', 'EQL']
    time1: int
    time2: int
    price1: float
    price2: float
    timescale: Timescale

    def to_dict(self) -> dict:
        return {
            'type': self.type,
            'time1': self.time1,
            'time2': self.time2,
            'price1': self.price1,
            'price2': self.price2,
            'timescale': self.timescale,
        }


@dataclass(frozen=True)
class PremiumDiscountZone:
    """
    Premium / discount split of the current swing range.

    premium = [equilibrium, range top], discount = [range bottom, equilibrium]
    """
    start_time: int
    end_time: int
    premium_top: float
    premium_bottom: float
    discount_top: float
    discount_bottom: float

    @property
    def equilibrium(self) -> float:
        return self.premium_bottom

    def to_dict(self) -> dict:
        return {
            'start_time': self.start_time,
            'end_time': self.end_time,
            'premium_top': self.premium_top,
            'premium_bottom': self.premium_bottom,
            'discount_top': self.discount_top,
            'discount_bottom': self.discount_bottom,
            'equilibrium': self.equilibrium,
        }


@dataclass(frozen=True)
class StrongWeakLevel:
    """Pivot swept by a structure break (strong) or still intact (weak)"""
    time: int
    price: float
    type: PivotKind
    strength: Literal['strong', 'weak']
    timescale: Timescale

    def to_dict(self) -> dict:
        return {
            'time': self.time,
            'price': self.price,
            'type': self.type,
            'strength': self.strength,
            'timescale': self.timescale,
        }
