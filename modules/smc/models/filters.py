"""
modules/smc/models/filters.py

Typed filters for the per-collection accessors.

Every field left as None matches everything. since/until bound the record
time (inclusive).

Usage:
    engine.get_structures(StructureFilter(timescale='swing', type='CHoCH'))
    engine.get_order_blocks(ZoneFilter(bias='bullish', active_only=True))
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple, TypeVar

from .formations import (
    Bias,
    EqualHighLow,
    PivotKind,
    StructureEvent,
    StrongWeakLevel,
    SwingPoint,
    Timescale,
)

RecordT = TypeVar("RecordT")


@dataclass(frozen=True)
class RecordFilter:
    """Time window shared by all filters"""
    since: Optional[int] = None
    until: Optional[int] = None

    def matches(self, record) -> bool:
        if self.since is not None and record.time < self.since:
            return False
        if self.until is not None and record.time > self.until:
            return False
        return True

    def apply(self, records: Iterable[RecordT]) -> Tuple[RecordT, ...]:
        return tuple(r for r in records if self.matches(r))


@dataclass(frozen=True)
class SwingPointFilter(RecordFilter):
    timescale: Optional[Timescale] = None
    kind: Optional[PivotKind] = None
    label: Optional[str] = None

    def matches(self, record: SwingPoint) -> bool:
        return (
            super().matches(record)
            and (self.timescale is None or record.timescale == self.timescale)
            and (self.kind is None or record.kind == self.kind)
            and (self.label is None or record.label == self.label)
        )


@dataclass(frozen=True)
class StructureFilter(RecordFilter):
    timescale: Optional[Timescale] = None
    type: Optional[str] = None  # 'BOS' / 'CHoCH'
    direction: Optional[Bias] = None

    def matches(self, record: StructureEvent) -> bool:
        return (
            super().matches(record)
            and (self.timescale is None or record.timescale == self.timescale)
            and (self.type is None or record.type == self.type)
            and (self.direction is None or record.direction == self.direction)
        )


@dataclass(frozen=True)
class ZoneFilter(RecordFilter):
    """Order blocks and fair value gaps"""
    bias: Optional[Bias] = None
    active_only: bool = False

    def matches(self, record) -> bool:
        return (
            super().matches(record)
            and (self.bias is None or record.bias == self.bias)
            and (not self.active_only or record.is_active)
        )


@dataclass(frozen=True)
class EqualLevelFilter(RecordFilter):
    type: Optional[str] = None  # 'EQH' / 'EQL'
    timescale: Optional[Timescale] = None

    def matches(self, record: EqualHighLow) -> bool:
        if self.since is not None and record.time2 < self.since:
            return False
        if self.until is not None and record.time2 > self.until:
            return False
        return (
            (self.type is None or record.type == self.type)
            and (self.timescale is None or record.timescale == self.timescale)
        )


@dataclass(frozen=True)
class LevelFilter(RecordFilter):
    """Strong / weak levels"""
    type: Optional[PivotKind] = None
    strength: Optional[str] = None  # 'strong' / 'weak'
    timescale: Optional[Timescale] = None

    def matches(self, record: StrongWeakLevel) -> bool:
        return (
            super().matches(record)
            and (self.type is None or record.type == self.type)
            and (self.strength is None or record.strength == self.strength)
            and (self.timescale is None or record.timescale == self.timescale)
        )
