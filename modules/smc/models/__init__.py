"""
modules/smc/models - SMC records, filters and result snapshot
"""

from .formations import (
    TIMESCALES,
    Candle,
    EqualHighLow,
    FairValueGap,
    OrderBlock,
    PremiumDiscountZone,
    StrongWeakLevel,
    StructureEvent,
    SwingPoint,
    TrendState,
)
from .filters import (
    EqualLevelFilter,
    LevelFilter,
    RecordFilter,
    StructureFilter,
    SwingPointFilter,
    ZoneFilter,
)
from .snapshot import SMCSnapshot, records_to_dataframe

__all__ = [
    'TIMESCALES',
    'Candle',
    'SwingPoint',
    'TrendState',
    'StructureEvent',
    'OrderBlock',
    'FairValueGap',
    'EqualHighLow',
    'PremiumDiscountZone',
    'StrongWeakLevel',
    'RecordFilter',
    'SwingPointFilter',
    'StructureFilter',
    'ZoneFilter',
    'EqualLevelFilter',
    'LevelFilter',
    'SMCSnapshot',
    'records_to_dataframe',
]
