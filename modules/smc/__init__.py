"""
modules/smc - Smart Money Concepts market structure engine

Detects SMC structure from OHLC candles, in batch or bar by bar:
- Swing / internal pivots (HH, HL, LH, LL)
- BOS (Break of Structure) and CHoCH (Change of Character)
- Order Blocks
- FVG (Fair Value Gap)
- Equal Highs / Lows
- Premium / Discount zone
- Strong / Weak levels

Usage:
    from modules.smc import SMCEngine

    engine = SMCEngine({'swing_length': 50, 'internal_length': 5})
    snapshot = engine.calculate(df)
    engine.append_candle(candle)
"""

from .config import SMCConfig
from .exceptions import InvalidConfigurationError, NonMonotonicInputError, SMCError
from .models import (
    Candle,
    EqualHighLow,
    EqualLevelFilter,
    FairValueGap,
    LevelFilter,
    OrderBlock,
    PremiumDiscountZone,
    SMCSnapshot,
    StrongWeakLevel,
    StructureEvent,
    StructureFilter,
    SwingPoint,
    SwingPointFilter,
    TrendState,
    ZoneFilter,
)
from .smc_engine import SMCEngine, calculate_smc, candles_from_dataframe

__all__ = [
    'SMCEngine',
    'SMCConfig',
    'SMCSnapshot',
    'calculate_smc',
    'candles_from_dataframe',
    'SMCError',
    'InvalidConfigurationError',
    'NonMonotonicInputError',
    'Candle',
    'SwingPoint',
    'TrendState',
    'StructureEvent',
    'OrderBlock',
    'FairValueGap',
    'EqualHighLow',
    'PremiumDiscountZone',
    'StrongWeakLevel',
    'SwingPointFilter',
    'StructureFilter',
    'ZoneFilter',
    'EqualLevelFilter',
    'LevelFilter',
]

__version__ = '1.0.0'
