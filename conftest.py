"""
Shared pytest fixtures and candle builders
"""

from typing import Iterable, List, Sequence, Tuple

import numpy as np
import pytest

from modules.smc.models import Candle


# Aligned to 60s so tick bucketing maps back onto the bar times
T0 = 1_699_999_980
STEP = 60


def bar_time(index: int) -> int:
    return T0 + index * STEP


def build_candles(rows: Iterable[Tuple[float, float, float, float]], start: int = T0, step: int = STEP) -> List[Candle]:
    """(open, high, low, close) rows -> candles spaced `step` seconds apart"""
    return [
        Candle(time=start + i * step, open=o, high=h, low=l, close=c)
        for i, (o, h, l, c) in enumerate(rows)
    ]


def candles_from_ranges(highs: Sequence[float], lows: Sequence[float]) -> List[Candle]:
    """Candles from high/low series (open = low, close = high)"""
    return build_candles((l, h, l, h) for h, l in zip(highs, lows))


def random_walk_candles(bars: int = 300, seed: int = 7) -> List[Candle]:
    """Seeded random walk with realistic wicks"""
    rng = np.random.RandomState(seed)
    closes = 100 + np.cumsum(rng.randn(bars))
    opens = np.concatenate([[100.0], closes[:-1]])
    highs = np.maximum(opens, closes) + np.abs(rng.randn(bars)) * 0.4
    lows = np.minimum(opens, closes) - np.abs(rng.randn(bars)) * 0.4
    return build_candles(
        (float(o), float(h), float(l), float(c))
        for o, h, l, c in zip(opens, highs, lows, closes)
    )


def stair_step_candles(cycles: int = 8) -> List[Candle]:
    """Rising zigzag: each cycle climbs 4 and pulls back 1"""
    prices = []
    for k in range(cycles):
        base = 10 + 3 * k
        prices.extend(base + offset for offset in (0, 2, 4, 3))
    return build_candles((p, p + 0.5, p - 0.5, p) for p in prices)


@pytest.fixture
def walk_candles() -> List[Candle]:
    return random_walk_candles()


@pytest.fixture
def small_config() -> dict:
    return {'swing_length': 10, 'internal_length': 3}
