"""
modules/smc/test_levels.py

Equal highs/lows, premium/discount and strong/weak level tests
"""

import pytest

from conftest import bar_time, candles_from_ranges
from modules.smc import SMCEngine
from modules.smc.detectors import (
    BarContext,
    EqualLevelDetector,
    calculate_premium_discount,
    classify_levels,
    is_equal_level,
)
from modules.smc.models import Candle, SwingPoint


def pivot(kind: str, price: float, index: int, timescale: str = 'swing') -> SwingPoint:
    return SwingPoint(
        time=bar_time(index), price=price, kind=kind,
        label='HH' if kind == 'high' else 'HL',
        timescale=timescale, index=index,
    )


def feed_pivots(detector, pivots):
    candles = [Candle(bar_time(0), 1, 1, 1, 1)]
    for p in pivots:
        detector.update(BarContext(candles=candles, index=0, new_pivots=[p]))
    return detector.get_history()


# ============================================================================
# EQUAL HIGHS / LOWS
# ============================================================================

def test_equal_highs_within_tolerance():
    found = feed_pivots(EqualLevelDetector('swing', 0.001), [
        pivot('high', 100.0, 1),
        pivot('high', 100.05, 5),
    ])

    assert len(found) == 1
    eqh = found[0]
    assert eqh.type == 'EQH'
    assert (eqh.time1, eqh.time2) == (bar_time(1), bar_time(5))
    assert (eqh.price1, eqh.price2) == (100.0, 100.05)
    assert eqh.timescale == 'swing'


def test_equal_highs_outside_tolerance():
    found = feed_pivots(EqualLevelDetector('swing', 0.001), [
        pivot('high', 100.0, 1),
        pivot('high', 101.0, 5),
    ])
    assert found == []


def test_equal_lows():
    found = feed_pivots(EqualLevelDetector('internal', 0.001), [
        pivot('low', 50.0, 2, 'internal'),
        pivot('low', 49.98, 6, 'internal'),
    ])
    assert [eq.type for eq in found] == ['EQL']


def test_opposite_pivot_in_between_breaks_pair():
    found = feed_pivots(EqualLevelDetector('swing', 0.001), [
        pivot('high', 100.0, 1),
        pivot('low', 95.0, 3),
        pivot('high', 100.05, 5),
    ])
    assert found == []


def test_other_timescale_ignored():
    found = feed_pivots(EqualLevelDetector('swing', 0.001), [
        pivot('high', 100.0, 1),
        pivot('high', 100.02, 3, 'internal'),
        pivot('high', 100.05, 5),
    ])
    assert len(found) == 1
    assert found[0].time1 == bar_time(1)


def test_is_equal_level_zero_reference():
    assert is_equal_level(0.0, 0.0, 0.001)
    assert not is_equal_level(0.0, 0.1, 0.001)
    assert is_equal_level(100.0, 100.1, 0.001)


def test_engine_reports_equal_highs():
    # Internal (length 1) high pivots at bars 1 and 3, no low pivot between them
    candles = candles_from_ranges(
        highs=[99.0, 100.0, 99.9, 100.05, 100.0],
        lows=[98.0, 98.5, 98.6, 98.7, 98.8],
    )
    engine = SMCEngine({'swing_length': 50, 'internal_length': 1})
    snapshot = engine.calculate(candles)

    (eqh,) = snapshot.equal_highs_lows
    assert eqh.type == 'EQH'
    assert eqh.timescale == 'internal'
    assert (eqh.price1, eqh.price2) == (100.0, 100.05)


def test_engine_no_equal_highs_outside_tolerance():
    candles = candles_from_ranges(
        highs=[99.0, 100.0, 99.9, 101.0, 100.0],
        lows=[98.0, 98.5, 98.6, 98.7, 98.8],
    )
    snapshot = SMCEngine({'swing_length': 50, 'internal_length': 1}).calculate(candles)
    assert snapshot.equal_highs_lows == ()


# ============================================================================
# PREMIUM / DISCOUNT
# ============================================================================

def test_premium_discount_from_latest_swings():
    zone = calculate_premium_discount([
        pivot('high', 130.0, 0),
        pivot('low', 90.0, 2),
        pivot('high', 120.0, 4),
        pivot('low', 100.0, 6),
    ], end_time=bar_time(9))

    assert zone.premium_top == 120.0
    assert zone.premium_bottom == zone.discount_top == zone.equilibrium == 110.0
    assert zone.discount_bottom == 100.0
    assert zone.start_time == bar_time(4)
    assert zone.end_time == bar_time(9)


def test_premium_discount_needs_both_pivots():
    assert calculate_premium_discount([pivot('high', 120.0, 0)], end_time=bar_time(3)) is None
    assert calculate_premium_discount([], end_time=None) is None


def test_premium_discount_inverted_range():
    # Latest low printed above the latest high
    zone = calculate_premium_discount([
        pivot('high', 100.0, 1),
        pivot('low', 104.0, 3),
    ], end_time=bar_time(5))

    assert zone.premium_top == 104.0
    assert zone.discount_bottom == 100.0
    assert zone.equilibrium == pytest.approx(102.0)


# ============================================================================
# STRONG / WEAK
# ============================================================================

def test_classify_levels():
    high, low = pivot('high', 120.0, 1), pivot('low', 100.0, 3)
    levels = classify_levels([high, low], consumed={high.key})

    assert [(lv.type, lv.strength) for lv in levels] == [('high', 'strong'), ('low', 'weak')]
    assert levels[0].price == 120.0
    assert levels[1].time == bar_time(3)


def test_consumed_key_is_timescale_specific():
    internal = pivot('high', 120.0, 1, 'internal')
    swing = pivot('high', 120.0, 1, 'swing')
    levels = classify_levels([internal, swing], consumed={swing.key})

    assert [lv.strength for lv in levels] == ['weak', 'strong']
