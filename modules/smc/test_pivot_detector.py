"""
modules/smc/test_pivot_detector.py

Pivot (swing high/low) detection tests
1. Confirmation delay and clipped look-back at the start of history
2. Equal extremes (earliest wins)
3. HH/LH labels
4. Streaming detector == batch detect_pivots
"""

import pytest

from conftest import bar_time, candles_from_ranges, random_walk_candles
from modules.smc.detectors import BarContext, PivotDetector, detect_pivots


def stream(detector, candles):
    """Feed candles one by one, return the pivots confirmed on each bar"""
    confirmed = []
    for i in range(len(candles)):
        confirmed.append(detector.update(BarContext(candles=candles[:i + 1], index=i)))
    return confirmed


def test_pivot_confirmed_after_length_bars():
    candles = candles_from_ranges(
        highs=[1, 2, 5, 3, 2],
        lows=[0.5, 1, 4, 2, 1],
    )
    per_bar = stream(PivotDetector(2, 'internal'), candles)

    # Low at bar 0 (clipped look-back) confirmed on bar 2, high at bar 2 on bar 4
    assert [len(p) for p in per_bar] == [0, 0, 1, 0, 1]

    low = per_bar[2][0]
    assert (low.kind, low.price, low.index, low.time) == ('low', 0.5, 0, bar_time(0))
    assert low.label == 'HL'

    high = per_bar[4][0]
    assert (high.kind, high.price, high.index, high.time) == ('high', 5, 2, bar_time(2))
    assert high.label == 'HH'
    assert high.timescale == 'internal'


def test_equal_highs_earliest_wins():
    candles = candles_from_ranges(
        highs=[1, 5, 5, 2, 1],
        lows=[0.5, 4, 4, 1.5, 0.8],
    )
    highs = [p for p in detect_pivots(candles, 2, 'swing') if p.kind == 'high']

    assert len(highs) == 1
    assert highs[0].index == 1


def test_high_labels_compare_previous_high():
    candles = candles_from_ranges(
        highs=[1, 3, 1, 4, 1, 2, 1],
        lows=[0.5, 2.5, 0.5, 3.5, 0.5, 1.5, 0.5],
    )
    highs = [p for p in detect_pivots(candles, 1, 'internal') if p.kind == 'high']

    assert [p.index for p in highs] == [1, 3, 5]
    assert [p.label for p in highs] == ['HH', 'HH', 'LH']


def test_not_enough_bars():
    candles = candles_from_ranges(highs=[1, 2, 3], lows=[0, 1, 2])
    assert detect_pivots(candles, 5, 'swing') == []
    assert stream(PivotDetector(5, 'swing'), candles) == [[], [], []]


def test_invalid_length():
    with pytest.raises(ValueError):
        detect_pivots(candles_from_ranges([1], [0]), 0, 'swing')


@pytest.mark.parametrize("length", [1, 3, 10])
def test_streaming_matches_batch(length):
    candles = random_walk_candles(bars=250, seed=length)

    detector = PivotDetector(length, 'swing')
    stream(detector, candles)

    assert detector.get_history() == detect_pivots(candles, length, 'swing')


def test_reset_clears_labels():
    candles = candles_from_ranges(
        highs=[1, 3, 1, 4, 1, 2, 1],
        lows=[0.5, 2.5, 0.5, 3.5, 0.5, 1.5, 0.5],
    )
    detector = PivotDetector(1, 'internal')
    stream(detector, candles)
    assert detector.get_history()

    detector.reset()
    assert detector.get_history() == []

    stream(detector, candles)
    assert detector.get_history() == detect_pivots(candles, 1, 'internal')
