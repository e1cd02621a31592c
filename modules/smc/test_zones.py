"""
modules/smc/test_zones.py

Order Block and Fair Value Gap tests
"""

import pytest

from conftest import bar_time, build_candles, random_walk_candles
from modules.smc.detectors import BarContext, FVGDetector, OrderBlockDetector, detect_fvgs
from modules.smc.models import StructureEvent


def swing_event(direction: str, index: int, timescale: str = 'swing') -> StructureEvent:
    return StructureEvent(
        time=bar_time(index), type='BOS', direction=direction, timescale=timescale,
        level=0.0, pivot_time=bar_time(0), index=index,
    )


def feed(detector, candles, events_at=None):
    """Run a detector over candles; events_at maps bar index -> structure events"""
    events_at = events_at or {}
    created = []
    for i in range(len(candles)):
        ctx = BarContext(candles=candles[:i + 1], index=i, new_events=list(events_at.get(i, [])))
        created.append(detector.update(ctx))
    return created


# ============================================================================
# ORDER BLOCKS
# ============================================================================

# (open, high, low, close)
BULLISH_SETUP = [
    (10.0, 11.5, 9.5, 11.0),    # 0 up
    (11.0, 11.2, 9.8, 10.0),    # 1 down -> order block
    (10.0, 10.5, 9.9, 10.0),    # 2 doji
    (10.0, 12.2, 9.9, 12.0),    # 3 break
    (12.0, 12.5, 10.0, 12.3),   # 4 low above OB low
    (12.3, 12.4, 9.8, 11.0),    # 5 touches OB low
]


def test_bullish_order_block_and_mitigation():
    candles = build_candles(BULLISH_SETUP)
    detector = OrderBlockDetector(lookback=20)
    created = feed(detector, candles, {3: [swing_event('bullish', 3)]})

    assert created[3], "break bar should create the order block"
    block = created[3][0]
    assert (block.time, block.high, block.low) == (bar_time(1), 11.2, 9.8)
    assert block.bias == 'bullish'
    assert block.break_time == bar_time(3)
    assert block.index == 1

    (final,) = detector.get_history()
    assert final.mitigated
    assert final.mitigated_time == bar_time(5)
    assert detector.get_active() == []


def test_order_block_not_mitigated_before_touch():
    candles = build_candles(BULLISH_SETUP[:5])
    detector = OrderBlockDetector()
    feed(detector, candles, {3: [swing_event('bullish', 3)]})

    (block,) = detector.get_active()
    assert block.is_active
    assert block.mitigated_time is None


def test_bearish_order_block():
    candles = build_candles([
        (10.0, 10.5, 9.0, 9.2),     # 0 down
        (9.2, 10.2, 9.1, 10.0),     # 1 up -> order block
        (10.0, 10.1, 8.0, 8.2),     # 2 break
        (8.2, 10.0, 8.1, 9.9),      # 3 high below OB high
        (9.9, 10.2, 9.5, 10.1),     # 4 touches OB high
    ])
    detector = OrderBlockDetector()
    created = feed(detector, candles, {2: [swing_event('bearish', 2)]})

    block = created[2][0]
    assert (block.time, block.high, block.low, block.bias) == (bar_time(1), 10.2, 9.1, 'bearish')
    assert detector.get_history()[0].mitigated_time == bar_time(4)


def test_internal_events_ignored():
    candles = build_candles(BULLISH_SETUP)
    detector = OrderBlockDetector()
    feed(detector, candles, {3: [swing_event('bullish', 3, timescale='internal')]})

    assert detector.get_history() == []


def test_lookback_limits_search():
    candles = build_candles(BULLISH_SETUP)
    detector = OrderBlockDetector(lookback=1)
    feed(detector, candles, {3: [swing_event('bullish', 3)]})

    # Only bar 2 (doji) is inside the window
    assert detector.get_history() == []


def test_same_candle_not_registered_twice():
    candles = build_candles(BULLISH_SETUP)
    detector = OrderBlockDetector()
    created = feed(detector, candles, {
        3: [swing_event('bullish', 3)],
        4: [swing_event('bullish', 4)],
    })

    assert created[4] == []
    assert len(detector.get_history()) == 1


# ============================================================================
# FAIR VALUE GAPS
# ============================================================================

def test_bullish_fvg_and_fill():
    candles = build_candles([
        (9.0, 10.0, 8.0, 9.5),
        (12.5, 12.0, 13.0, 12.5),
        (14.5, 15.0, 14.0, 14.8),
        (15.0, 16.0, 14.5, 15.5),   # no overlap with [10, 14]
        (10.5, 11.0, 9.0, 9.5),     # trades into the gap
    ])
    detector = FVGDetector()
    created = feed(detector, candles)

    assert created[2], "third bar completes the gap"
    gap = created[2][0]
    assert (gap.top, gap.bottom, gap.bias) == (14.0, 10.0, 'bullish')
    assert gap.time == bar_time(1)
    assert gap.size == pytest.approx(4.0)

    partial = FVGDetector()
    feed(partial, candles[:4])
    assert partial.get_history()[0].filled is False

    # Later triples form gaps of their own; the first one is the 10-14 gap
    final = detector.get_history()[0]
    assert (final.top, final.bottom) == (14.0, 10.0)
    assert final.filled
    assert final.filled_time == bar_time(4)
    assert final not in detector.get_active()


def test_bearish_fvg():
    candles = build_candles([
        (20.0, 21.0, 19.0, 19.5),
        (18.0, 18.5, 16.0, 16.5),
        (16.0, 17.0, 15.0, 15.5),
    ])
    (gap,) = detect_fvgs(candles)

    assert (gap.top, gap.bottom, gap.bias) == (19.0, 17.0, 'bearish')
    assert gap.is_active


def test_no_gap_when_ranges_overlap():
    candles = build_candles([
        (10.0, 11.0, 9.0, 10.5),
        (10.5, 11.5, 10.0, 11.0),
        (11.0, 12.0, 10.8, 11.5),
    ])
    assert detect_fvgs(candles) == []


def test_streaming_matches_batch():
    candles = random_walk_candles(bars=400, seed=11)
    detector = FVGDetector()
    feed(detector, candles)

    assert detector.get_history() == detect_fvgs(candles)
