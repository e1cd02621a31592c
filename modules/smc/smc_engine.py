"""
modules/smc/smc_engine.py

SMC Engine - Main Orchestrator

Owns the candle history, runs the detectors in dependency order on every
bar and publishes an immutable SMCSnapshot.

    candles -> pivots (internal, swing) -> trend / BOS / CHoCH
            -> order blocks, FVGs, equal highs/lows
            -> premium/discount, strong/weak (derived per snapshot)

Batch and streaming share one per-bar step, so `calculate` over N candles
and N calls to `append_candle` end in the same snapshot.
"""

from dataclasses import replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

import pandas as pd

from core.logger_engine import get_logger, log_execution_time
from .config import SMCConfig
from .detectors.base_detector import BarContext, BaseDetector
from .detectors.equal_levels_detector import EqualLevelDetector
from .detectors.fvg_detector import FVGDetector
from .detectors.order_block_detector import OrderBlockDetector
from .detectors.pivot_detector import PivotDetector
from .detectors.premium_discount import calculate_premium_discount
from .detectors.strong_weak import classify_levels
from .detectors.structure_detector import StructureDetector
from .exceptions import NonMonotonicInputError
from .models.filters import (
    EqualLevelFilter,
    LevelFilter,
    StructureFilter,
    SwingPointFilter,
    ZoneFilter,
)
from .models.formations import (
    TIMESCALES,
    Candle,
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
from .models.snapshot import SMCSnapshot

logger = get_logger("modules.smc.engine")

CandleInput = Union[Candle, Mapping[str, Any]]

_TIMESCALE_RANK = {'internal': 0, 'swing': 1}
_KIND_RANK = {'high': 0, 'low': 1}


def candles_from_dataframe(data: pd.DataFrame) -> List[Candle]:
    """
    Convert an OHLC DataFrame to candles.

    Time column: 'time' (epoch seconds or datetime) or 'timestamp'
    (epoch milliseconds).
    """
    if 'time' in data.columns:
        column = data['time']
        if pd.api.types.is_datetime64_any_dtype(column):
            epoch = pd.Timestamp('1970-01-01', tz='UTC')
            times = (pd.to_datetime(column, utc=True) - epoch) // pd.Timedelta(seconds=1)
        else:
            times = column.astype('int64')
    elif 'timestamp' in data.columns:
        times = data['timestamp'].astype('int64') // 1000
    else:
        raise KeyError("DataFrame needs a 'time' (seconds) or 'timestamp' (ms) column")

    ohlc = data[['open', 'high', 'low', 'close']].to_numpy(dtype=float)
    return [
        Candle(int(t), float(o), float(h), float(l), float(c))
        for t, (o, h, l, c) in zip(times.to_numpy(), ohlc)
    ]


def _to_candle(candle: CandleInput) -> Candle:
    return candle if isinstance(candle, Candle) else Candle.from_dict(candle)


def _tick_to_candle(tick: CandleInput) -> Candle:
    """Candle, OHLC dict, or a price tick such as {'epoch': ..., 'quote': ...}"""
    if isinstance(tick, Candle):
        return tick
    if any(key in tick for key in ('open', 'o')):
        return Candle.from_dict(tick)
    price = float(tick['quote'] if 'quote' in tick else tick['price'])
    time = int(tick['epoch'] if 'epoch' in tick else tick['time'])
    return Candle(time=time, open=price, high=price, low=price, close=price)


class SMCEngine:
    """
    Smart Money Concepts Engine

    Usage:
        engine = SMCEngine({'swing_length': 50, 'internal_length': 5})

        # Batch
        snapshot = engine.calculate(df)

        # Streaming
        engine.append_candle(candle)          # new closed/forming bar
        engine.upsert_last_candle(candle)     # live update of the last bar
        engine.apply_tick({'epoch': t, 'quote': p}, granularity=60)

        engine.get_structures(StructureFilter(timescale='swing'))
        engine.get_trend('internal')

    Configuration is fixed per instance; use reconfigure() to get a new
    engine with other settings.
    """

    def __init__(self, config: Optional[Union[SMCConfig, Dict[str, Any]]] = None):
        """
        Args:
            config: SMCConfig, dict (snake_case or camelCase keys) or None

        Raises:
            InvalidConfigurationError: Invalid length / tolerance / option
        """
        self.config = SMCConfig.create(config)
        cfg = self.config

        self._pivot_detectors: Dict[str, PivotDetector] = {
            'internal': PivotDetector(cfg.internal_length, 'internal'),
            'swing': PivotDetector(cfg.swing_length, 'swing'),
        }
        self._structure_detectors: Dict[str, StructureDetector] = {
            ts: StructureDetector(ts) for ts in TIMESCALES
        }

        # Optional detectors
        self._order_block_detector: Optional[OrderBlockDetector] = None
        if cfg.enable_order_blocks:
            self._order_block_detector = OrderBlockDetector(cfg.order_block_lookback)

        self._fvg_detector: Optional[FVGDetector] = None
        if cfg.enable_fvg:
            self._fvg_detector = FVGDetector()

        self._equal_level_detectors: Dict[str, EqualLevelDetector] = {}
        if cfg.enable_equal_hl:
            self._equal_level_detectors = {
                ts: EqualLevelDetector(ts, cfg.equal_tolerance) for ts in TIMESCALES
            }

        self._candles: List[Candle] = []
        # Detector state before the last bar was processed
        self._checkpoint: Optional[Dict[str, Dict[str, Any]]] = None
        self._snapshot = SMCSnapshot()

        logger.debug(f"SMCEngine created: {cfg.model_dump()}")

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------

    @log_execution_time("performance.smc")
    def calculate(self, data: Union[pd.DataFrame, Iterable[CandleInput]]) -> SMCSnapshot:
        """
        Full recompute over a candle history.

        Args:
            data: OHLC DataFrame or iterable of Candle / dicts

        Returns:
            SMCSnapshot

        Raises:
            NonMonotonicInputError: Candle times not strictly increasing
        """
        if isinstance(data, pd.DataFrame):
            candles = candles_from_dataframe(data)
        else:
            candles = [_to_candle(c) for c in data]

        for prev, curr in zip(candles, candles[1:]):
            if curr.time <= prev.time:
                logger.warning(f"Non-monotonic candle history: {prev.time} -> {curr.time}")
                raise NonMonotonicInputError(prev.time, curr.time, operation="calculate")

        self.reset()
        last = len(candles) - 1
        for i, candle in enumerate(candles):
            self._candles.append(candle)
            if i == last:
                self._checkpoint = self._take_checkpoint()
            self._step(i)

        self._snapshot = self._build_snapshot()
        summary = self._snapshot.summary
        logger.info(
            f"SMC calculated: {len(candles)} bars, {summary['swing_count']} pivots, "
            f"{summary['bos_count']} BOS, {summary['choch_count']} CHoCH, "
            f"swing trend {summary['swing_trend']}"
        )
        return self._snapshot

    def append_candle(self, candle: CandleInput) -> SMCSnapshot:
        """
        Append a new bar.

        Raises:
            NonMonotonicInputError: time <= latest candle time
        """
        candle = _to_candle(candle)
        if self._candles and candle.time <= self._candles[-1].time:
            logger.warning(f"Rejected candle {candle.time}: latest is {self._candles[-1].time}")
            raise NonMonotonicInputError(self._candles[-1].time, candle.time, operation="append")

        self._checkpoint = self._take_checkpoint()
        self._candles.append(candle)
        self._step(len(self._candles) - 1)

        self._snapshot = self._build_snapshot()
        return self._snapshot

    def upsert_last_candle(self, candle: CandleInput) -> SMCSnapshot:
        """
        Update the forming bar, or append when the time is newer.

        Same time as the last candle: high/low are extended, close replaced
        (open kept) and the last bar is re-derived from the checkpoint taken
        before it.

        Raises:
            NonMonotonicInputError: time older than the latest candle
        """
        candle = _to_candle(candle)
        if not self._candles or candle.time > self._candles[-1].time:
            return self.append_candle(candle)

        last = self._candles[-1]
        if candle.time < last.time:
            logger.warning(f"Rejected upsert {candle.time}: latest is {last.time}")
            raise NonMonotonicInputError(last.time, candle.time, operation="upsert")

        self._restore_checkpoint(self._checkpoint)
        self._candles[-1] = last.merge(candle)
        self._step(len(self._candles) - 1)

        self._snapshot = self._build_snapshot()
        return self._snapshot

    def apply_tick(self, tick: CandleInput, granularity: int) -> SMCSnapshot:
        """
        Fold a live tick into the candle of its time bucket.

        Args:
            tick: Candle, OHLC dict or price tick ({'epoch', 'quote'})
            granularity: Bar size in seconds

        Raises:
            ValueError: granularity <= 0
            NonMonotonicInputError: tick older than the forming bar
        """
        if granularity <= 0:
            raise ValueError(f"granularity must be positive, got {granularity}")

        candle = _tick_to_candle(tick)
        bucket = (candle.time // granularity) * granularity
        return self.upsert_last_candle(replace(candle, time=bucket))

    def reconfigure(self, **changes: Any) -> "SMCEngine":
        """
        New engine with changed settings, recomputed over the same candles.
        This engine is left untouched.
        """
        engine = SMCEngine(SMCConfig.create(self.config, **changes))
        if self._candles:
            engine.calculate(self._candles)
        return engine

    def reset(self) -> None:
        """Clear history and all detectors"""
        for _, detector in self._detectors():
            detector.reset()
        self._candles = []
        self._checkpoint = None
        self._snapshot = SMCSnapshot()

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _detectors(self) -> List[Tuple[str, BaseDetector]]:
        detectors: List[Tuple[str, BaseDetector]] = []
        detectors += [(f"pivot.{ts}", d) for ts, d in self._pivot_detectors.items()]
        detectors += [(f"structure.{ts}", d) for ts, d in self._structure_detectors.items()]
        if self._order_block_detector:
            detectors.append(("order_blocks", self._order_block_detector))
        if self._fvg_detector:
            detectors.append(("fvg", self._fvg_detector))
        detectors += [(f"equal.{ts}", d) for ts, d in self._equal_level_detectors.items()]
        return detectors

    def _step(self, index: int) -> None:
        """Run every detector on bar `index` (the newest bar)"""
        ctx = BarContext(candles=self._candles, index=index)

        for ts in TIMESCALES:
            ctx.new_pivots.extend(self._pivot_detectors[ts].update(ctx))

        for ts in TIMESCALES:
            ctx.new_events.extend(self._structure_detectors[ts].update(ctx))

        if self._order_block_detector:
            self._order_block_detector.update(ctx)

        if self._fvg_detector:
            self._fvg_detector.update(ctx)

        for detector in self._equal_level_detectors.values():
            detector.update(ctx)

    def _take_checkpoint(self) -> Dict[str, Dict[str, Any]]:
        return {name: detector.checkpoint() for name, detector in self._detectors()}

    def _restore_checkpoint(self, checkpoint: Optional[Dict[str, Dict[str, Any]]]) -> None:
        detectors = dict(self._detectors())
        if checkpoint is None:
            for detector in detectors.values():
                detector.reset()
            return
        for name, state in checkpoint.items():
            detectors[name].restore(state)

    def _build_snapshot(self) -> SMCSnapshot:
        pivots = sorted(
            self._pivot_detectors['internal'].get_history()
            + self._pivot_detectors['swing'].get_history(),
            key=lambda p: (p.time, _TIMESCALE_RANK[p.timescale], _KIND_RANK[p.kind]),
        )
        structures = sorted(
            self._structure_detectors['internal'].get_history()
            + self._structure_detectors['swing'].get_history(),
            key=lambda e: (e.time, _TIMESCALE_RANK[e.timescale]),
        )

        order_blocks: Tuple[OrderBlock, ...] = ()
        if self._order_block_detector:
            order_blocks = tuple(sorted(self._order_block_detector.get_history(), key=lambda ob: ob.time))

        fair_value_gaps: Tuple[FairValueGap, ...] = ()
        if self._fvg_detector:
            fair_value_gaps = tuple(self._fvg_detector.get_history())

        equal_levels: List[EqualHighLow] = []
        for detector in self._equal_level_detectors.values():
            equal_levels.extend(detector.get_history())
        equal_levels.sort(key=lambda eq: (eq.time2, _TIMESCALE_RANK[eq.timescale]))

        consumed = set()
        for detector in self._structure_detectors.values():
            consumed |= detector.consumed_keys

        last_time = self._candles[-1].time if self._candles else None

        return SMCSnapshot(
            swing_points=tuple(pivots),
            structures=tuple(structures),
            order_blocks=order_blocks,
            fair_value_gaps=fair_value_gaps,
            equal_highs_lows=tuple(equal_levels),
            strong_weak_levels=tuple(classify_levels(pivots, consumed)),
            premium_discount_zone=calculate_premium_discount(
                self._pivot_detectors['swing'].get_history(), last_time
            ),
            swing_trend=self._structure_detectors['swing'].trend,
            internal_trend=self._structure_detectors['internal'].trend,
            candle_count=len(self._candles),
            last_time=last_time,
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def snapshot(self) -> SMCSnapshot:
        return self._snapshot

    @property
    def candles(self) -> Tuple[Candle, ...]:
        return tuple(self._candles)

    def get_all_results(self) -> SMCSnapshot:
        """Alias of `snapshot`"""
        return self._snapshot

    def get_swing_points(self, criteria: Optional[SwingPointFilter] = None) -> Tuple[SwingPoint, ...]:
        return self._snapshot.get_swing_points(criteria)

    def get_structures(self, criteria: Optional[StructureFilter] = None) -> Tuple[StructureEvent, ...]:
        return self._snapshot.get_structures(criteria)

    def get_order_blocks(self, criteria: Optional[ZoneFilter] = None) -> Tuple[OrderBlock, ...]:
        return self._snapshot.get_order_blocks(criteria)

    def get_fair_value_gaps(self, criteria: Optional[ZoneFilter] = None) -> Tuple[FairValueGap, ...]:
        return self._snapshot.get_fair_value_gaps(criteria)

    def get_equal_highs_lows(self, criteria: Optional[EqualLevelFilter] = None) -> Tuple[EqualHighLow, ...]:
        return self._snapshot.get_equal_highs_lows(criteria)

    def get_strong_weak_levels(self, criteria: Optional[LevelFilter] = None) -> Tuple[StrongWeakLevel, ...]:
        return self._snapshot.get_strong_weak_levels(criteria)

    def get_premium_discount_zone(self) -> Optional[PremiumDiscountZone]:
        return self._snapshot.premium_discount_zone

    def get_trend(self, timescale: Timescale = 'swing') -> Direction:
        return self._snapshot.get_trend(timescale)

    def get_summary(self) -> Dict[str, Any]:
        """Analysis summary"""
        return self._snapshot.summary


# ============================================================================
# Convenience functions
# ============================================================================

def calculate_smc(
    data: Union[pd.DataFrame, Iterable[CandleInput]],
    config: Optional[Union[SMCConfig, Dict[str, Any]]] = None,
) -> SMCSnapshot:
    """
    Quick batch analysis

    Args:
        data: OHLC DataFrame or candles
        config: Optional config

    Returns:
        SMCSnapshot
    """
    return SMCEngine(config).calculate(data)
