#!/usr/bin/env python3
"""
modules/smc/cli.py

SMC Engine CLI - test and analysis tool

Usage:
    python -m modules.smc.cli --help
    python -m modules.smc.cli test --bars 500
    python -m modules.smc.cli analyze --file data/BTCUSDT_5m.parquet --limit 1000
    python -m modules.smc.cli replay --bars 300 --ticks --verify
"""

import argparse
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

import numpy as np
import pandas as pd
from pydantic import ValidationError

from core.config_engine import ConfigEngine
from core.logger_engine import get_logger_engine, set_verbose_mode
from modules.smc import SMCConfig, SMCEngine, SMCError
from modules.smc.models import (
    Candle,
    EqualHighLow,
    FairValueGap,
    OrderBlock,
    SMCSnapshot,
    StructureEvent,
    SwingPoint,
    ZoneFilter,
    records_to_dataframe,
)

BASE_DIR = Path(__file__).parent.parent.parent
DEFAULT_CONFIG = BASE_DIR / "config" / "smc.yaml"


# ============================================================================
# COLORS & FORMATTING
# ============================================================================

class Colors:
    """ANSI color codes"""
    RESET = '\033[0m'
    BOLD = '\033[1m'
    DIM = '\033[2m'

    RED = '\033[91m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    MAGENTA = '\033[95m'
    CYAN = '\033[96m'


def colored(text: str, color: str) -> str:
    """Apply color to text"""
    return f"{color}{text}{Colors.RESET}"


def print_header(title: str):
    width = 70
    print()
    print(colored("=" * width, Colors.CYAN))
    print(colored(f"  {title}", Colors.BOLD + Colors.CYAN))
    print(colored("=" * width, Colors.CYAN))


def print_subheader(title: str):
    print()
    print(colored(f"── {title} ", Colors.YELLOW) + colored("─" * max(0, 50 - len(title)), Colors.DIM))


def fmt_time(epoch: int) -> str:
    return datetime.fromtimestamp(epoch, tz=timezone.utc).strftime('%Y-%m-%d %H:%M')


def bias_color(bias: str) -> str:
    return Colors.GREEN if bias == 'bullish' else Colors.RED


def format_record(record: Any) -> str:
    """One-line description of a result record"""
    if isinstance(record, StructureEvent):
        arrow = "↑" if record.direction == 'bullish' else "↓"
        style = Colors.YELLOW + Colors.BOLD if record.type == 'CHoCH' else bias_color(record.direction)
        return (f"[{fmt_time(record.time)}] {colored(f'{arrow} {record.type}', style)} "
                f"{record.direction} ({record.timescale}) level {record.level:.4f}")

    if isinstance(record, SwingPoint):
        arrow = "▲" if record.kind == 'high' else "▼"
        return (f"[{fmt_time(record.time)}] {colored(f'{arrow} {record.label}', bias_color('bullish' if record.kind == 'high' else 'bearish'))} "
                f"{record.price:.4f} ({record.timescale})")

    if isinstance(record, OrderBlock):
        status = f"MITIGATED {fmt_time(record.mitigated_time)}" if record.mitigated else "ACTIVE"
        return (f"[{fmt_time(record.time)}] {colored(f'█ OB {record.bias.upper()}', bias_color(record.bias))} "
                f"{record.low:.4f} - {record.high:.4f} [{status}]")

    if isinstance(record, FairValueGap):
        status = f"FILLED {fmt_time(record.filled_time)}" if record.filled else "OPEN"
        return (f"[{fmt_time(record.time)}] {colored(f'□ FVG {record.bias.upper()}', bias_color(record.bias))} "
                f"{record.bottom:.4f} - {record.top:.4f} [{status}]")

    if isinstance(record, EqualHighLow):
        return (f"[{fmt_time(record.time2)}] {colored(f'◆ {record.type}', Colors.MAGENTA)} "
                f"{record.price1:.4f} / {record.price2:.4f} ({record.timescale})")

    return repr(record)


# ============================================================================
# CONFIG & DATA LOADING
# ============================================================================

def load_smc_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load config/smc.yaml (or --config) and apply its logging section.

    Returns:
        The 'smc' section (raw dict, validated later by SMCConfig)
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG
    if not path.exists():
        return {}

    config = ConfigEngine(base_path=str(path.parent))
    if not config.load(path.name):
        return {}

    logging_config = config.get('logging')
    if logging_config:
        get_logger_engine().configure(logging_config)

    try:
        return config.validate(SMCConfig, 'smc').model_dump()
    except ValidationError as e:
        print(colored(f"⚠️  Invalid config {path}: {e.error_count()} error(s), using defaults", Colors.YELLOW))
        return {}


def build_engine_config(file_config: Dict[str, Any], args: argparse.Namespace) -> SMCConfig:
    """Command-line options override the YAML config"""
    overrides = {
        'swing_length': args.swing_length,
        'internal_length': args.internal_length,
        'equal_tolerance': args.tolerance,
        'order_block_lookback': args.ob_lookback,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if args.no_ob:
        overrides['enable_order_blocks'] = False
    if args.no_fvg:
        overrides['enable_fvg'] = False
    if args.no_eqhl:
        overrides['enable_equal_hl'] = False
    return SMCConfig.create(file_config, **overrides)


def load_data_file(path: str, limit: Optional[int] = None) -> Optional[pd.DataFrame]:
    """
    Load OHLC data from CSV or parquet.

    Expected columns: time (s) or timestamp (ms) / open_time, open, high, low, close
    """
    file_path = Path(path)
    if not file_path.exists():
        print(colored(f"❌ File not found: {file_path}", Colors.RED))
        return None

    if file_path.suffix == '.parquet':
        df = pd.read_parquet(file_path)
    else:
        df = pd.read_csv(file_path)

    # Column mapping (exchange export → engine format)
    if 'open_time' in df.columns and 'time' not in df.columns and 'timestamp' not in df.columns:
        if pd.api.types.is_numeric_dtype(df['open_time']):
            df['timestamp'] = df['open_time']  # ms
        else:
            df['time'] = pd.to_datetime(df['open_time'], utc=True)
    elif 'time' in df.columns and df['time'].dtype == object:
        df['time'] = pd.to_datetime(df['time'], utc=True)

    required = ['open', 'high', 'low', 'close']
    has_time = 'time' in df.columns or 'timestamp' in df.columns
    if not has_time or not all(col in df.columns for col in required):
        print(colored(f"❌ Missing columns. Required: time|timestamp + {required}", Colors.RED))
        print(colored(f"   Available: {list(df.columns)}", Colors.DIM))
        return None

    df = df.sort_values('time' if 'time' in df.columns else 'timestamp')
    df = df.drop_duplicates(subset=['time' if 'time' in df.columns else 'timestamp'], keep='last')

    if limit and len(df) > limit:
        df = df.tail(limit)

    return df.reset_index(drop=True)


def generate_test_data(bars: int = 200, interval: int = 300) -> pd.DataFrame:
    """
    Generate synthetic trending test data

    Args:
        bars: Number of bars
        interval: Bar size in seconds

    Returns:
        DataFrame with time (s), open, high, low, close
    """
    np.random.seed(42)

    prices = [100.0]
    for i in range(bars - 1):
        if i < bars * 0.25:
            trend = 0.3 + np.random.randn() * 0.3  # Uptrend
        elif i < bars * 0.5:
            trend = -0.25 + np.random.randn() * 0.3  # Downtrend
        elif i < bars * 0.75:
            trend = 0.35 + np.random.randn() * 0.3  # Strong uptrend
        else:
            trend = -0.2 + np.random.randn() * 0.3  # Downtrend
        prices.append(prices[-1] + trend)

    closes = np.array(prices)
    opens = np.concatenate([[closes[0]], closes[:-1]]) + np.random.randn(bars) * 0.2
    highs = np.maximum(opens, closes) + np.abs(np.random.randn(bars)) * 0.5
    lows = np.minimum(opens, closes) - np.abs(np.random.randn(bars)) * 0.5

    base_time = int(datetime(2024, 1, 1, tzinfo=timezone.utc).timestamp())

    return pd.DataFrame({
        'time': [base_time + i * interval for i in range(bars)],
        'open': opens,
        'high': highs,
        'low': lows,
        'close': closes,
    })


def candle_ticks(candle: Candle) -> List[Dict[str, float]]:
    """
    Split a candle into four price ticks (open, first extreme, second
    extreme, close) inside its time bucket.
    """
    extremes = [candle.low, candle.high] if candle.is_bullish else [candle.high, candle.low]
    prices = [candle.open, *extremes, candle.close]
    return [{'epoch': candle.time + offset, 'quote': price} for offset, price in enumerate(prices)]


def event_key(event: StructureEvent) -> tuple:
    return (event.time, event.timescale, event.direction, event.pivot_time)


def unseen_events(snapshot: SMCSnapshot, printed: Set[tuple]) -> List[StructureEvent]:
    """
    Structure events of the snapshot not reported yet (marked as reported).

    A forming bar is re-derived on every tick, so its events can disappear
    and come back; identity keys keep each event reported once.
    """
    fresh = [e for e in snapshot.structures if event_key(e) not in printed]
    printed.update(event_key(e) for e in fresh)
    return fresh


# ============================================================================
# REPORTS
# ============================================================================

def print_report(snapshot: SMCSnapshot, last: int = 10):
    """Summary plus the latest records of each collection"""
    summary = snapshot.summary

    print_subheader("SUMMARY")
    print(f"  Swing Trend:    {colored(summary['swing_trend'].upper(), Colors.CYAN)}")
    print(f"  Internal Trend: {colored(summary['internal_trend'].upper(), Colors.CYAN)}")
    print(f"  Pivots:         {summary['swing_count']}")
    print(f"  BOS / CHoCH:    {summary['bos_count']} / {summary['choch_count']}")
    print(f"  Order Blocks:   {summary['ob_count']} (Active: {summary['active_ob_count']})")
    print(f"  FVGs:           {summary['fvg_count']} (Open: {summary['active_fvg_count']})")
    print(f"  EQH / EQL:      {summary['equal_hl_count']}")
    print(f"  Strong / Weak:  {summary['strong_level_count']} / {summary['weak_level_count']}")

    zone = snapshot.premium_discount_zone
    if zone:
        print_subheader("PREMIUM / DISCOUNT")
        print(f"  Premium:     {zone.premium_bottom:.4f} - {zone.premium_top:.4f}")
        print(f"  Equilibrium: {zone.equilibrium:.4f}")
        print(f"  Discount:    {zone.discount_bottom:.4f} - {zone.discount_top:.4f}")

    sections = [
        ("STRUCTURE", snapshot.structures),
        ("ACTIVE ORDER BLOCKS", snapshot.get_order_blocks(ZoneFilter(active_only=True))),
        ("OPEN FVGs", snapshot.get_fair_value_gaps(ZoneFilter(active_only=True))),
        ("EQUAL HIGHS / LOWS", snapshot.equal_highs_lows),
    ]
    for title, records in sections:
        if not records:
            continue
        print_subheader(f"{title} ({len(records)})")
        for record in records[-last:]:
            print(f"  {format_record(record)}")
    print()


def export_snapshot(snapshot: SMCSnapshot, directory: str):
    """Write one CSV per collection"""
    out = Path(directory)
    out.mkdir(parents=True, exist_ok=True)
    collections = {
        'swing_points': snapshot.swing_points,
        'structures': snapshot.structures,
        'order_blocks': snapshot.order_blocks,
        'fair_value_gaps': snapshot.fair_value_gaps,
        'equal_highs_lows': snapshot.equal_highs_lows,
        'strong_weak_levels': snapshot.strong_weak_levels,
    }
    for name, records in collections.items():
        records_to_dataframe(records).to_csv(out / f"{name}.csv", index=False)
    print(colored(f"💾 Exported to {out}", Colors.DIM))


def run_analysis(data: pd.DataFrame, config: SMCConfig, args: argparse.Namespace) -> SMCSnapshot:
    engine = SMCEngine(config)
    snapshot = engine.calculate(data)

    if args.json:
        print(json.dumps(snapshot.to_dict(), indent=2))
        return snapshot

    print_header("SMC MARKET STRUCTURE")
    candles = engine.candles
    if candles:
        print(f"\n  📊 Data:  {len(candles)} bars")
        print(f"  📅 Range: {fmt_time(candles[0].time)} → {fmt_time(candles[-1].time)}")
        print(f"  💰 Price: {candles[0].close:.4f} → {candles[-1].close:.4f}")
    print(f"  ⚙️  swing={config.swing_length} internal={config.internal_length} "
          f"tolerance={config.equal_tolerance}")

    print_report(snapshot, last=args.last)

    if args.export:
        export_snapshot(snapshot, args.export)
    return snapshot


def run_replay(data: pd.DataFrame, config: SMCConfig, args: argparse.Namespace) -> SMCSnapshot:
    """Stream bars one at a time (optionally as live ticks) and print new events"""
    engine = SMCEngine(config)
    batch_input = SMCEngine(config)
    batch_input.calculate(data)
    candles = batch_input.candles

    granularity = args.granularity
    if args.ticks and granularity is None:
        granularity = candles[1].time - candles[0].time if len(candles) > 1 else 60

    print_header("SMC REPLAY")
    print(f"  {len(candles)} bars, mode: {'ticks' if args.ticks else 'bars'}")

    printed: Set[tuple] = set()
    for candle in candles:
        if args.ticks:
            for tick in candle_ticks(candle):
                snapshot = engine.apply_tick(tick, granularity)
                for event in unseen_events(snapshot, printed):
                    print(f"  {format_record(event)}")
        else:
            snapshot = engine.append_candle(candle)
            for event in unseen_events(snapshot, printed):
                print(f"  {format_record(event)}")

    print_report(engine.snapshot, last=args.last)

    if args.verify:
        if engine.snapshot == batch_input.snapshot:
            print(colored("✅ Streaming result matches batch result", Colors.GREEN))
        else:
            print(colored("❌ Streaming result differs from batch result", Colors.RED))
            sys.exit(1)

    return engine.snapshot


# ============================================================================
# COMMANDS
# ============================================================================

def cmd_test(args):
    data = generate_test_data(args.bars)
    config = build_engine_config(load_smc_config(args.config), args)
    run_analysis(data, config, args)


def cmd_analyze(args):
    data = load_data_file(args.file, args.limit)
    if data is None:
        sys.exit(1)
    config = build_engine_config(load_smc_config(args.config), args)
    run_analysis(data, config, args)


def cmd_replay(args):
    data = load_data_file(args.file, args.limit) if args.file else generate_test_data(args.bars)
    if data is None:
        sys.exit(1)
    config = build_engine_config(load_smc_config(args.config), args)
    run_replay(data, config, args)


# ============================================================================
# MAIN
# ============================================================================

def add_engine_options(parser: argparse.ArgumentParser):
    parser.add_argument('--config', '-c', help='YAML config (default: config/smc.yaml)')
    parser.add_argument('--swing-length', type=int, help='Swing pivot width')
    parser.add_argument('--internal-length', type=int, help='Internal pivot width')
    parser.add_argument('--tolerance', type=float, help='EQH/EQL relative tolerance')
    parser.add_argument('--ob-lookback', type=int, help='Order block look-back bars')
    parser.add_argument('--no-ob', action='store_true', help='Disable order blocks')
    parser.add_argument('--no-fvg', action='store_true', help='Disable fair value gaps')
    parser.add_argument('--no-eqhl', action='store_true', help='Disable equal highs/lows')
    parser.add_argument('--last', type=int, default=10, help='Records shown per section')
    parser.add_argument('--verbose', '-v', action='store_true', help='Verbose logging')


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(
        description="SMC Market Structure CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m modules.smc.cli test
  python -m modules.smc.cli test --bars 1000 --swing-length 20 --json
  python -m modules.smc.cli analyze --file data/BTCUSDT_5m.csv --export out/
  python -m modules.smc.cli replay --bars 300 --ticks --verify
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    test_parser = subparsers.add_parser('test', help='Analyze synthetic data')
    test_parser.add_argument('--bars', '-b', type=int, default=500, help='Number of bars')
    test_parser.add_argument('--json', action='store_true', help='Print snapshot as JSON')
    test_parser.add_argument('--export', help='Export CSVs to this directory')
    add_engine_options(test_parser)

    analyze_parser = subparsers.add_parser('analyze', help='Analyze a CSV / parquet file')
    analyze_parser.add_argument('--file', '-f', required=True, help='OHLC data file')
    analyze_parser.add_argument('--limit', '-l', type=int, help='Use the last N bars')
    analyze_parser.add_argument('--json', action='store_true', help='Print snapshot as JSON')
    analyze_parser.add_argument('--export', help='Export CSVs to this directory')
    add_engine_options(analyze_parser)

    replay_parser = subparsers.add_parser('replay', help='Stream bars through the engine')
    replay_parser.add_argument('--file', '-f', help='OHLC data file (default: synthetic)')
    replay_parser.add_argument('--bars', '-b', type=int, default=300, help='Synthetic bars')
    replay_parser.add_argument('--limit', '-l', type=int, help='Use the last N bars')
    replay_parser.add_argument('--ticks', action='store_true', help='Feed each bar as live ticks')
    replay_parser.add_argument('--granularity', type=int, help='Tick bucket size in seconds')
    replay_parser.add_argument('--verify', action='store_true', help='Compare with a batch run')
    add_engine_options(replay_parser)

    args = parser.parse_args(argv)

    if getattr(args, 'verbose', False):
        set_verbose_mode(True)

    commands = {'test': cmd_test, 'analyze': cmd_analyze, 'replay': cmd_replay}
    if args.command not in commands:
        parser.print_help()
        return

    try:
        commands[args.command](args)
    except SMCError as e:
        print(colored(f"❌ {e}", Colors.RED))
        sys.exit(2)


if __name__ == "__main__":
    main()
