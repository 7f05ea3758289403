#!/usr/bin/env python3
"""
Technical analysis and forecast for one metal.

Reads the stored price history (no feed requests) and prints the latest
indicators, per-window history, the rule-based assessment, the linear-trend
forecast and the gold/silver market overview.

Usage:
    python -m cli.analyze XAU [--window 7D] [--horizon 7]
"""
import argparse
import sys
from dataclasses import replace
from typing import List, Optional

from metalwatch.automation.tracker import RECENT_POINTS, AnalysisSnapshot
from metalwatch.forecast.linear import ForecastResult
from metalwatch.history.store import TimeWindow, resolve_window
from metalwatch.indicators.summary import MarketStats
from metalwatch.shared.errors import InvalidParameter
from metalwatch.shared.types import Instrument, InsufficientData

from cli.common import build_tracker, load_config


def _fmt(value: Optional[float], digits: int = 4) -> str:
    return "-" if value is None else f"{value:.{digits}f}"


def format_snapshot(snapshot: AnalysisSnapshot) -> str:
    """Render a snapshot as plain text."""
    name = f"{snapshot.instrument.display_name} ({snapshot.instrument.value})"
    lines = ["=" * 60, f"{name} - window {snapshot.window}", "=" * 60]

    if snapshot.points == 0:
        lines.append("Collecting data... no prices stored yet.")
        return "\n".join(lines)

    near_high = " - near session high" if snapshot.near_high else ""
    lines.append(f"Latest price:  {_fmt(snapshot.latest_price)} USD/g ({snapshot.points} points){near_high}")
    if snapshot.change_pct is not None:
        lines.append(f"Recent change: {snapshot.change_pct:+.2f}% over the last {RECENT_POINTS} points")
    if not snapshot.ready:
        lines.append(f"Collecting data: {snapshot.points}/{snapshot.required_points} points for full analysis")

    if snapshot.period is not None:
        period = snapshot.period
        lines.append(
            f"Range:         {_fmt(period.low)} - {_fmt(period.high)} "
            f"({period.change_pct:+.2f}%, volatility {period.volatility_pct:.2f}%)"
        )

    lines.append(f"SMA short:     {_fmt(snapshot.sma_short_latest)}")
    lines.append(f"SMA long:      {_fmt(snapshot.sma_long_latest)}")
    if isinstance(snapshot.rsi, InsufficientData):
        lines.append(f"RSI:           - ({snapshot.rsi})")
    else:
        lines.append(f"RSI:           {_fmt(snapshot.rsi, 2)}")
    lines.append(f"Assessment:    {snapshot.assessment.describe()}")

    if snapshot.windows:
        lines.append("")
        lines.append("History:")
        for stats in snapshot.windows:
            lines.append(
                f"  {stats.label:<14} {_fmt(stats.low)} - {_fmt(stats.high)} "
                f"({stats.change_pct:+.2f}%, {stats.points} points) {stats.describe()}"
            )

    lines.append("")
    result = snapshot.forecast
    if isinstance(result, ForecastResult):
        header = "Forecast" + (" (adjusted)" if result.adjusted else "")
        lines.append(f"{header}, slope {result.slope:+.4f}/step, band +/-{result.band_multiplier} SE:")
        for step, (pred, low, high) in enumerate(
            zip(result.predictions, result.lower_band, result.upper_band), start=1
        ):
            lines.append(f"  +{step}: {pred:.4f}  [{low:.4f} .. {high:.4f}]")
    elif isinstance(result, InsufficientData):
        lines.append(f"Forecast: {result}")
    else:
        lines.append("Forecast: collecting data")
    return "\n".join(lines)


def format_market(stats: Optional[MarketStats]) -> str:
    """Render the gold/silver market overview as plain text."""
    if stats is None:
        return "Market:        waiting for both gold and silver prices"
    return f"Market:        {stats.describe()}"


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Show indicators and forecast for a metal")
    parser.add_argument(
        "symbol",
        help="Metal symbol or name (XAU, XAG, XPT, XPD, gold, silver, ...)",
    )
    parser.add_argument(
        "--window",
        type=str,
        default=TimeWindow.ALL.value,
        help=f"Lookback window: {', '.join(w.value for w in TimeWindow)} (default: ALL)",
    )
    parser.add_argument(
        "--horizon",
        type=int,
        default=None,
        help="Forecast steps (default: from config)",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to tracker config file",
    )
    parser.add_argument(
        "--simulate",
        action="store_true",
        help="Seed simulated history when none is stored",
    )
    args = parser.parse_args(argv)

    try:
        instrument = Instrument.parse(args.symbol)
        resolve_window(args.window)
        config = load_config(args.config)
        if args.horizon is not None:
            config = replace(config, forecast_horizon=args.horizon)
    except (FileNotFoundError, ValueError, InvalidParameter) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    tracker = build_tracker(config, simulate=args.simulate)
    snapshot = tracker.analyze(instrument, args.window)
    print(format_snapshot(snapshot))
    print(format_market(tracker.market_overview()))
    return 0


if __name__ == "__main__":
    sys.exit(main())
