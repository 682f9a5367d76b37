#!/usr/bin/env python3
"""
CLI runner: Load a CSV of daily OHLCV data and evaluate a TDX formula against it.

Usage:
  python scripts/run_formula.py --csv path/to/data.csv --formula "C > MA(C, 20)"

CSV requirements:
  - Must have columns: date, open, high, low, close, volume (case-insensitive)
  - Rows may be in any order; they are sorted by date

Exit status: 0 on success, 1 on bad input data, 2 on a formula error.
"""

from __future__ import annotations

import argparse
import json
import os
import sys


def _ensure_root_on_path():
    here = os.path.dirname(os.path.abspath(__file__))
    root = os.path.dirname(here)
    if root not in sys.path:
        sys.path.insert(0, root)


def main(argv=None):
    _ensure_root_on_path()
    import pandas as pd

    from tdx_alert.src.config import load_config
    from tdx_alert.src.errors import EngineError
    from tdx_alert.src.logging_config import setup_logging
    from tdx_alert.src.series import series_from_frame
    from tdx_alert.src.trigger import evaluate, signal_series

    config = load_config()

    parser = argparse.ArgumentParser(description="Evaluate a TDX formula on a CSV of daily bars")
    parser.add_argument('--csv', required=True, help='Path to CSV with columns: date, open, high, low, close, volume')
    parser.add_argument('--formula', required=True, help='Formula text, e.g. "CROSS(MA(C,5), MA(C,20))"')
    parser.add_argument('--count', type=int, default=config.test_bar_count,
                        help=f'Evaluate only the most recent COUNT bars (default: {config.test_bar_count})')
    parser.add_argument('--export-signals', help='Path to export the per-day signal CSV (optional)')
    parser.add_argument('--log-level', default=config.log_level, help='Logging level (default: %(default)s)')
    args = parser.parse_args(argv)

    setup_logging(args.log_level)

    try:
        df = pd.read_csv(args.csv)
        series = series_from_frame(df).tail(args.count)
    except (OSError, KeyError, ValueError) as e:
        print(f"ERROR: could not load bars from {args.csv}: {e}")
        return 1

    try:
        result = evaluate(series, args.formula)
        signals = signal_series(series, args.formula) if args.export_signals else None
    except EngineError as e:
        print(f"ERROR: formula error: {e}")
        return 2

    print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))

    if signals is not None:
        signals.astype(int).to_csv(args.export_signals)
        print(f"Signals exported to {args.export_signals}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
