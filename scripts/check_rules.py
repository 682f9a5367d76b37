#!/usr/bin/env python3
"""
CLI runner: check every enabled rule against local CSV data and print alerts.

Usage:
  python scripts/check_rules.py --rules rules.json --data-dir data/

rules.json is a list of {id, code, name, exchange, formula, enabled};
data/ holds one <code>.csv per security.
"""

from __future__ import annotations

import argparse
import os
import sys


def _ensure_root_on_path():
    here = os.path.dirname(os.path.abspath(__file__))
    root = os.path.dirname(here)
    if root not in sys.path:
        sys.path.insert(0, root)


def main(argv=None):
    _ensure_root_on_path()
    from tdx_alert.src.config import load_config
    from tdx_alert.src.logging_config import setup_logging
    from tdx_alert.src.rules import FrameSeriesProvider, InMemoryAlertSink, InMemoryRuleStore, check_rules

    config = load_config()

    parser = argparse.ArgumentParser(description="Check all enabled formula rules")
    parser.add_argument('--rules', required=True, help='Path to rules JSON')
    parser.add_argument('--data-dir', required=True, help='Directory of <code>.csv bar files')
    parser.add_argument('--count', type=int, default=config.sweep_bar_count,
                        help=f'Bars per rule (default: {config.sweep_bar_count})')
    parser.add_argument('--workers', type=int, default=config.sweep_max_workers,
                        help=f'Parallel evaluations (default: {config.sweep_max_workers})')
    parser.add_argument('--log-level', default=config.log_level, help='Logging level (default: %(default)s)')
    args = parser.parse_args(argv)

    setup_logging(args.log_level)

    store = InMemoryRuleStore.from_json(args.rules)
    provider = FrameSeriesProvider.from_csv_dir(args.data_dir)
    sink = InMemoryAlertSink()

    report = check_rules(store, provider, sink, count=args.count, max_workers=args.workers)

    print("=== Alerts ===")
    for alert in sink.alerts:
        print(f"{alert.trigger_date} {alert.code} {alert.name} | {alert.message}")
    if report.failed:
        print("=== Failed rules ===")
        for check in report.failed:
            print(f"{check.rule.id} {check.rule.code}: {check.error}")
    print(f"Checked {len(report.checks)} rules, triggered {report.triggered_count}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
