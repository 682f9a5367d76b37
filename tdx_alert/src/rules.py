"""
"Check all enabled rules" sweep over external collaborators.

The engine itself never fetches data or writes alerts. This module wires
it to three boundary contracts:

- SeriesProvider: code + bar count -> Series
- RuleStore:      lists rule records
- AlertSink:      receives an Alert for every rule that triggered

A formula error or a failed fetch for one rule is logged and reported on
that rule's RuleCheck; it does not stop the sweep and is never retried.
"""

from __future__ import annotations

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol

import pandas as pd

from .errors import EngineError
from .series import Series, series_from_frame
from .trigger import TriggerResult, evaluate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Rule:
    id: str
    code: str
    name: str
    exchange: str
    formula: str
    enabled: bool = True


@dataclass(frozen=True)
class Alert:
    rule_id: str
    code: str
    name: str
    exchange: str
    trigger_date: str
    message: str


class SeriesProvider(Protocol):
    def get_series(self, code: str, count: int) -> Series:
        ...


class RuleStore(Protocol):
    def list_rules(self) -> List[Rule]:
        ...


class AlertSink(Protocol):
    def add_alert(self, alert: Alert) -> None:
        ...


class InMemoryRuleStore:
    def __init__(self, rules: Iterable[Rule] = ()):
        self._rules: Dict[str, Rule] = {r.id: r for r in rules}

    @classmethod
    def from_json(cls, path: str | Path) -> "InMemoryRuleStore":
        """Load a JSON list of rule records; `enabled` may be a bool or 0/1."""
        with open(path, encoding="utf-8") as fh:
            records = json.load(fh)
        rules = [
            Rule(
                id=str(rec["id"]),
                code=str(rec["code"]),
                name=rec.get("name", ""),
                exchange=rec.get("exchange", ""),
                formula=rec["formula"],
                enabled=bool(rec.get("enabled", True)),
            )
            for rec in records
        ]
        return cls(rules)

    def add_rule(self, rule: Rule) -> None:
        self._rules[rule.id] = rule

    def list_rules(self) -> List[Rule]:
        return list(self._rules.values())


class InMemoryAlertSink:
    def __init__(self):
        self.alerts: List[Alert] = []

    def add_alert(self, alert: Alert) -> None:
        self.alerts.append(alert)


class FrameSeriesProvider:
    """Serves Series out of per-code OHLCV DataFrames (e.g. loaded from CSV)."""

    def __init__(self, frames: Dict[str, pd.DataFrame]):
        self._series = {code: series_from_frame(df) for code, df in frames.items()}

    @classmethod
    def from_csv_dir(cls, directory: str | Path) -> "FrameSeriesProvider":
        """One CSV per security, named <code>.csv."""
        frames = {p.stem: pd.read_csv(p) for p in sorted(Path(directory).glob("*.csv"))}
        return cls(frames)

    def get_series(self, code: str, count: int) -> Series:
        if code not in self._series:
            raise KeyError(f"no data for code {code!r}")
        return self._series[code].tail(count)


@dataclass
class RuleCheck:
    rule: Rule
    result: Optional[TriggerResult] = None
    error: Optional[str] = None

    @property
    def triggered(self) -> bool:
        return self.result is not None and self.result.triggered


@dataclass
class SweepReport:
    checks: List[RuleCheck] = field(default_factory=list)

    @property
    def triggered_count(self) -> int:
        return sum(1 for c in self.checks if c.triggered)

    @property
    def failed(self) -> List[RuleCheck]:
        return [c for c in self.checks if c.error is not None]


def infer_exchange(code: str) -> str:
    """Exchange from an A-share code prefix: 6 is SH, 4/8/9 is BJ, anything else SZ."""
    code = code.strip()
    if code.startswith("6"):
        return "SH"
    if code.startswith(("4", "8", "9")):
        return "BJ"
    return "SZ"


def alert_message(rule: Rule) -> str:
    return f"triggered: {rule.formula}"


def check_rule(rule: Rule, provider: SeriesProvider, count: int) -> RuleCheck:
    """Fetch bars for one rule and evaluate its formula."""
    try:
        series = provider.get_series(rule.code, count)
    except Exception as exc:
        logger.warning("rule %s (%s): series fetch failed: %s", rule.id, rule.code, exc)
        return RuleCheck(rule=rule, error=f"series fetch failed: {exc}")

    try:
        result = evaluate(series, rule.formula)
    except EngineError as exc:
        logger.warning("rule %s (%s): formula error: %s", rule.id, rule.code, exc)
        return RuleCheck(rule=rule, error=str(exc))
    return RuleCheck(rule=rule, result=result)


def check_rules(
    store: RuleStore,
    provider: SeriesProvider,
    sink: AlertSink,
    count: int = 50,
    max_workers: int = 1,
) -> SweepReport:
    """
    Evaluate every enabled rule and push an Alert for each one that triggers.

    Evaluations are independent, so with max_workers > 1 they run on a
    thread pool; alerts are still delivered in rule order.
    """
    rules = [r for r in store.list_rules() if r.enabled]
    logger.info("checking %d enabled rules (%d bars each)", len(rules), count)

    if max_workers > 1 and len(rules) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            checks = list(pool.map(lambda r: check_rule(r, provider, count), rules))
    else:
        checks = [check_rule(r, provider, count) for r in rules]

    for check in checks:
        if check.triggered:
            rule = check.rule
            sink.add_alert(
                Alert(
                    rule_id=rule.id,
                    code=rule.code,
                    name=rule.name,
                    exchange=rule.exchange or infer_exchange(rule.code),
                    trigger_date=check.result.date,
                    message=alert_message(rule),
                )
            )

    report = SweepReport(checks=checks)
    logger.info(
        "sweep finished: %d triggered, %d failed", report.triggered_count, len(report.failed)
    )
    return report
