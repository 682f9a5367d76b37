"""
Trigger resolution: formula + Series -> did the rule fire on the last bar?

Main entry points:
- evaluate(series, formula) -> TriggerResult
- signal_series(series, formula) -> per-day boolean pd.Series
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict

import pandas as pd

from .ast_nodes import ASTNode
from .evaluator import eval_ast
from .formula_parser import parse_formula
from .series import Series
from .values import Value, bool_at, to_boolean_series

logger = logging.getLogger(__name__)

NO_DATA = "no data"
NOT_TRIGGERED = "not triggered"


@dataclass(frozen=True)
class TriggerResult:
    triggered: bool
    index: int
    date: str
    explain: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def no_data_result() -> TriggerResult:
    return TriggerResult(triggered=False, index=-1, date="", explain=NO_DATA)


def resolve_trigger(value: Value, series: Series) -> TriggerResult:
    """
    Coerce the final value at the last bar into a TriggerResult.

    Numeric values trigger when non-zero, NaN never triggers and a Scalar
    counts as the same value on every bar.
    """
    n = len(series)
    if n == 0:
        return no_data_result()
    last = n - 1
    triggered = bool_at(value, last)
    date = series[last].date
    explain = f"triggered at {date}" if triggered else NOT_TRIGGERED
    return TriggerResult(triggered=triggered, index=last, date=date, explain=explain)


def evaluate_ast(series: Series, node: ASTNode) -> TriggerResult:
    """Evaluate an already parsed formula against `series`."""
    if len(series) == 0:
        return no_data_result()
    value = eval_ast(node, series.to_frame())
    return resolve_trigger(value, series)


def evaluate(series: Series, formula: str) -> TriggerResult:
    """
    Parse `formula` and evaluate it against `series`.

    An empty series short-circuits to the "no data" result without parsing.
    Formula errors (EngineError subclasses) propagate to the caller.
    """
    if len(series) == 0:
        logger.debug("empty series; skipping formula %r", formula)
        return no_data_result()
    node = parse_formula(formula)
    result = evaluate_ast(series, node)
    logger.debug("formula %r on %d bars -> %s", formula, len(series), result.explain)
    return result


def signal_series(series: Series, formula: str) -> pd.Series:
    """
    Per-day triggered signal for `formula`, indexed by bar date.

    Each day is coerced with the same rule as the last-bar decision.
    """
    dates = pd.Index(series.dates, name="date")
    if len(series) == 0:
        return pd.Series([], index=dates, dtype=bool, name="signal")
    frame = series.to_frame()
    value = eval_ast(parse_formula(formula), frame)
    signal = to_boolean_series(value, frame.index)
    return pd.Series(signal.to_numpy(dtype=bool), index=dates, name="signal")
