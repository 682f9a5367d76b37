import numpy as np
import pandas as pd
import pytest

from tdx_alert.src.series import series_from_frame
from tdx_alert.src.trigger import evaluate, signal_series


def build_series(n=10):
    dates = pd.date_range("2020-01-01", periods=n, freq="D")
    close = np.linspace(100, 110, n)
    df = pd.DataFrame({
        "date": dates,
        "open": close,
        "high": close + 1,
        "low": close - 1,
        "close": close,
        "volume": np.ones(n) * 1_000,
    })
    return series_from_frame(df)


def test_windows_longer_than_series():
    series = build_series(5)
    # MA never leaves warm-up, comparisons against NaN are False
    assert signal_series(series, "C > MA(C, 20)").tolist() == [False] * 5
    assert signal_series(series, "C <= MA(C, 20)").tolist() == [False] * 5
    # HHV/LLV clip the window instead
    assert evaluate(series, "HHV(H, 20) == H").triggered is True
    assert evaluate(series, "LLV(L, 20) == 99").triggered is True


def test_ema_has_no_warmup():
    series = build_series(5)
    assert signal_series(series, "EMA(C, 50) > 0").tolist() == [True] * 5


def test_ref_beyond_history_is_false():
    series = build_series(3)
    assert evaluate(series, "REF(C, 3) < C").triggered is False
    assert evaluate(series, "REF(C, 2) < C").triggered is True


def test_single_bar_series():
    series = build_series(1)
    assert evaluate(series, "CROSS(C, 0)").triggered is False
    assert evaluate(series, "MA(C, 1) == C").triggered is True
    assert evaluate(series, "C > REF(C, 1)").triggered is False


def test_division_by_zero_never_raises():
    series = build_series(4)
    assert evaluate(series, "C / (V - V) > 0").triggered is False


@pytest.mark.parametrize(
    "formula, triggered",
    [
        ("REF(C, 100000000000000000000) < C", False),
        ("MA(C, 100000000000000000000) < C", False),
        ("MA(C, 10000000000) < C", False),
        ("HHV(H, 100000000000000000000) == H", True),
        ("LLV(L, 100000000000000000000) == 99", True),
        ("EMA(C, 100000000000000000000) > 0", True),
    ],
)
def test_huge_windows_evaluate_like_long_windows(formula, triggered):
    series = build_series(5)
    assert evaluate(series, formula).triggered is triggered
