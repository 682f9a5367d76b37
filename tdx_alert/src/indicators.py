"""
Indicator implementations for the formula engine.

Currently supported:
- MA    (simple moving average, NaN warm-up)
- EMA   (exponential moving average seeded with the first value)
- REF   (value n bars ago)
- HHV   (highest value over a window clipped at the series start)
- LLV   (lowest value over a window clipped at the series start)
- CROSS (A crosses above B)

All functions take float pandas Series of equal length and return a Series
of the same length and index.
"""

from __future__ import annotations

import numpy as np
import pandas as pd

__all__ = [
    "ma",
    "ema",
    "ref",
    "hhv",
    "llv",
    "cross",
]


def _check_window(window: int) -> None:
    if window < 1:
        raise ValueError(f"window must be >= 1, got {window}")


def ma(series: pd.Series, window: int) -> pd.Series:
    """
    Simple Moving Average (MA).

    Parameters
    ----------
    series : pd.Series
        Input price/volume series.
    window : int
        Lookback window length.

    Returns
    -------
    pd.Series
        Rolling mean with the given window. The first (window-1) values are NaN.
    """
    _check_window(window)
    return series.rolling(window=window, min_periods=window).mean()


def ema(series: pd.Series, window: int) -> pd.Series:
    """
    Exponential Moving Average (EMA).

    Parameters
    ----------
    series : pd.Series
        Input price/volume series.
    window : int
        Smoothing span; k = 2 / (window + 1).

    Returns
    -------
    pd.Series
        EMA[0] = X[0], EMA[i] = X[i] * k + EMA[i-1] * (1 - k). There is no
        warm-up period; a NaN input propagates to every later value.
    """
    _check_window(window)
    k = 2.0 / (window + 1)
    values = series.to_numpy(dtype="float64")
    out = np.empty_like(values)
    if len(values):
        out[0] = values[0]
        for i in range(1, len(values)):
            out[i] = values[i] * k + out[i - 1] * (1.0 - k)
    return pd.Series(out, index=series.index)


def ref(series: pd.Series, lag: int) -> pd.Series:
    """Value `lag` bars ago; the first `lag` values are NaN."""
    _check_window(lag)
    return series.shift(lag)


def hhv(series: pd.Series, window: int) -> pd.Series:
    """
    Highest value over the last `window` bars.

    The window is clipped at the start of the series, so there is no
    warm-up NaN. NaN inputs inside a window are skipped.
    """
    _check_window(window)
    return series.rolling(window=window, min_periods=1).max()


def llv(series: pd.Series, window: int) -> pd.Series:
    """Lowest value over the last `window` bars, clipped like hhv."""
    _check_window(window)
    return series.rolling(window=window, min_periods=1).min()


def cross(left: pd.Series, right: pd.Series) -> pd.Series:
    """
    True where `left` crosses above `right`.

    CROSS[i] = left[i] > right[i] and left[i-1] <= right[i-1]. Index 0 is
    always False and any comparison involving NaN is False.
    """
    above = left > right
    was_below = left.shift(1) <= right.shift(1)
    return (above & was_below).astype(bool)
