"""
Daily OHLCV bars and the immutable Series a formula is evaluated over.

Helpers build a Series from upstream market-data records or from a pandas
DataFrame (e.g. a CSV export). Bars are always sorted ascending by date;
OHLC ordering within a bar is not checked.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Mapping, Tuple

import pandas as pd

FRAME_COLUMNS = ["open", "high", "low", "close", "volume"]

# Accepted record keys per bar field: long names, short kline keys and the
# column names used by the upstream A-share history endpoint.
RECORD_KEYS = {
    "date": ("date", "t", "日期"),
    "open": ("open", "o", "开盘"),
    "high": ("high", "h", "最高"),
    "low": ("low", "l", "最低"),
    "close": ("close", "c", "收盘"),
    "volume": ("volume", "v", "成交量"),
}


@dataclass(frozen=True)
class Bar:
    date: str
    open: float
    high: float
    low: float
    close: float
    volume: float


@dataclass(frozen=True)
class Series:
    """
    Time-ascending sequence of bars for one security.

    Dates are assumed unique and strictly ascending; the helpers below sort
    their input but do not de-duplicate.
    """
    bars: Tuple[Bar, ...] = ()

    def __len__(self) -> int:
        return len(self.bars)

    def __iter__(self) -> Iterator[Bar]:
        return iter(self.bars)

    def __getitem__(self, idx: int) -> Bar:
        return self.bars[idx]

    @property
    def dates(self) -> list[str]:
        return [b.date for b in self.bars]

    def tail(self, count: int) -> "Series":
        """Keep only the most recent `count` bars."""
        if count <= 0:
            return Series(())
        return Series(self.bars[-count:])

    def to_frame(self) -> pd.DataFrame:
        """
        Column view of the bars used by the evaluator.

        Returns
        -------
        pd.DataFrame
            RangeIndex of length N, float64 columns open/high/low/close/volume.
        """
        data = {col: [float(getattr(b, col)) for b in self.bars] for col in FRAME_COLUMNS}
        return pd.DataFrame(data, columns=FRAME_COLUMNS, dtype="float64")


def _normalize_date(value: Any) -> str:
    return pd.Timestamp(value).strftime("%Y-%m-%d")


def _pick(record: Mapping[str, Any], field: str) -> Any:
    for key in RECORD_KEYS[field]:
        if key in record:
            return record[key]
    raise KeyError(f"record is missing '{field}' (accepted keys: {', '.join(RECORD_KEYS[field])})")


def bars_from_records(records: Iterable[Mapping[str, Any]]) -> Series:
    """
    Build a Series from dict-like records and sort it ascending by date.

    Numbers may be given as strings; they are parsed with float().
    """
    bars = []
    for rec in records:
        bars.append(
            Bar(
                date=_normalize_date(_pick(rec, "date")),
                open=float(_pick(rec, "open")),
                high=float(_pick(rec, "high")),
                low=float(_pick(rec, "low")),
                close=float(_pick(rec, "close")),
                volume=float(_pick(rec, "volume")),
            )
        )
    bars.sort(key=lambda b: b.date)
    return Series(tuple(bars))


def series_from_frame(df: pd.DataFrame) -> Series:
    """
    Build a Series from an OHLCV DataFrame.

    Column names are matched case-insensitively. The date is taken from a
    'date' column when present, otherwise from the index.
    """
    frame = df.rename(columns={c: str(c).lower() for c in df.columns})
    if "date" not in frame.columns:
        frame = frame.reset_index().rename(columns={frame.index.name or "index": "date"})
    missing = [c for c in FRAME_COLUMNS if c not in frame.columns]
    if missing:
        raise KeyError(f"frame is missing required columns: {missing}")
    return bars_from_records(frame[["date"] + FRAME_COLUMNS].to_dict("records"))
