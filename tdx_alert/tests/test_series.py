import pandas as pd
import pytest

from tdx_alert.src.series import Bar, Series, bars_from_records, series_from_frame


def test_bars_from_upstream_records_are_sorted():
    records = [
        {"日期": "2024-01-03", "开盘": "11", "最高": "13", "最低": "10", "收盘": "12", "成交量": "100"},
        {"日期": "2024-01-02", "开盘": "10", "最高": "12", "最低": "10", "收盘": "11", "成交量": "100"},
    ]
    series = bars_from_records(records)
    assert series.dates == ["2024-01-02", "2024-01-03"]
    assert series[1] == Bar("2024-01-03", 11.0, 13.0, 10.0, 12.0, 100.0)


def test_bars_from_short_keys():
    series = bars_from_records([{"t": "2024-01-01", "o": 1, "h": 2, "l": 0.5, "c": 1.5, "v": 10}])
    assert series[0].close == 1.5


def test_missing_field_raises():
    with pytest.raises(KeyError, match="close"):
        bars_from_records([{"date": "2024-01-01", "open": 1, "high": 1, "low": 1, "volume": 1}])


def test_series_from_frame_with_date_index():
    idx = pd.date_range("2024-01-01", periods=3, freq="D", name="Date")
    df = pd.DataFrame({
        "Open": [1, 2, 3], "High": [1, 2, 3], "Low": [1, 2, 3], "Close": [1, 2, 3], "Volume": [5, 5, 5],
    }, index=idx)
    series = series_from_frame(df)
    assert series.dates == ["2024-01-01", "2024-01-02", "2024-01-03"]
    assert [b.close for b in series] == [1.0, 2.0, 3.0]


def test_to_frame_and_tail():
    series = bars_from_records([
        {"date": f"2024-01-0{i}", "open": i, "high": i, "low": i, "close": i, "volume": i}
        for i in range(1, 6)
    ])
    frame = series.to_frame()
    assert list(frame.columns) == ["open", "high", "low", "close", "volume"]
    assert len(frame) == 5
    assert (frame.dtypes == "float64").all()

    tail = series.tail(2)
    assert tail.dates == ["2024-01-04", "2024-01-05"]
    assert len(series.tail(0)) == 0
    assert len(series.tail(50)) == 5


def test_empty_series_frame():
    frame = Series(()).to_frame()
    assert len(frame) == 0
    assert list(frame.columns) == ["open", "high", "low", "close", "volume"]
