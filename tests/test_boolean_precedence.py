from tdx_alert.src.series import bars_from_records
from tdx_alert.src.trigger import evaluate, signal_series


def build_series():
    return bars_from_records([
        {"date": "2024-01-01", "open": 10, "high": 11, "low": 9, "close": 10, "volume": 100},
        {"date": "2024-01-02", "open": 10, "high": 12, "low": 10, "close": 11, "volume": 100},
    ])


def test_boolean_precedence_basic():
    # NOT > AND > OR; parentheses override
    series = build_series()
    # NOT (0 == 1) -> TRUE; TRUE AND TRUE -> TRUE; TRUE OR FALSE -> TRUE
    assert evaluate(series, "NOT (0 == 1) AND (1 == 1) OR (0 == 1)").triggered is True
    # NOT binds looser than the comparison but tighter than AND
    assert evaluate(series, "NOT 1 == 1 AND 1 == 1").triggered is False


def test_boolean_parentheses_grouping():
    series = build_series()
    # (FALSE AND TRUE) -> FALSE; NOT FALSE -> TRUE; TRUE OR FALSE -> TRUE
    assert evaluate(series, "NOT ((0 == 1) AND (1 == 1)) OR (0 == 1)").triggered is True
    # 1 OR (0 AND 0) vs (1 OR 0) AND 0
    assert evaluate(series, "1 OR 0 AND 0").triggered is True
    assert evaluate(series, "(1 OR 0) AND 0").triggered is False


def test_vector_boolean_mix():
    series = build_series()
    signal = signal_series(series, "C > 10 OR H > 11 AND NOT L > 9")
    # bar 0: F OR (F AND F) -> F; bar 1: T
    assert signal.tolist() == [False, True]
