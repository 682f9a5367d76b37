import math

import pandas as pd
import pytest

from tdx_alert.src.errors import (
    ArgumentCountError,
    ArgumentTypeError,
    UnknownFunctionError,
    UnknownIdentifierError,
)
from tdx_alert.src.evaluator import eval_ast
from tdx_alert.src.formula_parser import parse_formula
from tdx_alert.src.values import BooleanVector, NumericVector, Scalar


def _build_small_df() -> pd.DataFrame:
    data = [
        (100, 105, 99, 103, 900000),
        (103, 108, 101, 107, 1200000),
        (107, 110, 106, 109, 1300000),
        (109, 112, 108, 111, 900000),
        (111, 115, 110, 114, 1500000),
    ]
    return pd.DataFrame(data, columns=["open", "high", "low", "close", "volume"], dtype="float64")


def _eval(text, df=None):
    return eval_ast(parse_formula(text), _build_small_df() if df is None else df)


def test_series_refs():
    df = _build_small_df()
    for name, column in [("O", "open"), ("H", "high"), ("L", "low"), ("C", "close"), ("V", "volume")]:
        value = _eval(name, df)
        assert isinstance(value, NumericVector)
        assert value.data.tolist() == df[column].tolist()


def test_literal_is_scalar():
    assert _eval("42") == Scalar(42.0)


def test_scalar_arithmetic_stays_scalar():
    assert _eval("1 + 2 * 3") == Scalar(7.0)
    assert _eval("-(2 - 5)") == Scalar(3.0)


def test_scalar_broadcast_against_vector():
    value = _eval("C - 100")
    assert isinstance(value, NumericVector)
    assert value.data.tolist() == [3.0, 7.0, 9.0, 11.0, 14.0]


def test_division_by_zero_is_nan():
    df = _build_small_df()
    df["open"] = [1.0, 0.0, 2.0, 0.0, -1.0]
    value = _eval("C / O", df)
    out = value.data.tolist()
    assert out[0] == 103.0
    assert math.isnan(out[1]) and math.isnan(out[3])
    assert out[4] == -114.0

    scalar = _eval("1 / 0")
    assert isinstance(scalar, Scalar) and math.isnan(scalar.value)
    assert math.isnan(_eval("0 / 0").value)


def test_division_by_zero_scalar_divisor_vector():
    value = _eval("C / 0")
    assert value.data.isna().all()


def test_comparison_yields_boolean_vector():
    value = _eval("C > 108")
    assert isinstance(value, BooleanVector)
    assert value.data.dtype == bool
    assert value.data.tolist() == [False, False, True, True, True]


def test_scalar_comparison_yields_boolean_scalar():
    assert _eval("1 > 0") == Scalar(True)
    assert _eval("1 < 0") == Scalar(False)


@pytest.mark.parametrize("op", [">", ">=", "<", "<=", "==", "!="])
def test_nan_comparisons_are_false(op):
    value = _eval(f"MA(C, 3) {op} 105")
    assert value.data.tolist()[:2] == [False, False]
    assert _eval(f"0 / 0 {op} 1") == Scalar(False)


def test_logical_operators_coerce_numbers():
    # V - 900000 is zero on bars 0 and 3
    value = _eval("(V - 900000) AND C > 0")
    assert value.data.tolist() == [False, True, True, False, True]

    value = _eval("NOT (V - 900000)")
    assert value.data.tolist() == [True, False, False, True, False]


def test_logical_nan_coerces_to_false():
    assert _eval("REF(C, 1) OR 0").data.tolist() == [False, True, True, True, True]
    assert _eval("NOT REF(C, 1)").data.tolist() == [True, False, False, False, False]


def test_logical_scalars():
    assert _eval("1 AND 0") == Scalar(False)
    assert _eval("1 OR 0") == Scalar(True)
    assert _eval("NOT 0") == Scalar(True)
    assert _eval("NOT (0 / 0)") == Scalar(True)


def test_boolean_vector_in_arithmetic_counts_as_one_or_zero():
    value = _eval("(C > 108) + (C > 110)")
    assert value.data.tolist() == [0.0, 0.0, 1.0, 2.0, 2.0]


def test_functions_accept_expressions_and_booleans():
    value = _eval("MA((H + L) / 2, 2)")
    assert value.data.tolist()[1:] == pytest.approx([103.25, 106.25, 109.0, 111.25])

    # count of up-closes in the last 2 bars
    value = _eval("MA(C > O, 2) * 2")
    assert value.data.tolist()[1:] == [2.0, 2.0, 2.0, 2.0]


def test_scalar_series_argument_is_broadcast():
    value = _eval("HHV(5, 3)")
    assert value.data.tolist() == [5.0] * 5


def test_cross_with_scalar():
    value = _eval("CROSS(C, 108)")
    assert value.data.tolist() == [False, False, True, False, False]


def test_unknown_function():
    with pytest.raises(UnknownFunctionError) as ei:
        _eval("FOO(C, 5)")
    assert ei.value.name == "FOO"
    assert ei.value.position == 0


def test_unknown_identifier():
    with pytest.raises(UnknownIdentifierError) as ei:
        _eval("C > PRICE")
    assert ei.value.name == "PRICE"
    assert ei.value.position == 4


def test_argument_count():
    with pytest.raises(ArgumentCountError) as ei:
        _eval("MA(C)")
    assert ei.value.expected == 2 and ei.value.received == 1
    with pytest.raises(ArgumentCountError):
        _eval("CROSS(C, O, H)")


@pytest.mark.parametrize(
    "text",
    ["MA(C, C)", "REF(C, 0)", "EMA(C, -3)", "HHV(C, 2.5)", "LLV(C, 1 > 0)", "MA(C, 1 / 0)"],
)
def test_window_argument_type(text):
    with pytest.raises(ArgumentTypeError):
        _eval(text)


def test_empty_frame():
    df = _build_small_df().iloc[0:0]
    value = _eval("CROSS(MA(C, 2), EMA(C, 3)) AND V > 0", df)
    assert isinstance(value, BooleanVector)
    assert len(value.data) == 0
