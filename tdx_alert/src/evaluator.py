"""
AST -> typed vector evaluation.

This module walks a parsed formula AST over the column view of a Series
(a pandas DataFrame with open/high/low/close/volume columns) and assigns a
Value (Scalar, NumericVector or BooleanVector) to every node.

Main entry point:
- eval_ast(node, df) -> Value
"""

from __future__ import annotations

import math
import operator

import pandas as pd

from .ast_nodes import ASTNode, BinaryOp, FuncCall, Literal, SeriesRef, UnaryOp
from .errors import ArgumentTypeError, EngineError
from .indicators import cross, ema, hhv, llv, ma, ref
from .validator import validate_field_name, validate_function
from .values import (
    BooleanVector,
    NumericVector,
    Scalar,
    Value,
    is_vector,
    scalar_to_bool,
    scalar_to_float,
    to_boolean_series,
    to_numeric_series,
)

ARITHMETIC_OPS = {"+", "-", "*", "/"}

COMPARISON_OPS = {
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
    "==": operator.eq,
    "!=": operator.ne,
}

# Functions of the form F(series, window)
WINDOW_FUNCS = {
    "MA": ma,
    "EMA": ema,
    "REF": ref,
    "HHV": hhv,
    "LLV": llv,
}

# Functions whose window is used as a rolling length or shift; pandas needs
# these to fit in a C long.
CLIPPED_WINDOW_FUNCS = {"MA", "REF", "HHV", "LLV"}


def eval_ast(node: ASTNode, df: pd.DataFrame) -> Value:
    """
    Evaluate an AST node over the bars in `df`.

    Parameters
    ----------
    node : ASTNode
        AST node to evaluate.
    df : pd.DataFrame
        Bar columns 'open', 'high', 'low', 'close', 'volume' of length N.

    Returns
    -------
    Value
        Scalar for constant sub-expressions, otherwise a NumericVector or
        BooleanVector of length N.
    """
    # ----- Leaf nodes -----

    if isinstance(node, Literal):
        return Scalar(float(node.value))

    if isinstance(node, SeriesRef):
        column = validate_field_name(node.name, position=node.position)
        return NumericVector(df[column].astype("float64"))

    if isinstance(node, FuncCall):
        return _eval_call(node, df)

    # ----- Unary ops -----

    if isinstance(node, UnaryOp):
        operand = eval_ast(node.operand, df)

        if node.op == "NOT":
            if isinstance(operand, Scalar):
                return Scalar(not scalar_to_bool(operand.value))
            return BooleanVector(~to_boolean_series(operand, df.index))

        if node.op == "NEG":
            if isinstance(operand, Scalar):
                return Scalar(-scalar_to_float(operand.value))
            return NumericVector(-to_numeric_series(operand, df.index))

        raise EngineError(f"Unknown unary op: {node.op}", token=node.op, position=node.position)

    # ----- Binary ops -----

    if isinstance(node, BinaryOp):
        left = eval_ast(node.left, df)
        right = eval_ast(node.right, df)
        op = node.op

        if op in ("AND", "OR"):
            return _logical(left, right, op, df.index)
        if op in ARITHMETIC_OPS:
            return _arithmetic(left, right, op, df.index)
        if op in COMPARISON_OPS:
            return _compare(left, right, op, df.index)

        raise EngineError(f"Unknown binary op: {op}", token=op, position=node.position)

    raise EngineError(f"Unknown AST node type: {type(node).__name__}")


def _eval_call(node: FuncCall, df: pd.DataFrame) -> Value:
    name = node.name.upper()
    validate_function(name, len(node.args), position=node.position)
    args = [eval_ast(arg, df) for arg in node.args]

    if name in WINDOW_FUNCS:
        series = to_numeric_series(args[0], df.index)
        window = _window_arg(name, args[1], node.args[1].position)
        if name in CLIPPED_WINDOW_FUNCS:
            # any window past the series length gives the same result
            window = min(window, len(df) + 1)
        return NumericVector(WINDOW_FUNCS[name](series, window))

    if name == "CROSS":
        left = to_numeric_series(args[0], df.index)
        right = to_numeric_series(args[1], df.index)
        return BooleanVector(cross(left, right))

    # validate_function accepted a name with no implementation above
    raise EngineError(f"Function {name} is not implemented", token=name, position=node.position)


def _window_arg(func_name: str, value: Value, position: int) -> int:
    """The window/lag argument must be a constant positive integer."""
    if is_vector(value):
        raise ArgumentTypeError(
            f"{func_name} window must be a constant, not a per-bar series",
            token=func_name,
            position=position,
        )
    if value.is_bool:
        raise ArgumentTypeError(
            f"{func_name} window must be a number, not a boolean",
            token=func_name,
            position=position,
        )
    n = float(value.value)
    if math.isnan(n) or math.isinf(n) or n != int(n) or n < 1:
        raise ArgumentTypeError(
            f"{func_name} window must be a positive integer, got {value.value!r}",
            token=func_name,
            position=position,
        )
    return int(n)


def _logical(left: Value, right: Value, op: str, index: pd.Index) -> Value:
    if isinstance(left, Scalar) and isinstance(right, Scalar):
        lhs, rhs = scalar_to_bool(left.value), scalar_to_bool(right.value)
        return Scalar(lhs and rhs if op == "AND" else lhs or rhs)

    lhs = to_boolean_series(left, index)
    rhs = to_boolean_series(right, index)
    if op == "AND":
        return BooleanVector(lhs & rhs)
    return BooleanVector(lhs | rhs)


def _arithmetic(left: Value, right: Value, op: str, index: pd.Index) -> Value:
    """
    Arithmetic with scalar broadcasting. Booleans count as 1/0 and
    division by zero is NaN rather than an error or infinity.
    """
    if isinstance(left, Scalar) and isinstance(right, Scalar):
        lhs, rhs = scalar_to_float(left.value), scalar_to_float(right.value)
        if op == "+":
            return Scalar(lhs + rhs)
        if op == "-":
            return Scalar(lhs - rhs)
        if op == "*":
            return Scalar(lhs * rhs)
        if rhs == 0:
            return Scalar(math.nan)
        return Scalar(lhs / rhs)

    lhs = to_numeric_series(left, index)
    rhs = to_numeric_series(right, index)
    if op == "+":
        return NumericVector(lhs + rhs)
    if op == "-":
        return NumericVector(lhs - rhs)
    if op == "*":
        return NumericVector(lhs * rhs)
    return NumericVector((lhs / rhs).where(rhs != 0))


def _compare(left: Value, right: Value, op: str, index: pd.Index) -> Value:
    """
    Comparison with scalar broadcasting. A NaN on either side makes the
    result False at that index, for every operator including '!='.
    """
    fn = COMPARISON_OPS[op]

    if isinstance(left, Scalar) and isinstance(right, Scalar):
        lhs, rhs = scalar_to_float(left.value), scalar_to_float(right.value)
        if math.isnan(lhs) or math.isnan(rhs):
            return Scalar(False)
        return Scalar(bool(fn(lhs, rhs)))

    lhs = to_numeric_series(left, index)
    rhs = to_numeric_series(right, index)
    result = fn(lhs, rhs) & lhs.notna() & rhs.notna()
    return BooleanVector(result.astype(bool))
