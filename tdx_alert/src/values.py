"""
Typed values produced by the evaluator and the coercion rules between them.

Every AST node evaluates to exactly one of:

- Scalar         a single float or bool, the same at every index
- NumericVector  float64 pandas Series of length N
- BooleanVector  bool pandas Series of length N

Coercion rules:

- numeric -> boolean: value != 0, NaN is False
- boolean -> numeric: True is 1.0, False is 0.0
- Scalar -> vector: broadcast to every index
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Union

import numpy as np
import pandas as pd


@dataclass(frozen=True)
class Scalar:
    value: Union[float, bool]

    @property
    def is_bool(self) -> bool:
        return isinstance(self.value, (bool, np.bool_))


@dataclass(frozen=True)
class NumericVector:
    data: pd.Series


@dataclass(frozen=True)
class BooleanVector:
    data: pd.Series


Value = Union[Scalar, NumericVector, BooleanVector]


def is_vector(value: Value) -> bool:
    return isinstance(value, (NumericVector, BooleanVector))


def scalar_to_bool(x) -> bool:
    if isinstance(x, (bool, np.bool_)):
        return bool(x)
    x = float(x)
    if math.isnan(x):
        return False
    return x != 0


def scalar_to_float(x) -> float:
    if isinstance(x, (bool, np.bool_)):
        return 1.0 if x else 0.0
    return float(x)


def to_numeric_series(value: Value, index: pd.Index) -> pd.Series:
    """Numeric view of any value, broadcasting scalars over `index`."""
    if isinstance(value, Scalar):
        return pd.Series(scalar_to_float(value.value), index=index, dtype="float64")
    if isinstance(value, BooleanVector):
        return value.data.astype("float64")
    return value.data


def to_boolean_series(value: Value, index: pd.Index) -> pd.Series:
    """Boolean view of any value; NaN coerces to False."""
    if isinstance(value, Scalar):
        return pd.Series(scalar_to_bool(value.value), index=index, dtype=bool)
    if isinstance(value, BooleanVector):
        return value.data
    data = value.data
    return (data != 0) & data.notna()


def bool_at(value: Value, idx: int) -> bool:
    """Coerce the value at position `idx` to a Python bool."""
    if isinstance(value, Scalar):
        return scalar_to_bool(value.value)
    return scalar_to_bool(value.data.iloc[idx])
