"""
Validation utilities for field names and functions.

- validate_field_name(name): ensures name is one of the bar fields O/H/L/C/V
- validate_function(name, argc): ensures the function exists and arity matches
"""
from __future__ import annotations

from typing import Dict

from .errors import ArgumentCountError, UnknownFunctionError, UnknownIdentifierError

# Formula identifiers mapped onto Series frame columns
ALLOWED_FIELDS: Dict[str, str] = {
    "O": "open",
    "H": "high",
    "L": "low",
    "C": "close",
    "V": "volume",
}

# Function arities. Every supported function takes exactly two arguments:
# a series and a window/lag, or two series for CROSS.
ALLOWED_FUNCTIONS: Dict[str, int] = {
    "MA": 2,
    "EMA": 2,
    "REF": 2,
    "HHV": 2,
    "LLV": 2,
    "CROSS": 2,
}


def validate_field_name(name: str, position: int | None = None) -> str:
    """
    Validate a field identifier and return the frame column it refers to.

    Raises UnknownIdentifierError if the name is not in ALLOWED_FIELDS.
    """
    column = ALLOWED_FIELDS.get(name.upper())
    if column is None:
        raise UnknownIdentifierError(name, position=position)
    return column


def validate_function(name: str, argc: int, position: int | None = None) -> None:
    """
    Validate a function name and argument count.

    Raises UnknownFunctionError or ArgumentCountError.
    """
    expected = ALLOWED_FUNCTIONS.get(name.upper())
    if expected is None:
        raise UnknownFunctionError(name, position=position)
    if argc != expected:
        raise ArgumentCountError(name, expected=expected, received=argc, position=position)
