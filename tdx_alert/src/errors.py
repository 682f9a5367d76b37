"""
Error taxonomy for the formula engine.

Every error carries the offending token (or name) and, where it is known,
the 0-based character position in the formula text.
"""

from __future__ import annotations


class EngineError(Exception):
    """Base class for errors raised while parsing or evaluating a formula."""

    def __init__(self, message: str, token: str | None = None, position: int | None = None):
        self.token = token
        self.position = position
        self.detail = message
        if position is not None:
            super().__init__(f"{message} (position {position})")
        else:
            super().__init__(message)


class FormulaSyntaxError(EngineError):
    """Malformed formula text: bad characters, missing operands, unbalanced parens."""


class UnknownIdentifierError(EngineError):
    def __init__(self, name: str, position: int | None = None):
        super().__init__(f"Unknown identifier '{name}'", token=name, position=position)
        self.name = name


class UnknownFunctionError(EngineError):
    def __init__(self, name: str, position: int | None = None):
        super().__init__(f"Unknown function '{name}'", token=name, position=position)
        self.name = name


class ArgumentCountError(EngineError):
    def __init__(self, name: str, expected: int, received: int, position: int | None = None):
        super().__init__(
            f"{name} expects {expected} arguments but received {received}",
            token=name,
            position=position,
        )
        self.name = name
        self.expected = expected
        self.received = received


class ArgumentTypeError(EngineError):
    """A call argument has the wrong kind of value (e.g. a vector where a window is required)."""
