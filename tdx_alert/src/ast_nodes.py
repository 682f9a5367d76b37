"""
AST node definitions for the TDX formula language.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Union


class ASTNode:
    """Base class for all AST nodes."""
    pass


@dataclass(frozen=True)
class BinaryOp(ASTNode):
    """
    Binary operation node.

    Examples:
        C + O
        C > MA(C, 20)
        C > O AND V > 1000000
    """
    left: ASTNode
    op: str
    right: ASTNode
    position: int = field(default=0, compare=False)


@dataclass(frozen=True)
class UnaryOp(ASTNode):
    """
    Unary operation node.

    op is "NOT" for logical negation and "NEG" for arithmetic minus.
    """
    op: str
    operand: ASTNode
    position: int = field(default=0, compare=False)


@dataclass(frozen=True)
class Literal(ASTNode):
    """
    Numeric literal, e.g. 20, 1.05, .5
    """
    value: float
    position: int = field(default=0, compare=False)


@dataclass(frozen=True)
class SeriesRef(ASTNode):
    """
    Reference to a bar field or any other bare identifier.

    Names are stored upper-cased: O, H, L, C, V. Unknown names are kept
    as-is and rejected when the tree is evaluated.
    """
    name: str
    position: int = field(default=0, compare=False)


@dataclass(frozen=True)
class FuncCall(ASTNode):
    """
    Function call node.

    Examples:
        MA(C, 5)
        CROSS(C, MA(C, 20))
    """
    name: str
    args: List[ASTNode]
    position: int = field(default=0, compare=False)


ASTChild = Union[BinaryOp, UnaryOp, Literal, SeriesRef, FuncCall]
