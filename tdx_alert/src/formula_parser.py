"""
Lexer and recursive descent parser for the TDX formula language.

The formula text is turned into an AST and nothing else; vocabulary
(field and function names) is checked later by the evaluator.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from .ast_nodes import ASTNode, BinaryOp, FuncCall, Literal, SeriesRef, UnaryOp
from .errors import FormulaSyntaxError

logger = logging.getLogger(__name__)


# ==============
# Tokenizer
# ==============

TOKEN_SPEC = [
    ("NUMBER", r"\d+(?:\.\d*)?|\.\d+"),
    ("IDENT", r"[A-Za-z_][A-Za-z0-9_]*"),
    ("ANDAND", r"&&"),
    ("OROR", r"\|\|"),
    ("GE", r">="),
    ("LE", r"<="),
    ("EQ", r"=="),
    ("NE", r"!="),
    ("BANG", r"!"),
    ("GT", r">"),
    ("LT", r"<"),
    ("LPAREN", r"\("),
    ("RPAREN", r"\)"),
    ("COMMA", r","),
    ("PLUS", r"\+"),
    ("MINUS", r"-"),
    ("TIMES", r"\*"),
    ("DIV", r"/"),
    ("SKIP", r"\s+"),
    ("MISMATCH", r"."),
]

TOK_REGEX = re.compile("|".join("(?P<%s>%s)" % pair for pair in TOKEN_SPEC))

KEYWORDS = {"AND", "OR", "NOT"}

# symbolic aliases normalised onto the keyword token types
ALIASES = {"ANDAND": "AND", "OROR": "OR", "BANG": "NOT"}

COMPARISON_OPS = {
    "GT": ">",
    "GE": ">=",
    "LT": "<",
    "LE": "<=",
    "EQ": "==",
    "NE": "!=",
}

# Bounds that keep parsing and evaluation well inside the interpreter's
# recursion limit. MAX_NESTING counts parentheses, calls and prefix
# operators; MAX_TREE_DEPTH also covers long operator chains like C+C+...+C.
MAX_NESTING = 64
MAX_TREE_DEPTH = 200


@dataclass(frozen=True)
class Token:
    type: str
    value: str
    position: int


def tokenize(text: str) -> list[Token]:
    """Convert formula text into tokens; identifiers and keywords are upper-cased."""
    tokens: list[Token] = []
    for mo in TOK_REGEX.finditer(text):
        kind = mo.lastgroup
        value = mo.group()
        start = mo.start()
        if kind == "SKIP":
            continue
        if kind == "MISMATCH":
            raise FormulaSyntaxError(f"Unexpected character {value!r}", token=value, position=start)
        if kind == "IDENT":
            upper = value.upper()
            if upper in KEYWORDS:
                tokens.append(Token(upper, upper, start))
            else:
                tokens.append(Token("IDENT", upper, start))
        elif kind in ALIASES:
            tokens.append(Token(ALIASES[kind], value, start))
        else:
            tokens.append(Token(kind, value, start))
    return tokens


# ==============
# Parser
# ==============

class Parser:
    """Recursive descent parser.

    Grammar, lowest precedence first::

        or_expr     := and_expr (OR and_expr)*
        and_expr    := not_expr (AND not_expr)*
        not_expr    := NOT not_expr | comparison
        comparison  := additive [CMP additive]
        additive    := term ((+|-) term)*
        term        := unary ((*|/) unary)*
        unary       := - unary | primary
        primary     := NUMBER | IDENT | IDENT '(' [or_expr (',' or_expr)*] ')' | '(' or_expr ')'
    """

    def __init__(self, tokens: list[Token], source_text: str = ""):
        self.tokens = tokens
        self.pos = 0
        self.source_text = source_text
        self.depth = 0

    def peek(self) -> Token | None:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def advance(self) -> Token:
        tok = self.peek()
        if tok is None:
            raise self._end_of_input("Unexpected end of formula")
        self.pos += 1
        return tok

    def expect(self, type_: str, description: str) -> Token:
        tok = self.peek()
        if tok is None:
            raise self._end_of_input(f"Expected {description} but reached end of formula")
        if tok.type != type_:
            raise FormulaSyntaxError(
                f"Expected {description} but got {tok.value!r}",
                token=tok.value,
                position=tok.position,
            )
        self.pos += 1
        return tok

    def _end_of_input(self, message: str) -> FormulaSyntaxError:
        return FormulaSyntaxError(message, token="", position=len(self.source_text))

    def _enter(self, tok: Token) -> None:
        """Track one level of parentheses, call or prefix operator nesting."""
        self.depth += 1
        if self.depth > MAX_NESTING:
            raise FormulaSyntaxError("Formula nested too deeply", token=tok.value, position=tok.position)

    def _leave(self) -> None:
        self.depth -= 1

    # --- entry point ---

    def parse(self) -> ASTNode:
        if not self.tokens:
            raise FormulaSyntaxError("Empty formula", token="", position=0)
        node = self.parse_or_expr()
        tok = self.peek()
        if tok is not None:
            if tok.type == "RPAREN":
                raise FormulaSyntaxError("Unbalanced ')'", token=tok.value, position=tok.position)
            raise FormulaSyntaxError(
                f"Unexpected token {tok.value!r} after end of expression",
                token=tok.value,
                position=tok.position,
            )
        return node

    # --- boolean expressions ---

    def parse_or_expr(self) -> ASTNode:
        node = self.parse_and_expr()
        while True:
            tok = self.peek()
            if tok and tok.type == "OR":
                self.advance()
                right = self.parse_and_expr()
                node = BinaryOp(left=node, op="OR", right=right, position=tok.position)
            else:
                break
        return node

    def parse_and_expr(self) -> ASTNode:
        node = self.parse_not_expr()
        while True:
            tok = self.peek()
            if tok and tok.type == "AND":
                self.advance()
                right = self.parse_not_expr()
                node = BinaryOp(left=node, op="AND", right=right, position=tok.position)
            else:
                break
        return node

    def parse_not_expr(self) -> ASTNode:
        tok = self.peek()
        if tok and tok.type == "NOT":
            self.advance()
            self._enter(tok)
            operand = self.parse_not_expr()
            self._leave()
            return UnaryOp(op="NOT", operand=operand, position=tok.position)
        return self.parse_comparison()

    # --- comparisons & arithmetic ---

    def parse_comparison(self) -> ASTNode:
        left = self.parse_additive()
        tok = self.peek()
        if tok is None or tok.type not in COMPARISON_OPS:
            return left

        self.advance()
        right = self.parse_additive()
        node = BinaryOp(left=left, op=COMPARISON_OPS[tok.type], right=right, position=tok.position)

        nxt = self.peek()
        if nxt is not None and nxt.type in COMPARISON_OPS:
            raise FormulaSyntaxError(
                f"Comparison operators cannot be chained: unexpected {nxt.value!r}",
                token=nxt.value,
                position=nxt.position,
            )
        return node

    def parse_additive(self) -> ASTNode:
        node = self.parse_term()
        while True:
            tok = self.peek()
            if tok and tok.type in ("PLUS", "MINUS"):
                self.advance()
                right = self.parse_term()
                node = BinaryOp(left=node, op=tok.value, right=right, position=tok.position)
            else:
                break
        return node

    def parse_term(self) -> ASTNode:
        node = self.parse_unary()
        while True:
            tok = self.peek()
            if tok and tok.type in ("TIMES", "DIV"):
                self.advance()
                right = self.parse_unary()
                node = BinaryOp(left=node, op=tok.value, right=right, position=tok.position)
            else:
                break
        return node

    def parse_unary(self) -> ASTNode:
        tok = self.peek()
        if tok and tok.type == "MINUS":
            self.advance()
            self._enter(tok)
            operand = self.parse_unary()
            self._leave()
            return UnaryOp(op="NEG", operand=operand, position=tok.position)
        return self.parse_primary()

    def parse_primary(self) -> ASTNode:
        tok = self.peek()
        if tok is None:
            if self.pos > 0:
                prev = self.tokens[self.pos - 1]
                raise self._end_of_input(f"Missing operand after {prev.value!r}")
            raise self._end_of_input("Missing operand")

        if tok.type == "NUMBER":
            self.advance()
            return Literal(value=float(tok.value), position=tok.position)

        if tok.type == "IDENT":
            self.advance()
            next_tok = self.peek()

            # function call IDENT(...)
            if next_tok and next_tok.type == "LPAREN":
                self.advance()
                self._enter(tok)
                args: list[ASTNode] = []
                if self.peek() is not None and self.peek().type != "RPAREN":
                    args.append(self.parse_or_expr())
                    while self.peek() is not None and self.peek().type == "COMMA":
                        self.advance()
                        args.append(self.parse_or_expr())
                self.expect("RPAREN", f"')' to close {tok.value}(")
                self._leave()
                return FuncCall(name=tok.value, args=args, position=tok.position)

            return SeriesRef(name=tok.value, position=tok.position)

        if tok.type == "LPAREN":
            self.advance()
            self._enter(tok)
            node = self.parse_or_expr()
            self.expect("RPAREN", "')'")
            self._leave()
            return node

        raise FormulaSyntaxError(
            f"Unexpected token {tok.value!r}, expected an operand",
            token=tok.value,
            position=tok.position,
        )


# ==============
# Public API
# ==============

def _node_token(node: ASTNode) -> str:
    if isinstance(node, (BinaryOp, UnaryOp)):
        return node.op
    if isinstance(node, (FuncCall, SeriesRef)):
        return node.name
    return str(getattr(node, "value", ""))


def check_tree_depth(node: ASTNode, limit: int = MAX_TREE_DEPTH) -> None:
    """Reject trees deeper than `limit`; walks iteratively so deep input cannot overflow here."""
    stack = [(node, 1)]
    while stack:
        current, depth = stack.pop()
        if depth > limit:
            raise FormulaSyntaxError(
                "Formula nested too deeply",
                token=_node_token(current),
                position=current.position,
            )
        if isinstance(current, BinaryOp):
            stack.append((current.left, depth + 1))
            stack.append((current.right, depth + 1))
        elif isinstance(current, UnaryOp):
            stack.append((current.operand, depth + 1))
        elif isinstance(current, FuncCall):
            stack.extend((arg, depth + 1) for arg in current.args)


def parse_formula(text: str) -> ASTNode:
    """Parse formula text into an AST."""
    if text is None:
        raise FormulaSyntaxError("Empty formula", token="", position=0)
    tokens = tokenize(text)
    node = Parser(tokens, source_text=text).parse()
    check_tree_depth(node)
    logger.debug("parsed formula %r into %s", text, type(node).__name__)
    return node
