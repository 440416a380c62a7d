"""Formula parser producing an expression tree.

Formulas combine numbers, roll-data references (``@abilities.str.mod``), dice
terms (``2d6``, ``1d20min10``), the four arithmetic operators, parentheses and a
handful of functions::

    1d8 + @abilities.dex.mod
    floor(@level / 2) + 1
    max(@abilities.str.mod, @abilities.dex.mod)
"""

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Union


class FormulaError(Exception):
    """Raised when a formula cannot be parsed or evaluated."""

    pass


# Raised by Python itself on pathological input: deep nesting, huge literals
EVALUATION_ERRORS = (RecursionError, OverflowError, ValueError)


@dataclass(frozen=True)
class Constant:
    """Numeric literal."""

    value: float


@dataclass(frozen=True)
class Variable:
    """Dotted reference into the roll data (without the leading ``@``)."""

    path: str


@dataclass(frozen=True)
class Dice:
    """Dice term: ``number`` dice with ``faces`` sides, optionally floored."""

    number: int
    faces: int
    minimum: int | None = None


@dataclass(frozen=True)
class UnaryOp:
    """Unary sign applied to an operand."""

    op: str
    operand: "Node"


@dataclass(frozen=True)
class BinaryOp:
    """Binary arithmetic operation."""

    op: str
    left: "Node"
    right: "Node"


@dataclass(frozen=True)
class Call:
    """Function call such as ``floor(@level / 2)``."""

    name: str
    args: tuple["Node", ...]


Node = Union[Constant, Variable, Dice, UnaryOp, BinaryOp, Call]

FUNCTIONS = frozenset({"floor", "ceil", "round", "abs", "min", "max"})

_TOKEN_PATTERN = re.compile(
    r"""
    (?P<ws>\s+)
    |(?P<dice>(?P<dice_number>\d*)d(?P<dice_faces>\d+)(?:min(?P<dice_min>\d+))?)
    |(?P<number>\d+(?:\.\d+)?|\.\d+)
    |(?P<variable>@[A-Za-z_]\w*(?:\.\w+)*)
    |(?P<name>[A-Za-z_]\w*)
    |(?P<op>[-+*/(),])
    """,
    re.VERBOSE,
)


@dataclass(frozen=True)
class Token:
    """Lexical token."""

    kind: str
    text: str
    position: int


def tokenize(formula: str) -> list[Token]:
    """
    Split a formula into tokens.

    Args:
        formula: Formula text

    Returns:
        List of tokens (whitespace dropped)

    Raises:
        FormulaError: If the formula contains an unexpected character
    """
    tokens: list[Token] = []
    position = 0
    while position < len(formula):
        match = _TOKEN_PATTERN.match(formula, position)
        if not match:
            raise FormulaError(
                f"Unexpected character {formula[position]!r} at {position} in {formula!r}"
            )
        kind = match.lastgroup
        if kind in ("dice_number", "dice_faces", "dice_min"):
            kind = "dice"
        if kind != "ws":
            tokens.append(Token(kind=kind or "", text=match.group(0), position=position))
        position = match.end()
    return tokens


class FormulaParser:
    """
    Recursive-descent parser for formulas.

    Grammar::

        expression := term (("+" | "-") term)*
        term       := unary (("*" | "/") unary)*
        unary      := ("+" | "-") unary | primary
        primary    := NUMBER | DICE | VARIABLE | NAME "(" args ")" | "(" expression ")"
    """

    def __init__(self, formula: str) -> None:
        self.formula = formula
        self.tokens = tokenize(formula)
        self.index = 0

    def parse(self) -> Node:
        """Parse the whole formula into an expression tree."""
        if not self.tokens:
            raise FormulaError("Empty formula")
        node = self._expression()
        if self.index < len(self.tokens):
            token = self.tokens[self.index]
            raise FormulaError(
                f"Unexpected {token.text!r} at {token.position} in {self.formula!r}"
            )
        return node

    def _peek(self) -> Token | None:
        return self.tokens[self.index] if self.index < len(self.tokens) else None

    def _next(self) -> Token:
        token = self._peek()
        if token is None:
            raise FormulaError(f"Unexpected end of formula {self.formula!r}")
        self.index += 1
        return token

    def _accept(self, *texts: str) -> Token | None:
        token = self._peek()
        if token is not None and token.kind == "op" and token.text in texts:
            self.index += 1
            return token
        return None

    def _expect(self, text: str) -> None:
        if not self._accept(text):
            token = self._peek()
            found = repr(token.text) if token else "end of formula"
            raise FormulaError(f"Expected {text!r} but found {found} in {self.formula!r}")

    def _expression(self) -> Node:
        node = self._term()
        while token := self._accept("+", "-"):
            node = BinaryOp(token.text, node, self._term())
        return node

    def _term(self) -> Node:
        node = self._unary()
        while token := self._accept("*", "/"):
            node = BinaryOp(token.text, node, self._unary())
        return node

    def _unary(self) -> Node:
        if token := self._accept("+", "-"):
            return UnaryOp(token.text, self._unary())
        return self._primary()

    def _primary(self) -> Node:
        token = self._next()

        if token.kind == "number":
            return Constant(float(token.text))

        if token.kind == "dice":
            return _dice_from_text(token.text)

        if token.kind == "variable":
            return Variable(token.text[1:])

        if token.kind == "name":
            name = token.text.lower()
            if name not in FUNCTIONS:
                raise FormulaError(f"Unknown function {token.text!r} in {self.formula!r}")
            self._expect("(")
            args = [self._expression()]
            while self._accept(","):
                args.append(self._expression())
            self._expect(")")
            return Call(name, tuple(args))

        if token.kind == "op" and token.text == "(":
            node = self._expression()
            self._expect(")")
            return node

        raise FormulaError(f"Unexpected {token.text!r} at {token.position} in {self.formula!r}")


_DICE_TEXT = re.compile(r"^(\d*)d(\d+)(?:min(\d+))?$")


def _dice_from_text(text: str) -> Dice:
    match = _DICE_TEXT.match(text)
    if not match:
        raise FormulaError(f"Invalid dice term {text!r}")
    number_text, faces_text, minimum_text = match.groups()
    faces = int(faces_text)
    if faces <= 0:
        raise FormulaError(f"Dice must have at least one face: {text!r}")
    return Dice(
        number=int(number_text) if number_text else 1,
        faces=faces,
        minimum=int(minimum_text) if minimum_text else None,
    )


@lru_cache(maxsize=512)
def parse_formula(formula: str) -> Node:
    """
    Parse a formula into an expression tree.

    Args:
        formula: Formula text

    Returns:
        Root node of the expression tree

    Raises:
        FormulaError: If the formula is malformed or nests too deeply
    """
    try:
        return FormulaParser(formula).parse()
    except EVALUATION_ERRORS as e:
        raise FormulaError(f"Cannot parse formula of length {len(formula)}: {e}") from e
