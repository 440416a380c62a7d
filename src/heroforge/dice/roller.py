"""Seedable dice roller for resolved formulas."""

import math
import random
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import structlog

from heroforge.formula import (
    EVALUATION_ERRORS,
    BinaryOp,
    Call,
    Constant,
    Dice,
    FormulaError,
    Node,
    UnaryOp,
    evaluate,
    parse_formula,
    substitute,
)

logger = structlog.get_logger(__name__)


@dataclass
class DieResult:
    """Outcome of one dice term."""

    number: int
    faces: int
    results: list[int] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(self.results)


@dataclass
class RollResult:
    """Outcome of rolling a formula."""

    formula: str
    total: int | float
    dice: list[DieResult] = field(default_factory=list)

    @property
    def natural(self) -> int | None:
        """Face rolled on the first single die, used for critical checks."""
        if self.dice and self.dice[0].number == 1 and self.dice[0].results:
            return self.dice[0].results[0]
        return None


class DiceRoller:
    """
    Rolls dice expressions with a private random source.

    Args:
        seed: Seed for reproducible rolls (None seeds from the system)
    """

    def __init__(self, seed: int | None = None) -> None:
        self._random = random.Random(seed)

    def _roll_term(self, term: Dice, record: list[DieResult]) -> Constant:
        results = []
        for _ in range(term.number):
            face = self._random.randint(1, term.faces)
            if term.minimum is not None:
                face = max(face, term.minimum)
            results.append(face)
        record.append(DieResult(term.number, term.faces, results))
        return Constant(float(sum(results)))

    def _roll_tree(self, node: Node, record: list[DieResult]) -> Node:
        if isinstance(node, Dice):
            return self._roll_term(node, record)
        if isinstance(node, UnaryOp):
            return UnaryOp(node.op, self._roll_tree(node.operand, record))
        if isinstance(node, BinaryOp):
            return BinaryOp(node.op, self._roll_tree(node.left, record), self._roll_tree(node.right, record))
        if isinstance(node, Call):
            return Call(node.name, tuple(self._roll_tree(arg, record) for arg in node.args))
        return node

    def roll(self, formula: str | int | float, roll_data: Mapping[str, Any] | None = None) -> RollResult:
        """
        Roll a formula.

        Args:
            formula: Formula text (references are resolved against roll_data) or a number
            roll_data: Roll-data context

        Returns:
            The rolled total and every dice term's faces

        Raises:
            FormulaError: If the formula is malformed
        """
        if isinstance(formula, (int, float)):
            return RollResult(formula=str(formula), total=formula)

        record: list[DieResult] = []
        try:
            tree = substitute(parse_formula(formula), roll_data or {})
            value = evaluate(self._roll_tree(tree, record))
            if not math.isfinite(value):
                raise FormulaError(f"Roll total {value} is not a finite number")
        except EVALUATION_ERRORS as e:
            raise FormulaError(f"Cannot roll formula of length {len(formula)}: {e}") from e
        total = int(value) if float(value).is_integer() else value
        logger.debug("dice_rolled", formula=formula, total=total)
        return RollResult(formula=formula, total=total, dice=record)
