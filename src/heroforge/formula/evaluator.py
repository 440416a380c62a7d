"""Formula evaluation against a roll-data context.

``resolve`` is the single boundary through which every bonus, override and
uses formula is turned into a value. Malformed formulas never escape it: the
``FormulaError`` is logged and the formula counts as 0.
"""

import math
from collections.abc import Mapping
from typing import Any

import structlog

from heroforge.models.changes import get_property

from .parser import (
    BinaryOp,
    Call,
    Constant,
    Dice,
    EVALUATION_ERRORS,
    FormulaError,
    Node,
    UnaryOp,
    Variable,
    parse_formula,
)

logger = structlog.get_logger(__name__)

Number = int | float

# Nested string references (scale values holding "1d8", etc.)
MAX_SUBSTITUTION_DEPTH = 8

_PRECEDENCE = {"+": 1, "-": 1, "*": 2, "/": 2}


def _lookup(path: str, roll_data: Mapping[str, Any], depth: int) -> Node:
    value = get_property(roll_data, path)

    if isinstance(value, Mapping):
        value = value.get("formula", value.get("value"))

    if value is None or value == "":
        return Constant(0)

    if isinstance(value, bool):
        return Constant(float(value))

    if isinstance(value, (int, float)):
        return Constant(float(value))

    if isinstance(value, str):
        if depth >= MAX_SUBSTITUTION_DEPTH:
            raise FormulaError(f"Reference @{path} nests too deeply")
        return substitute(parse_formula(value), roll_data, depth + 1)

    raise FormulaError(f"Reference @{path} resolves to unsupported {type(value).__name__}")


def substitute(node: Node, roll_data: Mapping[str, Any], depth: int = 0) -> Node:
    """
    Replace every variable reference with its value from the roll data.

    Missing references become 0; string values are parsed as nested formulas.

    Args:
        node: Expression tree
        roll_data: Roll-data context
        depth: Current nesting depth for string references

    Returns:
        Tree without Variable nodes
    """
    if isinstance(node, Variable):
        return _lookup(node.path, roll_data, depth)
    if isinstance(node, UnaryOp):
        return UnaryOp(node.op, substitute(node.operand, roll_data, depth))
    if isinstance(node, BinaryOp):
        return BinaryOp(
            node.op,
            substitute(node.left, roll_data, depth),
            substitute(node.right, roll_data, depth),
        )
    if isinstance(node, Call):
        return Call(node.name, tuple(substitute(arg, roll_data, depth) for arg in node.args))
    return node


def strip_dice(node: Node) -> Node:
    """Replace every dice term with a zero placeholder."""
    if isinstance(node, Dice):
        return Constant(0)
    if isinstance(node, UnaryOp):
        return UnaryOp(node.op, strip_dice(node.operand))
    if isinstance(node, BinaryOp):
        return BinaryOp(node.op, strip_dice(node.left), strip_dice(node.right))
    if isinstance(node, Call):
        return Call(node.name, tuple(strip_dice(arg) for arg in node.args))
    return node


def has_dice(node: Node) -> bool:
    """Check whether an expression tree contains any dice term."""
    if isinstance(node, Dice):
        return True
    if isinstance(node, UnaryOp):
        return has_dice(node.operand)
    if isinstance(node, BinaryOp):
        return has_dice(node.left) or has_dice(node.right)
    if isinstance(node, Call):
        return any(has_dice(arg) for arg in node.args)
    return False


def _round_half_up(value: float) -> float:
    return float(math.floor(value + 0.5))


def _apply_call(name: str, values: list[float]) -> float:
    if name in ("min", "max"):
        return float(min(values) if name == "min" else max(values))
    if len(values) != 1:
        raise FormulaError(f"{name}() takes exactly one argument ({len(values)} given)")
    value = values[0]
    if name == "floor":
        return float(math.floor(value))
    if name == "ceil":
        return float(math.ceil(value))
    if name == "round":
        return _round_half_up(value)
    if name == "abs":
        return abs(value)
    raise FormulaError(f"Unknown function {name!r}")


def _apply_binary(op: str, left: float, right: float) -> float:
    if op == "+":
        return left + right
    if op == "-":
        return left - right
    if op == "*":
        return left * right
    if right == 0:
        raise FormulaError("Division by zero")
    return left / right


def evaluate(node: Node) -> float:
    """
    Evaluate a fully substituted, dice-free expression tree.

    Raises:
        FormulaError: If the tree still contains variables or dice
    """
    if isinstance(node, Constant):
        return node.value
    if isinstance(node, UnaryOp):
        value = evaluate(node.operand)
        return -value if node.op == "-" else value
    if isinstance(node, BinaryOp):
        return _apply_binary(node.op, evaluate(node.left), evaluate(node.right))
    if isinstance(node, Call):
        return _apply_call(node.name, [evaluate(arg) for arg in node.args])
    if isinstance(node, Dice):
        raise FormulaError("Cannot evaluate dice deterministically")
    raise FormulaError(f"Unresolved reference @{node.path}")


def fold(node: Node) -> Node:
    """
    Collapse constant subtrees and drop arithmetic identities.

    Dice terms are kept verbatim.
    """
    if isinstance(node, UnaryOp):
        operand = fold(node.operand)
        if isinstance(operand, Constant):
            return Constant(-operand.value if node.op == "-" else operand.value)
        return operand if node.op == "+" else UnaryOp(node.op, operand)

    if isinstance(node, BinaryOp):
        left, right = fold(node.left), fold(node.right)
        if isinstance(left, Constant) and isinstance(right, Constant):
            return Constant(_apply_binary(node.op, left.value, right.value))
        if isinstance(right, Constant):
            if node.op in ("+", "-") and right.value == 0:
                return left
            if node.op in ("*", "/") and right.value == 1:
                return left
        if isinstance(left, Constant):
            if node.op == "+" and left.value == 0:
                return right
            if node.op == "*" and left.value == 1:
                return right
        return BinaryOp(node.op, left, right)

    if isinstance(node, Call):
        args = tuple(fold(arg) for arg in node.args)
        if all(isinstance(arg, Constant) for arg in args):
            return Constant(_apply_call(node.name, [arg.value for arg in args]))
        return Call(node.name, args)

    return node


def format_number(value: float) -> str:
    """Format a number without a trailing ``.0`` for integral values."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def render(node: Node) -> str:
    """Render an expression tree back into formula text."""
    if isinstance(node, Constant):
        return format_number(node.value)
    if isinstance(node, Variable):
        return f"@{node.path}"
    if isinstance(node, Dice):
        text = f"{node.number}d{node.faces}"
        return f"{text}min{node.minimum}" if node.minimum is not None else text
    if isinstance(node, UnaryOp):
        operand = render(node.operand)
        if isinstance(node.operand, BinaryOp):
            operand = f"({operand})"
        return f"{node.op}{operand}"
    if isinstance(node, Call):
        return f"{node.name}({', '.join(render(arg) for arg in node.args)})"

    precedence = _PRECEDENCE[node.op]
    left = render(node.left)
    if isinstance(node.left, BinaryOp) and _PRECEDENCE[node.left.op] < precedence:
        left = f"({left})"

    op, right_node = node.op, node.right
    if op in ("+", "-") and isinstance(right_node, Constant) and right_node.value < 0:
        op = "-" if op == "+" else "+"
        right_node = Constant(-right_node.value)
    right = render(right_node)
    if isinstance(right_node, BinaryOp) and (
        _PRECEDENCE[right_node.op] < precedence
        or (_PRECEDENCE[right_node.op] == precedence and op in ("-", "/"))
    ):
        right = f"({right})"
    return f"{left} {op} {right}"


def _as_number(value: float) -> Number:
    if not math.isfinite(value):
        raise FormulaError(f"Formula result {value} is not a finite number")
    return int(value) if float(value).is_integer() else value


def resolve_strict(
    formula: str | Number | None,
    roll_data: Mapping[str, Any] | None = None,
    deterministic_only: bool = False,
) -> Number | str:
    """
    Resolve a formula, letting ``FormulaError`` propagate.

    Args:
        formula: Formula text, a plain number, or None
        roll_data: Roll-data context for ``@`` references
        deterministic_only: Drop dice terms and always return a number

    Returns:
        A number, or in expression mode a formula string when dice remain

    Raises:
        FormulaError: If the formula is malformed, nests too deeply or does
            not evaluate to a finite number
    """
    if formula is None or formula == "":
        return 0
    if isinstance(formula, bool):
        return int(formula)
    if isinstance(formula, (int, float)):
        return formula
    if not isinstance(formula, str):
        raise FormulaError(f"Unsupported formula type {type(formula).__name__}")
    if not formula.strip():
        return 0

    try:
        tree = substitute(parse_formula(formula), roll_data or {})
        if deterministic_only:
            return _as_number(evaluate(strip_dice(tree)))

        folded = fold(tree)
        if isinstance(folded, Constant):
            return _as_number(folded.value)
        return render(folded)
    except EVALUATION_ERRORS as e:
        raise FormulaError(f"Cannot resolve formula of length {len(formula)}: {e}") from e


def resolve(
    formula: str | Number | None,
    roll_data: Mapping[str, Any] | None = None,
    deterministic_only: bool = False,
) -> Number | str:
    """
    Resolve a formula, degrading malformed input to 0.

    Args:
        formula: Formula text, a plain number, or None
        roll_data: Roll-data context for ``@`` references
        deterministic_only: Drop dice terms and always return a number

    Returns:
        A number, or in expression mode a formula string when dice remain
    """
    try:
        return resolve_strict(formula, roll_data, deterministic_only)
    except FormulaError as e:
        logger.warning("formula_resolution_failed", formula=formula, error=str(e))
        return 0


def simplify_bonus(bonus: str | Number | None, roll_data: Mapping[str, Any] | None = None) -> Number:
    """
    Resolve a bonus formula to a number, ignoring any dice it contains.

    Args:
        bonus: Bonus formula
        roll_data: Roll-data context

    Returns:
        The numeric bonus (0 for empty or malformed formulas)
    """
    value = resolve(bonus, roll_data, deterministic_only=True)
    return value if isinstance(value, (int, float)) else 0


def replace_formula_data(formula: str, roll_data: Mapping[str, Any] | None = None) -> str:
    """
    Substitute roll-data references into a formula without folding it.

    Malformed formulas are logged and replaced by ``"0"``.

    Args:
        formula: Formula text
        roll_data: Roll-data context

    Returns:
        Formula text with every ``@`` reference replaced by its value
    """
    if not formula or not formula.strip():
        return "0"
    try:
        return render(substitute(parse_formula(formula), roll_data or {}))
    except (FormulaError, *EVALUATION_ERRORS) as e:
        logger.warning("formula_replacement_failed", formula=formula, error=str(e))
        return "0"
