"""Formula parsing and evaluation."""

from .evaluator import (
    evaluate,
    fold,
    has_dice,
    render,
    replace_formula_data,
    resolve,
    resolve_strict,
    simplify_bonus,
    strip_dice,
    substitute,
)
from .parser import (
    EVALUATION_ERRORS,
    BinaryOp,
    Call,
    Constant,
    Dice,
    FormulaError,
    Node,
    UnaryOp,
    Variable,
    parse_formula,
)

__all__ = [
    "EVALUATION_ERRORS",
    "BinaryOp",
    "Call",
    "Constant",
    "Dice",
    "FormulaError",
    "Node",
    "UnaryOp",
    "Variable",
    "evaluate",
    "fold",
    "has_dice",
    "parse_formula",
    "render",
    "replace_formula_data",
    "resolve",
    "resolve_strict",
    "simplify_bonus",
    "strip_dice",
    "substitute",
]
