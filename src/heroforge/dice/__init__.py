"""Dice: damage values, roll construction and rolling."""

from .damage import DamageSpec, step_denomination
from .roller import DiceRoller, DieResult, RollResult
from .rolls import (
    RollSpec,
    ability_check_roll,
    ability_save_roll,
    attack_roll,
    build_roll,
    challenge_die,
    damage_roll,
    skill_check_roll,
)

__all__ = [
    "DamageSpec",
    "DiceRoller",
    "DieResult",
    "RollResult",
    "RollSpec",
    "ability_check_roll",
    "ability_save_roll",
    "attack_roll",
    "build_roll",
    "challenge_die",
    "damage_roll",
    "skill_check_roll",
    "step_denomination",
]
