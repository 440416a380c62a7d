"""Reversible level-based advancements."""

from .base import (
    ADVANCEMENT_TYPES,
    Advancement,
    AdvancementState,
    InvalidTraitType,
    create_advancement,
    register_advancement,
)
from .hit_points import HitPointsAdvancement, hit_points_for_value
from .manager import AdvancementManager
from .scale_value import (
    ScaleValueAdvancement,
    normalize_scale,
    scale_roll_data,
    value_for_level,
)
from .trait import (
    AbilityScoreIncreaseAdvancement,
    EquipmentAdvancement,
    SaveAdvancement,
    SkillAdvancement,
    TraitAdvancement,
    TraitConfiguration,
)

__all__ = [
    "ADVANCEMENT_TYPES",
    "AbilityScoreIncreaseAdvancement",
    "Advancement",
    "AdvancementManager",
    "AdvancementState",
    "EquipmentAdvancement",
    "HitPointsAdvancement",
    "InvalidTraitType",
    "SaveAdvancement",
    "ScaleValueAdvancement",
    "SkillAdvancement",
    "TraitAdvancement",
    "TraitConfiguration",
    "create_advancement",
    "hit_points_for_value",
    "normalize_scale",
    "register_advancement",
    "scale_roll_data",
    "value_for_level",
]
