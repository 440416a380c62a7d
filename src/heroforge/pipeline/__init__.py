"""Three-phase derivation of resolved creature state."""

from .derivation import DerivationError, DerivationPipeline, item_order
from .entities import (
    AbilityState,
    AmmunitionState,
    Creature,
    ItemState,
    RoundsState,
    SkillState,
    UsesState,
    WeaponState,
)
from .steps import CreatureStep, ItemStep, Phase

__all__ = [
    "AbilityState",
    "AmmunitionState",
    "Creature",
    "CreatureStep",
    "DerivationError",
    "DerivationPipeline",
    "ItemState",
    "ItemStep",
    "Phase",
    "RoundsState",
    "SkillState",
    "UsesState",
    "WeaponState",
    "item_order",
]
