"""Source data models and change sets."""

from .changes import (
    DELETE,
    DELETE_TOKEN,
    ChangeSet,
    apply_changes,
    delete_property,
    get_property,
    set_property,
)
from .sources import (
    AdvancementSource,
    AmmunitionSource,
    CreatureSource,
    GearSource,
    ItemSource,
    WeaponSource,
    build_creature_source,
)

__all__ = [
    "DELETE",
    "DELETE_TOKEN",
    "AdvancementSource",
    "AmmunitionSource",
    "ChangeSet",
    "CreatureSource",
    "GearSource",
    "ItemSource",
    "WeaponSource",
    "apply_changes",
    "build_creature_source",
    "delete_property",
    "get_property",
    "set_property",
]
