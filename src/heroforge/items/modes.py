"""Weapon mode availability, selection and round consumption."""

from collections.abc import Iterable

from heroforge.catalog import Catalog
from heroforge.models.changes import ChangeSet
from heroforge.pipeline.entities import WeaponState


def available_modes(weapon_type: str, properties: Iterable[str], catalog: Catalog) -> list[str]:
    """
    Modes a weapon can be used in, in catalog order.

    Args:
        weapon_type: Weapon type value (e.g. "ranged")
        properties: Weapon property set
        catalog: Rules catalog holding the mode rules

    Returns:
        Keys of every available mode
    """
    properties = set(properties)
    return [
        key
        for key, rule in catalog.weapon_modes.items()
        if rule.available(weapon_type, properties)
    ]


def select_mode(available: list[str], requested: str | None) -> str | None:
    """
    Pick the active mode.

    The requested mode is kept while it is available; otherwise the first
    available mode is used.

    Returns:
        The active mode, or None if the weapon has no available mode
    """
    if requested in available:
        return requested
    return available[0] if available else None


def set_mode(weapon: WeaponState, mode: str) -> ChangeSet:
    """
    Change set selecting a weapon's mode.

    Raises:
        ValueError: If the mode is not available for this weapon
    """
    if mode not in weapon.modes:
        raise ValueError(f"Mode '{mode}' is not available for weapon '{weapon.id}'")
    return ChangeSet().set(f"items.{weapon.id}.mode", mode)


def rounds_to_spend(weapon: WeaponState, catalog: Catalog) -> int:
    """
    How many rounds firing the weapon in its current mode consumes.

    Reading this never changes the weapon.

    - 0 if the weapon does not use rounds or has no magazine
    - burst: the weapon's burst count, or 1
    - suppressiveFire: the fire rate of the first matching property
      (e.g. fullAuto 10, semiAuto 5), or 1
    - any other mode: 1
    """
    if not weapon.uses_rounds or not weapon.rounds.capacity:
        return 0
    if weapon.mode == "burst":
        return weapon.rounds.burst or 1
    if weapon.mode == "suppressiveFire":
        for prop, rate in catalog.fire_rates.items():
            if prop in weapon.properties:
                return rate
    return 1
