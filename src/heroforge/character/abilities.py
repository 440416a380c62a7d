"""Ability scores and their derived check, save and DC values."""

import math

import structlog

from heroforge.character.proficiency import Proficiency
from heroforge.formula import simplify_bonus
from heroforge.pipeline.entities import AbilityState, Creature
from heroforge.pipeline.steps import CreatureStep

logger = structlog.get_logger(__name__)


def get_modifier(value: int) -> int:
    """Calculate an ability modifier.

    Args:
        value: The ability score (0 or higher)

    Returns:
        The modifier: (value - 10) // 2

    Examples:
        >>> get_modifier(10)
        0
        >>> get_modifier(15)
        2
        >>> get_modifier(8)
        -1
    """
    return (value - 10) // 2


class AbilitiesCapability(CreatureStep):
    """
    Derives ability modifiers, checks, saves and DCs.

    Derived phase:
        - mod = (value - 10) // 2
        - check = mod + proficiency + global check bonus + ability check bonus
        - save = mod + proficiency at the save multiplier + save bonuses
        - dc = 8 + mod + proficiency + DC bonuses
    """

    name = "abilities"

    def prepare_base(self, creature: Creature) -> None:
        creature.abilities = {
            key: AbilityState(key=key, source=source, value=source.value, max=source.max)
            for key, source in creature.source.abilities.items()
        }

    def prepare_derived(self, creature: Creature) -> None:
        # Modifiers first so bonus formulas can reference any ability's mod
        for ability in creature.abilities.values():
            ability.mod = get_modifier(ability.value)

        roll_data = creature.roll_data()
        prof = creature.prof
        bonuses = creature.source.bonuses.ability
        global_check = simplify_bonus(bonuses.check, roll_data)
        global_save = simplify_bonus(bonuses.save, roll_data)
        global_dc = simplify_bonus(bonuses.dc, roll_data)

        for ability in creature.abilities.values():
            ability.check_proficiency = Proficiency(prof)
            ability.save_proficiency = Proficiency(prof, ability.source.save_multiplier)

            own = ability.source.bonuses
            ability.check_bonus = math.floor(global_check + simplify_bonus(own.check, roll_data))
            ability.save_bonus = math.floor(global_save + simplify_bonus(own.save, roll_data))
            ability.dc_bonus = math.floor(global_dc + simplify_bonus(own.dc, roll_data))

            ability.check = ability.mod + ability.check_proficiency.flat + ability.check_bonus
            ability.save = ability.mod + ability.save_proficiency.flat + ability.save_bonus
            ability.dc = 8 + ability.mod + prof + ability.dc_bonus

        logger.debug(
            "abilities_derived",
            creature=creature.source.name,
            mods={key: ability.mod for key, ability in creature.abilities.items()},
        )
