"""Skills and their derived modifiers, passive scores and minimum rolls."""

import math

from heroforge.character.proficiency import Proficiency
from heroforge.formula import simplify_bonus
from heroforge.models.sources import SkillOverrides, SkillSource
from heroforge.pipeline.entities import Creature, SkillState
from heroforge.pipeline.steps import CreatureStep


def effective_proficiency(prof: int, skill: SkillSource, overrides: SkillOverrides) -> Proficiency:
    """Build a skill's proficiency, applying the creature-wide skill overrides.

    The override multiplier is a floor: it raises lower multipliers but never
    lowers a higher one. The override rounding replaces the skill's own.

    Args:
        prof: Creature proficiency rating
        skill: Skill source data
        overrides: Creature-wide skill overrides

    Returns:
        The skill's proficiency
    """
    multiplier = skill.proficiency.multiplier
    if overrides.multiplier is not None:
        multiplier = max(multiplier, overrides.multiplier)
    rounding = overrides.rounding or skill.proficiency.rounding
    return Proficiency(prof, multiplier, rounding)


class SkillsCapability(CreatureStep):
    """
    Derives skill proficiency, modifier, passive score and minimum roll.

    Must run after ``AbilitiesCapability``: a skill's modifier builds on its
    ability's modifier and check bonus formula.
    """

    name = "skills"

    def prepare_base(self, creature: Creature) -> None:
        creature.skills = {
            key: SkillState(key=key, ability=source.ability, source=source)
            for key, source in creature.source.skills.items()
        }

    def prepare_derived(self, creature: Creature) -> None:
        roll_data = creature.roll_data()
        bonuses = creature.source.bonuses
        overrides = creature.source.overrides.skill

        global_check = simplify_bonus(bonuses.ability.check, roll_data) + simplify_bonus(
            bonuses.skill.check, roll_data
        )
        global_passive = simplify_bonus(bonuses.skill.passive, roll_data)
        global_minimum = simplify_bonus(overrides.minimum, roll_data)

        for skill in creature.skills.values():
            skill.proficiency = effective_proficiency(creature.prof, skill.source, overrides)

            ability = creature.abilities.get(skill.ability)
            ability_mod = ability.mod if ability else 0
            ability_check = simplify_bonus(ability.source.bonuses.check, roll_data) if ability else 0

            skill.bonus = math.floor(
                global_check + ability_check + simplify_bonus(skill.source.bonuses.check, roll_data)
            )
            skill.mod = ability_mod + skill.bonus + skill.proficiency.flat
            skill.passive = math.floor(
                10
                + skill.mod
                + global_passive
                + simplify_bonus(skill.source.bonuses.passive, roll_data)
            )

            minimum = max(global_minimum, simplify_bonus(skill.source.minimum, roll_data))
            skill.minimum = math.floor(minimum) if minimum > 0 else None
