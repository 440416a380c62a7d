"""Trait advancements: ability score increases and save, skill and equipment proficiencies."""

from collections.abc import Iterable, Mapping
from typing import Any, Literal

import structlog
from pydantic import BaseModel, Field

from heroforge.models.changes import ChangeSet
from heroforge.models.sources import AdvancementSource, CreatureSource

from .base import Advancement, AdvancementState, InvalidTraitType, register_advancement

logger = structlog.get_logger(__name__)

SkillMode = Literal["default", "upgrade", "expertise"]


class TraitConfiguration(BaseModel):
    """
    Configuration for a trait advancement.

    Attributes:
        fixed: Keys always granted
        choices: Keys a player may pick from (empty means any key)
        points: How many choices may be picked
        mode: Skill mode: proficiency, one step up, or expertise
    """

    fixed: list[str] = Field(default_factory=list)
    choices: set[str] = Field(default_factory=set)
    points: int = Field(default=0, ge=0)
    mode: SkillMode = "default"


class TraitAdvancement(Advancement):
    """
    Shared implementation of the trait advancement types.

    Eligibility, effect and reversal are dispatched on ``trait``:

    - ability-score-increase: value < max, value + 1, reversible while value > 0
    - save: multiplier < 1, multiplier = 1, reversible while multiplier >= 1
    - skill (default): multiplier < 1, multiplier = 1, reversible while multiplier >= 1
    - skill (upgrade): multiplier < 2, one step up to 2, reversible while multiplier >= 1
    - skill (expertise): multiplier == 1, multiplier = 2, reversible while multiplier >= 2
    - equipment: category not owned, category added, reversible while owned

    Skill grants record the multiplier each key had before the grant under
    ``value.previous`` so a reversal puts back exactly what was there.
    Applying while already applied changes nothing.
    """

    trait: str = ""

    def __init__(self, source: AdvancementSource) -> None:
        super().__init__(source)
        self.configuration = TraitConfiguration.model_validate(source.configuration)

    @property
    def assignments(self) -> list[str] | None:
        assignments = self.value.get("assignments")
        return list(assignments) if assignments is not None else None

    @property
    def previous(self) -> dict[str, float]:
        return dict(self.value.get("previous") or {})

    def state_for_level(self, level: int) -> AdvancementState:
        if self.assignments is None:
            return AdvancementState.UNAPPLIED
        return AdvancementState.APPLIED

    # ------------------------------------------------------------------
    # Eligibility
    # ------------------------------------------------------------------

    def can_apply(self, key: str, creature: CreatureSource) -> bool:
        """Can the provided key be improved on this creature?"""
        if self.trait == "ability-score-increase":
            ability = creature.abilities.get(key)
            return ability is not None and ability.value < ability.max
        if self.trait == "save":
            ability = creature.abilities.get(key)
            return ability is not None and ability.save_multiplier < 1
        if self.trait == "skill":
            skill = creature.skills.get(key)
            if skill is None:
                return False
            multiplier = skill.proficiency.multiplier
            if self.configuration.mode == "upgrade":
                return multiplier < 2
            if self.configuration.mode == "expertise":
                return multiplier == 1
            return multiplier < 1
        if self.trait == "equipment":
            return key not in creature.traits.equipment
        raise InvalidTraitType(f"Invalid trait type '{self.trait}'")

    def can_reverse(self, key: str, creature: CreatureSource) -> bool:
        """Can the grant for the provided key be undone on this creature?"""
        if self.trait == "ability-score-increase":
            ability = creature.abilities.get(key)
            return ability is not None and ability.value > 0
        if self.trait == "save":
            ability = creature.abilities.get(key)
            return ability is not None and ability.save_multiplier >= 1
        if self.trait == "skill":
            skill = creature.skills.get(key)
            if skill is None:
                return False
            if self.configuration.mode == "expertise":
                return skill.proficiency.multiplier >= 2
            return skill.proficiency.multiplier >= 1
        if self.trait == "equipment":
            return key in creature.traits.equipment
        raise InvalidTraitType(f"Invalid trait type '{self.trait}'")

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def _proposed(self, assignments: Iterable[str]) -> list[str]:
        """Merge fixed keys with valid player choices, preserving order."""
        config = self.configuration
        keys = list(dict.fromkeys(config.fixed))
        picked = 0
        for key in dict.fromkeys(assignments):
            if key in keys:
                continue
            if config.choices and key not in config.choices:
                logger.debug("trait_choice_not_offered", advancement=self.id, key=key)
                continue
            if picked >= config.points:
                logger.debug("trait_choice_over_points", advancement=self.id, key=key)
                continue
            keys.append(key)
            picked += 1
        return keys

    def _grant(self, keys: Iterable[str], creature: CreatureSource) -> tuple[ChangeSet, list[str]]:
        changes = ChangeSet()
        kept: list[str] = []
        equipment = set(creature.traits.equipment)

        for key in keys:
            if not self.can_apply(key, creature):
                logger.debug("trait_assignment_ineligible", advancement=self.id, key=key)
                continue
            kept.append(key)

            if self.trait == "ability-score-increase":
                changes.set(f"abilities.{key}.value", creature.abilities[key].value + 1)
            elif self.trait == "save":
                changes.set(f"abilities.{key}.save_multiplier", 1)
            elif self.trait == "skill":
                current = creature.skills[key].proficiency.multiplier
                if self.configuration.mode == "upgrade":
                    value = min(current + 1, 2)
                elif self.configuration.mode == "expertise":
                    value = 2
                else:
                    value = 1
                changes.set(f"skills.{key}.proficiency.multiplier", value)
                changes.set(self.value_path("previous", key), current)
            elif self.trait == "equipment":
                equipment.add(key)
                changes.set("traits.equipment", sorted(equipment))

        changes.set(self.value_path("assignments"), kept)
        return changes, kept

    def apply(
        self, creature: CreatureSource, level: int, data: Mapping[str, Any] | None = None
    ) -> ChangeSet:
        if self.state_for_level(level) == AdvancementState.APPLIED:
            logger.debug("advancement_already_applied", advancement=self.id, level=level)
            return ChangeSet()
        proposed = self._proposed((data or {}).get("assignments", []))
        changes, kept = self._grant(proposed, creature)
        logger.info(
            "advancement_applied", advancement=self.id, type=self.type, level=level, assignments=kept
        )
        return changes

    def restore(self, creature: CreatureSource, level: int, data: Mapping[str, Any]) -> ChangeSet:
        if self.state_for_level(level) == AdvancementState.APPLIED:
            logger.debug("advancement_already_applied", advancement=self.id, level=level)
            return ChangeSet()
        # Retained assignments already include the fixed keys and were validated once
        changes, kept = self._grant(data.get("assignments", []), creature)
        logger.info(
            "advancement_restored", advancement=self.id, type=self.type, level=level, assignments=kept
        )
        return changes

    def reverse(self, creature: CreatureSource, level: int) -> tuple[ChangeSet, dict[str, Any]]:
        changes = ChangeSet()
        if self.assignments is None:
            return changes, {}
        retained = {"assignments": self.assignments}
        previous = self.previous
        equipment = set(creature.traits.equipment)

        for key in retained["assignments"]:
            if not self.can_reverse(key, creature):
                logger.debug("trait_reversal_ineligible", advancement=self.id, key=key)
                continue

            if self.trait == "ability-score-increase":
                changes.set(f"abilities.{key}.value", creature.abilities[key].value - 1)
            elif self.trait == "save":
                changes.set(f"abilities.{key}.save_multiplier", 0)
            elif self.trait == "skill":
                current = creature.skills[key].proficiency.multiplier
                if key in previous:
                    value = previous[key]
                elif self.configuration.mode == "upgrade":
                    value = max(current - 1, 0)
                elif self.configuration.mode == "expertise":
                    value = 1
                else:
                    value = 0
                changes.set(f"skills.{key}.proficiency.multiplier", value)
            elif self.trait == "equipment":
                equipment.discard(key)
                changes.set("traits.equipment", sorted(equipment))

        changes.delete(self.value_path("assignments"))
        if "previous" in self.value:
            changes.delete(self.value_path("previous"))
        logger.info("advancement_reversed", advancement=self.id, type=self.type, level=level)
        return changes, retained


@register_advancement
class AbilityScoreIncreaseAdvancement(TraitAdvancement):
    type = "ability-score-increase"
    trait = "ability-score-increase"


@register_advancement
class SaveAdvancement(TraitAdvancement):
    type = "save"
    trait = "save"


@register_advancement
class SkillAdvancement(TraitAdvancement):
    type = "skill"
    trait = "skill"


@register_advancement
class EquipmentAdvancement(TraitAdvancement):
    type = "equipment"
    trait = "equipment"
