"""Pydantic models for the static rules catalog."""

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class LabeledConfig(BaseModel):
    """Catalog entry that only carries a presentation label key."""

    model_config = ConfigDict(frozen=True)

    label: str


class AbilityConfig(LabeledConfig):
    """Configuration for a single ability."""

    abbreviation: str = ""


class SkillConfig(LabeledConfig):
    """Configuration for a single skill and its default ability."""

    ability: str


class RecoveryPeriod(LabeledConfig):
    """Period over which an item's uses recover."""

    combat_only: bool = False


class WeaponModeRule(BaseModel):
    """
    Declarative availability rule for a weapon mode.

    A weapon can use the mode when its type is listed in ``types`` and its
    property set satisfies every property constraint.
    """

    model_config = ConfigDict(frozen=True)

    label: str
    types: frozenset[str] = frozenset()
    any_of: frozenset[str] = frozenset()
    all_of: frozenset[str] = frozenset()
    none_of: frozenset[str] = frozenset()
    npc_hint: str | None = None

    def available(self, weapon_type: str, properties: Iterable[str]) -> bool:
        """
        Check whether a weapon with this type and properties can use the mode.

        Args:
            weapon_type: The weapon's type value (e.g. "melee")
            properties: The weapon's property set

        Returns:
            True if the mode is available
        """
        properties = set(properties)
        if self.types and weapon_type not in self.types:
            return False
        if self.any_of and not (self.any_of & properties):
            return False
        if not self.all_of <= properties:
            return False
        return not (self.none_of & properties)


class ProficiencyProgression(BaseModel):
    """Proficiency rating by level: ``base + (level - 1) // levels_per_step``."""

    model_config = ConfigDict(frozen=True)

    base: int = 2
    levels_per_step: int = Field(default=4, gt=0)

    def bonus_for_level(self, level: int) -> int:
        """Get the proficiency rating for a character level."""
        return self.base + (max(level, 1) - 1) // self.levels_per_step


class Catalog(BaseModel):
    """All static rule tables consumed by the derivation core."""

    model_config = ConfigDict(frozen=True)

    max_level: int = Field(default=20, gt=0)
    challenge_die: int = Field(default=20, gt=1)
    dice_steps: tuple[int, ...] = (4, 6, 8, 10, 12)
    hit_point_ability: str = "con"
    proficiency: ProficiencyProgression = ProficiencyProgression()
    abilities: dict[str, AbilityConfig]
    skills: dict[str, SkillConfig] = Field(default_factory=dict)
    equipment_categories: dict[str, LabeledConfig] = Field(default_factory=dict)
    weapon_types: dict[str, LabeledConfig] = Field(default_factory=dict)
    default_abilities: dict[str, str] = Field(default_factory=dict)
    weapon_modes: dict[str, WeaponModeRule] = Field(default_factory=dict)
    fire_rates: dict[str, int] = Field(default_factory=dict)
    recovery_periods: dict[str, RecoveryPeriod] = Field(default_factory=dict)

    @field_validator("dice_steps")
    @classmethod
    def _validate_dice_steps(cls, value: tuple[int, ...]) -> tuple[int, ...]:
        if not value:
            raise ValueError("dice_steps must not be empty")
        if list(value) != sorted(set(value)):
            raise ValueError("dice_steps must be strictly increasing")
        return value

    @model_validator(mode="after")
    def _validate_ability_references(self) -> "Catalog":
        for key, skill in self.skills.items():
            if skill.ability not in self.abilities:
                raise ValueError(f"Skill '{key}' references unknown ability '{skill.ability}'")
        if self.hit_point_ability not in self.abilities:
            raise ValueError(
                f"Hit point ability '{self.hit_point_ability}' is not a configured ability"
            )
        for attack_type, ability in self.default_abilities.items():
            if ability not in self.abilities:
                raise ValueError(
                    f"Default {attack_type} ability '{ability}' is not a configured ability"
                )
        return self

    def proficiency_bonus(self, level: int) -> int:
        """Get the proficiency rating for a character level."""
        return self.proficiency.bonus_for_level(level)
