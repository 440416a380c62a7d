"""Source (persisted) data models for creatures, items and advancements.

Source data is what gets stored and what change sets address. Everything
derived from it lives on the pipeline entities and is recomputed every pass.
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from heroforge.catalog import Catalog

Rounding = Literal["down", "up"]


def _check_half_step(value: float | None) -> float | None:
    if value is not None and (value * 2) != int(value * 2):
        raise ValueError("multiplier must be a multiple of 0.5")
    return value


# ---------------------------------------------------------------------------
# Abilities & skills
# ---------------------------------------------------------------------------


class AbilityBonuses(BaseModel):
    """Bonus formulas for ability checks, saves and DCs."""

    check: str = ""
    dc: str = ""
    save: str = ""


class AbilitySource(BaseModel):
    """Source data for a single ability score."""

    value: int = Field(default=10, ge=0)
    max: int = Field(default=20, ge=0)
    save_multiplier: float = Field(default=0, ge=0, le=1)
    bonuses: AbilityBonuses = Field(default_factory=AbilityBonuses)

    _half_step = field_validator("save_multiplier")(_check_half_step)


class SkillProficiencySource(BaseModel):
    """Proficiency level in a skill."""

    multiplier: float = Field(default=0, ge=0, le=2)
    rounding: Rounding = "down"

    _half_step = field_validator("multiplier")(_check_half_step)


class SkillBonuses(BaseModel):
    """Bonus formulas for skill checks and passive scores."""

    check: str = ""
    passive: str = ""


class SkillSource(BaseModel):
    """Source data for a single skill."""

    ability: str
    proficiency: SkillProficiencySource = Field(default_factory=SkillProficiencySource)
    bonuses: SkillBonuses = Field(default_factory=SkillBonuses)
    minimum: str = ""


# ---------------------------------------------------------------------------
# Actor-wide bonuses and overrides
# ---------------------------------------------------------------------------


class ActorBonuses(BaseModel):
    """Global bonus formulas applied across the creature."""

    ability: AbilityBonuses = Field(default_factory=AbilityBonuses)
    skill: SkillBonuses = Field(default_factory=SkillBonuses)
    # Keyed by "all" or a weapon type
    attack: dict[str, str] = Field(default_factory=dict)
    damage: dict[str, str] = Field(default_factory=dict)


class SkillOverrides(BaseModel):
    """Global skill overrides."""

    minimum: str = ""
    multiplier: float | None = Field(default=None, ge=0.5, le=2)
    rounding: Rounding | None = None

    _half_step = field_validator("multiplier")(_check_half_step)


class ActorOverrides(BaseModel):
    """Global overrides applied across the creature."""

    # Keyed by "all" or a weapon type
    critical_threshold: dict[str, int] = Field(default_factory=dict)
    # Keyed by "melee" / "ranged"
    abilities: dict[str, str] = Field(default_factory=dict)
    skill: SkillOverrides = Field(default_factory=SkillOverrides)


class Traits(BaseModel):
    """Granted traits."""

    equipment: set[str] = Field(default_factory=set)


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------


class UsesSource(BaseModel):
    """Limited uses of an activatable item."""

    spent: int = Field(default=0, ge=0)
    max: str = ""
    period: str = ""
    formula: str = ""


class ActivationSource(BaseModel):
    """What it takes to activate an item."""

    amount: int | None = None
    type: str = ""
    condition: str = ""


class ItemBase(BaseModel):
    """Fields shared by every item kind."""

    id: str
    name: str = ""
    uses: UsesSource = Field(default_factory=UsesSource)
    activation: ActivationSource = Field(default_factory=ActivationSource)


class DamageSource(BaseModel):
    """Damage dice and type."""

    number: int | None = Field(default=None, ge=0)
    denomination: int | None = Field(default=None, ge=0)
    type: str = ""


class AmmunitionDamageSource(DamageSource):
    """Damage provided by ammunition.

    ``regular`` replaces the weapon's damage outright, ``modify`` adds dice
    (``number``) and denomination steps (``denomination``) to it.
    """

    mode: Literal["regular", "modify"] = "modify"


class WeaponTypeSource(BaseModel):
    value: str = "melee"
    category: str = ""


class RangeSource(BaseModel):
    short: float | None = Field(default=None, ge=0)
    long: float | None = Field(default=None, ge=0)
    reach: float | None = Field(default=None, ge=0)
    units: str = ""


class RoundsSource(BaseModel):
    spent: int = Field(default=0, ge=0)
    capacity: int = Field(default=0, ge=0)
    burst: int = Field(default=0, ge=0)
    type: str = ""


class CriticalBonuses(BaseModel):
    damage: str = ""
    dice: int = 0


class WeaponBonuses(BaseModel):
    attack: str = ""
    damage: str = ""
    critical: CriticalBonuses = Field(default_factory=CriticalBonuses)


class WeaponOverrides(BaseModel):
    ability: str = ""
    critical_threshold: int | None = Field(default=None, ge=1)


class WeaponSource(ItemBase):
    """Source data for a weapon."""

    kind: Literal["weapon"] = "weapon"
    type: WeaponTypeSource = Field(default_factory=WeaponTypeSource)
    properties: set[str] = Field(default_factory=set)
    penetration_value: int = Field(default=0, ge=0)
    jammed: bool = False
    range: RangeSource = Field(default_factory=RangeSource)
    reload: str = ""
    rounds: RoundsSource = Field(default_factory=RoundsSource)
    damage: DamageSource = Field(default_factory=DamageSource)
    bonuses: WeaponBonuses = Field(default_factory=WeaponBonuses)
    overrides: WeaponOverrides = Field(default_factory=WeaponOverrides)
    # Weak reference: id of an ammunition item owned by the same creature
    ammunition: str | None = None
    mode: str | None = None


class AmmunitionBonuses(BaseModel):
    attack: str = ""
    damage: str = ""


class AmmunitionOverrides(BaseModel):
    critical_threshold: int | None = Field(default=None, ge=1)


class AmmunitionSource(ItemBase):
    """Source data for ammunition."""

    kind: Literal["ammunition"] = "ammunition"
    type: str = ""
    penetration_value: int = Field(default=0, ge=0)
    damage: AmmunitionDamageSource = Field(default_factory=AmmunitionDamageSource)
    bonuses: AmmunitionBonuses = Field(default_factory=AmmunitionBonuses)
    overrides: AmmunitionOverrides = Field(default_factory=AmmunitionOverrides)
    quantity: int = Field(default=0, ge=0)


class GearSource(ItemBase):
    """Source data for generic activatable gear."""

    kind: Literal["gear"] = "gear"


ItemSource = Annotated[WeaponSource | AmmunitionSource | GearSource, Field(discriminator="kind")]


# ---------------------------------------------------------------------------
# Advancements
# ---------------------------------------------------------------------------


class AdvancementSource(BaseModel):
    """
    Source data for a level-based advancement.

    ``configuration`` and ``value`` are interpreted by the advancement type;
    an unknown ``type`` is rejected when the advancement is instantiated.
    """

    id: str
    type: str
    level: int = Field(default=1, ge=1)
    title: str = ""
    configuration: dict[str, Any] = Field(default_factory=dict)
    value: dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Creature
# ---------------------------------------------------------------------------


def _fill_ids(entries: Any) -> Any:
    if isinstance(entries, dict):
        for key, entry in entries.items():
            if isinstance(entry, dict):
                entry.setdefault("id", key)
    return entries


class CreatureSource(BaseModel):
    """Source document for a creature and everything it owns."""

    name: str = ""
    level: int = Field(default=1, ge=1)
    abilities: dict[str, AbilitySource] = Field(default_factory=dict)
    skills: dict[str, SkillSource] = Field(default_factory=dict)
    bonuses: ActorBonuses = Field(default_factory=ActorBonuses)
    overrides: ActorOverrides = Field(default_factory=ActorOverrides)
    traits: Traits = Field(default_factory=Traits)
    items: dict[str, ItemSource] = Field(default_factory=dict)
    advancements: dict[str, AdvancementSource] = Field(default_factory=dict)

    @field_validator("items", "advancements", mode="before")
    @classmethod
    def _default_ids(cls, value: Any) -> Any:
        return _fill_ids(value)

    @model_validator(mode="after")
    def _validate_references(self) -> "CreatureSource":
        for key, skill in self.skills.items():
            if skill.ability not in self.abilities:
                raise ValueError(f"Skill '{key}' references unknown ability '{skill.ability}'")
        for key, item in self.items.items():
            if item.id != key:
                raise ValueError(f"Item keyed '{key}' has mismatched id '{item.id}'")
        for key, advancement in self.advancements.items():
            if advancement.id != key:
                raise ValueError(f"Advancement keyed '{key}' has mismatched id '{advancement.id}'")
        return self


def build_creature_source(data: dict[str, Any], catalog: Catalog) -> CreatureSource:
    """
    Create a creature source, seeding ability and skill keys from the catalog.

    Every catalog ability and skill gets an entry (with catalog defaults for a
    skill's ability); entries in ``data`` are layered on top. Keys that the
    catalog does not know are rejected.

    Args:
        data: Raw creature data (e.g. loaded from YAML)
        catalog: Rules catalog supplying the key sets

    Returns:
        The validated source document

    Raises:
        ValueError: If data names abilities or skills missing from the catalog,
            or a level above the catalog maximum
    """
    data = dict(data)

    abilities = dict(data.get("abilities") or {})
    unknown = set(abilities) - set(catalog.abilities)
    if unknown:
        raise ValueError(f"Unknown abilities: {', '.join(sorted(unknown))}")
    data["abilities"] = {key: abilities.get(key) or {} for key in catalog.abilities}

    skills = dict(data.get("skills") or {})
    unknown = set(skills) - set(catalog.skills)
    if unknown:
        raise ValueError(f"Unknown skills: {', '.join(sorted(unknown))}")
    seeded_skills = {}
    for key, config in catalog.skills.items():
        skill = dict(skills.get(key) or {})
        skill.setdefault("ability", config.ability)
        seeded_skills[key] = skill
    data["skills"] = seeded_skills

    level = data.get("level", 1)
    if isinstance(level, int) and level > catalog.max_level:
        raise ValueError(f"Level {level} exceeds the maximum level {catalog.max_level}")

    return CreatureSource.model_validate(data)
