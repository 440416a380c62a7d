"""Static rules catalog for heroforge."""

from .loader import (
    CatalogLoadError,
    CatalogValidationError,
    catalog_from_data,
    get_catalog,
    load_catalog,
)
from .models import (
    AbilityConfig,
    Catalog,
    LabeledConfig,
    ProficiencyProgression,
    RecoveryPeriod,
    SkillConfig,
    WeaponModeRule,
)

__all__ = [
    "AbilityConfig",
    "Catalog",
    "CatalogLoadError",
    "CatalogValidationError",
    "LabeledConfig",
    "ProficiencyProgression",
    "RecoveryPeriod",
    "SkillConfig",
    "WeaponModeRule",
    "catalog_from_data",
    "get_catalog",
    "load_catalog",
]
