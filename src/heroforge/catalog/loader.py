"""
Catalog loader module for heroforge.

Handles loading the static rules catalog from YAML and validating it.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import ValidationError

from heroforge.config import get_settings

from .models import Catalog

logger = structlog.get_logger(__name__)


class CatalogLoadError(Exception):
    """Raised when there's an error loading catalog data."""

    pass


class CatalogValidationError(Exception):
    """Raised when catalog validation fails."""

    pass


def load_yaml_file(file_path: Path) -> dict[str, Any]:
    """
    Load a YAML file containing catalog tables.

    Args:
        file_path: Path to the YAML file

    Returns:
        Mapping of table name to table data

    Raises:
        CatalogLoadError: If the file cannot be loaded or parsed
    """
    try:
        with open(file_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise CatalogLoadError(f"YAML parsing error in {file_path}: {e}") from e
    except FileNotFoundError as e:
        raise CatalogLoadError(f"File not found: {file_path}") from e
    except OSError as e:
        raise CatalogLoadError(f"Error loading {file_path}: {e}") from e

    if not data:
        raise CatalogLoadError(f"Empty YAML file: {file_path}")

    if not isinstance(data, dict):
        raise CatalogLoadError(f"Catalog root must be a mapping in {file_path}")

    if "abilities" not in data:
        raise CatalogLoadError(f"Missing 'abilities' key in {file_path}")

    return data


def catalog_from_data(data: dict[str, Any], source: str = "<memory>") -> Catalog:
    """
    Build a validated Catalog from raw table data.

    Args:
        data: Raw catalog tables
        source: Description of where the data came from (for error messages)

    Returns:
        The validated catalog

    Raises:
        CatalogValidationError: If the tables are inconsistent
    """
    try:
        return Catalog.model_validate(data)
    except ValidationError as e:
        raise CatalogValidationError(f"Invalid catalog in {source}: {e}") from e


def load_catalog(file_path: Path | None = None) -> Catalog:
    """
    Load and validate the rules catalog.

    Args:
        file_path: Catalog YAML to load (defaults to the configured catalog)

    Returns:
        The validated catalog
    """
    path = file_path or get_settings().resolved_catalog_path
    catalog = catalog_from_data(load_yaml_file(path), str(path))

    logger.info(
        "catalog_loaded",
        path=str(path),
        abilities=len(catalog.abilities),
        skills=len(catalog.skills),
        weapon_modes=len(catalog.weapon_modes),
    )
    return catalog


@lru_cache
def get_catalog() -> Catalog:
    """Get the cached catalog loaded from settings."""
    return load_catalog()
