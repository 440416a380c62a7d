"""Configuration management for heroforge using Pydantic Settings."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="HEROFORGE_",
        extra="ignore",
    )

    debug: bool = Field(default=False, description="Enable debug mode")

    # Rules catalog
    catalog_path: Path | None = Field(
        default=None,
        description="Alternative rules catalog YAML (defaults to the bundled catalog)",
    )

    # Persistence adapter
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/heroforge.db",
        description="Database connection URL for the source document store",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="console", description="Log format (console or json)")

    @property
    def data_dir(self) -> Path:
        """Get the data directory path."""
        return Path("./data")

    @property
    def bundled_catalog_path(self) -> Path:
        """Get the path of the catalog shipped with the package."""
        return Path(__file__).parent / "data" / "catalog.yaml"

    @property
    def resolved_catalog_path(self) -> Path:
        """Get the catalog path that should actually be loaded."""
        return self.catalog_path or self.bundled_catalog_path


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
