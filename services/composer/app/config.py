"""Application configuration using Pydantic settings."""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ComposerTuning(BaseModel):
    layout_spacing: int = Field(default=300, ge=0)
    default_name: str = "Generated Scenario"
    default_description: str = "Created by blueprint composer"
    name_word_limit: int = Field(default=5, ge=1)
    sleep_seconds: int = Field(default=5, ge=0)
    route_field_source: str = "previousModule"
    max_description_chars: int = 20_000


class CatalogSettings(BaseModel):
    path: str | None = Field(default=None, description="Override for the bundled module catalog JSON")


class ObservabilitySettings(BaseModel):
    otel_service_name: str = "blueprint-composer"
    otel_exporter_otlp_endpoint: str | None = None
    log_level: str = "INFO"


class StorageSettings(BaseModel):
    database_url: str = Field(
        default="sqlite+aiosqlite:///./composer.db",
        description="SQLAlchemy async database URL (Postgres 15 in production)",
    )
    artifact_dir: str = "./.artifacts"
    s3_endpoint: str | None = None
    s3_region: str | None = None
    s3_bucket: str | None = None


class ComposerSettings(BaseSettings):
    tuning: ComposerTuning = ComposerTuning()
    catalog: CatalogSettings = CatalogSettings()
    observability: ObservabilitySettings = ObservabilitySettings()
    storage: StorageSettings = StorageSettings()
    environment: Literal["dev", "qa", "prod"] | str = "dev"

    model_config = SettingsConfigDict(env_nested_delimiter="__", env_prefix="COMPOSER_", case_sensitive=False)


@lru_cache(maxsize=1)
def get_settings(**kwargs: Any) -> ComposerSettings:
    """Return cached settings instance."""
    return ComposerSettings(**kwargs)


__all__ = ["ComposerSettings", "ComposerTuning", "get_settings"]
