"""
Application configuration using Pydantic Settings.

Typed and validated settings for the search engine and its providers, read
from environment variables and an optional .env file.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

BUILTIN_PROVIDERS: tuple[str, ...] = (
    "coordinates",
    "geoadmin",
    "uster",
    "wolfsburg",
    "glarus",
    "nominatim",
    "layers",
)


def _split_csv(v: str | list[str]) -> list[str]:
    if isinstance(v, str):
        return [item.strip() for item in v.split(",") if item.strip()]
    return v


class ParametrizedProviderConfig(BaseModel):
    """
    One configured parametrized provider.

    Mirrors a theme ``searchProviders`` entry: the endpoint answers directly
    in the canonical result wire schema.
    """

    key: str = Field(min_length=1, description="Provider id")
    label: str | None = Field(default=None, description="Display label")
    param: str = Field(default="", description="Value sent as ?param=")
    layer_name: str | None = Field(
        default=None,
        alias="layerName",
        description="Provider is only available while this layer is loaded",
    )

    model_config = ConfigDict(populate_by_name=True)


class SearchSettings(BaseSettings):
    """Dispatcher and shared provider settings."""

    model_config = SettingsConfigDict(env_prefix="SEARCH_")

    provider_timeout: float | None = Field(
        default=None,
        gt=0,
        description="Per-provider timeout in seconds; unset means wait forever",
    )
    http_timeout: float = Field(default=30.0, gt=0, description="HTTP request timeout")
    user_agent: str = Field(
        default="mapsearch/0.1",
        description="User-Agent sent to every back-end",
    )
    enabled_providers: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(BUILTIN_PROVIDERS),
        description="Built-in providers to register, in this order",
    )
    parametrized_url: str = Field(default="", description="Endpoint for parametrized providers")
    parametrized: list[ParametrizedProviderConfig] = Field(default_factory=list)

    @field_validator("enabled_providers", mode="before")
    @classmethod
    def parse_enabled_providers(cls, v: str | list[str]) -> list[str]:
        """Parse enabled providers from a comma-separated string or list."""
        return _split_csv(v)


class NominatimSettings(BaseSettings):
    """OpenStreetMap Nominatim settings."""

    model_config = SettingsConfigDict(env_prefix="NOMINATIM_")

    url: str = Field(default="https://nominatim.openstreetmap.org/search")
    limit: int = Field(default=20, ge=1, le=50)


class GeoAdminSettings(BaseSettings):
    """Swisstopo geo.admin.ch location search settings."""

    model_config = SettingsConfigDict(env_prefix="GEOADMIN_")

    url: str = Field(default="https://api3.geo.admin.ch/rest/services/api/SearchServer")
    limit: int = Field(default=20, ge=1, le=50)
    required_layer: str | None = Field(
        default="a",
        description="Theme layer that must be loaded for the provider to be offered",
    )


class GlarusSettings(BaseSettings):
    """Canton of Glarus search settings."""

    model_config = SettingsConfigDict(env_prefix="GLARUS_")

    url: str = Field(default="https://map.geo.gl.ch/search")
    limit: int = Field(default=9, ge=1, le=100)


class UsterSettings(BaseSettings):
    """City of Uster search.wsgi settings."""

    model_config = SettingsConfigDict(env_prefix="USTER_")

    url: str = Field(default="https://webgis.uster.ch/wsgi")


class WolfsburgSettings(BaseSettings):
    """City of Wolfsburg search.wsgi settings."""

    model_config = SettingsConfigDict(env_prefix="WOLFSBURG_")

    url: str = Field(default="https://geoportal.stadt.wolfsburg.de/wsgi")
    result_limit: int = Field(default=100, ge=1)


class LayerSearchSettings(BaseSettings):
    """
    Layer search lookup table.

    ``LAYERS_TABLE`` holds a JSON object mapping query strings to lists of
    sublayer definitions.
    """

    model_config = SettingsConfigDict(env_prefix="LAYERS_")

    title: str = Field(default="Layers")
    table: dict[str, list[dict[str, Any]]] = Field(default_factory=dict)


class Settings(BaseSettings):
    """
    Main application settings.

    Aggregates all configuration sections.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    log_level: str = Field(default="INFO", description="Minimum log level")
    log_json: bool = Field(default=False, description="Emit JSON log lines")

    search: SearchSettings = Field(default_factory=SearchSettings)
    nominatim: NominatimSettings = Field(default_factory=NominatimSettings)
    geoadmin: GeoAdminSettings = Field(default_factory=GeoAdminSettings)
    glarus: GlarusSettings = Field(default_factory=GlarusSettings)
    uster: UsterSettings = Field(default_factory=UsterSettings)
    wolfsburg: WolfsburgSettings = Field(default_factory=WolfsburgSettings)
    layers: LayerSearchSettings = Field(default_factory=LayerSearchSettings)

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Upper-case and validate the log level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            msg = f"invalid log level: {v}"
            raise ValueError(msg)
        return level

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_test(self) -> bool:
        """Check if running in test environment."""
        return self.environment == "test"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Configured Settings instance, loaded once per process.
    """
    return Settings()
