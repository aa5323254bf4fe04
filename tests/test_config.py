"""Tests for application configuration."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from core.config import (
    BUILTIN_PROVIDERS,
    GeoAdminSettings,
    LayerSearchSettings,
    ParametrizedProviderConfig,
    SearchSettings,
    Settings,
    get_settings,
)


class TestSearchSettings:
    """Tests for SearchSettings."""

    def test_defaults(self) -> None:
        """Every built-in provider is enabled and there is no timeout."""
        settings = SearchSettings()

        assert settings.enabled_providers == list(BUILTIN_PROVIDERS)
        assert settings.provider_timeout is None
        assert settings.http_timeout == 30.0
        assert settings.parametrized == []

    def test_enabled_providers_from_csv_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """SEARCH_ENABLED_PROVIDERS is a comma-separated list."""
        monkeypatch.setenv("SEARCH_ENABLED_PROVIDERS", "coordinates, nominatim,,")

        settings = SearchSettings()

        assert settings.enabled_providers == ["coordinates", "nominatim"]

    def test_provider_timeout_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """SEARCH_PROVIDER_TIMEOUT sets the per-provider timeout."""
        monkeypatch.setenv("SEARCH_PROVIDER_TIMEOUT", "2.5")

        assert SearchSettings().provider_timeout == 2.5

    def test_provider_timeout_must_be_positive(self) -> None:
        """A zero timeout is rejected."""
        with pytest.raises(ValidationError):
            SearchSettings(provider_timeout=0)

    def test_parametrized_from_json_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Parametrized providers are read from a JSON list."""
        monkeypatch.setenv(
            "SEARCH_PARAMETRIZED",
            json.dumps([{"key": "parcels", "label": "Parcels", "param": "parcel", "layerName": "av"}]),
        )

        settings = SearchSettings()

        assert settings.parametrized == [
            ParametrizedProviderConfig(key="parcels", label="Parcels", param="parcel", layer_name="av")
        ]


class TestParametrizedProviderConfig:
    """Tests for ParametrizedProviderConfig."""

    def test_accepts_both_layer_name_spellings(self) -> None:
        """layerName and layer_name populate the same field."""
        assert ParametrizedProviderConfig(key="a", layerName="x").layer_name == "x"
        assert ParametrizedProviderConfig(key="a", layer_name="x").layer_name == "x"

    def test_key_required(self) -> None:
        """An empty key is rejected."""
        with pytest.raises(ValidationError):
            ParametrizedProviderConfig(key="")


class TestProviderSettings:
    """Tests for individual provider sections."""

    def test_geoadmin_required_layer_default(self) -> None:
        """Swisstopo search is gated on layer ``a`` by default."""
        assert GeoAdminSettings().required_layer == "a"

    def test_geoadmin_limit_bounds(self) -> None:
        """Limits above the service maximum are rejected."""
        with pytest.raises(ValidationError):
            GeoAdminSettings(limit=500)

    def test_layer_table_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """LAYERS_TABLE is a JSON object of sublayer lists."""
        monkeypatch.setenv("LAYERS_TABLE", json.dumps({"av": [{"name": "Parcels"}]}))

        assert LayerSearchSettings().table == {"av": [{"name": "Parcels"}]}


class TestSettings:
    """Tests for the root Settings."""

    def test_environment_flags(self) -> None:
        """Exactly one environment flag is set."""
        settings = Settings(environment="test")

        assert settings.is_test is True
        assert settings.is_production is False
        assert settings.is_development is False

    def test_log_level_is_normalized(self) -> None:
        """Log levels are upper-cased."""
        assert Settings(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self) -> None:
        """Unknown log levels are rejected."""
        with pytest.raises(ValidationError, match="invalid log level"):
            Settings(log_level="verbose")

    def test_invalid_environment(self) -> None:
        """Unknown environments are rejected."""
        with pytest.raises(ValidationError):
            Settings(environment="staging")

    def test_get_settings_is_cached(self) -> None:
        """get_settings() returns the same instance."""
        assert get_settings() is get_settings()
