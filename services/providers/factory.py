"""Build the provider registry and dispatcher from settings."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from core.logging import get_logger
from services.providers.geoadmin import GeoAdminProvider
from services.providers.glarus import GlarusProvider
from services.providers.layers import LayerSearchProvider
from services.providers.nominatim import NominatimProvider
from services.providers.parametrized import ParametrizedProvider
from services.providers.wsgi import UsterProvider, WolfsburgProvider
from services.search.coordinates import CoordinatesProvider
from services.search.dispatcher import SearchDispatcher
from services.search.registry import ProviderRegistry, requires_layer

if TYPE_CHECKING:
    from collections.abc import Callable

    from core.config import Settings
    from services.providers.base import SearchProvider
    from services.search.registry import AvailabilityPredicate

logger = get_logger(__name__)

type BuiltProvider = tuple[SearchProvider, AvailabilityPredicate | None]
type ProviderBuilder = Callable[[Settings, dict[str, Any]], BuiltProvider]


def _coordinates(settings: Settings, client_options: dict[str, Any]) -> BuiltProvider:
    return CoordinatesProvider(), None


def _geoadmin(settings: Settings, client_options: dict[str, Any]) -> BuiltProvider:
    provider = GeoAdminProvider(
        settings.geoadmin.url,
        settings.geoadmin.limit,
        **client_options,
    )
    layer = settings.geoadmin.required_layer
    return provider, requires_layer(layer) if layer else None


def _uster(settings: Settings, client_options: dict[str, Any]) -> BuiltProvider:
    return UsterProvider(settings.uster.url, **client_options), None


def _wolfsburg(settings: Settings, client_options: dict[str, Any]) -> BuiltProvider:
    provider = WolfsburgProvider(
        settings.wolfsburg.url,
        settings.wolfsburg.result_limit,
        **client_options,
    )
    return provider, None


def _glarus(settings: Settings, client_options: dict[str, Any]) -> BuiltProvider:
    return GlarusProvider(settings.glarus.url, settings.glarus.limit, **client_options), None


def _nominatim(settings: Settings, client_options: dict[str, Any]) -> BuiltProvider:
    provider = NominatimProvider(
        settings.nominatim.url,
        settings.nominatim.limit,
        **client_options,
    )
    return provider, None


def _layers(settings: Settings, client_options: dict[str, Any]) -> BuiltProvider:
    return LayerSearchProvider(settings.layers.table, title=settings.layers.title), None


BUILDERS: dict[str, ProviderBuilder] = {
    "coordinates": _coordinates,
    "geoadmin": _geoadmin,
    "uster": _uster,
    "wolfsburg": _wolfsburg,
    "glarus": _glarus,
    "nominatim": _nominatim,
    "layers": _layers,
}


def build_registry(settings: Settings) -> ProviderRegistry:
    """
    Register the enabled built-in providers, then the parametrized ones.

    Built-ins rank in the order of ``SEARCH_ENABLED_PROVIDERS``; parametrized
    providers follow in configuration order.

    Raises:
        ValueError: If an enabled provider name is unknown or an id is
            registered twice.
    """
    client_options = {
        "timeout": settings.search.http_timeout,
        "user_agent": settings.search.user_agent,
    }
    registry = ProviderRegistry()

    for name in settings.search.enabled_providers:
        builder = BUILDERS.get(name)
        if builder is None:
            msg = f"unknown search provider: {name}"
            raise ValueError(msg)
        provider, available_when = builder(settings, client_options)
        registry.register(provider, available_when=available_when)

    for config in settings.search.parametrized:
        provider = ParametrizedProvider(
            settings.search.parametrized_url,
            config,
            **client_options,
        )
        available_when = requires_layer(config.layer_name) if config.layer_name else None
        registry.register(provider, available_when=available_when)

    logger.info("Search providers registered", providers=registry.provider_ids)
    return registry


def build_dispatcher(settings: Settings) -> SearchDispatcher:
    """Create a dispatcher over the providers configured in ``settings``."""
    return SearchDispatcher(build_registry(settings), timeout=settings.search.provider_timeout)
