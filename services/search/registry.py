"""Registry of search providers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from core.logging import get_logger
from core.result import Failure, Success
from services.providers.base import SupportsClose
from services.search.errors import ProviderNotFoundError

if TYPE_CHECKING:
    from collections.abc import Callable

    from core.result import Result
    from services.providers.base import SearchProvider
    from services.search.types import AppState

logger = get_logger(__name__)

type AvailabilityPredicate = Callable[[AppState], bool]


def requires_layer(name: str) -> AvailabilityPredicate:
    """
    Build a predicate that is true while theme layer ``name`` is loaded.

    Args:
        name: Theme layer name.

    Returns:
        Availability predicate for ``ProviderRegistry.register``.
    """

    def predicate(app_state: AppState) -> bool:
        return app_state.has_layer(name)

    predicate.__name__ = f"requires_layer({name!r})"
    return predicate


@dataclass(frozen=True, slots=True)
class RegisteredProvider:
    """A provider together with its availability predicate and rank."""

    provider: SearchProvider
    available_when: AvailabilityPredicate | None
    rank: int

    def is_available(self, app_state: AppState) -> bool:
        """Evaluate the availability predicate; no predicate means always."""
        if self.available_when is None:
            return True
        try:
            return bool(self.available_when(app_state))
        except Exception as e:
            logger.warning(
                "Availability check failed",
                provider=self.provider.provider_id,
                error=str(e),
            )
            return False


class ProviderRegistry:
    """
    Lookup table of search providers.

    Providers are registered once at startup and never replaced. The order
    of registration is the provider rank, used to break ties between result
    groups of equal priority. The registry holds no per-request state, so one
    instance can serve any number of search sessions.

    Example:
        >>> registry = ProviderRegistry()
        >>> registry.register(CoordinatesProvider())
        >>> registry.register(geoadmin, available_when=requires_layer("a"))
        >>> registry.available_providers(AppState(theme_layers=frozenset({"a"})))
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._entries: dict[str, RegisteredProvider] = {}

    def register(
        self,
        provider: SearchProvider,
        available_when: AvailabilityPredicate | None = None,
    ) -> None:
        """
        Register a provider.

        Args:
            provider: The provider to register.
            available_when: Optional predicate over the application state.

        Raises:
            ValueError: If the provider id is empty or already registered.
        """
        provider_id = provider.provider_id
        if not provider_id:
            msg = "provider_id cannot be empty"
            raise ValueError(msg)
        if provider_id in self._entries:
            msg = f"provider already registered: {provider_id}"
            raise ValueError(msg)
        self._entries[provider_id] = RegisteredProvider(
            provider=provider,
            available_when=available_when,
            rank=len(self._entries),
        )
        logger.debug("Registered search provider", provider=provider_id)

    def get(self, provider_id: str) -> Result[SearchProvider, ProviderNotFoundError]:
        """
        Get a provider by id.

        Returns:
            Result containing the provider or ProviderNotFoundError.
        """
        entry = self._entries.get(provider_id)
        if entry is None:
            return Failure(ProviderNotFoundError(provider_id))
        return Success(entry.provider)

    def available_providers(self, app_state: AppState) -> tuple[SearchProvider, ...]:
        """
        Return the providers that apply to ``app_state``, in rank order.

        Args:
            app_state: Current application state.
        """
        return tuple(
            entry.provider for entry in self._entries.values() if entry.is_available(app_state)
        )

    def rank(self, provider_id: str) -> int:
        """Return the registration rank of a provider; unknown ids rank last."""
        entry = self._entries.get(provider_id)
        return entry.rank if entry is not None else len(self._entries)

    def is_registered(self, provider_id: str) -> bool:
        """Check if a provider id is registered."""
        return provider_id in self._entries

    @property
    def provider_ids(self) -> list[str]:
        """Return all registered provider ids in rank order."""
        return list(self._entries)

    @property
    def provider_count(self) -> int:
        """Return the number of registered providers."""
        return len(self._entries)

    async def close(self) -> None:
        """Close every provider that holds resources."""
        for provider_id, entry in self._entries.items():
            if not isinstance(entry.provider, SupportsClose):
                continue
            try:
                await entry.provider.close()
            except Exception as e:
                logger.error("Error closing provider", provider=provider_id, error=str(e))
