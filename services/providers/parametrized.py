"""Provider configured from a theme search provider entry."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from core.result import Result
from services.providers.http import HttpBackedProvider
from services.search.normalize import groups_from_wire

if TYPE_CHECKING:
    from core.config import ParametrizedProviderConfig
    from services.providers.errors import ProviderError
    from services.providers.http import ProviderHttpClient
    from services.search.results import ResultGroup
    from services.search.types import SearchOptions


class ParametrizedProvider(HttpBackedProvider):
    """
    Search service that already answers in the canonical wire schema.

    Several providers can share one endpoint; each sends its own ``param``.
    """

    def __init__(
        self,
        url: str,
        config: ParametrizedProviderConfig,
        client: ProviderHttpClient | None = None,
        **client_options: Any,
    ) -> None:
        """
        Initialize the provider.

        Args:
            url: Search endpoint.
            config: Configured entry (key, label, param, layer name).
            client: Optional pre-configured client for testing.
            **client_options: ``timeout`` / ``user_agent`` for the default client.

        Raises:
            ValueError: If the URL is empty.
        """
        if not url:
            msg = f"no search URL configured for provider {config.key}"
            raise ValueError(msg)
        super().__init__(config.key, config.label or config.key, client, **client_options)
        self._url = url
        self._param = config.param

    async def search(
        self,
        text: str,
        request_id: int,
        options: SearchOptions,
    ) -> Result[tuple[ResultGroup, ...], ProviderError]:
        """Query the endpoint and read its canonical answer."""
        result = await self._client.get_json(
            self._url,
            params={"param": self._param, "searchtext": text},
        )
        return result.map(lambda data: groups_from_wire(data, self.provider_id))
