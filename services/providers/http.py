"""HTTP client shared by the network-backed search providers."""

from __future__ import annotations

from typing import Any

import httpx

from core.logging import get_logger
from core.result import Result, failure, success
from services.providers.errors import (
    InvalidRequestError,
    NetworkError,
    NotFoundError,
    ParseError,
    ProviderError,
    RateLimitError,
    ServiceUnavailableError,
)

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 30.0
DEFAULT_USER_AGENT = "mapsearch/0.1"
DEFAULT_RETRY_AFTER = 60


class ProviderHttpClient:
    """
    Thin wrapper around ``httpx.AsyncClient`` for one provider.

    Transport and HTTP failures come back as ``ProviderError`` values
    instead of exceptions, tagged with the provider id.

    Attributes:
        provider_id: Id of the provider using this client.
        timeout: Request timeout in seconds.
        user_agent: User-Agent header sent with every request.
    """

    def __init__(
        self,
        provider_id: str,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        """
        Initialize the client.

        Raises:
            ValueError: If provider_id is empty.
        """
        if not provider_id:
            msg = "provider_id is required"
            raise ValueError(msg)
        self.provider_id = provider_id
        self.timeout = timeout
        self.user_agent = user_agent
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers={"User-Agent": self.user_agent},
                follow_redirects=True,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def get_json(
        self,
        url: str,
        params: dict[str, Any] | None = None,
    ) -> Result[Any, ProviderError]:
        """
        GET ``url`` and decode the JSON body.

        Returns:
            Result containing the decoded body or a ProviderError.
        """
        response = await self._get(url, params)
        if response.is_failure():
            return response
        try:
            return success(response.value.json())
        except ValueError as e:
            logger.error("Failed to decode provider response", provider=self.provider_id, error=str(e))
            return failure(ParseError(provider_id=self.provider_id, details=str(e)))

    async def get_text(
        self,
        url: str,
        params: dict[str, Any] | None = None,
    ) -> Result[str, ProviderError]:
        """
        GET ``url`` and return the body as text.

        Returns:
            Result containing the body or a ProviderError.
        """
        response = await self._get(url, params)
        return response.map(lambda r: r.text)

    async def _get(
        self,
        url: str,
        params: dict[str, Any] | None,
    ) -> Result[httpx.Response, ProviderError]:
        client = await self._get_client()
        logger.debug("Provider request", provider=self.provider_id, url=url, params=params)
        try:
            response = await client.get(url, params=params)
        except httpx.TimeoutException:
            logger.error("Provider request timeout", provider=self.provider_id, url=url)
            return failure(NetworkError(provider_id=self.provider_id, message="Request timeout"))
        except httpx.RequestError as e:
            logger.error("Provider request error", provider=self.provider_id, url=url)
            return failure(
                NetworkError(
                    provider_id=self.provider_id,
                    message="Request failed",
                    details=str(e),
                )
            )
        return self._check_status(response)

    def _check_status(self, response: httpx.Response) -> Result[httpx.Response, ProviderError]:
        """Convert HTTP error statuses to ProviderErrors."""
        status = response.status_code
        if status < 400:
            return success(response)

        if status == 429:
            retry_after = response.headers.get("Retry-After")
            retry_seconds = int(retry_after) if retry_after and retry_after.isdigit() else DEFAULT_RETRY_AFTER
            logger.warning("Rate limited by provider", provider=self.provider_id, retry_after=retry_seconds)
            return failure(RateLimitError(provider_id=self.provider_id, retry_after=retry_seconds))

        if status == 404:
            return failure(NotFoundError(provider_id=self.provider_id))

        logger.error("Provider returned an error status", provider=self.provider_id, status_code=status)
        details = response.text[:500]
        if status >= 500:
            return failure(
                ServiceUnavailableError(
                    provider_id=self.provider_id,
                    message=f"Service returned status {status}",
                    details=details,
                )
            )
        return failure(
            InvalidRequestError(
                provider_id=self.provider_id,
                message=f"API returned status {status}",
                details=details,
            )
        )


class HttpBackedProvider:
    """
    Common plumbing of providers that query one HTTP back-end.

    Subclasses implement ``search`` and any optional capabilities.
    """

    def __init__(
        self,
        provider_id: str,
        label: str,
        client: ProviderHttpClient | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        """
        Initialize the provider.

        Args:
            provider_id: Unique provider id.
            label: Display label.
            client: Optional pre-configured client for testing.
            timeout: Request timeout when no client is given.
            user_agent: User-Agent when no client is given.
        """
        self._provider_id = provider_id
        self._label = label
        self._client = client or ProviderHttpClient(provider_id, timeout=timeout, user_agent=user_agent)

    @property
    def provider_id(self) -> str:
        """Return the provider id."""
        return self._provider_id

    @property
    def label(self) -> str | None:
        """Return the display label."""
        return self._label

    @property
    def label_key(self) -> str | None:
        """HTTP providers use plain labels."""
        return None

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.close()
