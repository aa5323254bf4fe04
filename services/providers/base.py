"""Protocols for search providers.

``SearchProvider`` is the required capability. The optional ones are separate
runtime-checkable protocols so callers test for them explicitly with
``isinstance`` before using them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from core.result import Result
    from services.providers.errors import ProviderError
    from services.search.results import MoreItem, PlaceItem, ResultGeometry, ResultGroup
    from services.search.types import SearchOptions


@runtime_checkable
class SearchProvider(Protocol):
    """
    Protocol every search back-end implements.

    ``label`` is a display label, ``label_key`` a message id to translate;
    a provider sets at least one of them.
    """

    @property
    def provider_id(self) -> str:
        """Return the unique id of this provider."""
        ...

    @property
    def label(self) -> str | None:
        """Return the display label."""
        ...

    @property
    def label_key(self) -> str | None:
        """Return the message id of the label."""
        ...

    async def search(
        self,
        text: str,
        request_id: int,
        options: SearchOptions,
    ) -> Result[tuple[ResultGroup, ...], ProviderError]:
        """
        Search the back-end and normalize the answer.

        Args:
            text: Query text.
            request_id: Id of the request the answer belongs to.
            options: Search options.

        Returns:
            Result containing the normalized groups or a ProviderError.
        """
        ...


@runtime_checkable
class SupportsMoreResults(Protocol):
    """Provider that can expand a truncated group."""

    async def get_more_results(
        self,
        item: MoreItem,
        text: str,
        request_id: int,
    ) -> Result[tuple[ResultGroup, ...], ProviderError]:
        """
        Fetch the complete, untruncated group ``item`` stands for.

        The returned group has the id of the group it replaces.
        """
        ...


@runtime_checkable
class SupportsResultGeometry(Protocol):
    """Provider that can resolve the full geometry of its place items."""

    async def get_result_geometry(
        self,
        item: PlaceItem,
    ) -> Result[ResultGeometry, ProviderError]:
        """Fetch the geometry of ``item``."""
        ...


@runtime_checkable
class SupportsClose(Protocol):
    """Provider holding resources that must be released."""

    async def close(self) -> None:
        """Release resources held by the provider."""
        ...
