"""On-demand geometry resolution for displayed place items."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from core.logging import get_logger
from core.result import Failure, Result, failure
from services.providers.base import SupportsResultGeometry
from services.search.errors import SearchEngineError

if TYPE_CHECKING:
    from collections.abc import Callable

    from services.search.registry import ProviderRegistry
    from services.search.results import PlaceItem, ResultGeometry

    type GeometryCallback = Callable[[PlaceItem, str, str], None]
    type GeometryErrorCallback = Callable[[PlaceItem, SearchEngineError], None]

logger = get_logger(__name__)


class GeometryResolver:
    """
    Fetches the full geometry of one place item from its provider.

    Resolution is independent of request correlation: an item the user has
    selected stays relevant whatever was searched since. The geometry comes
    back in the provider's CRS, which may differ from the item's; it is
    never reprojected here.
    """

    def __init__(self, registry: ProviderRegistry) -> None:
        """Initialize the resolver."""
        self._registry = registry
        self._tasks: set[asyncio.Task[None]] = set()

    def supports(self, item: PlaceItem) -> bool:
        """Return True if the item's provider can resolve geometries."""
        lookup = self._registry.get(item.provider_id)
        return not isinstance(lookup, Failure) and isinstance(lookup.value, SupportsResultGeometry)

    async def resolve(self, item: PlaceItem) -> Result[ResultGeometry, SearchEngineError]:
        """
        Resolve the geometry of ``item``.

        Failures are returned, not retried.

        Args:
            item: A place item produced by a registered provider.

        Returns:
            Result containing the geometry or a SearchEngineError.
        """
        lookup = self._registry.get(item.provider_id)
        if isinstance(lookup, Failure):
            return failure(SearchEngineError("Unknown provider", details=item.provider_id))
        provider = lookup.value
        if not isinstance(provider, SupportsResultGeometry):
            return failure(
                SearchEngineError(
                    "Provider does not support result geometry",
                    details=item.provider_id,
                )
            )

        try:
            result = await provider.get_result_geometry(item)
        except Exception as e:
            logger.warning(
                "Geometry resolution failed",
                provider=item.provider_id,
                item_id=item.id,
                error=str(e),
            )
            return failure(SearchEngineError("Geometry resolution failed", details=str(e)))

        if isinstance(result, Failure):
            logger.warning(
                "Geometry resolution returned an error",
                provider=item.provider_id,
                item_id=item.id,
                error=str(result.error),
            )
        return result.map_error(
            lambda error: SearchEngineError("Geometry resolution failed", details=str(error))
        )

    def schedule(
        self,
        item: PlaceItem,
        callback: GeometryCallback,
        on_error: GeometryErrorCallback | None = None,
    ) -> asyncio.Task[None]:
        """
        Resolve in the background and report through callbacks.

        ``callback(item, geometry, crs)`` is called exactly once on success;
        otherwise ``on_error(item, error)`` is, when given. Exceptions raised
        by either callback are logged and do not fail the task.

        Returns:
            The scheduled task, done once a callback has run.
        """
        task = asyncio.create_task(
            self._resolve_and_report(item, callback, on_error),
            name=f"geometry:{item.provider_id}:{item.id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _resolve_and_report(
        self,
        item: PlaceItem,
        callback: GeometryCallback,
        on_error: GeometryErrorCallback | None,
    ) -> None:
        result = await self.resolve(item)
        try:
            if isinstance(result, Failure):
                if on_error is not None:
                    on_error(item, result.error)
                return
            geometry = result.value
            callback(item, geometry.geometry, geometry.crs)
        except Exception:
            logger.exception("Geometry callback failed", provider=item.provider_id, item_id=item.id)
