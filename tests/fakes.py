"""In-memory providers and item builders shared by the test modules."""

from __future__ import annotations

import asyncio
from typing import Any

from core.result import failure, success
from services.providers.errors import ProviderError
from services.search.results import MoreItem, PlaceItem, ResultGeometry, ResultGroup


def place(
    item_id: str,
    provider_id: str = "fake",
    x: float = 1.0,
    y: float = 2.0,
    **kwargs: Any,
) -> PlaceItem:
    """Build a place item with sensible defaults."""
    kwargs.setdefault("crs", "EPSG:2056")
    return PlaceItem(id=item_id, text=item_id, x=x, y=y, provider_id=provider_id, **kwargs)


def group(group_id: str, *item_ids: str, provider_id: str = "fake", **kwargs: Any) -> ResultGroup:
    """Build a group holding place items ``item_ids``."""
    return ResultGroup(
        id=group_id,
        items=tuple(place(item_id, provider_id) for item_id in item_ids),
        **kwargs,
    )


class StaticProvider:
    """
    Provider answering every search with the same groups.

    ``gate`` holds the answer back until the test sets it; ``exc`` is raised
    and ``error`` returned as a Failure instead of answering.
    """

    def __init__(
        self,
        provider_id: str,
        groups: tuple[ResultGroup, ...] = (),
        *,
        error: ProviderError | None = None,
        exc: Exception | None = None,
        gate: asyncio.Event | None = None,
        delay: float = 0.0,
    ) -> None:
        self._provider_id = provider_id
        self.groups = groups
        self.error = error
        self.exc = exc
        self.gate = gate
        self.delay = delay
        self.calls: list[tuple[str, int]] = []

    @property
    def provider_id(self) -> str:
        return self._provider_id

    @property
    def label(self) -> str | None:
        return self._provider_id.title()

    @property
    def label_key(self) -> str | None:
        return None

    async def search(self, text: str, request_id: int, options: Any) -> Any:
        self.calls.append((text, request_id))
        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.exc is not None:
            raise self.exc
        if self.error is not None:
            return failure(self.error)
        return success(self.groups)


class ExpandableProvider(StaticProvider):
    """Provider that can expand a truncated group."""

    def __init__(self, provider_id: str, groups=(), more_groups=(), **kwargs: Any) -> None:
        super().__init__(provider_id, groups, **kwargs)
        self.more_groups = more_groups
        self.more_error: ProviderError | None = None
        self.more_exc: Exception | None = None
        self.more_calls: list[tuple[MoreItem, str, int]] = []

    async def get_more_results(self, item: MoreItem, text: str, request_id: int) -> Any:
        self.more_calls.append((item, text, request_id))
        if self.more_exc is not None:
            raise self.more_exc
        if self.more_error is not None:
            return failure(self.more_error)
        return success(self.more_groups)


class GeometryProvider(StaticProvider):
    """Provider that resolves geometries to a fixed WKT string."""

    def __init__(
        self,
        provider_id: str,
        wkt: str = "POINT(1 2)",
        crs: str = "EPSG:2056",
        **kwargs: Any,
    ) -> None:
        super().__init__(provider_id, **kwargs)
        self.wkt = wkt
        self.crs = crs
        self.geometry_error: ProviderError | None = None
        self.geometry_exc: Exception | None = None

    async def get_result_geometry(self, item: PlaceItem) -> Any:
        if self.geometry_exc is not None:
            raise self.geometry_exc
        if self.geometry_error is not None:
            return failure(self.geometry_error)
        return success(ResultGeometry(item=item, geometry=self.wkt, crs=self.crs))


class ClosableProvider(StaticProvider):
    """Provider holding a resource that must be released."""

    def __init__(self, provider_id: str, *, close_exc: Exception | None = None, **kwargs: Any) -> None:
        super().__init__(provider_id, **kwargs)
        self.closed = False
        self.close_exc = close_exc

    async def close(self) -> None:
        if self.close_exc is not None:
            raise self.close_exc
        self.closed = True
