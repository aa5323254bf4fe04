"""Canton of Glarus search provider."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from core.logging import get_logger
from core.result import Result, failure, success
from services.providers.errors import ParseError, ProviderError, UnsupportedError
from services.providers.http import HttpBackedProvider
from services.search.normalize import center_of, normalize_entries, with_more_marker
from services.search.results import PlaceItem, ResultGeometry, ResultGroup

if TYPE_CHECKING:
    from services.providers.http import ProviderHttpClient
    from services.search.results import MoreItem, ResultItem
    from services.search.types import SearchOptions

logger = get_logger(__name__)

GLARUS_URL = "https://map.geo.gl.ch/search"
GLARUS_CRS = "EPSG:2056"


class GlarusProvider(HttpBackedProvider):
    """
    Search of the Glarus geoportal.

    The catalog answers one group per category. The combined search asks for
    at most ``limit`` features per category; a category that came back with
    more than that gets a MORE marker, and expanding it re-queries that
    single category without limit. The expanded group keeps the category as
    its id, so it replaces the truncated one.
    """

    def __init__(
        self,
        url: str = GLARUS_URL,
        limit: int = 9,
        client: ProviderHttpClient | None = None,
        *,
        provider_id: str = "glarus",
        label: str = "Glarus",
        **client_options: Any,
    ) -> None:
        """Initialize the provider."""
        super().__init__(provider_id, label, client, **client_options)
        self._url = url.rstrip("/")
        self._limit = limit

    async def search(
        self,
        text: str,
        request_id: int,
        options: SearchOptions,
    ) -> Result[tuple[ResultGroup, ...], ProviderError]:
        """Search all categories."""
        result = await self._client.get_json(
            f"{self._url}/all",
            params={"limit": self._limit, "query": text},
        )
        return result.and_then(lambda data: self._parse_response(data, limit=self._limit))

    async def get_more_results(
        self,
        item: MoreItem,
        text: str,
        request_id: int,
    ) -> Result[tuple[ResultGroup, ...], ProviderError]:
        """Fetch every feature of the marker's category."""
        if not item.category:
            return failure(
                UnsupportedError(provider_id=self.provider_id, details="more item without category")
            )
        result = await self._client.get_json(f"{self._url}/{item.category}", params={"query": text})
        return result.and_then(lambda data: self._parse_response(data, limit=None))

    async def get_result_geometry(
        self,
        item: PlaceItem,
    ) -> Result[ResultGeometry, ProviderError]:
        """Fetch the geometry of ``item`` as WKT."""
        if not item.category:
            return failure(
                UnsupportedError(provider_id=self.provider_id, details="item without category")
            )
        result = await self._client.get_text(
            f"{self._url}/{item.category}/geometry",
            params={"id": item.id},
        )
        return result.map(lambda wkt: ResultGeometry(item=item, geometry=wkt, crs=GLARUS_CRS))

    def _parse_response(
        self,
        data: Any,
        limit: int | None,
    ) -> Result[tuple[ResultGroup, ...], ProviderError]:
        if not isinstance(data, dict):
            return failure(ParseError(provider_id=self.provider_id, details="expected an object"))

        groups: list[ResultGroup] = []
        markers = 0
        for raw in data.get("results") or []:
            try:
                group = self._parse_group(raw, limit, marker_id=f"glarusmore{markers}")
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning("Skipping malformed category", provider=self.provider_id, error=str(e))
                continue
            if group.is_truncated:
                markers += 1
            groups.append(group)
        return success(tuple(groups))

    def _parse_group(self, raw: dict[str, Any], limit: int | None, marker_id: str) -> ResultGroup:
        category = str(raw["category"])
        features = raw.get("features") or []
        items: list[ResultItem] = normalize_entries(
            features,
            lambda feature: self._parse_feature(feature, category),
            self.provider_id,
        )
        if limit is not None and len(features) > limit:
            items = with_more_marker(items, self.provider_id, marker_id, category)
        return ResultGroup(id=category, title=raw.get("name") or category, items=tuple(items))

    def _parse_feature(self, feature: dict[str, Any], category: str) -> PlaceItem:
        bbox = tuple(float(v) for v in feature["bbox"][:4])
        x, y = center_of(bbox)
        return PlaceItem(
            id=str(feature["id"]),
            text=str(feature["name"]),
            x=x,
            y=y,
            crs=GLARUS_CRS,
            bbox=bbox,
            provider_id=self.provider_id,
            category=category,
        )
