"""Providers for municipal ``search.wsgi`` catalogs.

These services answer with one flat list: an entry without ``bbox`` opens a
new group titled by its ``displaytext``, the entries after it are the
group's places. Places before the first header have no group and are
dropped. Geometries are served by a companion ``getSearchGeom.wsgi``.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar

from core.logging import get_logger
from core.result import Result, failure, success
from services.providers.errors import ParseError, ProviderError, UnsupportedError
from services.providers.http import HttpBackedProvider
from services.search.normalize import center_of
from services.search.results import PlaceItem, ResultGeometry, ResultGroup

if TYPE_CHECKING:
    from services.providers.http import ProviderHttpClient
    from services.search.types import SearchOptions

logger = get_logger(__name__)


class WsgiSearchProvider(HttpBackedProvider, ABC):
    """
    Base provider for the ``search.wsgi`` dialect.

    Subclasses must set ``crs`` and ``id_prefix`` and implement
    ``geometry_params``; ``search_params`` has a plain default.
    """

    crs: ClassVar[str]
    id_prefix: ClassVar[str]

    def __init__(
        self,
        provider_id: str,
        label: str,
        base_url: str,
        client: ProviderHttpClient | None = None,
        **client_options: Any,
    ) -> None:
        """
        Initialize the provider.

        Args:
            provider_id: Provider id.
            label: Display label.
            base_url: URL of the directory holding the ``.wsgi`` scripts.
            client: Optional pre-configured client for testing.
            **client_options: ``timeout`` / ``user_agent`` for the default client.
        """
        super().__init__(provider_id, label, client, **client_options)
        self._base_url = base_url.rstrip("/")

    def search_params(self, text: str) -> dict[str, Any]:
        """Return the query parameters of a search request."""
        return {"query": text}

    @abstractmethod
    def geometry_params(self, item: PlaceItem) -> dict[str, Any]:
        """Return the query parameters of a geometry request."""

    def item_attributes(self, entry: dict[str, Any]) -> dict[str, Any]:
        """Return the entry keys needed later to fetch the geometry."""
        return {"searchtable": entry.get("searchtable")}

    async def search(
        self,
        text: str,
        request_id: int,
        options: SearchOptions,
    ) -> Result[tuple[ResultGroup, ...], ProviderError]:
        """Search the catalog."""
        result = await self._client.get_json(
            f"{self._base_url}/search.wsgi",
            params=self.search_params(text),
        )
        return result.and_then(self._parse_payload)

    def _parse_payload(self, data: Any) -> Result[tuple[ResultGroup, ...], ProviderError]:
        if not isinstance(data, dict):
            return failure(ParseError(provider_id=self.provider_id, details="expected an object"))
        return success(self._parse_groups(data.get("results") or []))

    async def get_result_geometry(
        self,
        item: PlaceItem,
    ) -> Result[ResultGeometry, ProviderError]:
        """Fetch the geometry of ``item`` as WKT."""
        if "searchtable" not in item.attributes:
            return failure(
                UnsupportedError(provider_id=self.provider_id, details="item has no searchtable")
            )
        result = await self._client.get_text(
            f"{self._base_url}/getSearchGeom.wsgi",
            params=self.geometry_params(item),
        )
        return result.map(lambda wkt: ResultGeometry(item=item, geometry=wkt, crs=self.crs))

    def _parse_groups(self, entries: list[dict[str, Any]]) -> tuple[ResultGroup, ...]:
        """Split the flat entry list into groups at each header entry."""
        groups: list[tuple[str, str, list[PlaceItem]]] = []
        counter = 0
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            if not entry.get("bbox"):
                groups.append(
                    (f"{self.id_prefix}group{len(groups)}", str(entry.get("displaytext", "")), [])
                )
                continue
            if not groups:
                continue
            try:
                item = self._parse_place(entry, f"{self.id_prefix}result{counter}")
            except (KeyError, TypeError, ValueError, IndexError) as e:
                logger.warning("Skipping malformed result entry", provider=self.provider_id, error=str(e))
                continue
            counter += 1
            groups[-1][2].append(item)

        return tuple(
            ResultGroup(id=group_id, title=title, items=tuple(items))
            for group_id, title, items in groups
            if items
        )

    def _parse_place(self, entry: dict[str, Any], item_id: str) -> PlaceItem:
        bbox = tuple(float(v) for v in entry["bbox"][:4])
        x, y = center_of(bbox)
        return PlaceItem(
            id=item_id,
            text=str(entry["displaytext"]),
            x=x,
            y=y,
            crs=self.crs,
            bbox=bbox,
            provider_id=self.provider_id,
            attributes=self.item_attributes(entry),
        )


class UsterProvider(WsgiSearchProvider):
    """Search of the city of Uster (LV03)."""

    crs = "EPSG:21781"
    id_prefix = "uster"

    def __init__(
        self,
        base_url: str = "https://webgis.uster.ch/wsgi",
        client: ProviderHttpClient | None = None,
        **client_options: Any,
    ) -> None:
        """Initialize the provider."""
        super().__init__("uster", "Uster", base_url, client, **client_options)

    def search_params(self, text: str) -> dict[str, Any]:
        """Search every table."""
        return {"searchtables": "", "query": text}

    def geometry_params(self, item: PlaceItem) -> dict[str, Any]:
        """Uster identifies a geometry by table and display text."""
        return {"searchtable": item.attributes["searchtable"], "displaytext": item.text}


class WolfsburgProvider(WsgiSearchProvider):
    """Search of the city of Wolfsburg (ETRS89 / UTM 32N)."""

    crs = "EPSG:25832"
    id_prefix = "wolfsburg"

    SEARCH_TABLES = ("Infrastruktur", "Stadt- und Ortsteile")
    SEARCH_FILTERS = ("Abfallwirtschaft,Haltestellen,Hilfsorganisationen", "")

    def __init__(
        self,
        base_url: str = "https://geoportal.stadt.wolfsburg.de/wsgi",
        result_limit: int = 100,
        client: ProviderHttpClient | None = None,
        **client_options: Any,
    ) -> None:
        """Initialize the provider."""
        super().__init__("wolfsburg", "Wolfsburg", base_url, client, **client_options)
        self._result_limit = result_limit

    def search_params(self, text: str) -> dict[str, Any]:
        """Search the infrastructure and district tables of the city area."""
        return {
            "query": text,
            "searchTables": json.dumps(list(self.SEARCH_TABLES)),
            "searchFilters": json.dumps(list(self.SEARCH_FILTERS)),
            "searchArea": "Wolfsburg",
            "searchCenter": "",
            "searchRadius": "",
            "topic": "stadtplan",
            "resultLimit": self._result_limit,
            "resultLimitCategory": self._result_limit,
        }

    def item_attributes(self, entry: dict[str, Any]) -> dict[str, Any]:
        """Keep the table and the object id."""
        return {"searchtable": entry.get("searchtable"), "oid": entry.get("id")}

    def geometry_params(self, item: PlaceItem) -> dict[str, Any]:
        """Wolfsburg identifies a geometry by table and object id."""
        return {"searchtable": item.attributes["searchtable"], "id": item.attributes.get("oid")}
