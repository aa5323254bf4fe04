"""OpenStreetMap Nominatim geocoder provider."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from core.logging import get_logger
from core.result import Result, failure, success
from services.providers.errors import ParseError, ProviderError
from services.providers.http import HttpBackedProvider
from services.search.normalize import center_of, normalize_entries
from services.search.results import PlaceItem, ResultGroup

if TYPE_CHECKING:
    from services.providers.http import ProviderHttpClient
    from services.search.types import SearchOptions

logger = get_logger(__name__)

NOMINATIM_URL = "https://nominatim.openstreetmap.org/search"
ADDRESS_FIELDS = ("town", "city", "state", "country")


class NominatimProvider(HttpBackedProvider):
    """
    Geocoding through Nominatim.

    Answers are grouped by OSM ``class`` (``place``, ``highway``, ...), groups
    in the order their first entry appears.
    """

    def __init__(
        self,
        url: str = NOMINATIM_URL,
        limit: int = 20,
        client: ProviderHttpClient | None = None,
        *,
        provider_id: str = "nominatim",
        label: str = "OpenStreetMap",
        **client_options: Any,
    ) -> None:
        """
        Initialize the provider.

        Args:
            url: Nominatim search endpoint.
            limit: Maximum number of answers to request.
            client: Optional pre-configured client for testing.
            provider_id: Provider id.
            label: Display label.
            **client_options: ``timeout`` / ``user_agent`` for the default client.
        """
        super().__init__(provider_id, label, client, **client_options)
        self._url = url
        self._limit = limit

    async def search(
        self,
        text: str,
        request_id: int,
        options: SearchOptions,
    ) -> Result[tuple[ResultGroup, ...], ProviderError]:
        """Geocode ``text``."""
        result = await self._client.get_json(
            self._url,
            params={"q": text, "addressdetails": 1, "limit": self._limit, "format": "json"},
        )
        return result.and_then(self._parse_payload)

    def _parse_payload(self, data: Any) -> Result[tuple[ResultGroup, ...], ProviderError]:
        if not isinstance(data, list):
            return failure(ParseError(provider_id=self.provider_id, details="expected a list of places"))
        return success(self._parse_groups(data))

    def _parse_groups(self, entries: list[dict[str, Any]]) -> tuple[ResultGroup, ...]:
        """Group entries by OSM class."""
        by_class: dict[str, list[dict[str, Any]]] = {}
        for entry in entries:
            osm_class = entry.get("class") if isinstance(entry, dict) else None
            if not isinstance(osm_class, str) or not osm_class:
                logger.warning("Skipping place without class", provider=self.provider_id)
                continue
            by_class.setdefault(osm_class, []).append(entry)

        groups = []
        for index, (osm_class, class_entries) in enumerate(by_class.items()):
            items = normalize_entries(class_entries, self._parse_place, self.provider_id)
            if items:
                groups.append(
                    ResultGroup(
                        id=f"nominatimgroup{index}",
                        items=tuple(items),
                        title=osm_class[0].upper() + osm_class[1:],
                    )
                )
        return tuple(groups)

    def _parse_place(self, entry: dict[str, Any]) -> PlaceItem:
        """
        Parse one Nominatim place.

        Nominatim orders the bounding box ``[miny, maxy, minx, maxx]``.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If coordinates cannot be parsed.
        """
        short = ", ".join(entry["display_name"].split(", ")[:3])
        address = entry.get("address") or {}
        parts = [address[key] for key in ADDRESS_FIELDS if address.get(key)]
        text = f"{short} ({', '.join(parts)})" if parts else short

        miny, maxy, minx, maxx = (float(v) for v in entry["boundingbox"])
        bbox = (minx, miny, maxx, maxy)
        x, y = center_of(bbox)
        return PlaceItem(
            id=str(entry["place_id"]),
            text=text,
            label=short,
            x=x,
            y=y,
            crs="EPSG:4326",
            bbox=bbox,
            provider_id=self.provider_id,
        )
