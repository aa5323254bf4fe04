"""Swisstopo geo.admin.ch location search provider."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from core.result import Result, failure, success
from services.providers.errors import ParseError, ProviderError
from services.providers.http import HttpBackedProvider
from services.search.normalize import normalize_entries
from services.search.results import BBox, PlaceItem, ResultGroup

if TYPE_CHECKING:
    from services.providers.http import ProviderHttpClient
    from services.search.types import SearchOptions

GEOADMIN_URL = "https://api3.geo.admin.ch/rest/services/api/SearchServer"
GEOADMIN_CRS = "EPSG:2056"

CATEGORY_TITLES: dict[str, str] = {
    "gg25": "Municipalities",
    "kantone": "Cantons",
    "district": "Districts",
    "sn25": "Places",
    "zipcode": "Zip Codes",
    "address": "Address",
    "gazetteer": "General place name directory",
}

_NUMBER = r"([+-]?\d+\.?\d*)"
BOX_PATTERN = re.compile(
    rf"^BOX\s*\(\s*{_NUMBER}\s+{_NUMBER}\s*,\s*{_NUMBER}\s+{_NUMBER}\s*\)$"
)


def parse_box(value: str | None) -> BBox | None:
    """Parse a PostGIS ``BOX(xmin ymin,xmax ymax)`` string."""
    if not value:
        return None
    match = BOX_PATTERN.match(value.strip())
    if match is None:
        return None
    xmin, ymin, xmax, ymax = (float(v) for v in match.groups())
    return xmin, ymin, xmax, ymax


class GeoAdminProvider(HttpBackedProvider):
    """
    Location search of the Swiss federal geoportal.

    Coordinates are requested in LV95. The service names the axes the other
    way round: ``attrs.y`` is the easting and ``attrs.x`` the northing. The
    extent is only kept when it contains the point, otherwise the item
    collapses to the point.
    """

    def __init__(
        self,
        url: str = GEOADMIN_URL,
        limit: int = 20,
        client: ProviderHttpClient | None = None,
        *,
        provider_id: str = "geoadmin",
        label: str = "Swisstopo",
        **client_options: Any,
    ) -> None:
        """Initialize the provider."""
        super().__init__(provider_id, label, client, **client_options)
        self._url = url
        self._limit = limit

    async def search(
        self,
        text: str,
        request_id: int,
        options: SearchOptions,
    ) -> Result[tuple[ResultGroup, ...], ProviderError]:
        """Search locations matching ``text``."""
        result = await self._client.get_json(
            self._url,
            params={
                "searchText": text,
                "type": "locations",
                "limit": self._limit,
                "sr": GEOADMIN_CRS.removeprefix("EPSG:"),
            },
        )
        return result.and_then(self._parse_payload)

    def _parse_payload(self, data: Any) -> Result[tuple[ResultGroup, ...], ProviderError]:
        if not isinstance(data, dict):
            return failure(ParseError(provider_id=self.provider_id, details="expected an object"))
        return success(self._parse_groups(data.get("results") or []))

    def _parse_groups(self, entries: list[dict[str, Any]]) -> tuple[ResultGroup, ...]:
        """Group entries by their ``origin`` category."""
        by_origin: dict[str, list[dict[str, Any]]] = {}
        for entry in entries:
            try:
                origin = str(entry["attrs"]["origin"])
            except (KeyError, TypeError):
                continue
            by_origin.setdefault(origin, []).append(entry)

        groups = []
        for origin, origin_entries in by_origin.items():
            items = normalize_entries(origin_entries, self._parse_location, self.provider_id)
            if items:
                groups.append(
                    ResultGroup(
                        id=origin,
                        items=tuple(items),
                        title=CATEGORY_TITLES.get(origin, origin),
                    )
                )
        return tuple(groups)

    def _parse_location(self, entry: dict[str, Any]) -> PlaceItem:
        """Parse one location entry."""
        attrs = entry["attrs"]
        x = float(attrs["y"])
        y = float(attrs["x"])
        bbox = parse_box(attrs.get("geom_st_box2d"))
        if bbox is not None and not (bbox[0] <= x <= bbox[2] and bbox[1] <= y <= bbox[3]):
            bbox = None
        return PlaceItem(
            id=str(entry["id"]),
            text=_strip_markup(str(attrs["label"])),
            x=x,
            y=y,
            crs=GEOADMIN_CRS,
            bbox=bbox,
            provider_id=self.provider_id,
            category=str(attrs["origin"]),
        )


_TAG_PATTERN = re.compile(r"<[^>]+>")


def _strip_markup(label: str) -> str:
    # Labels come with <b>..</b> highlighting
    return _TAG_PATTERN.sub("", label).strip()
