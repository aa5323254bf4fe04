"""Coordinate search: interpret a typed pair of numbers as map positions."""

from __future__ import annotations

import math
import re
from typing import TYPE_CHECKING

from core.result import Result, success
from services.search.results import PlaceItem, ResultGroup

if TYPE_CHECKING:
    from services.providers.errors import ProviderError
    from services.search.types import SearchOptions

COORDINATE_PATTERN = re.compile(r"^\s*([+-]?\d+\.?\d*)[,\s]\s*([+-]?\d+\.?\d*)\s*$")

WGS84 = "EPSG:4326"
GEOGRAPHIC_CRS = frozenset({WGS84, "CRS:84"})


def _format_number(value: float) -> str:
    return str(int(value)) if value.is_integer() else str(value)


def _format_lonlat(lon: float, lat: float) -> str:
    east_west = "E" if lon >= 0 else "W"
    north_south = "N" if lat >= 0 else "S"
    return (
        f"{_format_number(abs(lon))}°{east_west}, "
        f"{_format_number(abs(lat))}°{north_south}"
    )


def parse_coordinates(
    text: str,
    display_crs: str,
    provider_id: str = "coordinates",
) -> list[PlaceItem]:
    """
    Interpret ``text`` as a coordinate pair.

    Up to three candidates are produced, in this order:

    1. the pair as-is in ``display_crs``, unless that CRS is geographic;
    2. the pair as (lon, lat) in WGS84, if both values are in range;
    3. the pair as (lat, lon) in WGS84, if both values are in range and
       differ, since equal values would repeat candidate 2.

    Args:
        text: User input, e.g. ``"46.5 6.6"`` or ``"2600000,1200000"``.
        display_crs: CRS the map is displayed in.
        provider_id: Id stamped on the items.

    Returns:
        Candidate items, ids ``coord0``.. in generation order; empty when the
        text is not a pair of numbers.
    """
    match = COORDINATE_PATTERN.match(text)
    if match is None:
        return []

    x = float(match.group(1))
    y = float(match.group(2))
    # Hundreds of digits overflow to inf
    if not (math.isfinite(x) and math.isfinite(y)):
        return []
    items: list[PlaceItem] = []

    def add(text: str, px: float, py: float, crs: str) -> None:
        items.append(
            PlaceItem(
                id=f"coord{len(items)}",
                text=text,
                x=px,
                y=py,
                crs=crs,
                provider_id=provider_id,
            )
        )

    if display_crs not in GEOGRAPHIC_CRS:
        add(f"{_format_number(x)}, {_format_number(y)} ({display_crs})", x, y, display_crs)
    if -180 <= x <= 180 and -90 <= y <= 90:
        add(_format_lonlat(x, y), x, y, WGS84)
    if -90 <= x <= 90 and -180 <= y <= 180 and x != y:
        add(_format_lonlat(y, x), y, x, WGS84)
    return items


class CoordinatesProvider:
    """
    Provider answering coordinate input without any network call.

    Its answer is a single group ``coords`` or nothing at all.
    """

    def __init__(self, provider_id: str = "coordinates") -> None:
        """Initialize the provider."""
        self._provider_id = provider_id

    @property
    def provider_id(self) -> str:
        """Return the provider id."""
        return self._provider_id

    @property
    def label(self) -> str | None:
        """Coordinates have no fixed label, only a message id."""
        return None

    @property
    def label_key(self) -> str | None:
        """Return the label message id."""
        return "search.coordinates"

    async def search(
        self,
        text: str,
        request_id: int,
        options: SearchOptions,
    ) -> Result[tuple[ResultGroup, ...], ProviderError]:
        """Return the coordinate interpretations of ``text``."""
        items = parse_coordinates(text, options.display_crs, self._provider_id)
        if not items:
            return success(())
        return success(
            (ResultGroup(id="coords", items=tuple(items), title_key="search.coordinates"),)
        )
