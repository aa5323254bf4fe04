"""
Canonical result model shared by every provider.

Providers normalize their native payloads into ``ResultGroup`` objects whose
items are one of three variants:

- ``PlaceItem``: a point-like location candidate with its own CRS and extent.
- ``ThemeLayerItem``: a reference to a map layer (or sublayer set) to activate.
- ``MoreItem``: a marker telling the UI that the group was truncated and can
  be expanded through the owning provider.

The ``to_wire`` methods produce the dictionaries the host UI consumes; their
field names are part of the public contract.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from collections.abc import Iterable

type BBox = tuple[float, float, float, float]


class ResultType(str, Enum):
    """Discriminator of the result item variants."""

    PLACE = "PLACE"
    THEMELAYER = "THEMELAYER"
    MORE = "MORE"


# Keys owned by the wire schema; provider attributes may not shadow them.
PLACE_WIRE_KEYS = frozenset(
    {"type", "id", "text", "label", "x", "y", "crs", "bbox", "providerId", "category"}
)


def _require_id(value: str, kind: str) -> None:
    if not isinstance(value, str) or not value:
        msg = f"{kind} id must be a non-empty string"
        raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class PlaceItem:
    """
    A location candidate.

    Attributes:
        id: Item id, unique within its group.
        text: Text shown in the result list.
        x: X coordinate in ``crs``.
        y: Y coordinate in ``crs``.
        crs: CRS of ``x``, ``y`` and ``bbox`` (e.g. ``EPSG:2056``).
        provider_id: Id of the provider that produced the item.
        bbox: Extent ``(xmin, ymin, xmax, ymax)``; the point itself when unknown.
        label: Optional text shown next to the map marker instead of ``text``.
        category: Optional provider category the item belongs to.
        attributes: Provider-private keys needed to resolve the geometry later.
    """

    type: ClassVar[ResultType] = ResultType.PLACE

    id: str
    text: str
    x: float
    y: float
    crs: str
    provider_id: str
    bbox: BBox | None = None
    label: str | None = None
    category: str | None = None
    attributes: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate coordinates, CRS and extent."""
        _require_id(self.id, "place")
        if not self.crs:
            msg = "place item requires a crs"
            raise ValueError(msg)
        if not self.provider_id:
            msg = "place item requires a provider_id"
            raise ValueError(msg)
        if not (math.isfinite(self.x) and math.isfinite(self.y)):
            msg = f"non-finite coordinates: {self.x}, {self.y}"
            raise ValueError(msg)

        if self.bbox is None:
            object.__setattr__(self, "bbox", (self.x, self.y, self.x, self.y))
            return

        bbox = tuple(float(v) for v in self.bbox)
        if len(bbox) != 4:
            msg = f"bbox must have 4 values, got {len(bbox)}"
            raise ValueError(msg)
        xmin, ymin, xmax, ymax = bbox
        if xmin > xmax or ymin > ymax:
            msg = f"malformed bbox: {bbox}"
            raise ValueError(msg)
        if not (xmin <= self.x <= xmax and ymin <= self.y <= ymax):
            msg = f"point ({self.x}, {self.y}) outside bbox {bbox}"
            raise ValueError(msg)
        object.__setattr__(self, "bbox", bbox)

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the wire schema."""
        data: dict[str, Any] = {
            key: value for key, value in self.attributes.items() if key not in PLACE_WIRE_KEYS
        }
        data.update(
            {
                "type": self.type.value,
                "id": self.id,
                "text": self.text,
                "x": self.x,
                "y": self.y,
                "crs": self.crs,
                "bbox": list(self.bbox or ()),
                "providerId": self.provider_id,
            }
        )
        if self.label is not None:
            data["label"] = self.label
        if self.category is not None:
            data["category"] = self.category
        return data


@dataclass(frozen=True, slots=True)
class ThemeLayerItem:
    """
    A map layer to activate when selected.

    Attributes:
        id: Item id, unique within its group.
        text: Text shown in the result list.
        layer_definition: Layer definition, e.g. ``{"sublayers": [...]}``.
    """

    type: ClassVar[ResultType] = ResultType.THEMELAYER

    id: str
    text: str
    layer_definition: Mapping[str, Any]

    def __post_init__(self) -> None:
        """Validate the item."""
        _require_id(self.id, "theme layer")
        if not isinstance(self.layer_definition, Mapping):
            msg = f"layer definition must be a mapping, got {type(self.layer_definition).__name__}"
            raise TypeError(msg)

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the wire schema."""
        return {
            "type": self.type.value,
            "id": self.id,
            "text": self.text,
            "layerDefinition": dict(self.layer_definition),
        }


@dataclass(frozen=True, slots=True)
class MoreItem:
    """
    Marker appended to a group the provider truncated.

    Attributes:
        id: Item id, unique within its group.
        provider_id: Provider to ask for the expanded set.
        category: Category to expand, when the provider has several.
    """

    type: ClassVar[ResultType] = ResultType.MORE
    more: ClassVar[bool] = True

    id: str
    provider_id: str
    category: str | None = None

    def __post_init__(self) -> None:
        """Validate the item."""
        _require_id(self.id, "more")
        if not self.provider_id:
            msg = "more item requires a provider_id"
            raise ValueError(msg)

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the wire schema."""
        data: dict[str, Any] = {
            "type": self.type.value,
            "id": self.id,
            "providerId": self.provider_id,
            "more": True,
        }
        if self.category is not None:
            data["category"] = self.category
        return data


type ResultItem = PlaceItem | ThemeLayerItem | MoreItem


@dataclass(frozen=True, slots=True)
class ResultGroup:
    """
    A titled, ordered bucket of result items.

    Attributes:
        id: Group id, chosen by the provider (e.g. ``nominatimgroup0``).
        items: Items in the order the provider ranked them.
        title: Display title.
        title_key: Message id to translate instead of ``title``.
        priority: Higher priorities are listed first; None sorts last.
    """

    id: str
    items: tuple[ResultItem, ...] = ()
    title: str | None = None
    title_key: str | None = None
    priority: float | None = None

    def __post_init__(self) -> None:
        """Validate the group and freeze its items."""
        _require_id(self.id, "group")
        if self.priority is not None and not math.isfinite(self.priority):
            msg = f"group priority must be finite, got {self.priority}"
            raise ValueError(msg)
        items = tuple(self.items)
        seen: set[str] = set()
        for item in items:
            if item.id in seen:
                msg = f"duplicate item id {item.id!r} in group {self.id!r}"
                raise ValueError(msg)
            seen.add(item.id)
        object.__setattr__(self, "items", items)

    def with_items(self, items: Iterable[ResultItem]) -> ResultGroup:
        """Return a copy of the group holding ``items``."""
        return replace(self, items=tuple(items))

    @property
    def is_truncated(self) -> bool:
        """Return True if the group ends with a MORE marker."""
        return bool(self.items) and isinstance(self.items[-1], MoreItem)

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the wire schema."""
        data: dict[str, Any] = {"id": self.id}
        if self.title is not None:
            data["title"] = self.title
        if self.title_key is not None:
            data["titleKey"] = self.title_key
        if self.priority is not None:
            data["priority"] = self.priority
        data["items"] = [item.to_wire() for item in self.items]
        return data


@dataclass(frozen=True, slots=True)
class ResultGeometry:
    """
    Full geometry of one place item.

    Attributes:
        item: The item the geometry belongs to.
        geometry: Geometry as text, typically WKT.
        crs: CRS of ``geometry``; may differ from ``item.crs``.
    """

    item: PlaceItem
    geometry: str
    crs: str


def groups_to_wire(groups: Iterable[ResultGroup]) -> list[dict[str, Any]]:
    """Serialize a group list to the wire schema."""
    return [group.to_wire() for group in groups]
