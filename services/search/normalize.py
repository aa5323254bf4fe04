"""
Helpers that every provider uses to normalize native payloads.

The contract is uniform even though each provider parses its own dialect:
every PLACE and MORE item carries the provider id, truncation is signalled
by a trailing MORE marker, and a malformed entry is skipped on its own
without dropping its siblings, its group, or the response.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from core.logging import get_logger
from services.search.results import (
    PLACE_WIRE_KEYS,
    MoreItem,
    PlaceItem,
    ResultGroup,
    ThemeLayerItem,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from services.search.results import ResultItem

logger = get_logger(__name__)

# What a parser may raise on an unexpected entry shape.
ENTRY_ERRORS = (KeyError, TypeError, ValueError, AttributeError, IndexError)


def normalize_entries[T](
    entries: Iterable[T],
    parse: Callable[[T], ResultItem],
    provider_id: str,
) -> list[ResultItem]:
    """
    Parse native entries into items, skipping the ones that fail.

    Items whose id was already produced by an earlier entry are skipped too,
    so the result can always be put into one group.

    Args:
        entries: Native entries in provider rank order.
        parse: Converts one entry, raising on malformed input.
        provider_id: Provider id, for logging.

    Returns:
        Parsed items in input order.
    """
    items: list[ResultItem] = []
    seen: set[str] = set()
    for index, entry in enumerate(entries):
        try:
            item = parse(entry)
        except ENTRY_ERRORS as e:
            logger.warning(
                "Skipping malformed result entry",
                provider=provider_id,
                index=index,
                error=str(e),
            )
            continue
        if item.id in seen:
            logger.warning(
                "Skipping duplicate result id",
                provider=provider_id,
                item_id=item.id,
            )
            continue
        seen.add(item.id)
        items.append(item)
    return items


def with_more_marker(
    items: Iterable[ResultItem],
    provider_id: str,
    marker_id: str,
    category: str | None = None,
) -> list[ResultItem]:
    """Append a MORE marker for ``category`` to ``items``."""
    return [*items, MoreItem(id=marker_id, provider_id=provider_id, category=category)]


def center_of(bbox: list[float] | tuple[float, ...]) -> tuple[float, float]:
    """Return the center point of ``(xmin, ymin, xmax, ymax)``."""
    xmin, ymin, xmax, ymax = (float(v) for v in bbox)
    return 0.5 * (xmin + xmax), 0.5 * (ymin + ymax)


def item_from_wire(data: dict[str, Any], provider_id: str) -> ResultItem:
    """
    Build one item from its wire representation.

    Items without ``type`` are told apart by their keys: ``more`` marks a
    MORE item, ``layerDefinition`` a theme layer, anything else is a place.
    A missing ``providerId`` falls back to the delivering provider.

    Raises:
        KeyError: If a required key is missing.
        ValueError: If the item violates the model invariants.
    """
    kind = data.get("type")
    if kind is None:
        if data.get("more"):
            kind = "MORE"
        elif "layerDefinition" in data or "layer" in data:
            kind = "THEMELAYER"
        else:
            kind = "PLACE"

    if kind == "MORE":
        return MoreItem(
            id=str(data["id"]),
            provider_id=data.get("providerId") or provider_id,
            category=data.get("category"),
        )
    if kind == "THEMELAYER":
        layer = data["layerDefinition"] if "layerDefinition" in data else data["layer"]
        return ThemeLayerItem(id=str(data["id"]), text=str(data["text"]), layer_definition=layer)
    if kind != "PLACE":
        msg = f"unknown result type: {kind!r}"
        raise ValueError(msg)

    bbox = data.get("bbox")
    return PlaceItem(
        id=str(data["id"]),
        text=str(data["text"]),
        x=float(data["x"]),
        y=float(data["y"]),
        crs=str(data["crs"]),
        provider_id=data.get("providerId") or provider_id,
        bbox=tuple(bbox) if bbox else None,
        label=data.get("label"),
        category=data.get("category"),
        attributes={k: v for k, v in data.items() if k not in PLACE_WIRE_KEYS},
    )


def groups_from_wire(data: Any, provider_id: str) -> tuple[ResultGroup, ...]:
    """
    Build groups from a payload already in the canonical wire schema.

    Malformed groups and items are skipped individually. A payload that is
    not a list yields no groups.

    Args:
        data: Decoded JSON payload.
        provider_id: Id of the delivering provider.

    Returns:
        The groups that could be built, in payload order.
    """
    if not isinstance(data, list):
        logger.warning(
            "Expected a list of result groups",
            provider=provider_id,
            payload_type=type(data).__name__,
        )
        return ()

    groups: list[ResultGroup] = []
    for raw in data:
        try:
            items = normalize_entries(
                raw.get("items") or [],
                lambda entry: item_from_wire(entry, provider_id),
                provider_id,
            )
            priority = raw.get("priority")
            groups.append(
                ResultGroup(
                    id=str(raw["id"]),
                    items=tuple(items),
                    title=raw.get("title"),
                    title_key=raw.get("titleKey") or raw.get("titlemsgid"),
                    priority=float(priority) if priority is not None else None,
                )
            )
        except ENTRY_ERRORS as e:
            logger.warning("Skipping malformed result group", provider=provider_id, error=str(e))
    return tuple(groups)
