"""Tests for the canonical result model."""

from __future__ import annotations

import math

import pytest

from services.search.results import (
    MoreItem,
    PlaceItem,
    ResultGroup,
    ResultType,
    ThemeLayerItem,
    groups_to_wire,
)


class TestPlaceItem:
    """Tests for PlaceItem."""

    def test_bbox_defaults_to_point(self) -> None:
        """An item without extent zooms to its point."""
        item = PlaceItem(id="1", text="Bern", x=7.4, y=46.9, crs="EPSG:4326", provider_id="p")

        assert item.bbox == (7.4, 46.9, 7.4, 46.9)

    def test_bbox_is_normalized_to_floats(self) -> None:
        """Integer extents are stored as floats."""
        item = PlaceItem(
            id="1", text="t", x=1, y=1, crs="EPSG:2056", provider_id="p", bbox=[0, 0, 2, 2]
        )

        assert item.bbox == (0.0, 0.0, 2.0, 2.0)

    @pytest.mark.parametrize(
        "bbox",
        [
            (0.0, 0.0, 1.0),
            (2.0, 0.0, 1.0, 1.0),
            (5.0, 5.0, 6.0, 6.0),
        ],
        ids=["three-values", "inverted", "point-outside"],
    )
    def test_invalid_bbox(self, bbox: tuple[float, ...]) -> None:
        """Malformed extents and extents missing the point are rejected."""
        with pytest.raises(ValueError):
            PlaceItem(id="1", text="t", x=0.5, y=0.5, crs="EPSG:2056", provider_id="p", bbox=bbox)

    def test_point_on_bbox_edge_is_valid(self) -> None:
        """The extent is inclusive."""
        item = PlaceItem(
            id="1", text="t", x=1.0, y=0.0, crs="EPSG:2056", provider_id="p", bbox=(0, 0, 1, 1)
        )

        assert item.bbox == (0.0, 0.0, 1.0, 1.0)

    @pytest.mark.parametrize(
        "changes",
        [
            {"id": ""},
            {"crs": ""},
            {"provider_id": ""},
            {"x": math.nan},
            {"y": math.inf},
        ],
    )
    def test_required_fields(self, changes: dict[str, object]) -> None:
        """Ids, CRS, provider and finite coordinates are required."""
        fields = {"id": "1", "text": "t", "x": 0.0, "y": 0.0, "crs": "EPSG:2056", "provider_id": "p"}
        fields.update(changes)

        with pytest.raises(ValueError):
            PlaceItem(**fields)

    def test_is_immutable(self) -> None:
        """Items cannot be changed after creation."""
        item = PlaceItem(id="1", text="t", x=0, y=0, crs="EPSG:2056", provider_id="p")

        with pytest.raises(AttributeError):
            item.text = "other"  # type: ignore[misc]

    def test_to_wire(self) -> None:
        """The wire form uses the public field names."""
        item = PlaceItem(
            id="12",
            text="Uster (ZH)",
            x=1.0,
            y=2.0,
            crs="EPSG:21781",
            provider_id="uster",
            label="Uster",
            category="gg25",
            attributes={"searchtable": "gemeinden", "providerId": "spoofed"},
        )

        assert item.to_wire() == {
            "type": "PLACE",
            "id": "12",
            "text": "Uster (ZH)",
            "label": "Uster",
            "x": 1.0,
            "y": 2.0,
            "crs": "EPSG:21781",
            "bbox": [1.0, 2.0, 1.0, 2.0],
            "providerId": "uster",
            "category": "gg25",
            "searchtable": "gemeinden",
        }


class TestOtherItems:
    """Tests for ThemeLayerItem and MoreItem."""

    def test_theme_layer_to_wire(self) -> None:
        """Theme layer items carry their layer definition."""
        item = ThemeLayerItem(id="av", text="AV", layer_definition={"sublayers": [{"name": "AV"}]})

        assert item.type is ResultType.THEMELAYER
        assert item.to_wire() == {
            "type": "THEMELAYER",
            "id": "av",
            "text": "AV",
            "layerDefinition": {"sublayers": [{"name": "AV"}]},
        }

    def test_theme_layer_requires_mapping(self) -> None:
        """A layer definition that is not a mapping is rejected."""
        with pytest.raises(TypeError, match="layer definition must be a mapping, got str"):
            ThemeLayerItem(id="av", text="AV", layer_definition="x")  # type: ignore[arg-type]

    def test_more_item_to_wire(self) -> None:
        """MORE markers carry the provider and category to expand."""
        item = MoreItem(id="glarusmore0", provider_id="glarus", category="parcels")

        assert item.more is True
        assert item.to_wire() == {
            "type": "MORE",
            "id": "glarusmore0",
            "providerId": "glarus",
            "more": True,
            "category": "parcels",
        }

    def test_more_item_requires_provider(self) -> None:
        """A MORE marker without provider cannot be expanded."""
        with pytest.raises(ValueError, match="provider_id"):
            MoreItem(id="m", provider_id="")


class TestResultGroup:
    """Tests for ResultGroup."""

    def test_duplicate_item_ids_rejected(self) -> None:
        """Item ids are unique within a group."""
        item = PlaceItem(id="1", text="t", x=0, y=0, crs="EPSG:2056", provider_id="p")

        with pytest.raises(ValueError, match="duplicate item id"):
            ResultGroup(id="g", items=(item, item))

    @pytest.mark.parametrize("priority", [math.nan, math.inf, -math.inf])
    def test_non_finite_priority_rejected(self, priority: float) -> None:
        """Priorities must be orderable."""
        with pytest.raises(ValueError, match="priority must be finite"):
            ResultGroup(id="g", priority=priority)

    def test_same_item_id_in_different_groups(self) -> None:
        """Item ids may repeat across groups."""
        item = PlaceItem(id="1", text="t", x=0, y=0, crs="EPSG:2056", provider_id="p")

        first = ResultGroup(id="a", items=(item,))
        second = ResultGroup(id="b", items=(item,))

        assert first.items[0].id == second.items[0].id

    def test_items_are_frozen_to_tuple(self) -> None:
        """A list of items is stored as a tuple."""
        item = MoreItem(id="m", provider_id="p")

        group = ResultGroup(id="g", items=[item])  # type: ignore[arg-type]

        assert group.items == (item,)

    def test_is_truncated(self) -> None:
        """A trailing MORE marker means the group can be expanded."""
        place = PlaceItem(id="1", text="t", x=0, y=0, crs="EPSG:2056", provider_id="p")

        assert ResultGroup(id="g", items=(place, MoreItem(id="m", provider_id="p"))).is_truncated
        assert not ResultGroup(id="g", items=(place,)).is_truncated
        assert not ResultGroup(id="g").is_truncated

    def test_with_items_keeps_metadata(self) -> None:
        """with_items() only swaps the items."""
        group = ResultGroup(id="g", title="Streets", priority=2)

        updated = group.with_items([MoreItem(id="m", provider_id="p")])

        assert updated.title == "Streets"
        assert updated.priority == 2
        assert len(updated.items) == 1
        assert group.items == ()

    def test_to_wire_omits_unset_fields(self) -> None:
        """Only the set title fields are serialized."""
        groups = [ResultGroup(id="coords", title_key="search.coordinates"), ResultGroup(id="g", priority=1)]

        assert groups_to_wire(groups) == [
            {"id": "coords", "titleKey": "search.coordinates", "items": []},
            {"id": "g", "priority": 1, "items": []},
        ]
