"""Layer search: map query strings onto theme sublayers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from core.logging import get_logger
from core.result import Result, success
from services.search.normalize import normalize_entries
from services.search.results import ResultGroup, ThemeLayerItem

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from services.providers.errors import ProviderError
    from services.search.types import SearchOptions

logger = get_logger(__name__)


def sublayer_item(sublayer: Mapping[str, Any]) -> ThemeLayerItem:
    """
    Build the item activating one sublayer.

    Raises:
        KeyError: If the sublayer has no name.
    """
    name = str(sublayer["name"])
    return ThemeLayerItem(
        id=name.lower(),
        text=name,
        layer_definition={"sublayers": [dict(sublayer)]},
    )


class LayerSearchProvider:
    """
    Offers theme sublayers for well-known short codes.

    The lookup table maps a query (matched case-insensitively after
    trimming) to the sublayer definitions it stands for, in the format of a
    theme ``sublayers`` entry. The table is data supplied by the host
    application.
    """

    def __init__(
        self,
        table: Mapping[str, Sequence[Mapping[str, Any]]],
        *,
        provider_id: str = "layers",
        label: str = "Layers",
        title: str = "Layers",
    ) -> None:
        """
        Initialize the provider.

        Args:
            table: Query to sublayer definitions.
            provider_id: Provider id.
            label: Display label.
            title: Title of the result group.
        """
        self._table = {key.strip().lower(): list(value) for key, value in table.items()}
        self._provider_id = provider_id
        self._label = label
        self._title = title

    @property
    def provider_id(self) -> str:
        """Return the provider id."""
        return self._provider_id

    @property
    def label(self) -> str | None:
        """Return the display label."""
        return self._label

    @property
    def label_key(self) -> str | None:
        """Layer search uses a plain label."""
        return None

    async def search(
        self,
        text: str,
        request_id: int,
        options: SearchOptions,
    ) -> Result[tuple[ResultGroup, ...], ProviderError]:
        """Look ``text`` up in the table."""
        sublayers = self._table.get(text.strip().lower())
        if not sublayers:
            return success(())
        items = normalize_entries(sublayers, sublayer_item, self._provider_id)
        if not items:
            return success(())
        return success((ResultGroup(id="layers", title=self._title, items=tuple(items)),))
