"""Types for search dispatch and request correlation."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from services.search.results import ResultGroup


@dataclass(frozen=True, slots=True)
class SearchOptions:
    """
    Options passed through to every provider.

    Attributes:
        display_crs: CRS the map is displayed in.
        extra: Free-form options for specific providers.
    """

    display_crs: str = "EPSG:4326"
    extra: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class AppState:
    """
    Application state availability predicates are evaluated against.

    Attributes:
        theme_layers: Names of the theme layers currently loaded.
        theme: Id of the active theme, if any.
    """

    theme_layers: frozenset[str] = frozenset()
    theme: str | None = None

    def has_layer(self, name: str) -> bool:
        """Return True if a theme layer called ``name`` is loaded."""
        return name in self.theme_layers


@dataclass(frozen=True, slots=True)
class SearchRequest:
    """
    One user query.

    Attributes:
        id: Strictly increasing per dispatcher.
        text: The query text.
        options: Options passed to the providers.
        issued_at: When the request was created.
    """

    id: int
    text: str
    options: SearchOptions = field(default_factory=SearchOptions)
    issued_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class SessionState(str, Enum):
    """State of a search session."""

    IDLE = "idle"
    SEARCHING = "searching"


@dataclass(frozen=True, slots=True)
class SearchUpdate:
    """
    Snapshot sent to listeners after every accepted delivery.

    Attributes:
        request_id: Request the delivery belonged to (always the current one).
        provider_id: Provider whose delivery triggered the update.
        groups: Full merged group list in display order.
        pending: Providers that have not answered yet.
        failed: Providers whose call failed for this request.
        sequence: Position of the snapshot among all snapshots of the
            dispatcher. Listeners receive strictly increasing sequences, so
            the latest update always holds everything merged so far.
    """

    request_id: int
    provider_id: str
    groups: tuple[ResultGroup, ...]
    pending: frozenset[str] = frozenset()
    failed: frozenset[str] = frozenset()
    sequence: int = 0

    @property
    def is_settled(self) -> bool:
        """Return True once every provider has answered."""
        return not self.pending

    @property
    def item_count(self) -> int:
        """Total number of items across all groups."""
        return sum(len(group.items) for group in self.groups)
