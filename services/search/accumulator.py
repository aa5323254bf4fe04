"""Per-request merge store for result groups."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from services.search.results import ResultGroup


@dataclass(slots=True)
class _Slot:
    group: ResultGroup
    provider_id: str
    provider_rank: int
    position: int

    def with_group(self, group: ResultGroup) -> _Slot:
        return _Slot(group, self.provider_id, self.provider_rank, self.position)


def group_sort_key(slot: _Slot) -> tuple[bool, float, int, int]:
    """
    Display order of a merged group.

    Descending priority, groups without priority after every group with one,
    then provider rank, then the order the provider produced its groups.
    """
    priority = slot.group.priority
    return (
        priority is None,
        -priority if priority is not None else 0.0,
        slot.provider_rank,
        slot.position,
    )


class ResultAccumulator:
    """
    Merged groups of one search request.

    Groups are keyed by ``(provider_id, group_id)``, so providers that reuse
    a group id never overwrite each other. Ordering is recomputed from
    priorities and ranks on every read, which makes merging independent of
    the order providers answer in.
    """

    def __init__(self, request_id: int) -> None:
        """Initialize an empty accumulator for ``request_id``."""
        self.request_id = request_id
        self._slots: dict[tuple[str, str], _Slot] = {}
        self._positions: dict[str, int] = {}

    def merge(
        self,
        provider_id: str,
        provider_rank: int,
        groups: Iterable[ResultGroup],
    ) -> None:
        """
        Add groups from a provider.

        A group whose id the provider already delivered has the new items
        appended to it. Nothing is stored if any group fails to merge.
        """
        self._commit(provider_id, self._stage(provider_id, provider_rank, groups, append=True))

    def replace(
        self,
        provider_id: str,
        provider_rank: int,
        groups: Iterable[ResultGroup],
    ) -> None:
        """
        Replace groups from a provider by id.

        Each group takes the place of the provider's group with the same id,
        keeping its position; unknown ids are added. Groups not mentioned are
        left alone.
        """
        self._commit(provider_id, self._stage(provider_id, provider_rank, groups, append=False))

    def groups(self) -> tuple[ResultGroup, ...]:
        """Return the merged groups in display order."""
        return tuple(slot.group for slot in sorted(self._slots.values(), key=group_sort_key))

    def provider_groups(self, provider_id: str) -> tuple[ResultGroup, ...]:
        """Return the groups delivered by one provider, in delivery order."""
        slots = [slot for slot in self._slots.values() if slot.provider_id == provider_id]
        return tuple(slot.group for slot in sorted(slots, key=lambda s: s.position))

    def __len__(self) -> int:
        """Return the number of merged groups."""
        return len(self._slots)

    def _stage(
        self,
        provider_id: str,
        provider_rank: int,
        groups: Iterable[ResultGroup],
        *,
        append: bool,
    ) -> tuple[dict[tuple[str, str], _Slot], int]:
        # Builds the new slots without touching the stored ones.
        staged: dict[tuple[str, str], _Slot] = {}
        next_position = self._positions.get(provider_id, 0)
        for group in groups:
            key = (provider_id, group.id)
            slot = staged.get(key) or self._slots.get(key)
            if slot is None:
                staged[key] = _Slot(group, provider_id, provider_rank, next_position)
                next_position += 1
            elif append:
                existing = {item.id for item in slot.group.items}
                appended = [item for item in group.items if item.id not in existing]
                staged[key] = slot.with_group(slot.group.with_items((*slot.group.items, *appended)))
            else:
                staged[key] = slot.with_group(group)
        return staged, next_position

    def _commit(self, provider_id: str, stage: tuple[dict[tuple[str, str], _Slot], int]) -> None:
        staged, next_position = stage
        self._slots.update(staged)
        self._positions[provider_id] = next_position
