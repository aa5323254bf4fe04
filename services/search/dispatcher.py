"""Dispatcher that fans a query out to providers and correlates their answers."""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

from core.logging import bound_context, get_logger
from core.result import Failure, Success
from services.providers.errors import ProviderError
from services.search.accumulator import ResultAccumulator
from services.search.results import ResultGroup
from services.search.types import (
    AppState,
    SearchOptions,
    SearchRequest,
    SearchUpdate,
    SessionState,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from services.providers.base import SearchProvider
    from services.search.registry import ProviderRegistry

logger = get_logger(__name__)

type ResultListener = Callable[[SearchUpdate], None]


class SearchDispatcher:
    """
    Runs one search session.

    Every call to ``search`` mints a request id larger than all previous ones
    and makes it current at once. Providers answer through ``deliver``; an
    answer carrying any other id is dropped without further notice. In-flight
    provider calls are never interrupted, their late answers are simply
    ignored.

    Providers are awaited in independent tasks and merged as they arrive, so
    listeners see results incrementally. A provider that raises, returns a
    Failure or times out contributes an empty group list and is reported in
    ``failed_providers``; the other providers are unaffected.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        timeout: float | None = None,
    ) -> None:
        """
        Initialize the dispatcher.

        Args:
            registry: Providers to dispatch to.
            timeout: Optional per-provider timeout in seconds. None waits
                for as long as the provider takes.
        """
        self._registry = registry
        self._timeout = timeout
        # Guards the staleness check and the merge as one step; deliveries
        # may come from worker threads.
        self._lock = threading.Lock()
        self._last_request_id = 0
        self._current: SearchRequest | None = None
        self._accumulator: ResultAccumulator | None = None
        self._pending: set[str] = set()
        self._failed: set[str] = set()
        self._listeners: list[ResultListener] = []
        self._tasks: set[asyncio.Task[None]] = set()
        # Listeners are called under this lock, never under ``_lock``.
        self._notify_lock = threading.RLock()
        self._sequence = 0
        self._last_sent = 0

    @property
    def registry(self) -> ProviderRegistry:
        """Return the provider registry."""
        return self._registry

    @property
    def current_request(self) -> SearchRequest | None:
        """Return the current request, or None when idle."""
        return self._current

    @property
    def state(self) -> SessionState:
        """Return the session state."""
        return SessionState.IDLE if self._current is None else SessionState.SEARCHING

    @property
    def results(self) -> tuple[ResultGroup, ...]:
        """Return the merged groups of the current request in display order."""
        with self._lock:
            if self._accumulator is None:
                return ()
            return self._accumulator.groups()

    @property
    def pending_providers(self) -> frozenset[str]:
        """Return the providers that have not answered the current request."""
        return frozenset(self._pending)

    @property
    def failed_providers(self) -> frozenset[str]:
        """Return the providers whose call failed for the current request."""
        return frozenset(self._failed)

    def add_listener(self, listener: ResultListener) -> None:
        """Subscribe ``listener`` to search updates."""
        self._listeners.append(listener)

    def remove_listener(self, listener: ResultListener) -> None:
        """Unsubscribe ``listener``; unknown listeners are ignored."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    def search(
        self,
        text: str,
        options: SearchOptions | None = None,
        app_state: AppState | None = None,
    ) -> SearchRequest:
        """
        Start a new search, superseding the current one.

        Must be called from a running event loop. Returns as soon as the
        provider tasks are scheduled.

        Args:
            text: Query text. Blank text supersedes without searching.
            options: Options passed to every provider.
            app_state: State the availability predicates are evaluated on.

        Returns:
            The new current request.
        """
        options = options or SearchOptions()
        providers: tuple[SearchProvider, ...] = ()
        if text.strip():
            providers = self._registry.available_providers(app_state or AppState())

        with self._lock:
            self._last_request_id += 1
            request = SearchRequest(id=self._last_request_id, text=text, options=options)
            self._current = request
            self._accumulator = ResultAccumulator(request.id)
            self._pending = {provider.provider_id for provider in providers}
            self._failed = set()

        logger.info(
            "Search dispatched",
            request_id=request.id,
            query=text,
            providers=[provider.provider_id for provider in providers],
        )

        for provider in providers:
            task = asyncio.create_task(
                self._run_provider(provider, request),
                name=f"search:{provider.provider_id}:{request.id}",
            )
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

        return request

    def deliver(
        self,
        request_id: int,
        provider_id: str,
        groups: Iterable[ResultGroup],
        *,
        incremental: bool = True,
    ) -> bool:
        """
        Accept groups from a provider.

        Args:
            request_id: Request the groups answer.
            provider_id: Delivering provider.
            groups: Normalized groups.
            incremental: True merges into what the provider delivered
                before; False replaces the provider's groups with the same
                ids (used for expanded "more" results).

        Returns:
            True if merged, False if dropped as stale or unknown.

        Raises:
            TypeError: If ``groups`` holds anything but ``ResultGroup``
                objects; nothing is merged then.
        """
        return self._accept(request_id, provider_id, checked_groups(groups), incremental, failed=False)

    def clear(self) -> None:
        """Return to idle; answers for the abandoned request become stale."""
        with self._lock:
            self._current = None
            self._accumulator = None
            self._pending = set()
            self._failed = set()

    async def wait_until_settled(self) -> tuple[ResultGroup, ...]:
        """
        Wait for every in-flight provider task, stale ones included.

        Returns:
            The merged groups of the current request.
        """
        while self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        return self.results

    async def close(self) -> None:
        """Cancel in-flight provider tasks and close the providers."""
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self.clear()
        await self._registry.close()

    async def _run_provider(self, provider: SearchProvider, request: SearchRequest) -> None:
        """Run one provider and deliver its answer, converting failures to nothing."""
        provider_id = provider.provider_id
        with bound_context(request_id=request.id, provider=provider_id):
            groups: tuple[ResultGroup, ...] = ()
            failed = True
            try:
                call = provider.search(request.text, request.id, request.options)
                if self._timeout is not None:
                    result = await asyncio.wait_for(call, timeout=self._timeout)
                else:
                    result = await call
                if isinstance(result, Failure):
                    error = result.error
                    logger.warning(
                        "Provider search returned an error",
                        error=str(error),
                        transient=isinstance(error, ProviderError) and error.is_retryable,
                    )
                elif isinstance(result, Success):
                    groups = checked_groups(result.value)
                    failed = False
                else:
                    msg = f"search returned {type(result).__name__}, not a Result"
                    raise TypeError(msg)
            except TimeoutError:
                logger.warning("Provider search timed out", timeout=self._timeout)
            except Exception as e:
                logger.warning("Provider search failed", error=str(e), exc_info=True)

            self._accept(request.id, provider_id, groups, incremental=True, failed=failed)

    def _accept(
        self,
        request_id: int,
        provider_id: str,
        groups: tuple[ResultGroup, ...],
        incremental: bool,
        *,
        failed: bool,
    ) -> bool:
        with self._lock:
            accumulator = self._accumulator
            stale = accumulator is None or accumulator.request_id != request_id
            known = self._registry.is_registered(provider_id)
            if not stale and known:
                rank = self._registry.rank(provider_id)
                if incremental:
                    accumulator.merge(provider_id, rank, groups)
                else:
                    accumulator.replace(provider_id, rank, groups)
                self._pending.discard(provider_id)
                if failed:
                    self._failed.add(provider_id)
                self._sequence += 1
                update = SearchUpdate(
                    request_id=request_id,
                    provider_id=provider_id,
                    groups=accumulator.groups(),
                    pending=frozenset(self._pending),
                    failed=frozenset(self._failed),
                    sequence=self._sequence,
                )

        if stale:
            logger.debug("Dropped stale delivery", request_id=request_id, provider=provider_id)
            return False
        if not known:
            logger.warning("Dropped delivery from unknown provider", provider=provider_id)
            return False

        logger.debug(
            "Merged provider results",
            request_id=request_id,
            provider=provider_id,
            groups=len(groups),
            pending=len(update.pending),
        )
        self._notify(update)
        return True

    def _notify(self, update: SearchUpdate) -> None:
        # Snapshots are taken under the state lock but sent outside it, so a
        # thread can get here with a snapshot older than one already sent.
        # Sending is serialized and such snapshots are skipped.
        with self._notify_lock:
            with self._lock:
                current = self._current
            if update.sequence <= self._last_sent or current is None or current.id != update.request_id:
                logger.debug(
                    "Skipped outdated update",
                    request_id=update.request_id,
                    sequence=update.sequence,
                )
                return
            self._last_sent = update.sequence
            for listener in list(self._listeners):
                if self._last_sent != update.sequence:
                    # A listener delivered again; the newer snapshot went out.
                    break
                try:
                    listener(update)
                except Exception:
                    logger.exception("Result listener failed", request_id=update.request_id)


def checked_groups(value: object) -> tuple[ResultGroup, ...]:
    """
    Return ``value`` as a tuple of groups.

    Raises:
        TypeError: If ``value`` is not an iterable of ``ResultGroup``.
    """
    if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, Iterable):
        msg = f"expected result groups, got {type(value).__name__}"
        raise TypeError(msg)
    groups = tuple(value)
    for group in groups:
        if not isinstance(group, ResultGroup):
            msg = f"expected result groups, got a {type(group).__name__} entry"
            raise TypeError(msg)
    return groups
