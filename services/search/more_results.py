"""Expansion of truncated result groups."""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.logging import bound_context, get_logger
from core.result import Failure, Result, failure, success
from services.providers.base import SupportsMoreResults
from services.search.errors import SearchEngineError

if TYPE_CHECKING:
    from services.search.dispatcher import SearchDispatcher
    from services.search.results import MoreItem

logger = get_logger(__name__)


class MoreResultsController:
    """
    Asks the owning provider for the complete version of a truncated group.

    The provider returns the full expanded group under the id of the group
    it replaces, and the dispatcher swaps it in with ``incremental=False``.
    The expansion belongs to the request that was current when it was
    requested; if the user searched again meanwhile, it is dropped.
    """

    def __init__(self, dispatcher: SearchDispatcher) -> None:
        """
        Initialize the controller.

        Args:
            dispatcher: Dispatcher owning the current request and registry.
        """
        self._dispatcher = dispatcher

    async def fetch_more(self, item: MoreItem, text: str) -> Result[bool, SearchEngineError]:
        """
        Expand the group ``item`` was appended to.

        Args:
            item: The MORE marker the user selected.
            text: Query text of the current search.

        Returns:
            Success(True) when the expanded group was merged, Success(False)
            when it was stale or the provider failed, Failure when the item
            cannot be expanded at all.
        """
        request = self._dispatcher.current_request
        if request is None:
            return failure(SearchEngineError("No search in progress"))

        lookup = self._dispatcher.registry.get(item.provider_id)
        if isinstance(lookup, Failure):
            return failure(SearchEngineError("Unknown provider", details=item.provider_id))
        provider = lookup.value
        if not isinstance(provider, SupportsMoreResults):
            return failure(
                SearchEngineError("Provider does not support more results", details=item.provider_id)
            )

        with bound_context(request_id=request.id, provider=item.provider_id):
            try:
                result = await provider.get_more_results(item, text, request.id)
                if isinstance(result, Failure):
                    logger.warning(
                        "More results returned an error",
                        category=item.category,
                        error=str(result.error),
                    )
                    return success(False)
                merged = self._dispatcher.deliver(
                    request.id,
                    item.provider_id,
                    result.value,
                    incremental=False,
                )
            except Exception as e:
                logger.warning("More results failed", category=item.category, error=str(e))
                return success(False)

            logger.info("More results fetched", category=item.category, merged=merged)
            return success(merged)
