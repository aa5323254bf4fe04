"""Federated search engine package."""

from services.search.coordinates import CoordinatesProvider, parse_coordinates
from services.search.dispatcher import SearchDispatcher
from services.search.errors import ProviderNotFoundError, SearchEngineError
from services.search.geometry import GeometryResolver
from services.search.more_results import MoreResultsController
from services.search.registry import ProviderRegistry, requires_layer
from services.search.results import (
    MoreItem,
    PlaceItem,
    ResultGeometry,
    ResultGroup,
    ResultType,
    ThemeLayerItem,
)
from services.search.types import (
    AppState,
    SearchOptions,
    SearchRequest,
    SearchUpdate,
    SessionState,
)

__all__ = [
    "AppState",
    "CoordinatesProvider",
    "GeometryResolver",
    "MoreItem",
    "MoreResultsController",
    "PlaceItem",
    "ProviderNotFoundError",
    "ProviderRegistry",
    "ResultGeometry",
    "ResultGroup",
    "ResultType",
    "SearchDispatcher",
    "SearchEngineError",
    "SearchOptions",
    "SearchRequest",
    "SearchUpdate",
    "SessionState",
    "ThemeLayerItem",
    "parse_coordinates",
    "requires_layer",
]
