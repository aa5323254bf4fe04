"""Search provider contract and shared HTTP plumbing.

Concrete providers live in their own modules; ``services.providers.factory``
assembles them from settings.
"""

from services.providers.base import (
    SearchProvider,
    SupportsClose,
    SupportsMoreResults,
    SupportsResultGeometry,
)
from services.providers.errors import (
    ErrorCode,
    InvalidRequestError,
    NetworkError,
    NotFoundError,
    ParseError,
    ProviderError,
    RateLimitError,
    ServiceUnavailableError,
    UnsupportedError,
)
from services.providers.http import HttpBackedProvider, ProviderHttpClient

__all__ = [
    "ErrorCode",
    "HttpBackedProvider",
    "InvalidRequestError",
    "NetworkError",
    "NotFoundError",
    "ParseError",
    "ProviderError",
    "ProviderHttpClient",
    "RateLimitError",
    "SearchProvider",
    "ServiceUnavailableError",
    "SupportsClose",
    "SupportsMoreResults",
    "SupportsResultGeometry",
    "UnsupportedError",
]
