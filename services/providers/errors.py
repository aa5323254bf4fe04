"""Error values returned by search providers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable


class ErrorCode(str, Enum):
    """What went wrong in a provider call."""

    RATE_LIMIT = "rate_limit"
    NETWORK = "network"
    PARSE = "parse"
    NOT_FOUND = "not_found"
    INVALID_REQUEST = "invalid_request"
    SERVICE_UNAVAILABLE = "service_unavailable"
    UNSUPPORTED = "unsupported"


RETRYABLE_CODES = frozenset({ErrorCode.RATE_LIMIT, ErrorCode.NETWORK, ErrorCode.SERVICE_UNAVAILABLE})


@dataclass(frozen=True, slots=True)
class ProviderError:
    """
    Failure of one provider operation.

    Never raised; providers return it inside a ``Failure`` and the engine
    logs it. The dispatcher treats every code alike: the provider contributes
    nothing to the request, and the log line says whether the failure was
    transient. The engine never retries; the next search is the retry.

    Attributes:
        code: Failure category.
        message: Short description, safe to show.
        provider_id: Provider the error came from.
        details: Raw cause (exception text, response excerpt).
        retry_after: Seconds the back-end asked us to wait (429 answers).
    """

    code: ErrorCode
    message: str
    provider_id: str
    details: str | None = None
    retry_after: int | None = None

    def __str__(self) -> str:
        return f"[{self.provider_id}] {self.code.value}: {self.message}"

    @property
    def is_retryable(self) -> bool:
        """True for transient failures a later search may not hit."""
        return self.code in RETRYABLE_CODES


type ErrorFactory = Callable[..., ProviderError]


def _factory(code: ErrorCode, default_message: str) -> ErrorFactory:
    def create(
        provider_id: str,
        message: str = default_message,
        details: str | None = None,
        retry_after: int | None = None,
    ) -> ProviderError:
        return ProviderError(
            code=code,
            message=message,
            provider_id=provider_id,
            details=details,
            retry_after=retry_after,
        )

    create.__doc__ = f"Create a {code.value} error."
    return create


RateLimitError = _factory(ErrorCode.RATE_LIMIT, "Rate limit exceeded")
NetworkError = _factory(ErrorCode.NETWORK, "Network error")
ServiceUnavailableError = _factory(ErrorCode.SERVICE_UNAVAILABLE, "Service unavailable")
ParseError = _factory(ErrorCode.PARSE, "Failed to parse response")
NotFoundError = _factory(ErrorCode.NOT_FOUND, "Resource not found")
InvalidRequestError = _factory(ErrorCode.INVALID_REQUEST, "Request rejected")
UnsupportedError = _factory(ErrorCode.UNSUPPORTED, "Operation not supported")
