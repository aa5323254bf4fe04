"""Tests for provider error values."""

from __future__ import annotations

import pytest

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


class TestProviderError:
    """Tests for the ProviderError dataclass."""

    def test_str_names_provider_and_code(self) -> None:
        """The string form is what ends up in log lines."""
        error = ProviderError(code=ErrorCode.PARSE, message="bad body", provider_id="uster")

        assert str(error) == "[uster] parse: bad body"

    def test_optional_fields_default_to_none(self) -> None:
        """details and retry_after are optional."""
        error = ProviderError(code=ErrorCode.UNSUPPORTED, message="?", provider_id="layers")

        assert error.details is None
        assert error.retry_after is None

    @pytest.mark.parametrize(
        ("code", "retryable"),
        [
            (ErrorCode.RATE_LIMIT, True),
            (ErrorCode.NETWORK, True),
            (ErrorCode.SERVICE_UNAVAILABLE, True),
            (ErrorCode.PARSE, False),
            (ErrorCode.NOT_FOUND, False),
            (ErrorCode.INVALID_REQUEST, False),
            (ErrorCode.UNSUPPORTED, False),
        ],
    )
    def test_is_retryable(self, code: ErrorCode, retryable: bool) -> None:
        """Only transient failures are retryable."""
        error = ProviderError(code=code, message="x", provider_id="glarus")

        assert error.is_retryable is retryable


class TestConstructors:
    """Tests for the per-code constructors."""

    @pytest.mark.parametrize(
        ("factory", "code", "message"),
        [
            (RateLimitError, ErrorCode.RATE_LIMIT, "Rate limit exceeded"),
            (NetworkError, ErrorCode.NETWORK, "Network error"),
            (ServiceUnavailableError, ErrorCode.SERVICE_UNAVAILABLE, "Service unavailable"),
            (ParseError, ErrorCode.PARSE, "Failed to parse response"),
            (NotFoundError, ErrorCode.NOT_FOUND, "Resource not found"),
            (InvalidRequestError, ErrorCode.INVALID_REQUEST, "Request rejected"),
            (UnsupportedError, ErrorCode.UNSUPPORTED, "Operation not supported"),
        ],
    )
    def test_default_message(self, factory: object, code: ErrorCode, message: str) -> None:
        """Each constructor fills in its code and a default message."""
        error = factory(provider_id="nominatim")  # type: ignore[operator]

        assert error == ProviderError(code=code, message=message, provider_id="nominatim")

    def test_overrides(self) -> None:
        """Message, details and retry_after can be overridden."""
        error = RateLimitError(provider_id="geoadmin", message="Slow down", details="429", retry_after=5)

        assert error.message == "Slow down"
        assert error.details == "429"
        assert error.retry_after == 5

    def test_constructors_are_documented(self) -> None:
        """Generated constructors carry a docstring naming their code."""
        assert ParseError.__doc__ == "Create a parse error."
