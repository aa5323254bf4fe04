"""Engine-level errors."""

from __future__ import annotations


class SearchEngineError(Exception):
    """Error returned by the engine to the caller of a single operation."""

    def __init__(self, message: str, details: str | None = None) -> None:
        """Initialize error."""
        super().__init__(message)
        self.message = message
        self.details = details


class ProviderNotFoundError(Exception):
    """Raised when no provider is registered under an id."""

    def __init__(self, provider_id: str) -> None:
        """Initialize with the provider id."""
        self.provider_id = provider_id
        super().__init__(f"No provider registered with id: {provider_id}")
