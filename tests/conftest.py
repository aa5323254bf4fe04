"""
Pytest configuration and fixtures for the test suite.

This module contains shared fixtures used across all tests.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from core.config import get_settings
from core.logging import clear_context
from services.providers.http import ProviderHttpClient
from services.search.registry import ProviderRegistry


@pytest.fixture(autouse=True)
def _isolate_state() -> None:
    """Keep cached settings and log context from leaking between tests."""
    get_settings.cache_clear()
    clear_context()


@pytest.fixture()
def registry() -> ProviderRegistry:
    """Return an empty provider registry."""
    return ProviderRegistry()


@pytest.fixture()
def http_client() -> AsyncMock:
    """Return a provider HTTP client double with async ``get_json``/``get_text``."""
    return AsyncMock(spec=ProviderHttpClient)
