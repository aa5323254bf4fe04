"""Tests for structured logging configuration."""

from __future__ import annotations

import asyncio
import logging

import pytest
import structlog

from core.config import Settings
from core.logging import (
    bind_context,
    bound_context,
    clear_context,
    configure_from_settings,
    configure_logging,
    get_logger,
)


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_console_renderer_by_default(self) -> None:
        """The default configuration renders for the console."""
        configure_logging()

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)

    def test_json_renderer(self) -> None:
        """json_format switches to JSON lines."""
        configure_logging(json_format=True)

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_httpx_request_logs_are_quiet(self) -> None:
        """httpx is kept at WARNING even when debugging."""
        configure_logging(log_level="DEBUG")

        assert logging.getLogger("httpx").level == logging.WARNING

    def test_httpx_follows_stricter_level(self) -> None:
        """A level stricter than WARNING also applies to httpx."""
        configure_logging(log_level="ERROR")

        assert logging.getLogger("httpx").level == logging.ERROR

    def test_configure_from_settings_uses_json_in_production(self) -> None:
        """Production settings log JSON."""
        configure_from_settings(Settings(environment="production"))

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_logger_can_log(self) -> None:
        """A configured logger accepts keyword context."""
        configure_logging(log_level="DEBUG")
        logger = get_logger("test")

        logger.info("Search dispatched", request_id=1, providers=["coordinates"])
        logger.warning("Provider search failed", error="boom")


class TestContext:
    """Tests for context binding."""

    def test_bind_and_clear(self) -> None:
        """bind_context() adds variables until clear_context()."""
        bind_context(session="map-1")

        assert structlog.contextvars.get_contextvars() == {"session": "map-1"}

        clear_context()

        assert structlog.contextvars.get_contextvars() == {}

    def test_bound_context_is_scoped(self) -> None:
        """bound_context() unbinds on exit."""
        with bound_context(request_id=3, provider="glarus"):
            assert structlog.contextvars.get_contextvars() == {
                "request_id": 3,
                "provider": "glarus",
            }

        assert structlog.contextvars.get_contextvars() == {}

    @pytest.mark.asyncio
    async def test_bound_context_does_not_leak_between_tasks(self) -> None:
        """Values bound in one task are invisible to a sibling task."""
        seen: dict[str, dict[str, object]] = {}
        bound = asyncio.Event()

        async def first() -> None:
            with bound_context(provider="geoadmin"):
                bound.set()
                await asyncio.sleep(0)

        async def second() -> None:
            await bound.wait()
            seen["second"] = structlog.contextvars.get_contextvars()

        await asyncio.gather(first(), second())

        assert seen["second"] == {}
