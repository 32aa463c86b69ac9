"""Root test fixtures shared across all test types.

This conftest contains fixtures that can be used by both unit and integration tests.
Database-specific fixtures are in tests/integration/conftest.py.
"""

import os
import tempfile

_TEST_ROOT = tempfile.mkdtemp(prefix="sitegen-tests-")

# Settings are read on first import, so the environment must be ready before any app import
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("DATABASE_SSL_MODE", "disable")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_TEST_ROOT}/app.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-that-is-at-least-32-characters-long")
os.environ.setdefault("ARTIFACT_ROOT", os.path.join(_TEST_ROOT, "artifacts"))
os.environ.setdefault("ANTHROPIC_API_KEY", "")

# ruff: noqa: E402 - Imports must be after env var setup
import pytest
import structlog
from structlog.testing import CapturingLogger

from src.sitegen.core.config import get_settings
from src.sitegen.core.logging import clear_request_context
from tests.helpers import RecordingDispatcher, ScriptedProvider

# Clear settings cache to ensure test environment variables are picked up
get_settings.cache_clear()


@pytest.fixture
def provider() -> ScriptedProvider:
    """LLM provider double answering every role with valid output."""
    return ScriptedProvider()


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    """Background dispatcher double that records what would have been started."""
    return RecordingDispatcher()


@pytest.fixture
def no_sleep():
    """Sleep replacement for backoff and polling loops; records requested delays."""
    delays: list[float] = []

    async def _sleep(seconds: float) -> None:
        delays.append(seconds)

    _sleep.delays = delays  # type: ignore[attr-defined]
    return _sleep


@pytest.fixture
def capturing_logger():
    """Route structlog output to a CapturingLogger for the duration of a test."""
    cap_logger = CapturingLogger()

    # Save original configuration to restore later
    old_config = structlog.get_config()

    structlog.configure(
        processors=[structlog.contextvars.merge_contextvars],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=lambda *args, **kwargs: cap_logger,
        cache_logger_on_first_use=False,
    )

    clear_request_context()
    yield cap_logger
    clear_request_context()
    structlog.configure(**old_config)
