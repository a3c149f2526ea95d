"""
Shared pytest fixtures and configuration for logspine tests.

This module provides:
- Settings and logging isolation between tests
- Ready-made dissectors for the usual "a=1;b=2" test lines

Usage:
    Fixtures are auto-discovered by pytest. Use them as function arguments.

    def test_something(settings, line_splitter):
        ...
"""

import os
import sys
from pathlib import Path

import pytest
import structlog

# Ensure logspine package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from logspine.core.settings import LogSpineSettings, clear_settings_cache
from logspine.testing import KeyValueDissector


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """No LOGSPINE_* variable, cached settings or logging config leaks between tests."""
    for key in list(os.environ):
        if key.startswith("LOGSPINE_"):
            monkeypatch.delenv(key)
    clear_settings_cache()
    yield
    clear_settings_cache()
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


# =============================================================================
# Common objects
# =============================================================================


@pytest.fixture
def settings() -> LogSpineSettings:
    """Default settings, ignoring any .env file in the working directory."""
    return LogSpineSettings(_env_file=None)


@pytest.fixture
def line_splitter() -> KeyValueDissector:
    """LINE → STRING:a, STRING:b."""
    return KeyValueDissector("LINE", "STRING", keys=["a", "b"])


@pytest.fixture
def foo_splitter() -> KeyValueDissector:
    """LINE → T:foo."""
    return KeyValueDissector("LINE", "T", keys=["foo"])


@pytest.fixture
def wildcard_splitter() -> KeyValueDissector:
    """T → U:* splitting "bar:1,baz:2"."""
    return KeyValueDissector("T", "U", keys=None, pair_separator=",", value_separator=":")
