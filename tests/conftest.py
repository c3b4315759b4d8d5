"""Shared test fixtures for the optimus test suite.

Every test starts from a clean environment: no OPTIMUS_* variables leak
in from the developer's shell, and structlog is reset afterwards because
the CLI configures it globally.
"""

import pytest
import structlog

_ENV_VARS = (
    "OPTIMUS_API_KEY",
    "OPTIMUS_CONFIG_PATH",
    "OPTIMUS_DEBUG",
    "OPTIMUS_RELEASE_FEED_URL",
    "OPTIMUS_CHECK_TIMEOUT",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield
    structlog.reset_defaults()
