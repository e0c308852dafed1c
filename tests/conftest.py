"""Root test configuration: session-level cleanup and per-test isolation"""

import logging
import os
from pathlib import Path

import pytest

from jknm.logging_config import LOGGER_NAME


_PROJECT_ROOT = Path(__file__).parent.parent

_CLEANUP_FILES = ["jknm.db", "test.db"]


@pytest.fixture(scope="session", autouse=True)
def cleanup_artifacts():
    """Remove DB files created during the test session."""
    yield
    for name in _CLEANUP_FILES:
        p = _PROJECT_ROOT / name
        if p.exists():
            p.unlink()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep JKNM_* variables from the developer's shell out of every test."""
    for key in [k for k in os.environ if k.startswith("JKNM_")]:
        monkeypatch.delenv(key)


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers the CLI attaches so later tests do not log into closed streams."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
