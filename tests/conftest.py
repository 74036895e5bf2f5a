# tests/conftest.py

"""Shared pytest fixtures for all tracker tests."""

import os
from collections.abc import Generator
from unittest.mock import patch

import pytest

_TRACKER_ENV_KEYS = (
    "FLIGHT_ORIGIN",
    "FLIGHT_DESTINATIONS",
    "FLIGHT_REGION",
    "FLIGHT_DEPART_DATE",
    "FLIGHT_RETURN_DATE",
    "AGENT_MAX_STEPS",
    "AGENT_TIMEOUT_SECONDS",
    "AGENT_MODEL",
    "PRICE_HISTORY_PATH",
    "README_PATH",
    "DEFAULT_CURRENCY",
    "MIN_PLAUSIBLE_PRICE",
    "MAX_PLAUSIBLE_PRICE",
    "KERNEL_API_KEY",
    "OPENAI_API_KEY",
    "GOOGLE_API_KEY",
    "BROWSER_HEADLESS",
)


@pytest.fixture(autouse=True)
def clean_tracker_env() -> Generator[None, None, None]:
    """Hide tracker variables picked up from a developer's .env file."""
    stripped = {
        k: v for k, v in os.environ.items() if k not in _TRACKER_ENV_KEYS
    }
    with patch.dict(os.environ, stripped, clear=True):
        yield
