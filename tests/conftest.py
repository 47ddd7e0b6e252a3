# tests/conftest.py
import logging
import os
from unittest.mock import MagicMock

import pytest

from provisioner.config_models import AppSettings


@pytest.fixture(autouse=True)
def clean_provisioner_env(monkeypatch):
    """Keep host environment variables out of the settings under test."""
    for key in list(os.environ):
        if key.startswith(("N8N_", "NODEJS_", "UFW_")) or key in (
            "LOG_PREFIX",
            "ACTIVATION_DELAY",
        ):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def app_settings():
    """Default settings with no activation delay."""
    return AppSettings(activation_delay=0)


@pytest.fixture
def mock_logger():
    """Fixture to create a mock logger for testing."""
    return MagicMock(spec=logging.Logger)
