"""
Pytest configuration for the CRM tests.

This file adds the parent directory to the Python path so that tests
can import from the domain, repositories, services and api modules.
"""

import sys
from datetime import datetime
from pathlib import Path

import pytest

# Add the crm-platform directory to the Python path
# so tests can import domain, repositories, etc.
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))
sys.path.insert(0, str(Path(__file__).parent))

from fakes import FIXED_NOW, InMemoryRecordStore  # noqa: E402
from services.settings import get_settings  # noqa: E402


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    """Each test reads settings from a clean environment."""

    for name in ("CRM_LOG_LEVEL", "CRM_TREND_ZERO_FILL", "CRM_REVENUE_GROWTH_PERIOD_DAYS"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
