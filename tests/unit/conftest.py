"""Pytest configuration and fixtures for unit tests."""

import pytest

from habitshare.core.config import Settings
from tests.unit.mocks import InMemoryRecordStore


@pytest.fixture
def in_memory_store():
    """Provides a fresh InMemoryRecordStore for each test."""
    return InMemoryRecordStore()


@pytest.fixture
def test_settings():
    """Settings with defaults, independent of the environment."""
    return Settings(
        reference_timezone="UTC",
        week_start="monday",
        legacy_match_window_hours=24,
        refresh_interval_seconds=300,
        _env_file=None,
    )
