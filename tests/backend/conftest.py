"""Shared fixtures: fixed clock and an in-memory store."""

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from fakes import MemoryStore

TOKYO = ZoneInfo("Asia/Tokyo")


@pytest.fixture
def march_clock():
    return lambda: datetime(2026, 3, 10, 9, 0, tzinfo=TOKYO)


@pytest.fixture
def memory_store():
    return MemoryStore()
