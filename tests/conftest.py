"""Shared test fixtures."""

from __future__ import annotations

import os

import pytest

os.environ.setdefault("TTLSTORE_SCHEDULER", "manual")

from ttlstore.config import Settings
from ttlstore.scheduler import ManualScheduler
from ttlstore.store import TTLStore


@pytest.fixture
def settings() -> Settings:
    return Settings(scheduler="manual", cache_ttl_ms=1000)


@pytest.fixture
def clock() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def store(clock: ManualScheduler) -> TTLStore:
    return TTLStore(scheduler=clock)
