"""Tests for Settings and the dependency factories."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from ttlstore.cached import CachedStorage
from ttlstore.config import Settings
from ttlstore.dependencies import get_cached_storage, get_scheduler, get_settings, get_store
from ttlstore.scheduler import ManualScheduler, ThreadingScheduler
from ttlstore.storage import MemoryStorage


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("TTLSTORE_SCHEDULER", raising=False)
        settings = Settings()
        assert settings.scheduler == "thread"
        assert settings.cache_ttl_ms == 60_000
        assert settings.storage_type == "memory"

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("TTLSTORE_SCHEDULER", "asyncio")
        monkeypatch.setenv("TTLSTORE_CACHE_TTL_MS", "250")
        settings = Settings()
        assert settings.scheduler == "asyncio"
        assert settings.cache_ttl_ms == 250.0

    def test_unknown_scheduler_rejected(self):
        with pytest.raises(ValidationError):
            Settings(scheduler="cron")


class TestDependencies:
    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    def test_get_scheduler_uses_settings(self, settings: Settings):
        assert isinstance(get_scheduler(settings), ManualScheduler)
        assert isinstance(get_scheduler(Settings(scheduler="thread")), ThreadingScheduler)

    def test_get_store_gets_fresh_scheduler(self, settings: Settings):
        first, second = get_store(settings), get_store(settings)
        assert first is not second
        assert first.scheduler is not second.scheduler

    def test_get_cached_storage(self, settings: Settings):
        cached = get_cached_storage(settings)
        assert isinstance(cached, CachedStorage)
        assert isinstance(cached.storage, MemoryStorage)
        assert isinstance(cached.store.scheduler, ManualScheduler)
