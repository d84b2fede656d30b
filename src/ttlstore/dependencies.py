"""Factories that wire stores and storage layers from Settings."""

from __future__ import annotations

from functools import lru_cache

from ttlstore.config import Settings
from ttlstore.scheduler import Scheduler, build_scheduler
from ttlstore.store import TTLStore


@lru_cache
def get_settings() -> Settings:
    return Settings()


def get_scheduler(settings: Settings | None = None) -> Scheduler:
    """Build the configured timer backend. Not cached: asyncio schedulers bind to a loop."""
    settings = settings or get_settings()
    return build_scheduler(settings.scheduler)


def get_store(settings: Settings | None = None) -> TTLStore:
    return TTLStore(scheduler=get_scheduler(settings))


def get_cached_storage(settings: Settings | None = None):
    """Build a CachedStorage over a fresh store and the configured backend.

    The storage still has to be opened by the caller.
    """
    from ttlstore.cached import CachedStorage
    from ttlstore.storage import create_storage

    settings = settings or get_settings()
    return CachedStorage(
        store=get_store(settings),
        storage=create_storage(settings.storage_type),
        default_ttl=settings.cache_ttl_ms,
    )
