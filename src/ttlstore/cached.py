"""CachedStorage: read-through / write-through TTLStore in front of a Storage."""

from __future__ import annotations

import logging
from typing import Any

from ttlstore.events import EventEmitter
from ttlstore.storage import Storage
from ttlstore.store import TTLStore

logger = logging.getLogger(__name__)

_MISS = object()
_DEFAULT_TTL = object()


class CachedStorage:
    """Async facade that serves reads from a TTLStore and falls back to storage.

    Writes go to storage first, then to the store. When an emitter is given,
    ``cache:*`` events are published around each operation.
    """

    def __init__(
        self,
        store: TTLStore,
        storage: Storage,
        default_ttl: Any = None,
        events: EventEmitter | None = None,
    ):
        self._store = store
        self._storage = storage
        self._default_ttl = default_ttl
        self._events = events

    @property
    def store(self) -> TTLStore:
        return self._store

    @property
    def storage(self) -> Storage:
        return self._storage

    async def get(self, key: str) -> Any | None:
        """Return the cached value, reading storage on a miss."""
        cached = self._store.get(key, _MISS)
        if cached is not _MISS:
            logger.debug("cache hit key=%s", key)
            self._emit("cache:hit", {"key": key})
            return cached

        logger.debug("cache miss key=%s", key)
        self._emit("cache:miss", {"key": key})
        value = await self._storage.get(key)
        if value is not None:
            self._store.set(key, value, self._default_ttl)
        return value

    async def set(self, key: str, value: Any, ttl: Any = _DEFAULT_TTL) -> None:
        if ttl is _DEFAULT_TTL:
            ttl = self._default_ttl
        await self._storage.put(key, value)
        self._store.set(key, value, ttl)
        self._emit("cache:set", {"key": key, "value": value})

    async def delete(self, key: str) -> bool:
        """Delete from storage and the store. Returns whether storage had the key."""
        existed = await self._storage.delete(key)
        self._store.delete(key)
        self._emit("cache:delete", {"key": key})
        return existed

    def invalidate(self, key: str) -> bool:
        """Drop the cached copy only; the next get() reads storage again."""
        dropped = self._store.delete(key)
        if dropped:
            logger.debug("cache invalidate key=%s", key)
        self._emit("cache:invalidate", {"key": key})
        return dropped

    def _emit(self, event: str, data: dict[str, Any]) -> None:
        if self._events is not None:
            self._events.emit(event, data)
