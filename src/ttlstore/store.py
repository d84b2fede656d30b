"""In-memory key/value store with per-key TTLs.

Expiry is enforced twice: a removal is scheduled when an entry is written,
and every read re-checks the entry's age against the scheduler clock. The
read-time check is authoritative; the scheduled removal only reclaims memory
early.
"""

from __future__ import annotations

import functools
import threading
import weakref
from typing import Any, Hashable

from ttlstore.models import Entry, TTLKind
from ttlstore.normalizer import normalize_ttl
from ttlstore.scheduler import Scheduler, TimerHandle


class TTLStore:
    """Process-local key/value store whose entries may expire.

    TTLs are in milliseconds. ``size()`` and ``keys()`` purge expired
    entries before reporting, so they always describe live entries only.
    All mutations, including the scheduled removals, run under one lock.
    """

    def __init__(self, scheduler: Scheduler | None = None):
        if scheduler is None:
            from ttlstore.dependencies import get_scheduler

            scheduler = get_scheduler()
        self._scheduler = scheduler
        self._lock = threading.RLock()
        self._entries: dict[Hashable, Entry] = {}
        # key -> (token, handle); the token identifies which set() installed the timer
        self._timers: dict[Hashable, tuple[object, TimerHandle]] = {}

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    def set(self, key: Hashable, value: Any, ttl: Any = None) -> TTLStore:
        """Store ``value`` under ``key``, replacing any previous entry and TTL.

        ``ttl`` is normalized by ``normalize_ttl``: ``None`` or a non-numeric
        value keeps the entry forever, a negative value removes the key
        instead of storing it.
        """
        normalized = normalize_ttl(ttl)
        with self._lock:
            self._cancel_timer(key)

            if normalized.kind is TTLKind.negative:
                self._entries.pop(key, None)
                return self

            ttl_ms = normalized.ms if normalized.kind is TTLKind.duration else None
            self._entries[key] = Entry(
                value=value,
                inserted_at=self._scheduler.monotonic(),
                ttl_ms=ttl_ms,
            )
            if normalized.expires:
                self._schedule_removal(key, ttl_ms)
        return self

    def get(self, key: Hashable, default: Any = None) -> Any:
        """Return the live value for ``key``, or ``default``."""
        with self._lock:
            entry = self._live_entry(key)
            return default if entry is None else entry.value

    def has(self, key: Hashable) -> bool:
        with self._lock:
            return self._live_entry(key) is not None

    def delete(self, key: Hashable) -> bool:
        """Remove ``key``. Returns True if an entry was present."""
        with self._lock:
            return self._remove(key)

    def clear(self) -> None:
        with self._lock:
            for _, handle in self._timers.values():
                handle.cancel()
            self._timers.clear()
            self._entries.clear()

    def size(self) -> int:
        with self._lock:
            self._sweep()
            return len(self._entries)

    def keys(self) -> list[Hashable]:
        """Snapshot of live keys in insertion order."""
        with self._lock:
            self._sweep()
            return list(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return self.has(key)

    def __len__(self) -> int:
        return self.size()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(entries={len(self._entries)}, timers={len(self._timers)})"

    # -- internals (caller holds self._lock) ---------------------------------

    def _live_entry(self, key: Hashable) -> Entry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._scheduler.monotonic()):
            self._remove(key)
            return None
        return entry

    def _remove(self, key: Hashable) -> bool:
        self._cancel_timer(key)
        return self._entries.pop(key, None) is not None

    def _sweep(self) -> None:
        now = self._scheduler.monotonic()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            self._remove(key)

    def _cancel_timer(self, key: Hashable) -> None:
        scheduled = self._timers.pop(key, None)
        if scheduled is not None:
            scheduled[1].cancel()

    def _schedule_removal(self, key: Hashable, ttl_ms: float) -> None:
        token = object()
        callback = functools.partial(_expire, weakref.ref(self), key, token)
        handle = self._scheduler.call_later(ttl_ms / 1000.0, callback)
        self._timers[key] = (token, handle)

    def _expire(self, key: Hashable, token: object) -> None:
        with self._lock:
            scheduled = self._timers.get(key)
            if scheduled is None or scheduled[0] is not token:
                return
            del self._timers[key]
            self._entries.pop(key, None)


def _expire(store_ref: weakref.ref[TTLStore], key: Hashable, token: object) -> None:
    """Scheduled-removal callback; a no-op once the store is gone."""
    store = store_ref()
    if store is not None:
        store._expire(key, token)
