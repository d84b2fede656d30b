"""Async key/value storage backends that a TTLStore can sit in front of."""

from __future__ import annotations

from typing import Any, Protocol

from ttlstore.models import (
    StorageItem,
    StorageNotOpenError,
    StorageNotSupportedError,
    TransactionClosedError,
)

# Marks a key deleted inside a transaction (None is a legal stored value).
_DELETED = object()


# ---------------------------------------------------------------------------
# Protocol types (used by CachedStorage)
# ---------------------------------------------------------------------------

class Transaction(Protocol):
    async def get(self, key: str) -> Any | None: ...

    async def put(self, key: str, value: Any) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...


class Storage(Protocol):
    async def open(self) -> None: ...

    async def close(self) -> None: ...

    async def get(self, key: str) -> Any | None: ...

    async def put(self, key: str, value: Any) -> None: ...

    async def delete(self, key: str) -> bool: ...

    async def scan(self, prefix: str = "", limit: int | None = None) -> list[StorageItem]: ...

    async def tx(self) -> Transaction: ...


# ---------------------------------------------------------------------------
# In-memory backend
# ---------------------------------------------------------------------------

class MemoryStorage:
    """Dict-backed storage. Must be opened before use."""

    def __init__(self) -> None:
        self.data: dict[str, Any] = {}
        self.is_open = False

    async def open(self) -> None:
        self.is_open = True

    async def close(self) -> None:
        self.is_open = False

    async def get(self, key: str) -> Any | None:
        self._check_open()
        return self.data.get(key)

    async def put(self, key: str, value: Any) -> None:
        self._check_open()
        self.data[key] = value

    async def delete(self, key: str) -> bool:
        self._check_open()
        return self.data.pop(key, _DELETED) is not _DELETED

    async def scan(self, prefix: str = "", limit: int | None = None) -> list[StorageItem]:
        """Items whose key starts with ``prefix``, in insertion order."""
        self._check_open()
        results: list[StorageItem] = []
        for key, value in self.data.items():
            if key.startswith(prefix):
                results.append(StorageItem(key=key, value=value))
                if limit and len(results) >= limit:
                    break
        return results

    async def tx(self) -> MemoryTransaction:
        self._check_open()
        return MemoryTransaction(self)

    def _check_open(self) -> None:
        if not self.is_open:
            raise StorageNotOpenError("Storage is not open")


class MemoryTransaction:
    """Buffered writes over a snapshot taken when the transaction starts."""

    def __init__(self, storage: MemoryStorage):
        self._storage = storage
        self._snapshot = dict(storage.data)
        self._changes: dict[str, Any] = {}
        self._closed_by: str | None = None

    async def get(self, key: str) -> Any | None:
        self._check_state()
        if key in self._changes:
            value = self._changes[key]
            return None if value is _DELETED else value
        return self._snapshot.get(key)

    async def put(self, key: str, value: Any) -> None:
        self._check_state()
        self._changes[key] = value

    async def delete(self, key: str) -> None:
        self._check_state()
        self._changes[key] = _DELETED

    async def commit(self) -> None:
        self._check_state()
        data = self._storage.data
        for key, value in self._changes.items():
            if value is _DELETED:
                data.pop(key, None)
            else:
                data[key] = value
        self._closed_by = "committed"

    async def rollback(self) -> None:
        self._check_state()
        self._changes.clear()
        self._closed_by = "rolled back"

    def _check_state(self) -> None:
        if self._closed_by is not None:
            raise TransactionClosedError(f"Transaction has already been {self._closed_by}")


STORAGE_BACKENDS = {
    "memory": MemoryStorage,
}


def create_storage(kind: str) -> Storage:
    try:
        return STORAGE_BACKENDS[kind]()
    except KeyError as exc:
        raise StorageNotSupportedError(f"Storage type {kind!r} is not implemented") from exc
