"""All shared types: errors, normalized TTLs, store entries, storage items."""

from __future__ import annotations

import math
from enum import Enum
from fractions import Fraction
from numbers import Real
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class TTLStoreError(Exception):
    """Base exception for ttlstore."""


class SchedulerError(TTLStoreError):
    """Raised when a timer backend cannot be built."""


class StorageError(TTLStoreError):
    """Base exception for storage backend failures."""


class StorageNotOpenError(StorageError):
    """Raised when a storage operation runs before open() or after close()."""


class StorageNotSupportedError(StorageError):
    """Raised when an unknown storage type is requested."""


class TransactionClosedError(StorageError):
    """Raised when a committed or rolled back transaction is used again."""


# ---------------------------------------------------------------------------
# TTL schemas
# ---------------------------------------------------------------------------

class TTLKind(str, Enum):
    none = "none"
    negative = "negative"
    duration = "duration"


class NormalizedTTL(BaseModel):
    """Tagged result of TTL coercion.

    ``ms`` is only set for ``TTLKind.duration`` and is always >= 0
    (possibly ``inf``).
    """

    model_config = ConfigDict(frozen=True)

    kind: TTLKind
    ms: float | None = Field(None, ge=0)

    @classmethod
    def no_expiry(cls) -> NormalizedTTL:
        return cls(kind=TTLKind.none)

    @classmethod
    def negative(cls) -> NormalizedTTL:
        return cls(kind=TTLKind.negative)

    @classmethod
    def duration(cls, ms: float) -> NormalizedTTL:
        return cls(kind=TTLKind.duration, ms=ms)

    @property
    def expires(self) -> bool:
        return self.kind is TTLKind.duration and not math.isinf(self.ms)


# ---------------------------------------------------------------------------
# Store schemas
# ---------------------------------------------------------------------------

class Entry(BaseModel):
    """One stored association. ``value`` is held by reference."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    value: Any = None
    inserted_at: Real  # scheduler clock, seconds (float, or Fraction for ManualScheduler)
    ttl_ms: float | None = None  # None = never expires

    def is_expired(self, now: Real) -> bool:
        if self.ttl_ms is None or math.isinf(self.ttl_ms):
            return False
        # Exact arithmetic: a float sum can land one ulp short of the deadline.
        elapsed_ms = (to_fraction(now) - to_fraction(self.inserted_at)) * 1000
        return elapsed_ms >= to_fraction(self.ttl_ms)


# ---------------------------------------------------------------------------
# Storage schemas
# ---------------------------------------------------------------------------

class StorageItem(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    key: str
    value: Any


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def to_fraction(value: Real) -> Fraction:
    """Exact value of a clock reading or duration.

    Floats go through their shortest repr, so ``0.1`` becomes ``1/10``
    rather than the nearest binary fraction.
    """
    if isinstance(value, float):
        return Fraction(repr(float(value)))
    return Fraction(value)
