"""
In-process cache for derived schema artifacts.

Maps a key to a derived value (compiled validators, model definitions)
with an optional TTL and a maximum entry count.

Expiry is lazy: an expired entry is dropped when it is next read. Eviction
is FIFO by default (oldest *inserted* key goes first; reads do not refresh
position). ``policy="lru"`` moves a key to the back on every hit instead.

All read-modify-write sequences run under one lock per cache instance, so
a cache may be shared between threads.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt

from prismate.core.errors import CacheError

logger = logging.getLogger(__name__)

V = TypeVar("V")

EvictionPolicy = Literal["fifo", "lru"]

DEFAULT_MAX_SIZE = 200
DEFAULT_TTL_MS = 5 * 60_000


class CacheConfig(BaseModel):
    """
    Cache sizing and expiry settings.

    Attributes:
        max_size: Maximum number of entries
        ttl_ms: Entry lifetime in milliseconds; ``None`` or 0 disables expiry
        policy: Eviction order, "fifo" or "lru"
    """

    model_config = ConfigDict(frozen=True)

    max_size: NonNegativeInt = Field(default=DEFAULT_MAX_SIZE)
    ttl_ms: NonNegativeInt | None = Field(default=DEFAULT_TTL_MS)
    policy: EvictionPolicy = Field(default="fifo")


class CacheStats(BaseModel):
    """Point-in-time statistics for one cache."""

    model_config = ConfigDict(frozen=True)

    size: int
    max_size: int
    ttl_ms: int | None
    hits: int = 0
    misses: int = 0
    evictions: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    """A cached value with an optional absolute expiry (monotonic seconds)."""

    value: V
    expires_at: float | None = None

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and self.expires_at < now


class SchemaCache(Generic[V]):
    """
    TTL + size bounded cache.

    Example:
        >>> cache: SchemaCache[int] = SchemaCache(CacheConfig(max_size=2))
        >>> cache.set("a", 1)
        >>> cache.get("a")
        1
    """

    def __init__(
        self,
        config: CacheConfig | None = None,
        *,
        name: str = "cache",
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            config: Sizing and expiry settings (defaults to CacheConfig())
            name: Label used in log messages
            clock: Seconds source; injectable for tests
        """
        self._config = config or CacheConfig()
        self._name = name
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry[V]] = OrderedDict()
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    @property
    def config(self) -> CacheConfig:
        return self._config

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def _live_entry(self, key: str) -> CacheEntry[V] | None:
        """Return the entry for key, dropping it if expired. Caller holds the lock."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._entries[key]
            logger.debug("%s: expired %r", self._name, key)
            return None
        return entry

    def get(self, key: str) -> V | None:
        """Return the cached value, or None if missing or expired."""
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                self._misses += 1
                return None
            self._hits += 1
            if self._config.policy == "lru":
                self._entries.move_to_end(key)
            return entry.value

    def has(self, key: str) -> bool:
        with self._lock:
            return self._live_entry(key) is not None

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def set(self, key: str, value: V, ttl_ms: int | None = None) -> None:
        """
        Insert or replace a value.

        Args:
            key: Cache key
            value: Value to store
            ttl_ms: Per-entry lifetime overriding the configured ttl
        """
        lifetime = self._config.ttl_ms if ttl_ms is None else ttl_ms
        expires_at = self._clock() + lifetime / 1000 if lifetime else None

        with self._lock:
            if key in self._entries:
                # Replacing keeps cardinality; no eviction needed
                self._entries[key] = CacheEntry(value, expires_at)
                if self._config.policy == "lru":
                    self._entries.move_to_end(key)
            else:
                self._evict_to(max(self._config.max_size - 1, 0))
                if self._config.max_size == 0:
                    return
                self._entries[key] = CacheEntry(value, expires_at)
            self._check_bound("set")

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0
            self._evictions = 0

    def update_config(
        self,
        *,
        max_size: int | None = None,
        ttl_ms: int | None = None,
        policy: EvictionPolicy | None = None,
    ) -> CacheConfig:
        """
        Adjust settings in place; shrinking max_size evicts immediately.

        A new ttl applies to entries set afterwards.
        """
        changes = {
            k: v
            for k, v in {"max_size": max_size, "ttl_ms": ttl_ms, "policy": policy}.items()
            if v is not None
        }
        with self._lock:
            self._config = CacheConfig.model_validate({**self._config.model_dump(), **changes})
            self._evict_to(self._config.max_size)
            self._check_bound("update_config")
            return self._config

    def purge_expired(self) -> int:
        """Drop every expired entry now; returns how many were removed."""
        with self._lock:
            now = self._clock()
            expired = [k for k, e in self._entries.items() if e.is_expired(now)]
            for key in expired:
                del self._entries[key]
            return len(expired)

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                size=len(self._entries),
                max_size=self._config.max_size,
                ttl_ms=self._config.ttl_ms,
                hits=self._hits,
                misses=self._misses,
                evictions=self._evictions,
            )

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    # -------------------------------------------------------------------------
    # Internals (caller holds the lock)
    # -------------------------------------------------------------------------

    def _evict_to(self, bound: int) -> None:
        while len(self._entries) > bound:
            key, _ = self._entries.popitem(last=False)
            self._evictions += 1
            logger.debug("%s: evicted %r", self._name, key)

    def _check_bound(self, operation: str) -> None:
        if len(self._entries) > self._config.max_size:
            raise CacheError(
                f"{self._name} holds {len(self._entries)} entries, "
                f"above max_size {self._config.max_size}",
                operation=operation,
            )
