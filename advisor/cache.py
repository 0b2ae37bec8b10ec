from __future__ import annotations

import hashlib
import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_DEFAULT_TTL = 600.0  # 10 minutes
_DEFAULT_SWEEP_INTERVAL = 300.0  # 5 minutes


def make_cache_key(parts: dict[str, Any]) -> str:
    normalized = json.dumps(parts, sort_keys=True, default=str)
    return hashlib.sha256(normalized.encode()).hexdigest()[:16]


@dataclass
class CacheEntry(Generic[T]):
    value: T
    expires_at: float


class TTLCache(Generic[T]):
    """
    In-process key/value store with per-entry expiry.

    Expired entries are dropped lazily on ``get`` and eagerly by ``cleanup``,
    which a background sweeper runs every ``sweep_interval`` seconds between
    ``start()`` and ``stop()``. All access goes through one lock, so the
    cache can be shared by concurrent request handlers.
    """

    def __init__(
        self,
        default_ttl: float = _DEFAULT_TTL,
        sweep_interval: float = _DEFAULT_SWEEP_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.default_ttl = default_ttl
        self.sweep_interval = sweep_interval
        self._clock = clock
        self._entries: dict[str, CacheEntry[T]] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._stop_event = threading.Event()
        self._sweeper: threading.Thread | None = None

    # -- key/value ---------------------------------------------------------

    def get(self, key: str) -> T | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry and self._clock() <= entry.expires_at:
                self._hits += 1
                return entry.value
            if entry:
                del self._entries[key]
            self._misses += 1
            return None

    def set(self, key: str, value: T, ttl: float | None = None) -> None:
        expires_at = self._clock() + (self.default_ttl if ttl is None else ttl)
        with self._lock:
            self._entries[key] = CacheEntry(value=value, expires_at=expires_at)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def cleanup(self) -> int:
        """Drop every expired entry; return how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [k for k, e in self._entries.items() if now > e.expires_at]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug("Swept %d expired cache entries", len(expired))
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def stats(self) -> dict:
        with self._lock:
            total = self._hits + self._misses
            return {
                "size": len(self._entries),
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": round(self._hits / total * 100, 1) if total > 0 else 0.0,
            }

    # -- sweeper lifecycle -------------------------------------------------

    @property
    def running(self) -> bool:
        return self._sweeper is not None and self._sweeper.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._sweeper = threading.Thread(
            target=self._sweep_loop, name="ttl-cache-sweeper", daemon=True,
        )
        self._sweeper.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop_event.set()
        if self._sweeper is not None:
            self._sweeper.join(timeout)
            self._sweeper = None

    def _sweep_loop(self) -> None:
        while not self._stop_event.wait(self.sweep_interval):
            self.cleanup()

    def __enter__(self) -> TTLCache[T]:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()
