"""In-memory per-project scan cache.

Entries are keyed by canonical project root. Freshness is judged when an
entry is read; nothing is swept in the background. When an insert pushes the
table over capacity, the single entry with the oldest creation time is
evicted. Reads never refresh an entry, so this is creation-ordered eviction
rather than LRU.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TypeVar

from reporoller.config.models import (
    DEFAULT_CACHE_TTL_SECONDS,
    DEFAULT_MAX_CACHE_SIZE,
    ResolvedOptions,
)
from reporoller.core.types import ScanResult

logger = logging.getLogger(__name__)

Clock = Callable[[], float]

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry:
    scan: ScanResult
    options: ResolvedOptions
    created_at: float


class ProjectCache:
    """TTL and capacity bounded table of scan results."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        max_size: int = DEFAULT_MAX_CACHE_SIZE,
        clock: Clock = time.monotonic,
    ):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._clock = clock
        self._entries: dict[Path, CacheEntry] = {}

    def now(self) -> float:
        return self._clock()

    def age(self, entry: CacheEntry) -> float:
        """Seconds since the entry was created."""
        return self._clock() - entry.created_at

    def is_fresh(self, entry: CacheEntry) -> bool:
        return self.age(entry) < self.ttl_seconds

    def get(self, root: Path) -> CacheEntry | None:
        """Return the entry for ``root`` only if it is still fresh."""
        entry = self._entries.get(root)
        if entry is None or not self.is_fresh(entry):
            return None
        return entry

    def peek(self, root: Path) -> CacheEntry | None:
        """Return the entry for ``root`` regardless of age."""
        return self._entries.get(root)

    def entry_for(self, scan: ScanResult, options: ResolvedOptions) -> CacheEntry:
        """Build an entry stamped with the cache's clock."""
        return CacheEntry(scan=scan, options=options, created_at=self._clock())

    def put(self, root: Path, entry: CacheEntry) -> None:
        """Insert or replace, then evict the oldest entry if over capacity."""
        self._entries[root] = entry

        if len(self._entries) > self.max_size:
            oldest = min(self._entries, key=lambda k: self._entries[k].created_at)
            del self._entries[oldest]
            logger.debug("cache_evicted", extra={"cache.root": str(oldest)})

    def clear(self, root: Path | None = None) -> int:
        """Remove one entry or all entries; return how many were removed."""
        if root is not None:
            return 1 if self._entries.pop(root, None) is not None else 0
        count = len(self._entries)
        self._entries.clear()
        return count

    def keys(self) -> list[Path]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, root: object) -> bool:
        return root in self._entries

    def stats(self) -> dict[str, Any]:
        """Table size and a per-entry summary (age in milliseconds).

        Stale entries are still listed, flagged with ``fresh: false``.
        """
        return {
            "size": len(self._entries),
            "entries": [
                {
                    "path": str(root),
                    "files": entry.scan.file_count,
                    "bytes": entry.scan.total_bytes,
                    "age": int(self.age(entry) * 1000),
                    "fresh": self.is_fresh(entry),
                }
                for root, entry in self._entries.items()
            ],
        }


class ScanCoalescer:
    """Single-flight helper for scans of the same root.

    Concurrent callers asking for the same root share one in-flight task.
    The record is dropped as soon as the task finishes, so a later call
    starts a new scan.
    """

    def __init__(self) -> None:
        self._inflight: dict[Path, asyncio.Task[Any]] = {}

    async def run(self, root: Path, factory: Callable[[], Awaitable[T]]) -> T:
        task = self._inflight.get(root)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._inflight[root] = task
            task.add_done_callback(lambda t: self._discard(root, t))
        else:
            logger.debug("scan_coalesced", extra={"cache.root": str(root)})
        # Shield so one cancelled waiter does not cancel the shared scan
        return await asyncio.shield(task)

    def _discard(self, root: Path, task: asyncio.Task[Any]) -> None:
        if self._inflight.get(root) is task:
            del self._inflight[root]

    def in_flight(self, root: Path) -> bool:
        return root in self._inflight
