"""Per-daemon state shared by the server and every method handler."""

import time
from collections.abc import Callable
from dataclasses import dataclass, field

from reporoller.config.models import DaemonConfig
from reporoller.core.history import HistoryStore
from reporoller.daemon.cache import ProjectCache, ScanCoalescer


def _noop() -> None:
    pass


@dataclass
class DaemonSession:
    """Counters, cache and collaborators for one running daemon.

    Passed explicitly to handler registration so several daemons can run
    in one process.
    """

    config: DaemonConfig
    cache: ProjectCache
    history: HistoryStore = field(default_factory=HistoryStore)
    coalescer: ScanCoalescer = field(default_factory=ScanCoalescer)
    # Invoked by daemon.shutdown once the acknowledgement has been sent
    request_shutdown: Callable[[], None] = _noop
    start_time: float = field(default_factory=time.time)
    active_connections: int = 0
    request_count: int = 0

    @classmethod
    def from_config(
        cls,
        config: DaemonConfig,
        request_shutdown: Callable[[], None] = _noop,
        history: HistoryStore | None = None,
    ) -> "DaemonSession":
        return cls(
            config=config,
            cache=ProjectCache(
                ttl_seconds=config.cache_ttl_seconds,
                max_size=config.max_cache_size,
            ),
            history=history or HistoryStore(),
            request_shutdown=request_shutdown,
        )

    @property
    def uptime_ms(self) -> int:
        return int((time.time() - self.start_time) * 1000)

    def connection_opened(self) -> None:
        self.active_connections += 1

    def connection_closed(self) -> None:
        self.active_connections = max(0, self.active_connections - 1)

    def count_request(self) -> None:
        self.request_count += 1
