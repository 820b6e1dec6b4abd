from __future__ import annotations

import logging
import threading
from collections.abc import Iterable

from stayopen.config import StayOpenConfig
from stayopen.errors import PoolConstructionError, StayOpenError, StoppedError
from stayopen.worker import StayOpen

logger = logging.getLogger(__name__)


class Pool:
    """Fixed set of stay-open workers with round-robin dispatch.

    Only worker selection happens under the pool lock, so requests routed to
    different workers run concurrently.
    """

    def __init__(self, executable: str = "exiftool", size: int = 1, default_options: Iterable[str] = (), **worker_kwargs):
        if size < 1:
            raise ValueError(f"pool size must be at least 1, got {size}")
        default_options = tuple(default_options)
        self._lock = threading.Lock()
        self._changed = threading.Condition(self._lock)
        self._cursor = 0
        self._in_flight = 0
        self._stopped = False
        self._workers_stopped = False

        workers: list[StayOpen] = []
        try:
            for _ in range(size):
                workers.append(StayOpen(executable, default_options, **worker_kwargs).start())
        except (StayOpenError, OSError, ValueError) as exc:
            for worker in workers:
                worker.stop()
            raise PoolConstructionError(f"could not start {size} workers for {executable!r}: {exc}") from exc
        self._workers = tuple(workers)
        logger.info("pool of %d %s workers ready", size, executable)

    @classmethod
    def from_config(cls, cfg: StayOpenConfig) -> "Pool":
        return cls(
            cfg.executable,
            cfg.pool_size,
            cfg.default_options,
            stop_timeout=cfg.stop_timeout,
            chunk_size=cfg.chunk_size,
        )

    @property
    def size(self) -> int:
        return len(self._workers)

    @property
    def stopped(self) -> bool:
        return self._stopped

    def __enter__(self) -> "Pool":
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()
    def _next_worker(self) -> StayOpen:
        with self._lock:
            if self._stopped:
                raise StoppedError("pool is stopped")
            worker = self._workers[self._cursor]
            self._cursor = (self._cursor + 1) % len(self._workers)
            self._in_flight += 1
            return worker

    def _release(self) -> None:
        with self._lock:
            self._in_flight -= 1
            if not self._in_flight:
                self._changed.notify_all()

    def extract(self, filename) -> bytes:
        worker = self._next_worker()
        try:
            return worker.extract(filename)
        finally:
            self._release()

    def extract_flags(self, filename, *options: str) -> bytes:
        worker = self._next_worker()
        try:
            return worker.extract_flags(filename, *options)
        finally:
            self._release()

    def stop(self) -> None:
        """Refuse new requests, let selected ones finish, then stop every worker."""
        with self._lock:
            if self._stopped:
                self._changed.wait_for(lambda: self._workers_stopped)
                return
            self._stopped = True
            self._changed.wait_for(lambda: not self._in_flight)
            for worker in self._workers:
                worker.stop()
            self._workers_stopped = True
            self._changed.notify_all()
        logger.info("pool of %d workers stopped", len(self._workers))
