"""asyncio front end for a worker pool.

Each call runs on a thread via ``asyncio.to_thread``. Cancelling the awaiting
task does not interrupt the request already handed to a worker; the worker
still reads that response so the next request stays paired with its own.
"""

from __future__ import annotations

import asyncio

from stayopen.config import StayOpenConfig
from stayopen.pool import Pool


class AsyncPool:
    def __init__(self, pool: Pool):
        self.pool = pool

    @classmethod
    async def open(cls, executable: str = "exiftool", size: int = 1, default_options=(), **worker_kwargs) -> "AsyncPool":
        pool = await asyncio.to_thread(Pool, executable, size, default_options, **worker_kwargs)
        return cls(pool)

    @classmethod
    async def from_config(cls, cfg: StayOpenConfig) -> "AsyncPool":
        return cls(await asyncio.to_thread(Pool.from_config, cfg))

    async def extract(self, filename) -> bytes:
        return await asyncio.to_thread(self.pool.extract, filename)

    async def extract_flags(self, filename, *options: str) -> bytes:
        return await asyncio.to_thread(self.pool.extract_flags, filename, *options)

    async def stop(self) -> None:
        await asyncio.to_thread(self.pool.stop)

    async def __aenter__(self) -> "AsyncPool":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()
