"""Persistent exiftool processes driven over the ``-stay_open`` line protocol."""

from .aio import AsyncPool
from .config import StayOpenConfig
from .errors import (
    InlineToolError,
    InvalidInputError,
    LaunchError,
    PoolConstructionError,
    ReadError,
    StayOpenError,
    StoppedError,
    TruncatedStreamError,
)
from .framing import FrameReader, Token, split_ready_token
from .pool import Pool
from .worker import StayOpen

__all__ = [
    "AsyncPool",
    "FrameReader",
    "InlineToolError",
    "InvalidInputError",
    "LaunchError",
    "Pool",
    "PoolConstructionError",
    "ReadError",
    "StayOpen",
    "StayOpenConfig",
    "StayOpenError",
    "StoppedError",
    "Token",
    "TruncatedStreamError",
    "split_ready_token",
]
