from __future__ import annotations


class StayOpenError(RuntimeError):
    """Base class for every error raised by the stay-open layer."""


class LaunchError(StayOpenError):
    """Raised when the subprocess or its pipes could not be created."""


class PoolConstructionError(LaunchError):
    """Raised when a pool could not start all of its workers."""


class StoppedError(StayOpenError):
    """Raised when a request reaches a worker or pool after stop()."""


class InvalidInputError(StayOpenError, ValueError):
    """Raised when a filename or option cannot be framed as one protocol line."""


class ReadError(StayOpenError):
    """Raised when the output stream ends or fails mid-response."""


class InlineToolError(StayOpenError):
    """Raised when the tool answered but reported a per-file failure."""

    def __init__(self, message: str, payload: bytes):
        super().__init__(message)
        self.payload = payload


class TruncatedStreamError(ReadError):
    """Raised by the frame reader when EOF arrives before a ready marker."""

    def __init__(self, remaining: bytes):
        super().__init__(f"stream closed with {len(remaining)} unframed bytes")
        self.remaining = remaining
