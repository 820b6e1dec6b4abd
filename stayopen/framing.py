"""Splitting the stay-open output stream into response frames.

exiftool prints ``{ready}`` on its own line after finishing each ``-execute``.
Everything between two markers is one response. ``split_ready_token`` is the
pure classification step; ``FrameReader`` drives it over a pipe.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import BinaryIO

from stayopen.errors import TruncatedStreamError

logger = logging.getLogger(__name__)

READY_MARKER = b"{ready}"


@dataclass(slots=True, frozen=True)
class Token:
    advance: int
    payload: bytes | None
    final: bool = False
    truncated: bool = False


NEED_MORE = Token(0, None)


def _strip_eol(payload: bytes) -> bytes:
    if payload.endswith(b"\r\n"):
        return payload[:-2]
    if payload.endswith(b"\n"):
        return payload[:-1]
    return payload


def split_ready_token(data: bytes | bytearray, at_eof: bool) -> Token:
    """Classify ``data`` as need-more, frame, final frame or truncated stream.

    A marker only counts when it is followed by ``\\n``, ``\\r\\n`` or the end of
    the stream. The line break in front of the marker is part of the delimiter.
    """
    start = 0
    while True:
        i = data.find(READY_MARKER, start)
        if i < 0:
            break
        end = i + len(READY_MARKER)
        tail = bytes(data[end:end + 2])
        if tail[:1] == b"\n":
            eol = 1
        elif tail == b"\r\n":
            eol = 2
        elif tail in (b"", b"\r"):
            # terminator may still be on its way
            if not at_eof:
                return NEED_MORE
            eol = len(tail)
        else:
            start = i + 1
            continue
        advance = end + eol
        return Token(advance, _strip_eol(bytes(data[:i])), final=at_eof and advance == len(data))

    if at_eof and data:
        return Token(0, bytes(data), truncated=True)
    return NEED_MORE


class FrameReader:
    """Iterate response frames from a binary stream.

    Ends quietly on a clean EOF, raises ``TruncatedStreamError`` when the stream
    closes in the middle of a response.
    """

    def __init__(self, stream: BinaryIO, chunk_size: int = 65536):
        self._stream = stream
        self._chunk_size = chunk_size
        self._buf = bytearray()
        self._eof = False
        self._done = False

    def __iter__(self) -> Iterator[bytes]:
        return self

    def __next__(self) -> bytes:
        while not self._done:
            token = split_ready_token(self._buf, self._eof)
            if token.truncated:
                self._done = True
                raise TruncatedStreamError(token.payload or b"")
            if token.payload is not None:
                del self._buf[:token.advance]
                self._done = token.final
                logger.debug("frame of %d bytes (final=%s)", len(token.payload), token.final)
                return token.payload
            if self._eof:
                self._done = True
                break
            self._fill()
        raise StopIteration

    def _fill(self) -> None:
        # read1 returns whatever is buffered instead of blocking for a full chunk
        read = getattr(self._stream, "read1", None) or self._stream.read
        chunk = read(self._chunk_size)
        if chunk:
            self._buf.extend(chunk)
        else:
            self._eof = True
