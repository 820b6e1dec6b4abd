from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Any

from stayopen.errors import InvalidInputError

EXECUTE = "-execute"
STAY_OPEN_ARGS = ("-stay_open", "True", "-@", "-")
SHUTDOWN_LINES = ("-stay_open", "False", EXECUTE)


def check_line(value: Any, what: str = "filename") -> str:
    """Return ``value`` as text if it can be sent as a single argument line."""
    text = os.fsdecode(value)
    if not text:
        raise InvalidInputError(f"{what} is empty")
    for ch in text:
        if ch != "\t" and (ord(ch) < 0x20 or ch == "\x7f"):
            raise InvalidInputError(f"{what} contains control character {ch!r}: {text!r}")
    try:
        text.encode("utf-8", "surrogateescape")
    except UnicodeEncodeError as exc:
        raise InvalidInputError(f"{what} cannot be encoded as UTF-8: {text!r}") from exc
    return text


def encode_lines(lines) -> bytes:
    # surrogateescape passes undecodable filename bytes through untouched
    return "".join(f"{line}\n" for line in lines).encode("utf-8", "surrogateescape")


@dataclass(slots=True, frozen=True)
class RequestFrame:
    options: tuple[str, ...]
    filename: str

    @classmethod
    def build(cls, filename, default_options=(), extra_options=()) -> "RequestFrame":
        options = tuple(check_line(o, "option") for o in (*default_options, *extra_options))
        return cls(options, check_line(filename))

    def lines(self) -> tuple[str, ...]:
        return (*self.options, self.filename, EXECUTE)

    def encode(self) -> bytes:
        return encode_lines(self.lines())


def shutdown_frame() -> bytes:
    return encode_lines(SHUTDOWN_LINES)


def inline_error(payload: bytes) -> str | None:
    """Return the per-file error exiftool reported in a ``-json`` response, if any.

    Handles flat (``Error``), ``-G`` (``ExifTool:Error``) and ``-g``
    (``{"ExifTool": {"Error": ...}}``) record shapes. Non-JSON payloads never
    carry an inline error.
    """
    if not payload.lstrip().startswith(b"["):
        return None
    try:
        records = json.loads(payload)
    except ValueError:
        return None
    if not records or not isinstance(records[0], dict):
        return None

    record = records[0]
    for key in ("Error", "ExifTool:Error"):
        if isinstance(record.get(key), str):
            return record[key]
    group = record.get("ExifTool")
    if isinstance(group, dict) and isinstance(group.get("Error"), str):
        return group["Error"]
    return None
