from pathlib import Path

import pytest

from stayopen.errors import InvalidInputError
from stayopen.protocol import RequestFrame, check_line, inline_error, shutdown_frame


def test_request_frame_encodes_one_argument_per_line():
    frame = RequestFrame.build("a b/IMG 1.JPG", ["-json", "--printConv"], ["-ShutterSpeed"])
    assert frame.encode() == b"-json\n--printConv\n-ShutterSpeed\na b/IMG 1.JPG\n-execute\n"


def test_request_frame_accepts_paths_and_unicode():
    frame = RequestFrame.build(Path("photos") / "café.jpg")
    assert frame.encode() == "photos/café.jpg\n-execute\n".encode("utf-8")


def test_shutdown_frame():
    assert shutdown_frame() == b"-stay_open\nFalse\n-execute\n"


@pytest.mark.parametrize("name", ["bad\nname.jpg", "bad\rname.jpg", "nul\x00.jpg", "esc\x1b.jpg", "lone\ud800.jpg", ""])
def test_check_line_rejects_unframeable_values(name):
    with pytest.raises(InvalidInputError):
        check_line(name)


def test_check_line_allows_tabs():
    assert check_line("tab\there.jpg") == "tab\there.jpg"


def test_request_frame_validates_options():
    with pytest.raises(InvalidInputError, match="option"):
        RequestFrame.build("ok.jpg", extra_options=["-Tag\n-execute"])


@pytest.mark.parametrize(
    "payload",
    [
        b'[{"SourceFile": "x", "Error": "File not found"}]',
        b'[{"SourceFile": "x", "ExifTool:Error": "File not found"}]',
        b'[{"SourceFile": "x", "ExifTool": {"Error": "File not found"}}]',
    ],
)
def test_inline_error_record_shapes(payload):
    assert inline_error(payload) == "File not found"


@pytest.mark.parametrize("payload", [b"", b"Error : text output", b"[not json", b"[]", b'[{"SourceFile": "x"}]'])
def test_inline_error_absent(payload):
    assert inline_error(payload) is None


def test_check_line_rejects_unencodable_text():
    with pytest.raises(InvalidInputError, match="UTF-8") as info:
        check_line("bad\ud800.jpg")
    assert isinstance(info.value.__cause__, UnicodeEncodeError)


def test_check_line_passes_undecodable_bytes_through():
    assert RequestFrame.build(b"caf\xe9.jpg").encode() == b"caf\xe9.jpg\n-execute\n"
