import sys
from pathlib import Path

import pytest

# Add the repository root to sys.path so we can import 'stayopen'
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

FAKE = Path(__file__).resolve().parent / "fake_exiftool.py"


@pytest.fixture
def fake_exiftool(tmp_path) -> str:
    """Executable path that behaves like exiftool in -stay_open mode."""
    script = tmp_path / "exiftool"
    script.write_text(f'#!/bin/sh\nexec "{sys.executable}" "{FAKE}" "$@"\n', encoding="utf-8")
    script.chmod(0o755)
    return str(script)


@pytest.fixture
def image(tmp_path) -> str:
    path = tmp_path / "IMG_7238.JPG"
    path.write_bytes(b"\xff\xd8\xff\xe0" + b"\x00" * 128)
    return str(path)
