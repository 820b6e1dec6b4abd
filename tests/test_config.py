import pytest

from stayopen.config import StayOpenConfig


def test_config_defaults():
    cfg = StayOpenConfig.from_env({})
    assert cfg.executable == "exiftool"
    assert cfg.default_options == ("-json",)
    assert cfg.pool_size >= 1
    assert cfg.stop_timeout == 5.0


def test_config_from_env():
    cfg = StayOpenConfig.from_env(
        {
            "STAYOPEN_EXIFTOOL": "/opt/exiftool/exiftool",
            "STAYOPEN_DEFAULT_OPTIONS": "-json  --printConv",
            "STAYOPEN_POOL_SIZE": "4",
            "STAYOPEN_STOP_TIMEOUT": "1.5",
        }
    )
    assert cfg.executable == "/opt/exiftool/exiftool"
    assert cfg.default_options == ("-json", "--printConv")
    assert cfg.pool_size == 4
    assert cfg.stop_timeout == 1.5


def test_config_empty_default_options_disables_them():
    assert StayOpenConfig.from_env({"STAYOPEN_DEFAULT_OPTIONS": ""}).default_options == ()


def test_config_reads_process_environment(monkeypatch):
    monkeypatch.setenv("STAYOPEN_POOL_SIZE", "2")
    assert StayOpenConfig.from_env().pool_size == 2


def test_config_rejects_bad_numbers():
    with pytest.raises(ValueError, match="STAYOPEN_POOL_SIZE"):
        StayOpenConfig.from_env({"STAYOPEN_POOL_SIZE": "many"})
