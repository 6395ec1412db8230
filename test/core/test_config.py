"""
Test loading and updating settings.
"""

from pathlib import Path

from pydantic import ValidationError
from pytest import MonkeyPatch, mark, raises

from etherpad_sync import (
    PAD_ID_KEY,
    PULLED_AT_KEY,
    PadConfig,
    load_config,
    update_config,
)


def test_defaults(tmp_path: Path, monkeypatch: MonkeyPatch):
    for var in ["ETHERPAD_HOST", "ETHERPAD_PORT", "ETHERPAD_APIKEY"]:
        monkeypatch.delenv(var, raising=False)

    config = load_config(tmp_path / "missing.yaml")

    assert config.host == "localhost"
    assert config.port == 9001
    assert config.apikey == ""
    assert config.base_url == "http://localhost:9001"


def test_dump_load(tmp_path: Path, monkeypatch: MonkeyPatch):
    monkeypatch.delenv("ETHERPAD_HOST", raising=False)
    monkeypatch.delenv("ETHERPAD_PORT", raising=False)
    monkeypatch.delenv("ETHERPAD_APIKEY", raising=False)

    config_file = tmp_path / "etherpad-sync.yaml"
    PadConfig(host="pads.example.com", port=8080, apikey="secret").dump_yaml(
        config_file
    )

    config = load_config(config_file)

    assert config.host == "pads.example.com"
    assert config.port == 8080
    assert config.apikey == "secret"


def test_empty_file(tmp_path: Path):
    config_file = tmp_path / "etherpad-sync.yaml"
    config_file.write_text("")

    assert load_config(config_file, env=False) == PadConfig()


def test_invalid_file(tmp_path: Path):
    config_file = tmp_path / "etherpad-sync.yaml"

    config_file.write_text("- not\n- a mapping\n")
    with raises(ValueError):
        load_config(config_file)

    config_file.write_text("port: not-a-number\n")
    with raises(ValidationError):
        load_config(config_file)


def test_env_override(tmp_path: Path, monkeypatch: MonkeyPatch):
    config_file = tmp_path / "etherpad-sync.yaml"
    PadConfig(host="from-file", apikey="file-key").dump_yaml(config_file)

    monkeypatch.setenv("ETHERPAD_HOST", "from-env")
    monkeypatch.setenv("ETHERPAD_PORT", "1234")
    monkeypatch.delenv("ETHERPAD_APIKEY", raising=False)

    config = load_config(config_file)
    assert config.host == "from-env"
    assert config.port == 1234
    assert config.apikey == "file-key"

    # overrides can be skipped
    assert load_config(config_file, env=False).host == "from-file"


def test_update():
    config = PadConfig()
    updated = update_config(config, port="8080", host=" pads ")

    assert updated.port == 8080
    assert updated.host == "pads"
    assert config.port == 9001

    with raises(ValidationError):
        update_config(config, port=70000)

    with raises(ValidationError):
        update_config(config, host="")

    with raises(ValidationError):
        update_config(config, protocol="ftp")

    assert update_config(config, host="[::1]").base_url == "http://[::1]:9001"
    assert update_config(config, host="192.168.0.1").host == "192.168.0.1"


@mark.parametrize(
    "host",
    ["bad host", "localhost:9001", "http://pads", "pads/etherpad", "[::1", "a\tb"],
)
def test_invalid_host(host: str):
    """
    Host must be a bare hostname or address; port and protocol are
    separate settings.
    """
    with raises(ValidationError):
        update_config(PadConfig(), host=host)


def test_api_defaults():
    config = PadConfig()

    assert config.api_version == "1.2.13"
    assert config.protocol == "http"
    assert PAD_ID_KEY == "etherpad_id"
    assert PULLED_AT_KEY == "etherpad_get_at"
