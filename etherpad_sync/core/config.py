"""
Connection settings for Etherpad as persisted in .yaml file.
"""
from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Literal, Self

import yaml
from pydantic import BaseModel, Field, field_validator

__all__ = [
    "CONFIG_FILENAME",
    "PadConfig",
    "load_config",
    "update_config",
]

CONFIG_FILENAME = "etherpad-sync.yaml"
"""
Default settings file, relative to the current folder.
"""

ENV_OVERRIDES: dict[str, str] = {
    "host": "ETHERPAD_HOST",
    "port": "ETHERPAD_PORT",
    "apikey": "ETHERPAD_APIKEY",
}
"""
Mapping of fields to environment variables which take precedence over the
settings file.
"""

_HOST = re.compile(r"\[[0-9A-Fa-f:.]+\]|[^\s:/\\\[\]@?#]+")
"""
Hostname, IPv4 address or bracketed IPv6 address; no scheme, port or path.
"""


class PadConfig(BaseModel):
    """
    Encapsulates info needed to connect to an Etherpad server.
    """

    host: str = "localhost"
    """
    Etherpad hostname, without protocol or port.
    """

    port: int = Field(default=9001, ge=1, le=65535)
    """
    Etherpad port.
    """

    apikey: str = ""
    """
    Etherpad API key, found in `APIKEY.txt` of the Etherpad installation.
    """

    api_version: str = "1.2.13"
    """
    Version of the Etherpad HTTP API to use; `checkToken` requires at
    least 1.2.
    """

    protocol: Literal["http", "https"] = "http"
    """
    Protocol used for API calls and pad URLs.
    """

    @field_validator("host", mode="before")
    def validate_host(cls, value: Any) -> Any:
        if not isinstance(value, str):
            # let pydantic handle type error
            return value

        value = value.strip()
        if not value:
            raise ValueError("host must not be empty")

        if not _HOST.fullmatch(value):
            raise ValueError(
                f"invalid host '{value}': give hostname only, set port and protocol separately"
            )

        return value

    @property
    def base_url(self) -> str:
        """
        Server URL without trailing slash.
        """
        return f"{self.protocol}://{self.host}:{self.port}"

    @classmethod
    def load_yaml(cls, file: Path) -> Self:
        """
        Load settings from .yaml file. An empty file yields default settings.
        """
        assert file.is_file()

        with file.open() as fh:
            model = yaml.safe_load(fh) or {}

        if not isinstance(model, dict):
            raise ValueError(f"Invalid yaml contents: {model}")

        return cls(**model)

    def dump_yaml(self, file: Path):
        """
        Dump settings to .yaml file.
        """
        model_yaml = yaml.safe_dump(
            self.model_dump(), default_flow_style=False, sort_keys=False
        )
        file.write_text(model_yaml)


def load_config(file: Path | None = None, *, env: bool = True) -> PadConfig:
    """
    Get current config: settings file if it exists, otherwise defaults,
    with environment overrides applied on top unless `env` is `False`.
    """
    file = file or Path(CONFIG_FILENAME)
    config = PadConfig.load_yaml(file) if file.is_file() else PadConfig()

    if not env:
        return config

    overrides = {
        field: os.environ[var]
        for field, var in ENV_OVERRIDES.items()
        if os.environ.get(var)
    }

    return update_config(config, **overrides) if overrides else config


def update_config(config: PadConfig, **updates: Any) -> PadConfig:
    """
    Get a validated copy of config with fields updated.
    """
    return PadConfig.model_validate({**config.model_dump(), **updates})
