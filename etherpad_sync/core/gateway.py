"""
Client for the Etherpad HTTP API.

Each call opens its own HTTP connection using the config it was created
with; a gateway holds no connection state. Obtain one per operation using
{obj}`make_gateway` so that settings changes take effect immediately.
"""
from __future__ import annotations

import logging
from logging import Logger
from typing import Any

import httpx

from .config import PadConfig
from .exceptions import RemoteRejected, RemoteUnreachable

__all__ = [
    "EtherpadGateway",
    "make_gateway",
    "make_pad_url",
]

CODE_OK = 0
"""
Etherpad response code indicating success.
"""


class EtherpadGateway:
    """
    Wrapper for the Etherpad API functions needed for syncing notes.
    """

    _config: PadConfig
    _transport: httpx.AsyncBaseTransport | None
    _logger: Logger

    def __init__(
        self,
        config: PadConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        logger: Logger | None = None,
    ):
        """
        :param config: Connection settings
        :param transport: Custom transport, e.g. `httpx.MockTransport` for testing
        :param logger: Logger to use, or `None` to use package logger
        """
        self._config = config
        self._transport = transport
        self._logger = logger or logging.getLogger("etherpad-sync")

    @property
    def config(self) -> PadConfig:
        return self._config

    async def create_pad(self, pad_id: str, text: str):
        """
        Create a new pad with the given initial text. Raises
        {obj}`RemoteRejected` if the pad already exists.
        """
        await self._call("createPad", padID=pad_id, text=text)

    async def get_html(self, pad_id: str) -> str:
        """
        Get pad content rendered as HTML.
        """
        data = await self._call("getHTML", padID=pad_id)

        if not isinstance(data, dict) or not isinstance(data.get("html"), str):
            raise RemoteRejected("getHTML", f"unexpected response data: {data}")

        return data["html"]

    async def check_token(self):
        """
        Ensure the configured API key is accepted by the server.
        """
        await self._call("checkToken")

    def pad_url(self, pad_id: str) -> str:
        """
        Get URL at which a user can view the pad.
        """
        return make_pad_url(self._config, pad_id)

    async def _call(self, function: str, **params: str) -> Any:
        """
        Invoke API function and return the `data` field of its response.
        """
        url = f"/api/{self._config.api_version}/{function}"
        form = {"apikey": self._config.apikey, **params}

        self._logger.debug(
            f"Calling Etherpad {function} at '{self._config.base_url}' with {params.get('padID', '')!r}"
        )

        try:
            async with httpx.AsyncClient(
                base_url=self._config.base_url, transport=self._transport
            ) as client:
                response = await client.post(url, data=form)
        except (httpx.TransportError, httpx.InvalidURL) as e:
            raise RemoteUnreachable(self._config.base_url, str(e)) from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if not isinstance(body, dict) or "code" not in body:
            raise RemoteRejected(
                function,
                f"status={response.status_code}, reason={response.reason_phrase}",
            )

        if body["code"] != CODE_OK:
            raise RemoteRejected(
                function, str(body.get("message")), code=body["code"]
            )

        return body.get("data")


def make_gateway(
    config: PadConfig,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    logger: Logger | None = None,
) -> EtherpadGateway:
    """
    Create gateway from current settings.
    """
    return EtherpadGateway(config, transport=transport, logger=logger)


def make_pad_url(config: PadConfig, pad_id: str) -> str:
    """
    Get URL of pad; spaces in the pad id are replaced with underscores.
    """
    return f"{config.base_url}/p/{pad_id.replace(' ', '_')}"
