"""
Synchronization of notes with Etherpad pads.

A note is linked to a pad by storing the pad id in its frontmatter. Linking
creates the pad from the note's body; pulling replaces the note's body with
the pad's content, discarding any local edits. There's no merging: the most
recent write wins.

Operations never raise for remote or storage failures. Instead the error is
logged, the user is notified via the {obj}`Host` and a {obj}`SyncResult`
is returned.
"""
from __future__ import annotations

import asyncio
import datetime
import logging
from contextlib import asynccontextmanager
from enum import Enum, auto
from logging import Logger
from typing import Any, AsyncIterator, Callable, Hashable

from .config import PadConfig
from .exceptions import SyncError
from .frontmatter import (
    Frontmatter,
    body_without_frontmatter,
    compose_note,
    extract_frontmatter,
    merge_frontmatter,
)
from .gateway import EtherpadGateway, make_gateway, make_pad_url
from .host import Host
from .markup import Converter, to_markdown

__all__ = [
    "PAD_ID_KEY",
    "PULLED_AT_KEY",
    "SyncResult",
    "PadSync",
]

PAD_ID_KEY = "etherpad_id"
"""
Frontmatter key holding id of linked pad.
"""

PULLED_AT_KEY = "etherpad_get_at"
"""
Frontmatter key holding local time of last pull from pad.
"""


class SyncResult(Enum):
    """
    Outcome of a sync operation.
    """

    DONE = auto()
    """Operation completed"""

    SKIPPED = auto()
    """Nothing to do, e.g. note isn't linked to a pad"""

    FAILED = auto()
    """Operation failed and user was notified; note is unchanged"""


class PadSync:
    """
    Orchestrates linking, pulling and viewing of notes on behalf of a
    {obj}`Host`.

    Config is obtained from `config_source` at the start of every operation
    and a new gateway is created from it, so changes to settings apply to
    the next operation. Notes are likewise re-read every time; nothing is
    cached between operations.

    Operations on the same note are serialized; operations on different
    notes may interleave.
    """

    _host: Host
    _config_source: Callable[[], PadConfig]
    _gateway_factory: Callable[[PadConfig], EtherpadGateway]
    _converter: Converter
    _clock: Callable[[], datetime.datetime]
    _logger: Logger
    _locks: dict[Hashable, asyncio.Lock]
    _lock_users: dict[Hashable, int]

    def __init__(
        self,
        host: Host,
        config_source: Callable[[], PadConfig],
        *,
        gateway_factory: Callable[[PadConfig], EtherpadGateway] = make_gateway,
        converter: Converter = to_markdown,
        clock: Callable[[], datetime.datetime] = datetime.datetime.now,
        logger: Logger | None = None,
    ):
        """
        :param host: Note storage and editor
        :param config_source: Callable returning current settings
        :param gateway_factory: Creates gateway from settings
        :param converter: Converts pad HTML to note markup
        :param clock: Returns current time, recorded upon pull
        :param logger: Logger to use, or `None` to use package logger
        """
        self._host = host
        self._config_source = config_source
        self._gateway_factory = gateway_factory
        self._converter = converter
        self._clock = clock
        self._logger = logger or logging.getLogger("etherpad-sync")
        self._locks = {}
        self._lock_users = {}

    @property
    def host(self) -> Host:
        return self._host

    def register(self):
        """
        Pull notes from their pads whenever they're opened.
        """
        self._host.on_note_opened(self.pull_note)

    async def link_note(self, note: Any) -> SyncResult:
        """
        Create a pad from the note's body, named after the note, and store
        its id in the note's frontmatter. The note is only modified once
        the pad was created.
        """
        pad_id = self._host.note_name(note)

        async with self._lock(note):
            try:
                raw = await self._host.read(note)
                linked_id = _get_pad_id(extract_frontmatter(raw))

                if linked_id is not None:
                    self._host.notify(
                        f"Note is already linked to pad {linked_id}"
                    )
                    return SyncResult.SKIPPED

                gateway = self._gateway_factory(self._config_source())
                await gateway.create_pad(pad_id, body_without_frontmatter(raw))

                # pick up any edits made while pad was being created
                raw = await self._host.read(note)
                meta = merge_frontmatter(
                    extract_frontmatter(raw), {PAD_ID_KEY: pad_id}
                )
                await self._host.write(
                    note, compose_note(meta, body_without_frontmatter(raw))
                )
            except SyncError as e:
                self._logger.error(f"Failed to link {note} to pad: {e}")
                self._host.notify(f"Error creating pad {pad_id}: {e}")
                return SyncResult.FAILED

        self._logger.info(f"Linked {note} to pad {pad_id}")
        return SyncResult.DONE

    async def pull_note(self, note: Any | None) -> SyncResult:
        """
        Replace the note's body with the content of its linked pad and
        record the time of the pull. Local edits to the body are discarded.

        Does nothing if `note` is `None` or not linked.
        """
        if note is None:
            return SyncResult.SKIPPED

        async with self._lock(note):
            try:
                meta = extract_frontmatter(await self._host.read(note))
                pad_id = _get_pad_id(meta)

                if meta is None or pad_id is None:
                    return SyncResult.SKIPPED

                config = self._config_source()
                html = await self._gateway_factory(config).get_html(pad_id)
                body = self._converter(html)

                meta = merge_frontmatter(
                    meta,
                    {
                        PULLED_AT_KEY: self._clock().isoformat(
                            sep=" ", timespec="seconds"
                        )
                    },
                )
                await self._host.write(note, compose_note(meta, body))
            except SyncError as e:
                self._logger.error(f"Failed to pull {note} from pad: {e}")
                self._host.notify(f"Error getting pad for {note}: {e}")
                return SyncResult.FAILED

        url = make_pad_url(config, pad_id)
        self._host.notify(
            f"Note was reloaded from {url}.\nLocal edits will be discarded!"
        )
        return SyncResult.DONE

    async def pad_url(self, note: Any) -> str | None:
        """
        Get URL of note's linked pad, or `None` if not linked.
        """
        try:
            meta = extract_frontmatter(await self._host.read(note))
        except SyncError as e:
            self._logger.error(f"Failed to read {note}: {e}")
            self._host.notify(f"Error reading {note}: {e}")
            return None

        pad_id = _get_pad_id(meta)
        if pad_id is None:
            return None

        return make_pad_url(self._config_source(), pad_id)

    async def visit_note(self, note: Any) -> SyncResult:
        """
        Open note's linked pad in external viewer.
        """
        url = await self.pad_url(note)
        if url is None:
            return SyncResult.SKIPPED

        self._host.open_external(url)
        return SyncResult.DONE

    async def link_active(self) -> SyncResult:
        """
        Link currently active note to a new pad.
        """
        note = self._host.get_active_note()
        if note is None:
            return SyncResult.SKIPPED
        return await self.link_note(note)

    async def pull_active(self) -> SyncResult:
        """
        Pull currently active note from its pad.
        """
        return await self.pull_note(self._host.get_active_note())

    async def visit_active(self) -> SyncResult:
        """
        Open pad of currently active note.
        """
        note = self._host.get_active_note()
        if note is None:
            return SyncResult.SKIPPED
        return await self.visit_note(note)

    @asynccontextmanager
    async def _lock(self, note: Any) -> AsyncIterator[None]:
        """
        Serialize operations on note, forgetting its lock once no operation
        holds or awaits it.
        """
        lock = self._locks.setdefault(note, asyncio.Lock())
        self._lock_users[note] = self._lock_users.get(note, 0) + 1

        try:
            async with lock:
                yield
        finally:
            self._lock_users[note] -= 1
            if self._lock_users[note] == 0:
                del self._lock_users[note]
                del self._locks[note]


def _get_pad_id(meta: Frontmatter | None) -> str | None:
    if not meta or meta.get(PAD_ID_KEY) in (None, ""):
        return None
    return str(meta[PAD_ID_KEY])
