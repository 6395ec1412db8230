"""
Interface to the application hosting the notes: storage, editor events and
user notifications.
"""
from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from logging import Logger
from pathlib import Path
from typing import Any, Awaitable, Callable, Hashable

import typer

from .exceptions import StorageFailure

__all__ = [
    "Host",
    "FileHost",
    "NoteOpenedCallback",
]

type NoteOpenedCallback = Callable[[Any], Awaitable[Any]]


class Host(ABC):
    """
    Abstract interface to note storage and editor.

    Notes are referenced by opaque, hashable handles chosen by the
    implementation. Storage operations are async and raise
    {obj}`StorageFailure` upon failure.
    """

    _note_opened_callbacks: list[NoteOpenedCallback]
    _active_note: Hashable | None

    def __init__(self):
        self._note_opened_callbacks = []
        self._active_note = None

    @abstractmethod
    async def read(self, note: Any) -> str:
        """
        Get full raw content of note.
        """
        ...

    @abstractmethod
    async def write(self, note: Any, text: str):
        """
        Replace full raw content of an existing note.
        """
        ...

    @abstractmethod
    def note_name(self, note: Any) -> str:
        """
        Get base name of note, without folder or extension.
        """
        ...

    @abstractmethod
    def open_external(self, url: str):
        """
        Hand URL to the platform's default handler.
        """
        ...

    @abstractmethod
    def notify(self, message: str):
        """
        Show non-fatal notification to user.
        """
        ...

    def get_active_note(self) -> Any | None:
        """
        Get note currently open in the editor, if any.
        """
        return self._active_note

    def on_note_opened(self, callback: NoteOpenedCallback):
        """
        Register callback to invoke each time a note is opened.
        """
        self._note_opened_callbacks.append(callback)

    async def open_note(self, note: Any):
        """
        Make note active and invoke note-opened callbacks in order of
        registration.
        """
        self._active_note = note

        for callback in self._note_opened_callbacks:
            await callback(note)


class FileHost(Host):
    """
    Host backed by Markdown files on the local filesystem; notes are
    referenced by path.
    """

    _logger: Logger

    def __init__(self, *, logger: Logger | None = None):
        super().__init__()
        self._logger = logger or logging.getLogger("etherpad-sync")

    async def read(self, note: Path) -> str:
        try:
            data = await asyncio.to_thread(note.read_bytes)
            return data.decode("utf-8")
        except OSError as e:
            raise StorageFailure(note, e.strerror or str(e)) from e
        except UnicodeDecodeError as e:
            raise StorageFailure(note, f"not valid UTF-8: {e}") from e

    async def write(self, note: Path, text: str):
        # only existing notes are modified
        if not note.is_file():
            raise StorageFailure(note, "No such file")

        try:
            await asyncio.to_thread(note.write_bytes, text.encode("utf-8"))
        except OSError as e:
            raise StorageFailure(note, e.strerror or str(e)) from e

    def note_name(self, note: Path) -> str:
        return note.stem

    def open_external(self, url: str):
        self._logger.debug(f"Launching '{url}'")
        typer.launch(url)

    def notify(self, message: str):
        self._logger.info(message)
