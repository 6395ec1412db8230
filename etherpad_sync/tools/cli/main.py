"""
Entry point of `etherpad-sync` CLI.

Each command operates on a single Markdown note given by path. The note's
pad is named after the file, without folder or extension.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path

import dotenv
from click.exceptions import BadParameter
from pydantic import ValidationError
from typer import Argument, Context, Exit, Option

from ...core import (
    CONFIG_FILENAME,
    FileHost,
    PadConfig,
    PadSync,
    SyncError,
    SyncResult,
    load_config,
    make_gateway,
)
from . import config
from ._utils import (
    MainTyper,
    console,
    get_root_context,
    logger,
    lookup_param,
    run_sync,
)

dotenv.load_dotenv()

app = MainTyper(
    "etherpad-sync",
    help="Sync Markdown notes with Etherpad pads",
)


@app.callback()
def main(
    ctx: Context,
    config_file: Path = Option(
        CONFIG_FILENAME,
        help=".yaml file containing Etherpad connection settings",
        envvar="ETHERPAD_SYNC_CONFIG_FILE",
        dir_okay=False,
    ),
):
    # Load environment variables from .env file if it exists
    dotenv.load_dotenv(Path(".env").resolve(), override=True)

    root_context = RootContext(ctx=ctx, config_file=config_file)

    # fail early on invalid settings file
    root_context.get_config()

    ctx.obj = root_context


app.add_typer(config.app)


@app.command()
def link(
    ctx: Context,
    note: Path = Argument(
        help="Path to Markdown note",
        exists=True,
        dir_okay=False,
    ),
):
    """
    Create a pad from note content and link note to it
    """
    sync = get_root_context(ctx).create_sync()
    run_sync(sync.link_note(note))


@app.command()
def pull(
    ctx: Context,
    note: Path = Argument(
        help="Path to Markdown note",
        exists=True,
        dir_okay=False,
    ),
):
    """
    Replace note content with content of its linked pad, discarding local
    edits
    """
    sync = get_root_context(ctx).create_sync()
    if run_sync(sync.pull_note(note)) is SyncResult.SKIPPED:
        logger.info(f"Note '{note}' is not linked to a pad")


@app.command("open")
def open_(
    ctx: Context,
    note: Path = Argument(
        help="Path to Markdown note",
        exists=True,
        dir_okay=False,
    ),
):
    """
    Open note as an editor would, pulling it from its pad if linked
    """
    sync = get_root_context(ctx).create_sync()
    results: list[SyncResult] = []

    async def pull_opened(opened: Path):
        results.append(await sync.pull_note(opened))

    sync.host.on_note_opened(pull_opened)
    asyncio.run(sync.host.open_note(note))

    if SyncResult.FAILED in results:
        raise Exit(code=1)


@app.command()
def visit(
    ctx: Context,
    note: Path = Argument(
        help="Path to Markdown note",
        exists=True,
        dir_okay=False,
    ),
):
    """
    Open note's linked pad in system browser
    """
    sync = get_root_context(ctx).create_sync()
    if run_sync(sync.visit_note(note)) is SyncResult.SKIPPED:
        logger.info(f"Note '{note}' is not linked to a pad")


@app.command()
def url(
    ctx: Context,
    note: Path = Argument(
        help="Path to Markdown note",
        exists=True,
        dir_okay=False,
    ),
):
    """
    Print URL of note's linked pad
    """
    sync = get_root_context(ctx).create_sync()
    pad_url = asyncio.run(sync.pad_url(note))

    if pad_url is None:
        logger.info(f"Note '{note}' is not linked to a pad")
        raise Exit(code=1)

    console.print(pad_url, markup=False, highlight=False, soft_wrap=True)


@app.command()
def check(ctx: Context):
    """
    Check Etherpad connection and API key
    """
    pad_config = get_root_context(ctx).get_config()

    try:
        asyncio.run(make_gateway(pad_config, logger=logger).check_token())
    except SyncError as e:
        logger.error(str(e))
        raise Exit(code=1)

    logger.info(f"Connected to Etherpad at '{pad_config.base_url}'")


def run():
    app()


@dataclass(kw_only=True)
class RootContext:
    ctx: Context
    config_file: Path

    def get_config(self) -> PadConfig:
        """
        Get settings as currently persisted.
        """
        try:
            return load_config(self.config_file)
        except (ValueError, ValidationError) as e:
            raise BadParameter(
                f"failed to load config file '{self.config_file}': {e}",
                ctx=self.ctx,
                param=lookup_param(self.ctx, "config_file"),
            )

    def create_sync(self) -> PadSync:
        return PadSync(FileHost(logger=logger), self.get_config, logger=logger)


if __name__ == "__main__":
    app()
