"""
View and update persisted connection settings.
"""
from __future__ import annotations

from pydantic import ValidationError
from typer import Context, Exit, Option

from ...core import load_config, update_config
from ._utils import MainTyper, console, get_root_context, logger

app = MainTyper(
    "config",
    help="View and update Etherpad connection settings",
)


@app.command()
def show(ctx: Context):
    """
    Print current settings, including environment overrides
    """
    config = get_root_context(ctx).get_config()

    for field, value in config.model_dump().items():
        if field == "apikey" and value:
            value = "*" * 8
        console.print(f"{field}: {value}", markup=False, highlight=False)


@app.command("set")
def set_(
    ctx: Context,
    host: str
    | None = Option(
        None,
        help="Etherpad host, e.g. localhost",
    ),
    port: int
    | None = Option(
        None,
        help="Etherpad port, e.g. 9001",
    ),
    apikey: str
    | None = Option(
        None,
        help="Etherpad API key",
    ),
    api_version: str
    | None = Option(
        None,
        help="Etherpad HTTP API version",
    ),
    protocol: str
    | None = Option(
        None,
        help="http or https",
    ),
):
    """
    Update settings file; takes effect on the next operation
    """
    root_context = get_root_context(ctx)

    updates = {
        field: value
        for field, value in {
            "host": host,
            "port": port,
            "apikey": apikey,
            "api_version": api_version,
            "protocol": protocol,
        }.items()
        if value is not None
    }

    if not updates:
        logger.info("No settings provided")
        return

    # don't persist environment overrides
    try:
        config = update_config(
            load_config(root_context.config_file, env=False), **updates
        )
    except ValidationError as e:
        logger.error(f"Invalid settings: {e}")
        raise Exit(code=1)

    root_context.config_file.parent.mkdir(parents=True, exist_ok=True)
    config.dump_yaml(root_context.config_file)
    logger.info(f"Updated settings in '{root_context.config_file}'")
