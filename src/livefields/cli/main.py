"""CLI entry point and commands."""

from __future__ import annotations

from pathlib import Path

import click

from livefields.cli.helpers import configure_logging
from livefields.core.config import (
    CONFIG_FILENAME,
    VALID_LOG_LEVELS,
    ConfigError,
    default_config,
    parse_field_overrides,
    serialize_config,
    validate_port,
)


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(VALID_LOG_LEVELS, case_sensitive=False),
    default=None,
    envvar="LIVEFIELDS_LOG_LEVEL",
    help="Logging verbosity (default: from config, or INFO).",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str | None) -> None:
    """livefields: shared fields kept in sync across every connected viewer."""
    ctx.ensure_object(dict)
    ctx.obj["log_level"] = log_level
    configure_logging(log_level or "INFO")


@cli.command()
@click.option(
    "--path",
    "target_path",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    default=".",
    help="Directory to write livefields.json in (defaults to current directory).",
)
@click.option("--port", type=int, default=None, help="Port to store in the config (default: 8080).")
@click.option(
    "--field",
    "field_pairs",
    multiple=True,
    metavar="NAME=VALUE",
    help="Initial field and value (repeatable). Replaces the default fields.",
)
def init(target_path: str, port: int | None, field_pairs: tuple[str, ...]) -> None:
    """Write a default livefields.json config file."""
    config_path = Path(target_path) / CONFIG_FILENAME

    # Idempotency: never overwrite an existing config
    if config_path.is_file():
        click.echo(f"{CONFIG_FILENAME} already exists in {target_path}")
        return
    if config_path.exists():
        raise click.ClickException(
            f"Cannot initialize: '{CONFIG_FILENAME}' exists but is not a file. "
            "Remove it and try again."
        )

    config = default_config()
    if port is not None:
        if not validate_port(port):
            raise click.ClickException(f"Invalid port: {port}. Expected 1-65535.")
        config["port"] = port
    if field_pairs:
        try:
            config["fields"] = parse_field_overrides(field_pairs)
        except ConfigError as exc:
            raise click.ClickException(str(exc)) from exc

    config_path.write_text(serialize_config(config), encoding="utf-8")
    click.echo(f"Wrote {config_path}")
    click.echo(f"Fields: {', '.join(config['fields'])}")


# ---------------------------------------------------------------------------
# Register command modules (must be after cli group is defined)
# ---------------------------------------------------------------------------
from livefields.cli import serve_cmd as _serve_cmd  # noqa: E402, F401
from livefields.cli import client_cmds as _client_cmds  # noqa: E402, F401

if __name__ == "__main__":
    cli()
