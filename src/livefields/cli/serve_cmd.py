"""``livefields serve``: run the authority process."""

from __future__ import annotations

import asyncio
import errno
import logging
from pathlib import Path

import click

from livefields.cli.helpers import (
    apply_config_log_level,
    json_envelope,
    output_error,
    require_config,
)
from livefields.cli.main import cli
from livefields.core.config import ConfigError, parse_field_overrides, validate_port
from livefields.server.app import LiveFieldsServer

logger = logging.getLogger(__name__)


@cli.command("serve")
@click.option("--host", default=None, help="Host to bind to (default: 0.0.0.0).")
@click.option(
    "--port",
    type=int,
    default=None,
    envvar="PORT",
    help="Port for HTTP and WebSocket traffic. Defaults to $PORT, the config file, or 8080.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: $LIVEFIELDS_CONFIG or ./livefields.json if present).",
)
@click.option(
    "--static-dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Directory of presentation assets to serve (default: bundled page).",
)
@click.option(
    "--field",
    "field_pairs",
    multiple=True,
    metavar="NAME=VALUE",
    help="Initial field and value (repeatable). Replaces the configured fields.",
)
@click.option("--json", "output_json", is_flag=True, help="Output structured JSON.")
def serve_cmd(
    host: str | None,
    port: int | None,
    config_path: Path | None,
    static_dir: Path | None,
    field_pairs: tuple[str, ...],
    output_json: bool,
) -> None:
    """Hold the shared state and keep every connected viewer in sync."""
    config = require_config(config_path, output_json)
    apply_config_log_level(config)

    host = host or config["host"]
    port = port if port is not None else config["port"]
    if not validate_port(port):
        output_error(f"Invalid port: {port}. Expected 1-65535.", "INVALID_PORT", output_json)

    try:
        fields = parse_field_overrides(field_pairs) or dict(config["fields"])
    except ConfigError as exc:
        output_error(str(exc), "INVALID_FIELD", output_json)

    if static_dir is None and config.get("static_dir"):
        static_dir = Path(config["static_dir"])

    server = LiveFieldsServer(fields, host=host, port=port, static_dir=static_dir)

    try:
        asyncio.run(_serve(server, output_json))
    except OSError as exc:
        if exc.errno == errno.EACCES:
            msg = f"Port {port} requires elevated privileges."
            code = "PERMISSION_DENIED"
        elif exc.errno == errno.EADDRINUSE:
            msg = f"Port {port} is already in use."
            code = "PORT_IN_USE"
        else:
            raise
        logger.error("Failed to bind %s:%d: %s", host, port, exc.strerror or exc)
        output_error(msg, code, output_json)
    except KeyboardInterrupt:
        click.echo("\nlivefields: stopped.", err=True)


async def _serve(server: LiveFieldsServer, output_json: bool) -> None:
    await server.start()
    if output_json:
        data = {
            "host": server.host,
            "port": server.port,
            "url": f"http://localhost:{server.port}/",
            "fields": list(server.store.fields),
        }
        click.echo(json_envelope(True, data=data))
    try:
        await server.serve_forever()
    finally:
        await server.stop()
