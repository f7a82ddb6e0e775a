"""Headless viewer commands: ``livefields watch`` and ``livefields set``."""

from __future__ import annotations

import asyncio
from pathlib import Path

import click

from livefields.cli.helpers import apply_config_log_level, json_envelope, output_error, require_config
from livefields.cli.main import cli
from livefields.client.display import Display, FieldElement
from livefields.client.edit import EditController
from livefields.client.reconciler import FieldClient, endpoint_url

_config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file for client timings (default: $LIVEFIELDS_CONFIG or ./livefields.json).",
)


@cli.command("watch")
@click.argument("url")
@click.option("--port", type=int, default=None, help="Authority port when URL is a page URL or host (default: 8080).")
@click.option("--reconnect-delay", type=float, default=None, help="Seconds between reconnect attempts (default: 5).")
@_config_option
def watch_cmd(url: str, port: int | None, reconnect_delay: float | None, config_path: Path | None) -> None:
    """Mirror the shared state and print every displayed change.

    Reconnects forever after the connection drops.  Stop with Ctrl+C.
    """
    config = require_config(config_path, False)
    apply_config_log_level(config)
    if reconnect_delay is None:
        reconnect_delay = config["client"]["reconnect_delay"]

    display = Display()
    display.add_listener(_echo_change)
    client = FieldClient(endpoint_url(url, port), display, reconnect_delay, adopt_fields=True)

    try:
        asyncio.run(client.run())
    except KeyboardInterrupt:
        click.echo("\nlivefields: disconnected.", err=True)


def _echo_change(element: FieldElement, old: str, new: str) -> None:  # noqa: ARG001
    click.echo(f"{element.field} = {new}")


@cli.command("set")
@click.argument("url")
@click.argument("field")
@click.argument("value")
@click.option("--port", type=int, default=None, help="Authority port when URL is a page URL or host (default: 8080).")
@click.option("--timeout", type=float, default=10.0, show_default=True, help="Seconds to wait for the initial state.")
@_config_option
@click.option("--json", "output_json", is_flag=True, help="Output structured JSON.")
def set_cmd(
    url: str,
    field: str,
    value: str,
    port: int | None,
    timeout: float,
    config_path: Path | None,
    output_json: bool,
) -> None:
    """Edit one FIELD to VALUE the way a viewer would, then disconnect."""
    config = require_config(config_path, output_json)
    apply_config_log_level(config)

    display = Display([field])
    client = FieldClient(
        endpoint_url(url, port),
        display,
        config["client"]["reconnect_delay"],
    )
    controller = EditController(display.lookup(field), client, config["client"]["blur_grace"])

    try:
        result = asyncio.run(_edit_once(client, controller, value, timeout))
    except asyncio.TimeoutError:
        output_error(f"No initial state from {client.url} within {timeout:g}s", "NOT_CONNECTED", output_json)

    if result == "unknown":
        output_error(f"Unknown field: '{field}'", "UNKNOWN_FIELD", output_json)
    if result == "unchanged":
        message = f"{field} already reads {controller.original_value!r}; nothing sent."
        code = "NO_CHANGE"
        if not value.strip():
            message = "Empty values are not sent."
            code = "EMPTY_VALUE"
        output_error(message, code, output_json)
    if result == "unsent":
        output_error(f"Connection lost; update for '{field}' was not sent.", "NOT_SENT", output_json)

    data = {"field": field, "value": value.strip(), "previous": controller.original_value}
    if output_json:
        click.echo(json_envelope(True, data=data))
    else:
        click.echo(f"{field}: {controller.original_value} -> {data['value']}")


async def _edit_once(client: FieldClient, controller: EditController, value: str, timeout: float) -> str:
    runner = asyncio.create_task(client.run())
    try:
        await asyncio.wait_for(client.wait_hydrated(), timeout=timeout)
        if controller.element.field not in client.snapshot:
            return "unknown"
        if not controller.begin():
            return "unsent"
        controller.type_text(value)
        if await controller.commit():
            return "sent"
        if client.connected:
            return "unchanged"
        return "unsent"
    finally:
        await client.stop()
        await runner
