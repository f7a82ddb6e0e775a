"""Shared CLI helpers: logging setup, config resolution and output envelopes."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import NoReturn

import click

from livefields.core.config import (
    CONFIG_FILENAME,
    ConfigError,
    LiveFieldsConfig,
    default_config,
    read_config_file,
)

CONFIG_ENV = "LIVEFIELDS_CONFIG"
LOG_FORMAT = "%(levelname)s: %(message)s"


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


def configure_logging(level: str) -> None:
    """Route library logging to stderr at *level*.  Safe to call repeatedly."""
    logging.basicConfig(format=LOG_FORMAT)
    logging.getLogger().setLevel(level.upper())


def apply_config_log_level(config: LiveFieldsConfig) -> None:
    """Use the config file's log level unless ``--log-level`` was given."""
    ctx = click.get_current_context(silent=True)
    root_obj = ctx.find_root().obj if ctx is not None else None
    if root_obj and root_obj.get("log_level"):
        return
    configure_logging(config.get("log_level", "INFO"))


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


def find_config(explicit: Path | None = None) -> Path | None:
    """Locate the config file to use.

    Precedence: *explicit* path, then ``LIVEFIELDS_CONFIG``, then
    ``./livefields.json`` if it exists.  Returns ``None`` to use defaults.
    """
    if explicit is not None:
        return explicit
    env_path = os.environ.get(CONFIG_ENV)
    if env_path:
        return Path(env_path)
    candidate = Path.cwd() / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


def require_config(explicit: Path | None, is_json: bool) -> LiveFieldsConfig:
    """Load the effective config or exit with an error."""
    path = find_config(explicit)
    if path is None:
        return default_config()
    try:
        return read_config_file(path)
    except ConfigError as exc:
        output_error(str(exc), "INVALID_CONFIG", is_json)


# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------


def json_envelope(ok: bool, *, data: object = None, error: object = None) -> str:
    """Build a structured JSON output envelope."""
    result: dict = {"ok": ok}
    if data is not None:
        result["data"] = data
    if error is not None:
        result["error"] = error
    return json.dumps(result, sort_keys=True, indent=2) + "\n"


def json_error_obj(code: str, message: str) -> dict:
    """Build an error object for the JSON envelope."""
    return {"code": code, "message": message}


def output_error(message: str, code: str, is_json: bool, exit_code: int = 1) -> NoReturn:
    """Print error and exit. JSON errors go to stdout; human errors to stderr."""
    if is_json:
        click.echo(json_envelope(False, error=json_error_obj(code, message)))
    else:
        click.echo(f"Error: {message}", err=True)
    raise SystemExit(exit_code)
