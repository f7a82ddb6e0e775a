"""Default config generation, parsing and validation."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TypedDict

CONFIG_FILENAME = "livefields.json"

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080
DEFAULT_RECONNECT_DELAY = 5.0
DEFAULT_BLUR_GRACE = 0.1

VALID_LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(ValueError):
    """Raised when a config file or override cannot be used."""


class ClientConfig(TypedDict, total=False):
    reconnect_delay: float
    blur_grace: float


class LiveFieldsConfig(TypedDict, total=False):
    schema_version: int
    host: str
    port: int
    static_dir: str | None
    fields: dict[str, str]
    client: ClientConfig
    log_level: str


def default_config() -> LiveFieldsConfig:
    """Return the default configuration.

    The returned dict, when serialized with ``serialize_config()``,
    produces the canonical default ``livefields.json``.
    """
    return {
        "schema_version": 1,
        "host": DEFAULT_HOST,
        "port": DEFAULT_PORT,
        "static_dir": None,
        "fields": {
            "amount": "LOADING...",
            "name": "LOADING...",
        },
        "client": {
            "reconnect_delay": DEFAULT_RECONNECT_DELAY,
            "blur_grace": DEFAULT_BLUR_GRACE,
        },
        "log_level": "INFO",
    }


def serialize_config(config: LiveFieldsConfig | dict[str, object]) -> str:
    """Serialize a config dict to the canonical JSON format."""
    return json.dumps(config, sort_keys=True, indent=2) + "\n"


def load_config(raw: str) -> LiveFieldsConfig:
    """Parse a JSON config string, merge it over the defaults and validate it.

    This is a pure function (no I/O).  The CLI layer reads the file
    and passes the raw string here.
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError("Config must be a JSON object")

    client_overrides = data.pop("client", {})
    if client_overrides is None:
        client_overrides = {}
    if not isinstance(client_overrides, dict):
        raise ConfigError("'client' must be a JSON object")

    config = default_config()
    client = dict(config["client"])
    client.update(client_overrides)
    config.update(data)  # type: ignore[typeddict-item]
    config["client"] = client  # type: ignore[typeddict-item]
    validate_config(config)
    return config


def read_config_file(path: Path) -> LiveFieldsConfig:
    """Read and parse *path*, raising ``ConfigError`` on any failure."""
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc.strerror or exc}") from exc
    return load_config(raw)


def validate_config(config: LiveFieldsConfig) -> None:
    """Raise ``ConfigError`` describing the first invalid setting found."""
    port = config.get("port")
    if not validate_port(port):
        raise ConfigError(f"Invalid port: {port!r} (expected an integer 1-65535)")

    host = config.get("host")
    if not isinstance(host, str) or not host:
        raise ConfigError("'host' must be a non-empty string")

    static_dir = config.get("static_dir")
    if static_dir is not None and not isinstance(static_dir, str):
        raise ConfigError("'static_dir' must be a path string or null")

    fields = config.get("fields")
    if not isinstance(fields, dict) or not fields:
        raise ConfigError("'fields' must be a non-empty object of field names to values")
    for name, value in fields.items():
        if not name or not isinstance(value, str):
            raise ConfigError(f"Field '{name}' must have a non-empty name and a string value")

    level = str(config.get("log_level", "INFO")).upper()
    if level not in VALID_LOG_LEVELS:
        raise ConfigError(f"Invalid log_level: '{level}'. Expected one of {', '.join(VALID_LOG_LEVELS)}.")

    client = config.get("client", {})
    for key in ("reconnect_delay", "blur_grace"):
        delay = client.get(key)
        if isinstance(delay, bool) or not isinstance(delay, (int, float)) or delay < 0:
            raise ConfigError(f"client.{key} must be a non-negative number of seconds")


def validate_port(port: object) -> bool:
    """Return ``True`` if *port* is a usable TCP port number."""
    return isinstance(port, int) and not isinstance(port, bool) and 0 < port < 65536


def parse_field_overrides(pairs: tuple[str, ...] | list[str]) -> dict[str, str]:
    """Parse repeated ``name=value`` options into an ordered field mapping."""
    fields: dict[str, str] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        name = name.strip()
        if not sep or not name:
            raise ConfigError(f"Invalid field '{pair}'. Expected name=value.")
        fields[name] = value
    return fields

