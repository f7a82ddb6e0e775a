"""ULID-based identifiers for connections and client sessions."""

from __future__ import annotations

from ulid import ULID


def generate_connection_id() -> str:
    """Return an id for an accepted server connection: ``conn_<ULID>``."""
    return f"conn_{ULID()}"


def generate_client_id() -> str:
    """Return an id for a viewer process: ``client_<ULID>``."""
    return f"client_{ULID()}"

