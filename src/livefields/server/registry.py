"""Bookkeeping for the authority's open connections.

Members are believed open.  The registry never probes them; sessions
unregister on close/error and ``broadcast()`` drops members it finds closed.
"""

from __future__ import annotations

from typing import Any

from websockets.protocol import State

from livefields.core.ids import generate_connection_id


def is_open(conn: Any) -> bool:
    """Return ``True`` while *conn* can still accept frames."""
    return conn.state is State.OPEN


class ConnectionRegistry:
    """The set of live peer connections, each tagged with a ``conn_<ULID>`` id.

    Insertion order is irrelevant.
    """

    def __init__(self) -> None:
        self._connections: dict[Any, str] = {}

    def register(self, conn: Any, conn_id: str | None = None) -> str:
        """Add *conn* (no-op if present) and return its id."""
        if conn not in self._connections:
            self._connections[conn] = conn_id or generate_connection_id()
        return self._connections[conn]

    def unregister(self, conn: Any) -> None:
        self._connections.pop(conn, None)

    def label(self, conn: Any) -> str:
        return self._connections.get(conn, "conn_unregistered")

    def snapshot(self) -> tuple[Any, ...]:
        """Return a copy of the members, safe to iterate while the registry changes."""
        return tuple(self._connections)

    def __contains__(self, conn: object) -> bool:
        return conn in self._connections

    def __len__(self) -> int:
        return len(self._connections)
