"""Authority side: store owner, connection registry, fan-out and sessions."""

from __future__ import annotations

from livefields.server.app import LiveFieldsServer
from livefields.server.fanout import broadcast
from livefields.server.registry import ConnectionRegistry
from livefields.server.session import handle_session

__all__ = [
    "ConnectionRegistry",
    "LiveFieldsServer",
    "broadcast",
    "handle_session",
]
