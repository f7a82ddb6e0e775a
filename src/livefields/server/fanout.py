"""Deliver one message to every registered connection except its sender.

Sends are fire-and-forget: a failed send is logged and left for the failing
connection's own session to clean up.  Members that are no longer open are
removed from the registry on the spot.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from livefields.core.messages import InitialState, Update, encode_message
from livefields.server.registry import ConnectionRegistry, is_open

logger = logging.getLogger(__name__)


async def broadcast(
    registry: ConnectionRegistry,
    message: InitialState | Update,
    excluding: Any = None,
) -> int:
    """Send *message* to all open members but *excluding*.

    Returns the number of connections a send was attempted on.
    """
    data = encode_message(message)
    logger.debug("Broadcasting message: %s", data)

    targets = []
    for conn in registry.snapshot():
        if conn is excluding:
            continue
        if is_open(conn):
            targets.append(conn)
        else:
            logger.warning(
                "Found %s in state %s during broadcast, removing.",
                registry.label(conn),
                conn.state.name,
            )
            registry.unregister(conn)

    if not targets:
        return 0

    results = await asyncio.gather(
        *(conn.send(data) for conn in targets),
        return_exceptions=True,
    )
    for conn, result in zip(targets, results):
        if isinstance(result, BaseException):
            logger.warning(
                "Failed to send message to %s: %s",
                registry.label(conn),
                str(result) or type(result).__name__,
            )
    return len(targets)
