"""Per-connection protocol driver on the authority side.

One coroutine owns one connection for its whole life::

    accept -> register + hydrate -> receive loop -> unregister (exactly once)

Closing and failing are two branches of the same terminal ``finally``.
"""

from __future__ import annotations

import logging
from typing import Any

from websockets.exceptions import ConnectionClosed, ConnectionClosedError

from livefields.core.messages import InitialState, Update, encode_message, parse_message
from livefields.core.state import SharedState, UnknownFieldError
from livefields.server.fanout import broadcast
from livefields.server.registry import ConnectionRegistry

logger = logging.getLogger(__name__)


async def handle_session(conn: Any, store: SharedState, registry: ConnectionRegistry) -> None:
    """Drive *conn* from accept to close against the shared *store*."""
    conn_id = registry.register(conn)
    logger.info("Client connected: %s (%d open)", conn_id, len(registry))

    failure: BaseException | None = None
    try:
        await _hydrate(conn, conn_id, store)
        async for raw in conn:
            await _handle_frame(conn, conn_id, raw, store, registry)
    except ConnectionClosedError as exc:
        failure = exc
        logger.warning("Connection error on %s: %s", conn_id, exc)
    except Exception as exc:
        failure = exc
        logger.error("Unexpected error on %s: %s", conn_id, exc, exc_info=True)
    finally:
        registry.unregister(conn)
        if failure is not None:
            await _close_quietly(conn, conn_id)
        logger.info(
            "Client disconnected: %s code=%s reason=%s (%d open)",
            conn_id,
            getattr(conn, "close_code", None),
            getattr(conn, "close_reason", None) or "N/A",
            len(registry),
        )


async def _hydrate(conn: Any, conn_id: str, store: SharedState) -> None:
    """Best-effort: a failed hydration leaves the connection registered."""
    message = InitialState(payload=dict(store.get()))
    try:
        await conn.send(encode_message(message))
    except (ConnectionClosed, OSError) as exc:
        logger.error("Failed to send initial state to %s: %s", conn_id, exc)
        return
    logger.debug("Sent initial state to %s", conn_id)


async def _handle_frame(
    conn: Any,
    conn_id: str,
    raw: str | bytes,
    store: SharedState,
    registry: ConnectionRegistry,
) -> None:
    logger.debug("Received from %s: %.200r", conn_id, raw)
    message = parse_message(raw)
    if message is None:
        return

    if not isinstance(message, Update):
        logger.info("Ignoring non-update message type '%s' from %s", message.type, conn_id)
        return

    change = message.payload
    try:
        store.set(change.field, change.value)
    except UnknownFieldError:
        logger.warning("Received update for unknown field '%s' from %s", change.field, conn_id)
        return

    logger.info("Updated state: %s = %r (from %s)", change.field, change.value, conn_id)
    await broadcast(registry, message, excluding=conn)


async def _close_quietly(conn: Any, conn_id: str) -> None:
    try:
        await conn.close()
    except Exception:
        logger.debug("Close failed for %s", conn_id, exc_info=True)
