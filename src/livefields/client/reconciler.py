"""Viewer-side protocol driver.

``FieldClient`` keeps one channel to the authority, mirrors the shared state
into a ``Display`` and reconnects after a fixed delay whenever the channel
drops.  It never gives up: the loop only ends when ``stop()`` is called.

Hydration (``initial_state``) always overwrites the displayed values, even a
field that is being edited locally.  Ordinary ``update`` messages skip any
field whose element is currently editable.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from urllib.parse import urlparse

from websockets.asyncio.client import ClientConnection
from websockets.asyncio.client import connect as open_channel
from websockets.exceptions import ConnectionClosed, ConnectionClosedError, InvalidHandshake, InvalidURI
from websockets.protocol import State

from livefields.client.display import Display
from livefields.core.config import DEFAULT_PORT, DEFAULT_RECONNECT_DELAY
from livefields.core.ids import generate_client_id
from livefields.core.messages import InitialState, Update, encode_message, parse_message

logger = logging.getLogger(__name__)


class ChannelState(enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


def endpoint_url(page_url: str, port: int | None = None) -> str:
    """Derive the authority's WebSocket URL from a page URL or bare host.

    ``ws://``/``wss://`` URLs are used as given unless *port* is passed.
    Anything else maps to the page's host on the well-known port, with
    ``wss`` when the page was served over ``https``.
    """
    if "://" not in page_url:
        page_url = f"http://{page_url}"
    parsed = urlparse(page_url)
    if parsed.scheme in ("ws", "wss") and port is None:
        return page_url

    scheme = "wss" if parsed.scheme in ("https", "wss") else "ws"
    host = parsed.hostname or "localhost"
    if ":" in host:
        host = f"[{host}]"
    return f"{scheme}://{host}:{port or DEFAULT_PORT}/"


class FieldClient:
    """Mirror the authority's state into *display* over a reconnecting channel."""

    def __init__(
        self,
        url: str,
        display: Display,
        reconnect_delay: float = DEFAULT_RECONNECT_DELAY,
        *,
        adopt_fields: bool = False,
    ) -> None:
        self.url = url
        self.display = display
        self.reconnect_delay = reconnect_delay
        self.adopt_fields = adopt_fields
        self.client_id = generate_client_id()
        self.state = ChannelState.DISCONNECTED
        self.connect_attempts = 0
        self.snapshot: dict[str, str] = {}
        self._channel: ClientConnection | None = None
        self._hydrated = asyncio.Event()
        self._stop_event = asyncio.Event()

    @property
    def connected(self) -> bool:
        return self._channel is not None and self._channel.state is State.OPEN

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    async def run(self) -> None:
        """Connect, and reconnect after every close, until ``stop()``."""
        while not self.stopped:
            await self.connect()
            if self.stopped:
                break
            logger.info("Reconnecting in %g seconds...", self.reconnect_delay)
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.reconnect_delay)
            except asyncio.TimeoutError:
                pass

    async def connect(self) -> None:
        """Open a channel and process frames until it closes."""
        if self._channel is not None and self._channel.state is not State.CLOSED:
            await self._channel.close()

        self.state = ChannelState.CONNECTING
        self.connect_attempts += 1
        logger.info("Attempting to connect via %s...", self.url)
        try:
            channel = await open_channel(self.url)
        except (OSError, InvalidHandshake, InvalidURI, asyncio.TimeoutError) as exc:
            self.state = ChannelState.DISCONNECTED
            logger.warning("Connection to %s failed: %s", self.url, exc)
            return

        self._channel = channel
        self.state = ChannelState.CONNECTED
        logger.info("Connection established (%s).", self.client_id)
        if self.stopped:
            await channel.close()
        try:
            async for raw in channel:
                self.apply(raw)
        except ConnectionClosedError as exc:
            logger.error("Connection error: %s", exc)
        finally:
            self.state = ChannelState.DISCONNECTED
            self._hydrated.clear()
            logger.info(
                "Connection closed: code=%s reason=%s",
                channel.close_code,
                channel.close_reason or "N/A",
            )

    async def stop(self) -> None:
        """End the run loop and close the current channel."""
        self._stop_event.set()
        if self._channel is not None and self._channel.state is not State.CLOSED:
            await self._channel.close()

    async def wait_hydrated(self) -> None:
        await self._hydrated.wait()

    def apply(self, raw: str | bytes) -> None:
        """Apply one frame from the authority to the display."""
        message = parse_message(raw)
        if message is None:
            return
        if isinstance(message, InitialState):
            self._apply_initial_state(message)
        else:
            self._apply_update(message)

    def _apply_initial_state(self, message: InitialState) -> None:
        self.snapshot = dict(message.payload)
        for field, value in message.payload.items():
            element = self.display.lookup(field)
            if element is None and self.adopt_fields:
                element = self.display.add(field)
            if element is not None:
                element.text = value
        self._hydrated.set()
        logger.info("Initial state received and applied (%d fields).", len(message.payload))

    def _apply_update(self, message: Update) -> None:
        field, value = message.payload.field, message.payload.value
        if field in self.snapshot:
            self.snapshot[field] = value
        element = self.display.lookup(field)
        if element is None:
            return
        if element.editable:
            logger.info("Skipping update for field '%s' as it's being edited locally.", field)
        elif element.text != value:
            element.text = value
            logger.info("Updated field '%s' to %r", field, value)

    async def send_update(self, field: str, value: str) -> bool:
        """Propose an edit.  Returns ``False`` if it could not be sent."""
        if not self.connected:
            logger.warning("Channel not open. Update for '%s' not sent.", field)
            return False
        assert self._channel is not None
        try:
            await self._channel.send(encode_message(Update.of(field, value)))
        except ConnectionClosed as exc:
            logger.warning("Update for '%s' not sent: %s", field, exc)
            return False
        logger.info("Sent update for field '%s': %r", field, value)
        return True
