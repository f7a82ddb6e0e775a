"""In-memory stand-ins for websocket connections."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable, Iterable

from websockets.exceptions import ConnectionClosedError
from websockets.protocol import State


class FakeConnection:
    """Server-side connection double.

    Yields *incoming* frames to the session, then either raises *error* or
    ends like a normal close.  ``on_frame`` runs before each frame is yielded.
    """

    def __init__(
        self,
        incoming: Iterable[str | bytes] = (),
        *,
        fail_send: bool = False,
        error: BaseException | None = None,
        on_frame: Callable[[FakeConnection], None] | None = None,
    ) -> None:
        self.state = State.OPEN
        self.sent: list[str] = []
        self.incoming = list(incoming)
        self.fail_send = fail_send
        self.error = error
        self.on_frame = on_frame
        self.close_calls = 0
        self.close_code: int | None = None
        self.close_reason = ""

    async def send(self, data: str) -> None:
        if self.fail_send:
            raise ConnectionClosedError(None, None)
        self.sent.append(data)

    async def close(self) -> None:
        self.close_calls += 1
        self.state = State.CLOSED

    def __aiter__(self):
        return self._frames()

    async def _frames(self):
        for raw in self.incoming:
            if self.on_frame is not None:
                self.on_frame(self)
            yield raw
            await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        self.state = State.CLOSED
        self.close_code = 1000

    def messages(self) -> list[dict]:
        return [json.loads(m) for m in self.sent]


class FakeChannel:
    """Client-side channel double for ``FieldClient._channel``."""

    def __init__(self, *, fail_send: bool = False) -> None:
        self.state = State.OPEN
        self.sent: list[str] = []
        self.fail_send = fail_send

    async def send(self, data: str) -> None:
        if self.fail_send:
            self.state = State.CLOSED
            raise ConnectionClosedError(None, None)
        self.sent.append(data)

    async def close(self) -> None:
        self.state = State.CLOSED

    def messages(self) -> list[dict]:
        return [json.loads(m) for m in self.sent]


def update_frame(field: str, value: str) -> str:
    return json.dumps({"type": "update", "payload": {"field": field, "value": value}})


def initial_state_frame(payload: dict[str, str]) -> str:
    return json.dumps({"type": "initial_state", "payload": payload})


async def eventually(predicate: Callable[[], bool], timeout: float = 5.0) -> None:
    """Poll *predicate* on the running loop until it holds or *timeout* passes."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.01)
