"""Wire messages exchanged between the authority and its viewers.

Exactly two shapes exist on the wire::

    {"type": "initial_state", "payload": {"<field>": "<value>", ...}}
    {"type": "update", "payload": {"field": "<field>", "value": "<value>"}}

``parse_message`` is the single protocol boundary: it turns a raw text (or
binary) frame into one of the two typed messages, or ``None`` when the frame
must be discarded.  Both ends discard silently apart from a log line.
"""

from __future__ import annotations

import logging
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

logger = logging.getLogger(__name__)


class FieldChange(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    value: str


class InitialState(BaseModel):
    """Full snapshot sent once to every newly accepted connection."""

    model_config = ConfigDict(frozen=True)

    type: Literal["initial_state"] = "initial_state"
    payload: dict[str, str]


class Update(BaseModel):
    """A single field edit, proposed by a viewer or fanned out by the authority."""

    model_config = ConfigDict(frozen=True)

    type: Literal["update"] = "update"
    payload: FieldChange

    @classmethod
    def of(cls, field: str, value: str) -> Update:
        return cls(payload=FieldChange(field=field, value=value))


Message = Annotated[Union[InitialState, Update], Field(discriminator="type")]

_message_adapter: TypeAdapter[InitialState | Update] = TypeAdapter(Message)


def parse_message(raw: str | bytes) -> InitialState | Update | None:
    """Parse one frame.  Return ``None`` for anything that is not a valid message."""
    try:
        return _message_adapter.validate_json(raw)
    except ValidationError as exc:
        logger.warning("Discarding invalid message (%d error(s)): %.200r", exc.error_count(), raw)
        return None


def encode_message(message: InitialState | Update) -> str:
    """Serialize a message to the JSON text frame sent on the wire."""
    return message.model_dump_json()
