"""
Push frame codec.

Outbound:  [5, "<event name>"]                 subscribe
Inbound:   [8, "<event name>", {...payload}]   event
Empty text frames are acknowledgements.
"""

import json
from typing import Any, Optional

from pydantic import BaseModel

from valclip.errors import MalformedPushMessage

OPCODE_SUBSCRIBE = 5
OPCODE_EVENT = 8

# Catch-all meta-event; subscribing to it would duplicate every other event
EXCLUDED_EVENTS = frozenset({"OnJsonApiEvent"})


class PushMessage(BaseModel):
    opcode: int = OPCODE_EVENT
    event: str
    payload: Any = None

    @property
    def uri(self) -> Optional[str]:
        if isinstance(self.payload, dict):
            uri = self.payload.get("uri")
            if isinstance(uri, str):
                return uri
        return None


def encode_subscribe(event: str) -> str:
    return json.dumps([OPCODE_SUBSCRIBE, event])


def decode_frame(frame: str | bytes) -> Optional[PushMessage]:
    """
    Decode one inbound frame.

    Returns:
        The message, or None for an empty acknowledgement frame.

    Raises:
        MalformedPushMessage: If the frame is not a ``[opcode, event, payload]`` array.
    """
    if isinstance(frame, bytes):
        frame = frame.decode("utf-8", errors="replace")
    if not frame.strip():
        return None

    try:
        data = json.loads(frame)
    except json.JSONDecodeError as e:
        raise MalformedPushMessage(f"Frame is not JSON: {e}") from e

    if (
        not isinstance(data, list)
        or len(data) < 2
        or not isinstance(data[0], int)
        or not isinstance(data[1], str)
    ):
        raise MalformedPushMessage(f"Unexpected frame shape: {frame[:100]}")

    payload = data[2] if len(data) > 2 else None
    return PushMessage(opcode=data[0], event=data[1], payload=payload)
