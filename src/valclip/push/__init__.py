"""
Local push subscription (WAMP-style event stream over a websocket).
"""

from valclip.push.models import (
    EXCLUDED_EVENTS,
    OPCODE_EVENT,
    OPCODE_SUBSCRIBE,
    PushMessage,
    decode_frame,
    encode_subscribe,
)
from valclip.push.subscription import PushSubscription

__all__ = [
    "EXCLUDED_EVENTS",
    "OPCODE_EVENT",
    "OPCODE_SUBSCRIBE",
    "PushMessage",
    "PushSubscription",
    "decode_frame",
    "encode_subscribe",
]
