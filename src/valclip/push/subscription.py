"""
Websocket client for the local push stream.

Authenticated like the local HTTP API. The socket is a single long-lived
connection; when it closes the subscription ends and is not reopened here.
"""

import ssl
from typing import AsyncIterator, Iterable, Optional

import websockets

from valclip.errors import MalformedPushMessage
from valclip.local.lockfile import SessionDescriptor
from valclip.logger import get_logger
from valclip.push.models import (
    EXCLUDED_EVENTS,
    OPCODE_EVENT,
    PushMessage,
    decode_frame,
    encode_subscribe,
)

logger = get_logger(__name__)


def loopback_ssl_context() -> ssl.SSLContext:
    """TLS context for the client's self-signed loopback certificate only."""
    ctx = ssl.create_default_context()
    ctx.check_hostname = False
    ctx.verify_mode = ssl.CERT_NONE
    return ctx


class PushSubscription:
    """
    Async context manager around the push websocket.

    Usage:
        async with PushSubscription(descriptor) as sub:
            await sub.subscribe(events)
            async for message in sub.messages():
                ...
    """

    def __init__(self, descriptor: SessionDescriptor, connect=websockets.connect):
        self.descriptor = descriptor
        self._connect = connect
        self._ws = None
        self.subscribed: list[str] = []

    async def __aenter__(self) -> "PushSubscription":
        self._ws = await self._connect(
            self.descriptor.websocket_url,
            ssl=loopback_ssl_context(),
            additional_headers={"Authorization": self.descriptor.authorization_header},
            max_size=None,
        )
        logger.info(f"Push stream connected on port {self.descriptor.port}")
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        if self._ws is not None:
            await self._ws.close()
            self._ws = None

    async def subscribe(self, events: Iterable[str]) -> list[str]:
        """Subscribe to every given event except the excluded meta-events."""
        if self._ws is None:
            raise RuntimeError("Push subscription is not connected")

        names = sorted(e for e in events if e not in EXCLUDED_EVENTS)
        for name in names:
            await self._ws.send(encode_subscribe(name))
        self.subscribed.extend(names)
        logger.info(f"Subscribed to {len(names)} push events")
        return names

    async def messages(self) -> AsyncIterator[PushMessage]:
        """
        Yield inbound event messages in arrival order until the socket closes.

        Undecodable frames are logged and dropped.
        """
        if self._ws is None:
            raise RuntimeError("Push subscription is not connected")

        try:
            async for frame in self._ws:
                message = self._decode(frame)
                if message is not None:
                    yield message
        except websockets.exceptions.ConnectionClosed as e:
            logger.info(f"Push stream closed: {e}")
            return
        logger.info("Push stream closed")

    @staticmethod
    def _decode(frame) -> Optional[PushMessage]:
        try:
            message = decode_frame(frame)
        except MalformedPushMessage as e:
            logger.debug(f"Dropping push frame: {e}")
            return None
        if message is None or message.opcode != OPCODE_EVENT:
            return None
        return message
