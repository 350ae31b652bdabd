"""
Loopback HTTPS client for the Riot client's local API.

The local endpoint presents a self-signed certificate. Verification is turned
off on this client only, and the client is pinned to 127.0.0.1 through its
base URL, so no other destination is ever reached without verification.
"""

import asyncio
import base64
import json
from typing import Any

import httpx

from valclip.local.lockfile import SessionDescriptor
from valclip.local.models import (
    ChatSession,
    EntitlementsToken,
    ExternalSession,
    HelpResponse,
    PresencesResponse,
    PrivatePresence,
)
from valclip.logger import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 10.0

# Observed to be registered only after every other event is loaded
REQUIRED_HELP_EVENTS = ("OnJsonApiEvent_chat_v4_presences",)
HELP_POLL_INTERVAL = 1.0
PRESENCE_POLL_INTERVAL = 1.0


class LocalAPI:
    """
    Async client bound to a single lockfile descriptor.

    Args:
        descriptor: The parsed lockfile.
        transport: Optional httpx transport, used by tests.
    """

    def __init__(
        self,
        descriptor: SessionDescriptor,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.descriptor = descriptor
        self._client = httpx.AsyncClient(
            base_url=descriptor.base_url,
            auth=httpx.BasicAuth(*descriptor.basic_auth),
            verify=False,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "LocalAPI":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get_json(self, path: str) -> Any:
        """
        GET a local route and decode its JSON body.

        Raises:
            httpx.HTTPError: On transport failures or non-2xx responses.
            ValueError: If the body is not JSON.
        """
        resp = await self._client.get(f"/{path.lstrip('/')}")
        resp.raise_for_status()
        return resp.json()

    async def get_chat_session(self) -> ChatSession:
        return ChatSession.model_validate(await self.get_json("chat/v1/session"))

    async def get_external_sessions(self) -> dict[str, ExternalSession]:
        data = await self.get_json("product-session/v1/external-sessions")
        if not isinstance(data, dict):
            raise ValueError("external-sessions response is not an object")
        return {
            key: ExternalSession.model_validate(value) for key, value in data.items()
        }

    async def get_entitlements_token(self) -> EntitlementsToken:
        return EntitlementsToken.model_validate(
            await self.get_json("entitlements/v1/token")
        )

    async def get_help(self) -> HelpResponse:
        return HelpResponse.model_validate(await self.get_json("help"))

    async def get_full_help(self) -> HelpResponse:
        """
        Wait until the help listing advertises the full set of events.

        The client registers its events in stages while it loads (observed as
        45 -> 53 -> 57 -> 67 events), so the first listing is often partial.
        """
        while True:
            help_data = await self.get_help()
            missing = [e for e in REQUIRED_HELP_EVENTS if e not in help_data.events]
            if not missing:
                return help_data

            logger.info(
                f"Found {len(help_data.events)} events, missing: {', '.join(missing)}"
            )
            await asyncio.sleep(HELP_POLL_INTERVAL)

    async def get_presences(self) -> PresencesResponse:
        return PresencesResponse.model_validate(
            await self.get_json("chat/v4/presences")
        )

    async def wait_for_private_presence(self, puuid: str) -> PrivatePresence:
        """Poll presences until the given player's private presence is decodable."""
        while True:
            try:
                data = await self.get_presences()
                presence = next((p for p in data.presences if p.puuid == puuid), None)
                if presence is not None and presence.private:
                    return json.loads(base64.b64decode(presence.private))
            except (httpx.HTTPError, ValueError) as e:
                logger.debug(f"Presence not ready: {e}")

            await asyncio.sleep(PRESENCE_POLL_INTERVAL)
