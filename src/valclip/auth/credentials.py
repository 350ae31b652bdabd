"""
Remote credential manager.

The local API issues an access token (a JWT) plus an entitlement token. Both
are needed for remote calls. The JWT's ``exp`` claim decides how long the
pair is cached.
"""

import asyncio
import base64
import binascii
import json
import time
from dataclasses import dataclass
from typing import Callable, Optional

import httpx

from valclip.errors import CredentialUnavailable
from valclip.local.api import LocalAPI
from valclip.logger import get_logger

logger = get_logger(__name__)

# Subtracted from the token expiry so an about-to-expire token is never used
EXPIRY_SAFETY_MARGIN_MS = 60 * 1000


@dataclass(frozen=True)
class Credentials:
    token: str
    entitlement: str
    expires_at_ms: int

    def is_valid(self, now_ms: int) -> bool:
        return now_ms < self.expires_at_ms


def _now_ms() -> int:
    return int(time.time() * 1000)


def decode_jwt_payload(token: str) -> dict:
    """
    Decode the middle (payload) segment of a JWT without verifying it.

    Raises:
        ValueError: If the token has no payload segment or it is not JSON.
    """
    parts = token.split(".")
    if len(parts) < 2 or not parts[1]:
        raise ValueError("Token has no payload segment")

    segment = parts[1]
    segment += "=" * (-len(segment) % 4)
    try:
        payload = json.loads(base64.urlsafe_b64decode(segment))
    except (binascii.Error, UnicodeDecodeError) as e:
        raise ValueError(f"Undecodable token payload: {e}") from e

    if not isinstance(payload, dict):
        raise ValueError("Token payload is not an object")
    return payload


class CredentialManager:
    """
    Lazily mints and caches credentials for one local session.

    Concurrent callers that find the cache expired share a single in-flight
    refresh, so the token route is hit at most once per expiry.
    """

    def __init__(self, api: LocalAPI, clock: Callable[[], int] = _now_ms):
        self._api = api
        self._clock = clock
        self._credentials: Optional[Credentials] = None
        self._refresh: Optional[asyncio.Task] = None

    @property
    def cached(self) -> Optional[Credentials]:
        return self._credentials

    async def get_credentials(self) -> Credentials:
        """
        Return valid credentials, refreshing them if needed.

        Raises:
            CredentialUnavailable: If the token route fails or its payload
                cannot be decoded. Not retried here.
        """
        creds = self._credentials
        if creds is not None and creds.is_valid(self._clock()):
            return creds

        if self._refresh is None:
            self._refresh = asyncio.create_task(self._generate())
            self._refresh.add_done_callback(self._clear_refresh)

        # Shielded so one cancelled caller does not abort the shared refresh
        return await asyncio.shield(self._refresh)

    def _clear_refresh(self, task: asyncio.Task) -> None:
        if self._refresh is task:
            self._refresh = None
        # Mark the exception retrieved when every waiter was cancelled
        if not task.cancelled():
            task.exception()

    async def _generate(self) -> Credentials:
        logger.info("Generating new credentials...")
        try:
            data = await self._api.get_entitlements_token()
            claims = decode_jwt_payload(data.access_token)
            exp = int(claims["exp"])
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            raise CredentialUnavailable(f"Cannot mint credentials: {e}") from e

        creds = Credentials(
            token=data.access_token,
            entitlement=data.token,
            expires_at_ms=exp * 1000 - EXPIRY_SAFETY_MARGIN_MS,
        )
        self._credentials = creds
        logger.debug(f"Credentials valid until {creds.expires_at_ms} ms")
        return creds
