"""
Local session connector.

Reads the lockfile, then keeps knocking on the local API until the client has
a logged-in chat session and at least one external (game) session. The loop
has no retry limit: the game can take arbitrarily long to start.
"""

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

import httpx

from valclip.auth.credentials import CredentialManager
from valclip.errors import HandshakeRejected
from valclip.local.api import LocalAPI
from valclip.local.lockfile import SessionDescriptor, read_descriptor
from valclip.local.models import ChatSession, ExternalSession
from valclip.logger import get_logger

logger = get_logger(__name__)

RETRY_DELAY = 2.0
# Attempts between INFO-level progress messages
PROGRESS_EVERY = 15


@dataclass
class SessionHandle:
    """Everything a successful handshake produces."""

    descriptor: SessionDescriptor
    chat_session: ChatSession
    external_sessions: dict[str, ExternalSession]
    api: LocalAPI
    credentials: CredentialManager

    @property
    def puuid(self) -> str:
        return self.chat_session.puuid

    async def aclose(self) -> None:
        await self.api.aclose()


class SessionConnector:
    """
    Turns the lockfile into a live SessionHandle.

    Cancel the task running ``connect()`` to abort it; the cancellation is
    observed at every HTTP call and backoff sleep and always propagates.
    Callers must cancel a previous attempt before starting a new one.

    Args:
        lockfile_path: Location of the Riot client lockfile.
        retry_delay: Seconds between handshake attempts.
        api_factory: Builds the LocalAPI for a descriptor.
    """

    def __init__(
        self,
        lockfile_path: Path,
        retry_delay: float = RETRY_DELAY,
        api_factory: Callable[[SessionDescriptor], LocalAPI] = LocalAPI,
    ):
        self.lockfile_path = lockfile_path
        self.retry_delay = retry_delay
        self._api_factory = api_factory

    async def connect(self) -> SessionHandle:
        """
        Raises:
            DescriptorUnreadable: The lockfile cannot be read.
            DescriptorInvalid: The lockfile is malformed or not the Riot client's.
            asyncio.CancelledError: The attempt was cancelled.
        """
        descriptor = await read_descriptor(self.lockfile_path)
        logger.info(
            f"Lockfile found (pid={descriptor.pid}, port={descriptor.port}), "
            "waiting for the local API"
        )

        api = self._api_factory(descriptor)
        try:
            chat_session, sessions = await self._handshake_loop(api)
        except BaseException:
            await api.aclose()
            raise

        logger.info(
            f"Connected as {chat_session.game_name}#{chat_session.game_tag} "
            f"({len(sessions)} external sessions)"
        )
        return SessionHandle(
            descriptor=descriptor,
            chat_session=chat_session,
            external_sessions=sessions,
            api=api,
            credentials=CredentialManager(api),
        )

    async def _handshake_loop(
        self, api: LocalAPI
    ) -> tuple[ChatSession, dict[str, ExternalSession]]:
        attempt = 0
        while True:
            attempt += 1
            try:
                return await self._handshake(api)
            except (httpx.HTTPError, ValueError, HandshakeRejected) as e:
                if attempt % PROGRESS_EVERY == 0:
                    logger.info(f"Still waiting for the local API ({attempt} attempts)")
                logger.debug(f"Handshake attempt {attempt} failed: {e}")

            await asyncio.sleep(self.retry_delay)

    async def _handshake(
        self, api: LocalAPI
    ) -> tuple[ChatSession, dict[str, ExternalSession]]:
        chat_session = await api.get_chat_session()
        if not chat_session.puuid:
            raise HandshakeRejected("No puuid in chat session")

        sessions = await api.get_external_sessions()
        if not sessions:
            raise HandshakeRejected("No external sessions")

        return chat_session, sessions
