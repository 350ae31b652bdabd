"""
Unit tests for the local session connector.
"""

import asyncio

import httpx
import pytest

from valclip.auth.credentials import CredentialManager
from valclip.errors import DescriptorInvalid, DescriptorUnreadable
from valclip.local.api import LocalAPI
from valclip.session.connector import SessionConnector


def respond(status=200, **kwargs):
    """Response factory; each request gets a fresh httpx.Response."""
    return lambda: httpx.Response(status, **kwargs)


GOOD_CHAT = respond(json={"puuid": "p-1", "game_name": "Jett", "game_tag": "EU1"})
GOOD_SESSIONS = respond(json={"host_app": {"productId": "valorant"}})


class LocalServer:
    """Scripted chat-session / external-session responses.

    Each queue is consumed in order; its last entry repeats forever.
    """

    def __init__(self, chat_sessions, external_sessions):
        self.chat_sessions = list(chat_sessions)
        self.external_sessions = list(external_sessions)
        self.paths: list[str] = []

    @staticmethod
    def _next(queue):
        factory = queue.pop(0) if len(queue) > 1 else queue[0]
        return factory()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.paths.append(request.url.path)
        if request.url.path == "/chat/v1/session":
            return self._next(self.chat_sessions)
        if request.url.path == "/product-session/v1/external-sessions":
            return self._next(self.external_sessions)
        return httpx.Response(404)


def make_connector(lockfile, server, retry_delay=0.01):
    return SessionConnector(
        lockfile,
        retry_delay=retry_delay,
        api_factory=lambda d: LocalAPI(d, transport=httpx.MockTransport(server)),
    )


class TestSessionConnector:
    @pytest.mark.asyncio
    async def test_connects(self, lockfile):
        server = LocalServer([GOOD_CHAT], [GOOD_SESSIONS])
        handle = await make_connector(lockfile, server).connect()

        assert handle.puuid == "p-1"
        assert handle.descriptor.port == 54321
        assert "host_app" in handle.external_sessions
        assert isinstance(handle.credentials, CredentialManager)
        await handle.aclose()

    @pytest.mark.asyncio
    async def test_retries_until_handshake_accepted(self, lockfile):
        server = LocalServer(
            [respond(503), respond(json={"puuid": ""}), GOOD_CHAT],
            [respond(json={}), GOOD_SESSIONS],
        )
        handle = await make_connector(lockfile, server).connect()

        # 503, empty puuid, good chat with no sessions, then success
        assert server.paths.count("/chat/v1/session") == 4
        assert server.paths.count("/product-session/v1/external-sessions") == 2
        assert handle.puuid == "p-1"
        await handle.aclose()

    @pytest.mark.asyncio
    async def test_invalid_json_is_retried(self, lockfile):
        server = LocalServer([respond(content=b"<html>"), GOOD_CHAT], [GOOD_SESSIONS])
        handle = await make_connector(lockfile, server).connect()

        assert server.paths.count("/chat/v1/session") == 2
        await handle.aclose()

    @pytest.mark.asyncio
    async def test_cancellation_stops_retrying(self, lockfile):
        server = LocalServer([respond(503)], [GOOD_SESSIONS])
        task = asyncio.create_task(make_connector(lockfile, server).connect())

        await asyncio.sleep(0.05)
        attempts = len(server.paths)
        assert attempts >= 1

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        await asyncio.sleep(0.05)
        assert len(server.paths) == attempts

    @pytest.mark.asyncio
    async def test_missing_lockfile(self, tmp_path):
        server = LocalServer([GOOD_CHAT], [GOOD_SESSIONS])
        with pytest.raises(DescriptorUnreadable):
            await make_connector(tmp_path / "lockfile", server).connect()
        assert server.paths == []

    @pytest.mark.asyncio
    async def test_wrong_process_name(self, tmp_path):
        path = tmp_path / "lockfile"
        path.write_text("Other Client:1:2:pw:https", encoding="utf-8")
        server = LocalServer([GOOD_CHAT], [GOOD_SESSIONS])

        with pytest.raises(DescriptorInvalid):
            await make_connector(path, server).connect()
        assert server.paths == []
