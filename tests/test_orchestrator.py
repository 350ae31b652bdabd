"""
Unit tests for the session orchestrator and lockfile watch.
"""

import asyncio
from pathlib import Path

import pytest
from unittest.mock import AsyncMock, MagicMock

from watchdog.events import (
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from valclip.config import Config
from valclip.local.models import ChatSession, ExternalSession, HelpResponse
from valclip.phase import MESSAGE_EVENT
from valclip.phase.classifier import CORE_GAME_PREFIX, MATCH_COMPLETED_URI, PREGAME_PREFIX
from valclip.push import PushMessage
from valclip.session import MatchListener, SessionHandle, SessionOrchestrator
from valclip.session.lockwatch import LockfileEventHandler

READY_LINE = "LogPlatformInitializer: Platform initialization complete"


def msg(uri, event=MESSAGE_EVENT):
    return PushMessage(event=event, payload={"uri": uri})


class RecordingListener(MatchListener):
    def __init__(self):
        self.calls = []

    async def on_pre_game_started(self, pregame_id):
        self.calls.append(("pregame", pregame_id))

    async def on_match_started(self, match_id):
        self.calls.append(("start", match_id))

    async def on_match_ended(self, match_id, events):
        self.calls.append(("end", match_id, events))


class BlockingConnector:
    """connect() never finishes on its own."""

    def __init__(self):
        self.started = 0
        self.cancelled = 0

    async def connect(self):
        self.started += 1
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            self.cancelled += 1
            raise


class FakeSubscription:
    def __init__(self, messages):
        self._messages = messages
        self.subscribed = None

    def __call__(self, descriptor):
        self.descriptor = descriptor
        return self

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return None

    async def subscribe(self, events):
        self.subscribed = sorted(events)
        return self.subscribed

    async def messages(self):
        for m in self._messages:
            yield m


def make_handle(descriptor):
    api = MagicMock()
    api.aclose = AsyncMock()
    api.get_full_help = AsyncMock(
        return_value=HelpResponse(events={"OnJsonApiEvent": "", MESSAGE_EVENT: ""})
    )
    return SessionHandle(
        descriptor=descriptor,
        chat_session=ChatSession(puuid="p-1"),
        external_sessions={"host_app": ExternalSession()},
        api=api,
        credentials=MagicMock(),
    )


def make_config(tmp_path):
    return Config(
        lockfile_path=tmp_path / "Config" / "lockfile",
        log_path=tmp_path / "ShooterGame.log",
        retry_delay_seconds=0.01,
        log_poll_interval_seconds=0.01,
    )


class TestReconnect:
    @pytest.mark.asyncio
    async def test_new_attempt_cancels_previous(self, tmp_path):
        connector = BlockingConnector()
        orchestrator = SessionOrchestrator(make_config(tmp_path), connector=connector)

        first = orchestrator.trigger_reconnect()
        await asyncio.sleep(0)
        second = orchestrator.trigger_reconnect()
        await asyncio.sleep(0)
        third = orchestrator.trigger_reconnect()
        await asyncio.sleep(0)

        for task in (first, second):
            with pytest.raises(asyncio.CancelledError):
                await task
            assert task.cancelled()
        assert not third.done()
        assert connector.started == 3
        assert connector.cancelled == 2

        await orchestrator.stop()
        assert third.cancelled()

    @pytest.mark.asyncio
    async def test_reconnect_during_slow_close_closes_every_handle(self, tmp_path, descriptor):
        async def slow_close():
            await asyncio.sleep(0.2)

        h1, h2, h3 = (make_handle(descriptor) for _ in range(3))
        h1.api.aclose = AsyncMock(side_effect=slow_close)
        connector = MagicMock()
        connector.connect = AsyncMock(side_effect=[h1, h2, h3])
        # No game log: every cycle parks in await_ready after connecting
        orchestrator = SessionOrchestrator(make_config(tmp_path), connector=connector)

        orchestrator.trigger_reconnect()
        await asyncio.sleep(0.05)
        assert orchestrator.handle is h1

        orchestrator.trigger_reconnect()
        await asyncio.sleep(0.05)
        # Second cycle is still closing h1 but already owns h2
        assert orchestrator.handle is h2

        orchestrator.trigger_reconnect()
        await asyncio.sleep(0.05)
        assert orchestrator.handle is h3

        await orchestrator.stop()
        await asyncio.sleep(0.3)

        for handle in (h1, h2, h3):
            handle.api.aclose.assert_awaited_once()
        assert orchestrator.handle is None

    @pytest.mark.asyncio
    async def test_failed_cycle_is_logged_not_raised(self, tmp_path):
        orchestrator = SessionOrchestrator(make_config(tmp_path))
        task = orchestrator.trigger_reconnect()

        # No lockfile in tmp_path: the connector fails with DescriptorUnreadable
        with pytest.raises(Exception):
            await task
        assert orchestrator.handle is None
        await orchestrator.stop()


class TestCycle:
    @pytest.mark.asyncio
    async def test_full_cycle(self, tmp_path, descriptor):
        config = make_config(tmp_path)
        config.log_path.write_text(READY_LINE + "\n", encoding="utf-8")

        handle = make_handle(descriptor)
        connector = MagicMock()
        connector.connect = AsyncMock(return_value=handle)

        messages = [
            msg(PREGAME_PREFIX + "m1"),
            msg("/riot-messaging-service/v1/message/ares-pregame/other"),
            msg(CORE_GAME_PREFIX + "m1"),
            msg(MATCH_COMPLETED_URI),
            msg(CORE_GAME_PREFIX + "m1"),
        ]
        subscription = FakeSubscription(messages)
        listener = RecordingListener()
        orchestrator = SessionOrchestrator(
            config,
            listener=listener,
            connector=connector,
            subscription_factory=subscription,
        )

        await asyncio.wait_for(orchestrator.trigger_reconnect(), 2)
        await orchestrator.stop()

        assert subscription.subscribed == ["OnJsonApiEvent", MESSAGE_EVENT]
        assert subscription.descriptor == descriptor
        assert orchestrator.facts is not None

        assert [c[:2] for c in listener.calls] == [
            ("pregame", "m1"),
            ("start", "m1"),
            ("end", "m1"),
        ]
        assert listener.calls[2][2] == messages[:4]
        assert orchestrator.context.buffer == []
        handle.api.aclose.assert_awaited_once()


class TestHandleMessage:
    def make(self, tmp_path):
        listener = RecordingListener()
        orchestrator = SessionOrchestrator(make_config(tmp_path), listener=listener)
        return orchestrator, listener

    def context(self):
        from valclip.phase import PhaseClassifier
        from valclip.session.orchestrator import SessionContext

        return SessionContext(classifier=PhaseClassifier())

    @pytest.mark.asyncio
    async def test_buffer_only_while_active(self, tmp_path):
        orchestrator, _ = self.make(tmp_path)
        ctx = self.context()

        orchestrator.handle_message(ctx, msg("/unrelated"))
        assert ctx.buffer == []

        orchestrator.handle_message(ctx, msg(PREGAME_PREFIX + "p1"))
        orchestrator.handle_message(ctx, msg("/unrelated", event="OnJsonApiEvent_other"))
        assert len(ctx.buffer) == 2
        await orchestrator.stop()

    @pytest.mark.asyncio
    async def test_pregame_clears_buffer(self, tmp_path):
        orchestrator, listener = self.make(tmp_path)
        ctx = self.context()

        orchestrator.handle_message(ctx, msg(PREGAME_PREFIX + "p1"))
        orchestrator.handle_message(ctx, msg("/noise"))
        orchestrator.handle_message(ctx, msg(MATCH_COMPLETED_URI))
        # Pre-game dodged: no match ended, buffer carried until next pre-game
        orchestrator.handle_message(ctx, msg(PREGAME_PREFIX + "p2"))
        assert ctx.buffer == [msg(PREGAME_PREFIX + "p2")]

        await orchestrator.stop()
        assert listener.calls == [("pregame", "p1"), ("pregame", "p2")]

    @pytest.mark.asyncio
    async def test_listener_failure_is_contained(self, tmp_path):
        listener = RecordingListener()
        listener.on_match_started = AsyncMock(side_effect=RuntimeError("obs offline"))
        orchestrator = SessionOrchestrator(make_config(tmp_path), listener=listener)
        ctx = self.context()

        orchestrator.handle_message(ctx, msg(CORE_GAME_PREFIX + "m1"))
        orchestrator.handle_message(ctx, msg(MATCH_COMPLETED_URI))
        await orchestrator.stop()

        listener.on_match_started.assert_awaited_once_with("m1")
        assert listener.calls[0][:2] == ("end", "m1")


class TestLockfileEventHandler:
    def make(self, tmp_path):
        loop = MagicMock()
        callback = MagicMock()
        handler = LockfileEventHandler("lockfile", loop, callback)
        return handler, loop, callback

    @pytest.mark.parametrize(
        "event_factory",
        [
            lambda d: FileCreatedEvent(str(d / "lockfile")),
            lambda d: FileDeletedEvent(str(d / "lockfile")),
            lambda d: FileMovedEvent(str(d / "lockfile.tmp"), str(d / "lockfile")),
        ],
    )
    def test_rename_events_trigger(self, tmp_path, event_factory):
        handler, loop, callback = self.make(tmp_path)
        handler.on_any_event(event_factory(tmp_path))
        loop.call_soon_threadsafe.assert_called_once_with(callback)

    def test_other_events_ignored(self, tmp_path):
        handler, loop, _ = self.make(tmp_path)
        handler.on_any_event(FileModifiedEvent(str(tmp_path / "lockfile")))
        handler.on_any_event(FileCreatedEvent(str(tmp_path / "lockfile.bak")))
        handler.on_any_event(FileCreatedEvent(str(Path(tmp_path) / "other")))
        loop.call_soon_threadsafe.assert_not_called()
