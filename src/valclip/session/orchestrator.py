"""
Session orchestrator.

Ties the pieces together. A lockfile event starts a cycle:

    connect -> wait for game init in the log -> full help listing
    -> push subscription -> classify every message in arrival order

Only one cycle runs at a time; a new lockfile event cancels the current one.
When the push stream closes the cycle ends, and nothing happens until the
next lockfile event.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Callable, Coroutine, Optional

from valclip.config import Config
from valclip.errors import ValclipError
from valclip.logger import get_logger
from valclip.logwatch import InitializationFacts, InitWatcher
from valclip.phase import (
    DuplicatePolicy,
    MatchEnded,
    MatchStarted,
    PhaseClassifier,
    PhaseEvent,
    PhaseState,
    PreGameStarted,
    SuppressLastCompleted,
)
from valclip.push import PushMessage, PushSubscription
from valclip.session.connector import SessionConnector, SessionHandle
from valclip.session.listener import LoggingListener, MatchListener
from valclip.session.lockwatch import LockfileWatch

logger = get_logger(__name__)


@dataclass
class SessionContext:
    """Per-connection state: the classifier and the buffered match messages."""

    classifier: PhaseClassifier
    buffer: list[PushMessage] = field(default_factory=list)

    @property
    def state(self) -> PhaseState:
        return self.classifier.state


class SessionOrchestrator:
    """
    Drives connect/ready/subscribe cycles and dispatches match transitions.

    Args:
        config: Runtime settings (paths, intervals).
        listener: Receives transitions. Defaults to a logging listener.
        connector: Override the SessionConnector (tests).
        subscription_factory: Builds the push subscription for a descriptor.
        policy_factory: Builds the duplicate policy for each new connection.
    """

    def __init__(
        self,
        config: Config,
        listener: Optional[MatchListener] = None,
        connector: Optional[SessionConnector] = None,
        subscription_factory: Callable[..., PushSubscription] = PushSubscription,
        policy_factory: Callable[[], DuplicatePolicy] = SuppressLastCompleted,
    ):
        self.config = config
        self.listener = listener or LoggingListener()
        self.connector = connector or SessionConnector(
            config.lockfile_path, retry_delay=config.retry_delay_seconds
        )
        self._subscription_factory = subscription_factory
        self._policy_factory = policy_factory
        self._watch = LockfileWatch(config.lockfile_path, self.trigger_reconnect)
        self._cycle: Optional[asyncio.Task] = None
        self._listener_tasks: set[asyncio.Task] = set()
        self._stop_event = asyncio.Event()

        self.handle: Optional[SessionHandle] = None
        self.facts: Optional[InitializationFacts] = None
        self.context: Optional[SessionContext] = None

    # ─── Lifecycle ───────────────────────────────────────────────────

    async def start(self) -> None:
        """Start watching the lockfile and make a first connection attempt."""
        self._watch.start(asyncio.get_running_loop())
        self.trigger_reconnect()

    async def run_forever(self) -> None:
        """Run until ``stop()`` is called or the task is cancelled."""
        await self.start()
        try:
            await self._stop_event.wait()
        finally:
            await self.stop()

    async def stop(self) -> None:
        self._stop_event.set()
        await asyncio.to_thread(self._watch.stop)
        await self._cancel_cycle()

        if self._listener_tasks:
            await asyncio.gather(*self._listener_tasks, return_exceptions=True)

        if self.handle is not None:
            await self.handle.aclose()
            self.handle = None
        logger.info("Session orchestrator stopped.")

    def trigger_reconnect(self) -> asyncio.Task:
        """Cancel any in-flight cycle and start a new one."""
        if self._cycle is not None and not self._cycle.done():
            logger.info("Lockfile changed, restarting connection attempt")
            self._cycle.cancel()

        self._cycle = asyncio.create_task(self._run_cycle())
        self._cycle.add_done_callback(self._on_cycle_done)
        return self._cycle

    async def _cancel_cycle(self) -> None:
        if self._cycle is None:
            return
        self._cycle.cancel()
        try:
            await self._cycle
        except asyncio.CancelledError:
            pass
        except Exception:
            # Already reported by _on_cycle_done
            pass
        self._cycle = None

    def _on_cycle_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            logger.debug("Connection cycle cancelled")
            return
        exc = task.exception()
        if exc is None:
            return
        if isinstance(exc, ValclipError):
            logger.warning(f"Connection cycle failed: {exc}")
        else:
            logger.error(f"Connection cycle crashed: {exc}", exc_info=exc)

    # ─── Cycle ───────────────────────────────────────────────────────

    async def _run_cycle(self) -> None:
        handle = await self.connector.connect()
        # Owned by the orchestrator before any further await
        previous, self.handle = self.handle, handle
        if previous is not None:
            await asyncio.shield(previous.aclose())

        watcher = InitWatcher(
            self.config.log_path, poll_interval=self.config.log_poll_interval_seconds
        )
        self.facts = await watcher.await_ready(consume_backlog=True)

        help_data = await handle.api.get_full_help()

        self.context = SessionContext(
            classifier=PhaseClassifier(
                state=PhaseState(), policy=self._policy_factory()
            )
        )
        async with self._subscription_factory(handle.descriptor) as subscription:
            await subscription.subscribe(help_data.events.keys())
            async for message in subscription.messages():
                self.handle_message(self.context, message)

        logger.info("Push subscription ended; waiting for the next lockfile change")

    def handle_message(self, context: SessionContext, message: PushMessage) -> None:
        """Classify one message, maintain the match buffer and dispatch transitions."""
        transitions = context.classifier.feed(message)

        if any(isinstance(t, PreGameStarted) for t in transitions):
            context.buffer.clear()

        ended = any(isinstance(t, MatchEnded) for t in transitions)
        if context.state.active or ended:
            context.buffer.append(message)

        for transition in transitions:
            self._dispatch(context, transition)

    def _dispatch(self, context: SessionContext, transition: PhaseEvent) -> None:
        if isinstance(transition, PreGameStarted):
            self._spawn(self.listener.on_pre_game_started(transition.pregame_id))
        elif isinstance(transition, MatchStarted):
            self._spawn(self.listener.on_match_started(transition.match_id))
        elif isinstance(transition, MatchEnded):
            events = list(context.buffer)
            context.buffer.clear()
            self._spawn(self.listener.on_match_ended(transition.match_id, events))

    def _spawn(self, coro: Coroutine) -> None:
        task = asyncio.create_task(coro)
        self._listener_tasks.add(task)
        task.add_done_callback(self._on_listener_done)

    def _on_listener_done(self, task: asyncio.Task) -> None:
        self._listener_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Match listener failed: {exc}", exc_info=exc)
