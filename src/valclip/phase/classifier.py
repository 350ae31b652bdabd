"""
Phase classifier.

A pure state machine over ``Idle``, ``PreGame`` and ``InGame`` driven by the
``uri`` of riot-messaging-service push messages. It never raises: the push
protocol is undocumented, so anything unrecognised is ignored.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from valclip.logger import get_logger
from valclip.phase.policy import DuplicatePolicy, SuppressLastCompleted
from valclip.push.models import PushMessage

logger = get_logger(__name__)

MESSAGE_EVENT = "OnJsonApiEvent_riot-messaging-service_v1_message"

_MESSAGE_PREFIX = "/riot-messaging-service/v1/message"
MATCH_COMPLETED_URI = f"{_MESSAGE_PREFIX}/ares-match-details/match-details/v1/matches"
CORE_GAME_PREFIX = f"{_MESSAGE_PREFIX}/ares-core-game/core-game/v1/matches/"
PREGAME_PREFIX = f"{_MESSAGE_PREFIX}/ares-pregame/pregame/v1/matches/"


class Phase(str, Enum):
    IDLE = "idle"
    PRE_GAME = "pre_game"
    IN_GAME = "in_game"


@dataclass(frozen=True)
class PreGameStarted:
    pregame_id: str


@dataclass(frozen=True)
class MatchStarted:
    match_id: str


@dataclass(frozen=True)
class MatchEnded:
    match_id: str


PhaseEvent = Union[PreGameStarted, MatchStarted, MatchEnded]


@dataclass
class PhaseState:
    """Per-connection phase state. Create a new one for every connection."""

    pregame_id: Optional[str] = None
    match_id: Optional[str] = None
    last_completed_match_id: Optional[str] = None

    @property
    def phase(self) -> Phase:
        if self.match_id is not None:
            return Phase.IN_GAME
        if self.pregame_id is not None:
            return Phase.PRE_GAME
        return Phase.IDLE

    @property
    def active(self) -> bool:
        return self.pregame_id is not None or self.match_id is not None


def _trailing_segment(uri: str) -> Optional[str]:
    segment = uri.rstrip("/").rsplit("/", 1)[-1]
    return segment or None


@dataclass
class PhaseClassifier:
    state: PhaseState = field(default_factory=PhaseState)
    policy: DuplicatePolicy = field(default_factory=SuppressLastCompleted)

    def feed(self, message: PushMessage) -> list[PhaseEvent]:
        """Apply one push message and return the transitions it caused."""
        if message.event != MESSAGE_EVENT:
            return []

        uri = message.uri
        if uri is None:
            return []
        return self.feed_uri(uri)

    def feed_uri(self, uri: str) -> list[PhaseEvent]:
        state = self.state

        if uri == MATCH_COMPLETED_URI:
            events: list[PhaseEvent] = []
            if state.match_id is not None:
                events.append(MatchEnded(state.match_id))
                state.last_completed_match_id = state.match_id
            state.match_id = None
            state.pregame_id = None
            return events

        if uri.startswith(CORE_GAME_PREFIX) and state.match_id is None:
            candidate = _trailing_segment(uri[len(CORE_GAME_PREFIX):])
            if candidate is None:
                return []
            if self.policy.suppress_match_start(
                candidate, state.last_completed_match_id
            ):
                logger.debug(f"Ignoring core-game message for finished match {candidate}")
                return []
            state.match_id = candidate
            return [MatchStarted(candidate)]

        if uri.startswith(PREGAME_PREFIX) and state.pregame_id is None:
            candidate = _trailing_segment(uri[len(PREGAME_PREFIX):])
            if candidate is None:
                return []
            state.pregame_id = candidate
            return [PreGameStarted(candidate)]

        return []

