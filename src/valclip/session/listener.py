"""
Match lifecycle callbacks.

Recording, match-data persistence and output renaming live behind this
interface. The orchestrator calls each hook as a fire-and-forget task.
"""

from abc import ABC, abstractmethod

from valclip.logger import get_logger
from valclip.push.models import PushMessage

logger = get_logger(__name__)


class MatchListener(ABC):
    """Receives phase transitions for the live session."""

    @abstractmethod
    async def on_pre_game_started(self, pregame_id: str) -> None:
        pass

    @abstractmethod
    async def on_match_started(self, match_id: str) -> None:
        pass

    @abstractmethod
    async def on_match_ended(self, match_id: str, events: list[PushMessage]) -> None:
        """
        Args:
            match_id: The match that just completed.
            events: Raw push messages buffered since the pre-game started.
        """
        pass


class LoggingListener(MatchListener):
    """Default listener: writes each transition to the log."""

    async def on_pre_game_started(self, pregame_id: str) -> None:
        logger.info(f"Pre-game started: {pregame_id}")

    async def on_match_started(self, match_id: str) -> None:
        logger.info(f"Match started: {match_id}")

    async def on_match_ended(self, match_id: str, events: list[PushMessage]) -> None:
        logger.info(f"Match ended: {match_id} ({len(events)} buffered events)")
