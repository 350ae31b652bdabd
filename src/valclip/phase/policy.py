"""
Duplicate suppression for core-game notifications.

After a match completes, the client has been seen to send one more core-game
message for the match that just ended. Nothing documents this, and other
client versions may behave differently, so the check is a swappable policy.
"""

from abc import ABC, abstractmethod
from typing import Optional


class DuplicatePolicy(ABC):
    @abstractmethod
    def suppress_match_start(
        self, candidate_id: str, last_completed_id: Optional[str]
    ) -> bool:
        """Return True if a core-game message for ``candidate_id`` must be ignored."""


class SuppressLastCompleted(DuplicatePolicy):
    """Ignore core-game messages for the match that most recently ended."""

    def suppress_match_start(
        self, candidate_id: str, last_completed_id: Optional[str]
    ) -> bool:
        return last_completed_id is not None and candidate_id == last_completed_id


class NoSuppression(DuplicatePolicy):
    def suppress_match_start(
        self, candidate_id: str, last_completed_id: Optional[str]
    ) -> bool:
        return False
