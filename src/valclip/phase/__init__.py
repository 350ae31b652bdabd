"""
Game phase tracking from push notifications.
"""

from valclip.phase.classifier import (
    MESSAGE_EVENT,
    MatchEnded,
    MatchStarted,
    Phase,
    PhaseClassifier,
    PhaseEvent,
    PhaseState,
    PreGameStarted,
)
from valclip.phase.policy import DuplicatePolicy, NoSuppression, SuppressLastCompleted

__all__ = [
    "MESSAGE_EVENT",
    "DuplicatePolicy",
    "MatchEnded",
    "MatchStarted",
    "NoSuppression",
    "Phase",
    "PhaseClassifier",
    "PhaseEvent",
    "PhaseState",
    "PreGameStarted",
    "SuppressLastCompleted",
]
