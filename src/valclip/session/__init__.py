"""
Session management.

- connector:    lockfile -> live local session (retry loop)
- listener:     match lifecycle callbacks for recording/persistence
- lockwatch:    filesystem watch on the lockfile directory
- orchestrator: connect -> ready -> subscribe -> classify cycle
"""

from valclip.session.connector import SessionConnector, SessionHandle
from valclip.session.listener import LoggingListener, MatchListener
from valclip.session.orchestrator import SessionOrchestrator

__all__ = [
    "LoggingListener",
    "MatchListener",
    "SessionConnector",
    "SessionHandle",
    "SessionOrchestrator",
]
