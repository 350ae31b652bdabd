"""
Game log watching.

The game writes build and session details to its log long before the local
API exposes them. The watcher tails the log until platform initialization
completes and returns what it found.
"""

from valclip.logwatch.extract import FactExtractor, InitializationFacts
from valclip.logwatch.tail import LogTail
from valclip.logwatch.watcher import InitWatcher

__all__ = ["FactExtractor", "InitializationFacts", "InitWatcher", "LogTail"]
