"""
Filesystem watch on the lockfile's directory.

watchdog delivers events on its observer thread; each relevant event is
handed to the asyncio loop with ``call_soon_threadsafe``.
"""

import asyncio
import os
from pathlib import Path
from typing import Callable

from watchdog.events import (
    FileCreatedEvent,
    FileDeletedEvent,
    FileMovedEvent,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from valclip.logger import get_logger

logger = get_logger(__name__)

# Events that correspond to the lockfile being (re)written or removed
RENAME_EVENTS = (FileCreatedEvent, FileDeletedEvent, FileMovedEvent)


class LockfileEventHandler(FileSystemEventHandler):
    """Forwards create/delete/move events for one file name to a loop callback."""

    def __init__(
        self,
        file_name: str,
        loop: asyncio.AbstractEventLoop,
        callback: Callable[[], None],
    ):
        super().__init__()
        self.file_name = file_name
        self._loop = loop
        self._callback = callback

    def _touches_lockfile(self, event: FileSystemEvent) -> bool:
        paths = [event.src_path]
        if isinstance(event, FileMovedEvent):
            paths.append(event.dest_path)
        return any(Path(os.fsdecode(p)).name == self.file_name for p in paths)

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or not isinstance(event, RENAME_EVENTS):
            return
        if self._touches_lockfile(event):
            logger.debug(f"Lockfile event: {event.event_type}")
            self._loop.call_soon_threadsafe(self._callback)


class LockfileWatch:
    """Owns the watchdog observer for the lockfile directory."""

    def __init__(self, lockfile_path: Path, callback: Callable[[], None]):
        self.lockfile_path = lockfile_path
        self._callback = callback
        self._observer = None

    def start(self, loop: asyncio.AbstractEventLoop) -> None:
        directory = self.lockfile_path.parent
        directory.mkdir(parents=True, exist_ok=True)

        handler = LockfileEventHandler(self.lockfile_path.name, loop, self._callback)
        self._observer = Observer()
        self._observer.schedule(handler, str(directory), recursive=False)
        self._observer.start()
        logger.info(f"Watching {directory} for lockfile changes")

    def stop(self) -> None:
        if self._observer is not None:
            self._observer.stop()
            self._observer.join()
            self._observer = None
