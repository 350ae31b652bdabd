"""
Polling log tail.

The game's log is polled rather than watched with OS change notifications,
which some filesystem and antivirus combinations fail to deliver for it.
"""

import asyncio
import os
from pathlib import Path
from typing import AsyncIterator, Optional

from valclip.logger import get_logger

logger = get_logger(__name__)

POLL_INTERVAL = 0.25


class LogTail:
    """
    Yields complete lines appended to a file.

    A trailing partial line is held back until its newline arrives. If the
    file is truncated or replaced, reading restarts from its beginning. The
    file is opened and closed within each poll, so no handle is held on the
    log between polls or after the consumer goes away.

    Args:
        path: The file to follow.
        offset: Byte offset of the first unread byte in the current file.
            ``None`` starts at the end of the file as it is when first opened.
        poll_interval: Seconds between polls.
    """

    def __init__(
        self,
        path: Path,
        offset: Optional[int] = 0,
        poll_interval: float = POLL_INTERVAL,
    ):
        self.path = path
        self.offset = offset
        self.poll_interval = poll_interval
        self._inode: Optional[int] = None
        self._partial = b""
        self._warned_missing = False

    def _restart(self, reason: str) -> None:
        logger.info(f"{self.path.name} was {reason}, reading from the start")
        self.offset = 0
        self._partial = b""

    def _poll_sync(self) -> list[str]:
        try:
            f = open(self.path, "rb")
        except FileNotFoundError:
            if not self._warned_missing:
                logger.info(f"Waiting for {self.path} to appear")
                self._warned_missing = True
            return []
        self._warned_missing = False

        with f:
            stat = os.fstat(f.fileno())
            if self._inode is not None and stat.st_ino != self._inode:
                self._restart("replaced")
            self._inode = stat.st_ino

            size = stat.st_size
            if self.offset is None:
                self.offset = size
            elif size < self.offset:
                self._restart("truncated")

            if size == self.offset:
                return []

            f.seek(self.offset)
            chunk = f.read(size - self.offset)
        self.offset += len(chunk)

        data = self._partial + chunk
        *complete, self._partial = data.split(b"\n")
        return [
            line.rstrip(b"\r").decode("utf-8", errors="replace") for line in complete
        ]

    async def poll(self) -> list[str]:
        """Read whatever complete lines have been appended since the last poll."""
        return await asyncio.to_thread(self._poll_sync)

    async def follow(self) -> AsyncIterator[str]:
        """Yield new lines forever; cancel the consuming task to stop."""
        while True:
            for line in await self.poll():
                yield line
            await asyncio.sleep(self.poll_interval)
