"""
Initialization watcher: waits for the game to report platform initialization.
"""

import asyncio
from pathlib import Path
from typing import Optional

from valclip.logger import get_logger
from valclip.logwatch.extract import FactExtractor, InitializationFacts, is_closed_log
from valclip.logwatch.tail import POLL_INTERVAL, LogTail

logger = get_logger(__name__)

# Lines processed between yields to the event loop while scanning a backlog
BACKLOG_YIELD_EVERY = 500


class InitWatcher:
    """
    Tails the game log until the ready sentinel appears.

    One instance serves one connection; facts are write-once for its lifetime.
    """

    def __init__(self, log_path: Path, poll_interval: float = POLL_INTERVAL):
        self.log_path = log_path
        self.poll_interval = poll_interval
        self.extractor = FactExtractor()

    async def await_ready(self, consume_backlog: bool = True) -> InitializationFacts:
        """
        Wait for platform initialization and return the facts seen so far.

        Args:
            consume_backlog: Also scan the log's current contents first, unless
                the log is closed (a closed log belongs to a previous run).

        Raises:
            asyncio.CancelledError: If the waiting task is cancelled. No handle
                on the log outlives the poll that opened it.
        """
        if self.extractor.ready:
            return self.extractor.facts

        offset: int
        if consume_backlog:
            offset = await self._scan_backlog()
            if self.extractor.ready:
                return self._finish()
        else:
            offset = await asyncio.to_thread(self._current_size)

        tail = LogTail(self.log_path, offset=offset, poll_interval=self.poll_interval)
        async for line in tail.follow():
            if self.extractor.feed(line):
                return self._finish()

        # follow() never ends on its own
        raise RuntimeError("Log tail stopped unexpectedly")

    def _finish(self) -> InitializationFacts:
        facts = self.extractor.facts
        logger.info(
            f"Game initialized: version={facts.build_version} "
            f"branch={facts.build_branch} region={facts.region} shard={facts.shard}"
        )
        return facts

    def _current_size(self) -> int:
        try:
            return self.log_path.stat().st_size
        except FileNotFoundError:
            # A log created later is entirely new
            return 0

    def _read_backlog(self) -> Optional[bytes]:
        try:
            return self.log_path.read_bytes()
        except FileNotFoundError:
            return None

    async def _scan_backlog(self) -> int:
        """Feed the existing log through the extractor; return where tailing resumes."""
        data = await asyncio.to_thread(self._read_backlog)
        if data is None:
            return 0

        text = data.decode("utf-8", errors="replace")
        if is_closed_log(text):
            logger.info("Game log is closed, ignoring its previous contents")
            return len(data)

        # Resume after the last complete line; a partial line is re-read by the tail
        end = data.rfind(b"\n") + 1
        lines = data[:end].decode("utf-8", errors="replace").splitlines()
        for count, line in enumerate(lines, start=1):
            if self.extractor.feed(line):
                break
            if count % BACKLOG_YIELD_EVERY == 0:
                await asyncio.sleep(0)

        logger.debug(f"Scanned {len(lines)} backlog lines, pending: {self.extractor.pending}")
        return end
