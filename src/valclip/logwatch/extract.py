"""
Pattern extraction over game log lines.

Each pattern is "first match wins": once it has matched it is dropped and
later lines are never tested against it again.
"""

import re
from dataclasses import dataclass
from typing import Callable

READY_SENTINEL = "Platform initialization complete"
LOG_CLOSED_MARKER = "Log file closed"

BUILD_VERSION_RE = re.compile(r"Build version: (\S+)")
BRANCH_RE = re.compile(r"Branch: (\S+)")
CHANGELIST_RE = re.compile(r"Changelist: (\d+)")
CI_VERSION_RE = re.compile(r"CI server version: \S*-(\d+)\s*$")
# Outbound request the client makes to resume its game session
SESSION_RECONNECT_RE = re.compile(
    r"\[GET https://glz-(?P<region>[a-z0-9]+)-1\.(?P<shard>[a-z0-9]+)\.a\.pvp\.net"
    r"/session/v1/sessions/(?P<account_id>[0-9a-fA-F-]+)/reconnect\]"
)


@dataclass
class InitializationFacts:
    """Facts recovered from the log for one connection."""

    build_branch: str = ""
    build_changelist: int = -1
    build_version: str = ""
    ci_version: int = -1
    region: str = ""
    shard: str = ""
    account_id: str = ""


def _set_build_version(facts: InitializationFacts, m: re.Match) -> None:
    facts.build_version = m.group(1)


def _set_branch(facts: InitializationFacts, m: re.Match) -> None:
    facts.build_branch = m.group(1)


def _set_changelist(facts: InitializationFacts, m: re.Match) -> None:
    facts.build_changelist = int(m.group(1))


def _set_ci_version(facts: InitializationFacts, m: re.Match) -> None:
    facts.ci_version = int(m.group(1))


def _set_session(facts: InitializationFacts, m: re.Match) -> None:
    facts.region = m.group("region")
    facts.shard = m.group("shard")
    facts.account_id = m.group("account_id")


DEFAULT_EXTRACTORS: tuple[tuple[str, re.Pattern, Callable], ...] = (
    ("build_version", BUILD_VERSION_RE, _set_build_version),
    ("branch", BRANCH_RE, _set_branch),
    ("changelist", CHANGELIST_RE, _set_changelist),
    ("ci_version", CI_VERSION_RE, _set_ci_version),
    ("session", SESSION_RECONNECT_RE, _set_session),
)


def is_ready_line(line: str) -> bool:
    return line.rstrip().endswith(READY_SENTINEL)


def is_closed_log(text: str) -> bool:
    """True if the last non-empty line of ``text`` marks the log as closed."""
    for line in reversed(text.splitlines()):
        if line.strip():
            return LOG_CLOSED_MARKER in line
    return False


class FactExtractor:
    """Feeds lines through the pending patterns and tracks readiness."""

    def __init__(self):
        self.facts = InitializationFacts()
        self.ready = False
        self._pending = list(DEFAULT_EXTRACTORS)

    @property
    def pending(self) -> list[str]:
        return [name for name, _, _ in self._pending]

    def feed(self, line: str) -> bool:
        """
        Process one line.

        Returns:
            True once the ready sentinel has been seen.
        """
        if self.ready:
            return True

        for entry in list(self._pending):
            _, pattern, apply = entry
            m = pattern.search(line)
            if m:
                apply(self.facts, m)
                self._pending.remove(entry)

        if is_ready_line(line):
            self.ready = True
        return self.ready
