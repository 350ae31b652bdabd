"""
Lockfile parsing.

The Riot client writes ``name:pid:port:password:protocol`` to its lockfile
whenever it starts. The file is the only source of the loopback API's port
and basic-auth password.
"""

import asyncio
import base64
from dataclasses import dataclass
from pathlib import Path

from valclip.errors import DescriptorInvalid, DescriptorUnreadable

EXPECTED_PROCESS_NAME = "Riot Client"
LOCAL_USERNAME = "riot"
LOCAL_HOST = "127.0.0.1"


@dataclass(frozen=True)
class SessionDescriptor:
    """Parsed lockfile contents."""

    name: str
    pid: int
    port: int
    password: str
    protocol: str

    @property
    def base_url(self) -> str:
        return f"https://{LOCAL_HOST}:{self.port}"

    @property
    def websocket_url(self) -> str:
        return f"wss://{LOCAL_HOST}:{self.port}"

    @property
    def basic_auth(self) -> tuple[str, str]:
        return LOCAL_USERNAME, self.password

    @property
    def authorization_header(self) -> str:
        raw = f"{LOCAL_USERNAME}:{self.password}".encode()
        return "Basic " + base64.b64encode(raw).decode("ascii")


def parse_descriptor(contents: str) -> SessionDescriptor:
    """
    Parse lockfile text into a descriptor.

    Raises:
        DescriptorInvalid: On a wrong field count, non-numeric pid/port, or a
            process name other than the Riot client.
    """
    fields = contents.strip().split(":")
    if len(fields) != 5:
        raise DescriptorInvalid(f"Expected 5 lockfile fields, got {len(fields)}")

    name, pid, port, password, protocol = fields
    if name != EXPECTED_PROCESS_NAME:
        raise DescriptorInvalid(f"Invalid lockfile name: {name}")

    try:
        return SessionDescriptor(
            name=name,
            pid=int(pid),
            port=int(port),
            password=password,
            protocol=protocol,
        )
    except ValueError as e:
        raise DescriptorInvalid(f"Malformed lockfile: {e}") from e


async def read_descriptor(path: Path) -> SessionDescriptor:
    """Read and parse the lockfile without blocking the event loop."""
    try:
        contents = await asyncio.to_thread(path.read_text, encoding="utf-8")
    except OSError as e:
        raise DescriptorUnreadable(f"Cannot read lockfile {path}: {e}") from e
    return parse_descriptor(contents)
