"""
Access to the Riot client's local control-plane API.

- lockfile: session descriptor parsing (port, password)
- api:      loopback HTTPS client
- models:   response schemas
"""

from valclip.local.api import LocalAPI
from valclip.local.lockfile import SessionDescriptor, parse_descriptor, read_descriptor

__all__ = [
    "LocalAPI",
    "SessionDescriptor",
    "parse_descriptor",
    "read_descriptor",
]
