"""
Exception hierarchy for valclip.

Cancellation is not modelled here: an aborted connect, log wait or
subscription surfaces as ``asyncio.CancelledError`` and is never retried.
"""


class ValclipError(Exception):
    """Base class for all valclip errors."""


class DescriptorError(ValclipError):
    """The lockfile could not be turned into a session descriptor."""


class DescriptorUnreadable(DescriptorError):
    """The lockfile could not be read from disk."""


class DescriptorInvalid(DescriptorError):
    """The lockfile was read but its contents are not acceptable."""


class HandshakeRejected(ValclipError):
    """The local API answered, but the session is not usable yet."""


class CredentialUnavailable(ValclipError):
    """A bearer/entitlement pair could not be minted."""


class MalformedPushMessage(ValclipError):
    """An inbound push frame could not be decoded."""
