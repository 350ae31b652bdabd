"""
Remote authentication: bearer/entitlement minting and authenticated requests.
"""

from valclip.auth.credentials import CredentialManager, Credentials
from valclip.auth.remote import RemoteAPI

__all__ = ["CredentialManager", "Credentials", "RemoteAPI"]
