"""
Authenticated requests against the remote game services.

Two endpoint families are used: ``glz`` (region-qualified) and ``pd``
(shard-qualified). Both take the bearer token and the entitlement JWT.
"""

from typing import Any, Optional

import httpx

from valclip.auth.credentials import CredentialManager
from valclip.logger import get_logger

logger = get_logger(__name__)

ENTITLEMENT_HEADER = "X-Riot-Entitlements-JWT"


def glz_url(path: str, region: str, shard: str) -> str:
    return f"https://glz-{region}-1.{shard}.a.pvp.net/{path.lstrip('/')}"


def pd_url(path: str, shard: str) -> str:
    return f"https://pd.{shard}.a.pvp.net/{path.lstrip('/')}"


class RemoteAPI:
    """Bearer-authenticated client fed by a CredentialManager."""

    def __init__(
        self,
        credentials: CredentialManager,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 15.0,
    ):
        self._credentials = credentials
        self._client = httpx.AsyncClient(transport=transport, timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self, url: str, extra_headers: Optional[dict[str, str]] = None
    ) -> Any:
        """
        GET a remote URL with fresh credentials.

        Raises:
            CredentialUnavailable: If credentials cannot be minted.
            httpx.HTTPError: On transport failures or non-2xx responses.
        """
        creds = await self._credentials.get_credentials()
        headers = {
            "Authorization": f"Bearer {creds.token}",
            ENTITLEMENT_HEADER: creds.entitlement,
            **(extra_headers or {}),
        }
        resp = await self._client.get(url, headers=headers)
        resp.raise_for_status()
        return resp.json()

    async def request_glz(
        self,
        path: str,
        region: str,
        shard: str,
        extra_headers: Optional[dict[str, str]] = None,
    ) -> Any:
        return await self.request(glz_url(path, region, shard), extra_headers)

    async def request_pd(
        self, path: str, shard: str, extra_headers: Optional[dict[str, str]] = None
    ) -> Any:
        return await self.request(pd_url(path, shard), extra_headers)
