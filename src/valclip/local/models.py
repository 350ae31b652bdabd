"""
Pydantic models for local API responses.

Only the fields valclip reads are declared; everything else the client sends
is ignored.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ChatSession(BaseModel):
    """GET chat/v1/session"""

    model_config = ConfigDict(extra="ignore")

    puuid: str = ""
    game_name: str = ""
    game_tag: str = ""
    loaded: bool = False
    region: str = ""
    state: str = ""


class LaunchConfiguration(BaseModel):
    model_config = ConfigDict(extra="ignore")

    arguments: list[str] = Field(default_factory=list)
    executable: str = ""
    locale: str | None = None


class ExternalSession(BaseModel):
    """One value of GET product-session/v1/external-sessions"""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    product_id: str = Field(default="", alias="productId")
    phase: str = ""
    version: str = ""
    launch_configuration: LaunchConfiguration | None = Field(
        default=None, alias="launchConfiguration"
    )


class HelpResponse(BaseModel):
    """GET help"""

    model_config = ConfigDict(extra="ignore")

    events: dict[str, str] = Field(default_factory=dict)
    functions: dict[str, str] = Field(default_factory=dict)
    types: dict[str, str] = Field(default_factory=dict)


class EntitlementsToken(BaseModel):
    """GET entitlements/v1/token"""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    access_token: str = Field(alias="accessToken")
    token: str
    subject: str = ""
    issuer: str = ""


class Presence(BaseModel):
    model_config = ConfigDict(extra="ignore")

    puuid: str = ""
    product: str = ""
    private: str | None = None


class PresencesResponse(BaseModel):
    """GET chat/v4/presences"""

    model_config = ConfigDict(extra="ignore")

    presences: list[Presence] = Field(default_factory=list)


PrivatePresence = dict[str, Any]
