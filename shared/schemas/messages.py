"""Chat message and request schemas exchanged between client and portal."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

# Role names used by older clients, mapped to the canonical ones
_LEGACY_ROLES = {"model": "assistant", "system": "status"}


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    STATUS = "status"  # ephemeral tool-call notice, never sent to the model


class Message(BaseModel):
    """One entry of the visible conversation, and one line on the wire."""

    model_config = ConfigDict(frozen=True)

    role: Role
    text: str = ""

    @field_validator("role", mode="before")
    @classmethod
    def _normalize_role(cls, v: object) -> object:
        if isinstance(v, str):
            return _LEGACY_ROLES.get(v, v)
        return v


class Credentials(BaseModel):
    """TestRail connection settings supplied by the client on every request."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    url: str
    email: str
    api_key: str = Field(validation_alias=AliasChoices("api_key", "apiKey"))

    @field_validator("url")
    @classmethod
    def _check_url(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError("TestRail URL must start with http:// or https://")
        return v

    @field_validator("email", "api_key")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v

    def __repr__(self) -> str:
        return f"Credentials(url={self.url!r}, email={self.email!r}, api_key='***')"

    __str__ = __repr__


class ChatRequest(BaseModel):
    """Body of ``POST /api/chat``.

    ``settings`` stays a raw mapping so that missing or malformed credentials
    are reported inside the response stream instead of as a 422.
    """

    message: str
    history: list[Message] = []
    settings: dict[str, Any] | None = None


class VerifyResponse(BaseModel):
    message: str = "Connection successful."
