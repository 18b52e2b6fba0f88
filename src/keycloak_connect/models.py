# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/keycloak_connect

"""
Data models for the keycloak-connect package.
"""

import time
from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Token endpoint fields mapped onto AccessToken attributes; everything else lands in `values`.
_TOKEN_FIELDS = frozenset({"access_token", "refresh_token", "expires_in", "expires", "token_type", "id_token", "scope"})


class AccessToken(BaseModel):
    """
    Bearer credential returned by the token endpoint.

    This model is frozen (immutable); a refresh produces a new instance.

    Attributes:
        access_token (str): The raw access token as sent on the wire.
        refresh_token (str | None): The refresh token, if issued.
        expires_in (int | None): Lifetime in seconds of the access token.
        expires (int | None): Absolute expiry as a UNIX timestamp, derived from `expires_in`.
        token_type (str): The type of the token (e.g. "Bearer").
        id_token (str | None): The ID token, if issued.
        scope (str | None): The granted scopes.
        values (dict[str, Any]): Any other fields of the token response (e.g. `session_state`).
    """

    model_config = ConfigDict(frozen=True)

    access_token: str
    refresh_token: str | None = None
    expires_in: int | None = None
    expires: int | None = None
    token_type: str = "Bearer"
    id_token: str | None = None
    scope: str | None = None
    values: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def split_extra_values(cls, data: Any) -> Any:
        if not isinstance(data, Mapping) or "values" in data:
            return data
        known = {k: v for k, v in data.items() if k in _TOKEN_FIELDS}
        known["values"] = {k: v for k, v in data.items() if k not in _TOKEN_FIELDS}
        if known.get("expires") is None and known.get("expires_in") is not None:
            known["expires"] = int(time.time()) + int(known["expires_in"])
        return known

    def get_token(self) -> str:
        return self.access_token

    def has_expired(self) -> bool:
        """
        Whether the access token is past its expiry.

        Raises:
            ValueError: If the token response carried no expiration data.
        """
        if self.expires is None:
            raise ValueError("Access token has no expiration data.")
        return self.expires < time.time()

    def __repr__(self) -> str:
        # Credentials MUST be redacted in __repr__
        return f"AccessToken(token_type={self.token_type!r}, expires={self.expires!r}, scope={self.scope!r})"

    def __str__(self) -> str:
        return self.__repr__()


class EncodedResponse(BaseModel):
    """A resource owner response delivered as a signed token string."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["encoded"] = "encoded"
    token: str


class StructuredResponse(BaseModel):
    """A resource owner response delivered as a plain claims mapping."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["structured"] = "structured"
    claims: dict[str, Any]


RawResourceOwnerResponse = EncodedResponse | StructuredResponse


def classify_response(raw: str | bytes | Mapping[str, Any]) -> RawResourceOwnerResponse:
    """
    Tags a raw resource owner response by shape.

    Args:
        raw: Either a compact token string (str or bytes) or an already decoded claims mapping.

    Returns:
        RawResourceOwnerResponse: `EncodedResponse` for strings, `StructuredResponse` for mappings.

    Raises:
        TypeError: For any other shape.
    """
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    if isinstance(raw, str):
        return EncodedResponse(token=raw)
    if isinstance(raw, Mapping):
        return StructuredResponse(claims=dict(raw))
    raise TypeError(f"Unsupported resource owner response type: {type(raw).__name__}")
