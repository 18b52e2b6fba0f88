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
Configuration for the keycloak-connect package.
"""

from typing import Any

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from keycloak_connect.key_format import build_public_key_with_format

# JWS algorithms (RFC 7518 section 3) accepted for verification. "none" is never accepted.
SUPPORTED_ALGORITHMS = frozenset(
    {
        "HS256",
        "HS384",
        "HS512",
        "RS256",
        "RS384",
        "RS512",
        "ES256",
        "ES384",
        "ES512",
        "PS256",
        "PS384",
        "PS512",
        "EdDSA",
    }
)


class KeycloakConnectConfig(BaseSettings):
    """
    Configuration settings for a Keycloak realm client.

    Attributes:
        auth_server_url (str): Keycloak base URL, e.g. http://localhost:8080/auth. Used verbatim.
        realm (str): The realm name.
        client_id (str): The OIDC Client ID.
        client_secret (SecretStr | None): The client secret (confidential clients only).
        redirect_uri (str | None): Redirect URI registered for the client.
        encryption_algorithm (str | None): JWS algorithm used to verify encoded responses.
        encryption_key (str | None): PEM public key used to verify encoded responses.
        encryption_key_string (str | None): Bare base64 public key, formatted into `encryption_key`.
        http_timeout (float): Timeout in seconds for all IdP network operations.
        scope_separator (str): Separator used when joining scopes into the authorization URL.
    """

    model_config = SettingsConfigDict(
        env_prefix="KEYCLOAK_CONNECT_",
        case_sensitive=False,
        frozen=True,
    )

    auth_server_url: str
    realm: str
    client_id: str
    client_secret: SecretStr | None = None
    redirect_uri: str | None = None
    encryption_algorithm: str | None = None
    encryption_key: str | None = None
    encryption_key_string: str | None = None
    http_timeout: float = Field(default=10.0, description="Timeout in seconds for all IdP network operations.")
    scope_separator: str = " "

    @model_validator(mode="before")
    @classmethod
    def format_encryption_key_string(cls, data: Any) -> Any:
        """
        Builds `encryption_key` from `encryption_key_string` when only the bare key is given.
        """
        if isinstance(data, dict) and data.get("encryption_key_string") and not data.get("encryption_key"):
            data = {**data, "encryption_key": build_public_key_with_format(data["encryption_key_string"])}
        return data

    @field_validator("encryption_algorithm", "encryption_key", "encryption_key_string", mode="before")
    @classmethod
    def empty_as_none(cls, v: Any) -> Any:
        # Unset environment variables often arrive as empty strings
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("realm")
    @classmethod
    def validate_realm(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Realm must be a non-empty identifier.")
        return v

    @field_validator("encryption_algorithm")
    @classmethod
    def validate_algorithm(cls, v: str | None) -> str | None:
        """
        Ensures the algorithm is a supported JWS signature algorithm.

        Raises:
            ValueError: If the algorithm is unknown or "none".
        """
        if v is not None and v not in SUPPORTED_ALGORITHMS:
            raise ValueError(f"Unsupported encryption algorithm '{v}'. Supported: {sorted(SUPPORTED_ALGORITHMS)}")
        return v

    @model_validator(mode="after")
    def validate_encryption_pair(self) -> "KeycloakConnectConfig":
        """
        Algorithm and key must be configured together, or not at all.
        """
        if (self.encryption_algorithm is None) != (self.encryption_key is None):
            raise ValueError("encryption_algorithm and encryption_key must both be set or both be omitted.")
        return self
