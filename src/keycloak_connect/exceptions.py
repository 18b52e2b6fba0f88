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
Custom exceptions for the keycloak-connect package.
"""

from collections.abc import Mapping
from typing import Any


class KeycloakConnectError(Exception):
    """Base exception for all keycloak-connect errors."""


class IdentityProviderError(KeycloakConnectError):
    """
    Raised when the Identity Provider answers a grant or userinfo call with an error payload.

    Attributes:
        code (str): The OAuth2 `error` code (e.g. "invalid_grant").
        raw (Mapping[str, Any] | str | None): The full provider response, for diagnostics.
    """

    def __init__(self, message: str, code: str, raw: Mapping[str, Any] | str | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.raw = raw

    @classmethod
    def from_response(cls, data: Mapping[str, Any]) -> "IdentityProviderError":
        """Builds the error from an OAuth2 error response (`error` + `error_description`)."""
        error = str(data["error"])
        return cls(f"{error}: {data.get('error_description') or ''}", code=error, raw=data)


class EncryptionConfigurationError(KeycloakConnectError):
    """Raised when an encoded response must be verified but no algorithm/key pair is configured."""

    @classmethod
    def undetermined_encryption(cls) -> "EncryptionConfigurationError":
        return cls("undetermined encryption")


class SignatureVerificationError(KeycloakConnectError):
    """Raised when an encoded response fails signature or claim verification."""


class ProviderCommunicationError(KeycloakConnectError):
    """Raised when the Identity Provider cannot be reached or returns an unreadable body."""


class OversizedResponseError(KeycloakConnectError):
    """Raised when an HTTP response is too large."""
