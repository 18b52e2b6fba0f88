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
OpenID Connect client for Keycloak realms: endpoints, grant flows and verified resource owner claims.
"""

__version__ = "0.1.0"
__author__ = "Gowtham A Rao"
__email__ = "gowtham.rao@coreason.ai"

from .config import KeycloakConnectConfig
from .connect import KeycloakConnect
from .endpoints import KeycloakEndpoints
from .exceptions import (
    EncryptionConfigurationError,
    IdentityProviderError,
    KeycloakConnectError,
    SignatureVerificationError,
)
from .key_format import build_public_key_with_format
from .models import AccessToken, EncodedResponse, StructuredResponse
from .oauth2_client import GenericOAuth2Client
from .resource_owner import KeycloakResourceOwner
from .verifier import ResponseVerifier

__all__ = [
    "AccessToken",
    "EncodedResponse",
    "EncryptionConfigurationError",
    "GenericOAuth2Client",
    "IdentityProviderError",
    "KeycloakConnect",
    "KeycloakConnectConfig",
    "KeycloakConnectError",
    "KeycloakEndpoints",
    "KeycloakResourceOwner",
    "ResponseVerifier",
    "SignatureVerificationError",
    "StructuredResponse",
    "build_public_key_with_format",
]
