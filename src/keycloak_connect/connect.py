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
KeycloakConnect component for orchestrating the OpenID Connect flows of a Keycloak realm.
"""

from collections.abc import Mapping
from typing import Any

import httpx
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor

from keycloak_connect.config import KeycloakConnectConfig
from keycloak_connect.endpoints import KeycloakEndpoints
from keycloak_connect.exceptions import IdentityProviderError
from keycloak_connect.models import AccessToken, RawResourceOwnerResponse, classify_response
from keycloak_connect.oauth2_client import GenericOAuth2Client, check_response
from keycloak_connect.resource_owner import KeycloakResourceOwner, build_resource_owner
from keycloak_connect.verifier import ResponseVerifier

AUTHORIZATION_CODE = "authorization_code"
REFRESH_TOKEN = "refresh_token"

DEFAULT_SCOPES = ("name", "email")


class KeycloakConnect:
    """
    OpenID Connect client for a Keycloak realm.

    Composes the realm endpoints, a generic OAuth2 client for the grant flows and a
    response verifier for resource owner claims. Handles the HTTP client via context manager.
    """

    def __init__(self, config: KeycloakConnectConfig, client: httpx.Client | None = None) -> None:
        """
        Initialize KeycloakConnect.

        Args:
            config: The realm and client configuration.
            client: External HTTP client (optional). If not provided, one is created with `config.http_timeout`
                and closed on exit.
        """
        self.config = config
        self._internal_client = client is None

        if client:
            self._client = client
        else:
            self._client = httpx.Client(timeout=self.config.http_timeout)

        # Instrument the client for distributed tracing
        HTTPXClientInstrumentor().instrument_client(self._client)

        self.endpoints = KeycloakEndpoints(self.config.auth_server_url, self.config.realm)
        self.oauth2 = GenericOAuth2Client(
            client_id=self.config.client_id,
            client=self._client,
            client_secret=self.config.client_secret.get_secret_value() if self.config.client_secret else None,
            redirect_uri=self.config.redirect_uri,
            default_scopes=self.get_default_scopes(),
            scope_separator=self.config.scope_separator,
            response_checker=check_response,
        )
        self.verifier = ResponseVerifier(
            algorithm=self.config.encryption_algorithm,
            key=self.config.encryption_key,
        )

    def __enter__(self) -> "KeycloakConnect":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def close(self) -> None:
        if self._internal_client:
            self._client.close()

    @property
    def state(self) -> str | None:
        """The `state` of the last authorization URL built."""
        return self.oauth2.state

    def get_default_scopes(self) -> list[str]:
        return list(DEFAULT_SCOPES)

    def get_base_authorization_url(self) -> str:
        return self.endpoints.authorization_url

    def get_base_access_token_url(self, params: Mapping[str, Any] | None = None) -> str:
        return self.endpoints.token_url

    def get_resource_owner_details_url(self, token: AccessToken | None = None) -> str:
        return self.endpoints.userinfo_url

    def get_authorization_url(self, options: Mapping[str, Any] | None = None) -> str:
        """
        Builds the authorization URL with client_id, redirect_uri, response_type, scope and state.

        Args:
            options: Extra or overriding authorization parameters.

        Returns:
            str: The authorization URL.
        """
        return self.oauth2.build_authorization_url(self.get_base_authorization_url(), options)

    def get_authorization_url_docker(self, url: str, options: Mapping[str, Any] | None = None) -> str:
        """
        Builds the authorization URL on an alternate base URL.

        For setups where the browser reaches Keycloak through another host than this service
        (e.g. docker compose), same realm and parameters as `get_authorization_url`.

        Args:
            url: The Keycloak base URL as seen by the browser.
            options: Extra or overriding authorization parameters.

        Returns:
            str: The authorization URL.
        """
        return self.oauth2.build_authorization_url(self.endpoints.authorization_url_for(url), options)

    def get_logout_url(self, options: Mapping[str, Any] | None = None) -> str:
        """
        Builds the logout URL.

        Args:
            options: Query parameters passed through as-is (e.g. `post_logout_redirect_uri`, `id_token_hint`).

        Returns:
            str: The logout URL.
        """
        return self.endpoints.build_logout_url(options)

    def auth_by_code(self, code: str) -> AccessToken:
        """
        Exchanges an authorization code for an access token.

        Raises:
            IdentityProviderError: If Keycloak rejects the code.
        """
        return self.oauth2.exchange(self.get_base_access_token_url(), AUTHORIZATION_CODE, {"code": code})

    def auth_by_refresh_token(self, refresh_token: str) -> AccessToken:
        """
        Exchanges a refresh token for a new access token.

        Raises:
            IdentityProviderError: If Keycloak rejects the refresh token.
        """
        return self.oauth2.exchange(
            self.get_base_access_token_url(), REFRESH_TOKEN, {"refresh_token": refresh_token}
        )

    def uses_encryption(self) -> bool:
        """Checks if the client is configured to verify encoded responses."""
        return self.verifier.uses_encryption()

    def decrypt_response(self, response: str | bytes | Mapping[str, Any] | RawResourceOwnerResponse) -> dict[str, Any]:
        """
        Resolves a raw response into claims, verifying it when it is encoded.

        Raises:
            EncryptionConfigurationError: If the response is encoded and no algorithm/key is configured.
            SignatureVerificationError: If verification fails.
        """
        return self.verifier.resolve(response)

    def create_resource_owner(self, response: Mapping[str, Any], token: AccessToken) -> KeycloakResourceOwner:
        return build_resource_owner(response)

    def get_resource_owner(self, token: AccessToken) -> KeycloakResourceOwner:
        """
        Returns the resource owner of the given access token.

        The access token itself is resolved: Keycloak issues it as a signed token carrying the
        user claims, so no network call is made.

        Args:
            token: The bearer credential.

        Returns:
            KeycloakResourceOwner: The authenticated user.

        Raises:
            EncryptionConfigurationError: If no algorithm/key is configured.
            SignatureVerificationError: If the access token fails verification.
        """
        claims = self.decrypt_response(token.get_token())
        return self.create_resource_owner(claims, token)

    def fetch_resource_owner_details(self, token: AccessToken) -> KeycloakResourceOwner:
        """
        Requests the userinfo endpoint and returns the resource owner.

        JSON bodies are taken as structured claims; `application/jwt` bodies are verified.

        Args:
            token: The bearer credential.

        Returns:
            KeycloakResourceOwner: The authenticated user.

        Raises:
            IdentityProviderError: If Keycloak answers with an error payload.
            EncryptionConfigurationError: If the body is encoded and no algorithm/key is configured.
            SignatureVerificationError: If an encoded body fails verification.
            ProviderCommunicationError: If Keycloak cannot be reached or the body is unreadable.
        """
        response = self.oauth2.get_authenticated(self.get_resource_owner_details_url(token), token)
        body = response.parsed()
        self.oauth2.response_checker(body)
        if response.status_code >= 400:
            # Keycloak may reject a bearer with only a WWW-Authenticate header and no error body
            raise IdentityProviderError(
                f"http_{response.status_code}: userinfo request rejected",
                code=f"http_{response.status_code}",
                raw=body,
            )
        if not isinstance(body, (str, Mapping)):
            raise IdentityProviderError(
                f"invalid_userinfo_response: unexpected {type(body).__name__} body",
                code="invalid_userinfo_response",
                raw=None,
            )
        claims = self.decrypt_response(classify_response(body))
        return self.create_resource_owner(claims, token)
