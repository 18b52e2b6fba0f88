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
GenericOAuth2Client component for authorization URLs and grant exchanges.
"""

from collections.abc import Callable, Mapping, Sequence
from typing import Any

import httpx
from authlib.common.security import generate_token
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
from pydantic import ValidationError

from keycloak_connect.endpoints import append_query
from keycloak_connect.exceptions import IdentityProviderError, KeycloakConnectError
from keycloak_connect.models import AccessToken
from keycloak_connect.transport import ProviderResponse, fetch
from keycloak_connect.utils.logger import logger

tracer = trace.get_tracer(__name__)

ResponseChecker = Callable[[Any], None]


def check_response(data: Any) -> None:
    """
    Raises if an IdP response carries an OAuth2 error payload.

    Args:
        data: The parsed response body.

    Raises:
        IdentityProviderError: If `data` is a mapping with a non-empty `error`.
    """
    if isinstance(data, Mapping) and data.get("error"):
        raise IdentityProviderError.from_response(data)


class GenericOAuth2Client:
    """
    Provider agnostic OAuth 2.0 client (RFC 6749).

    Builds authorization URLs and exchanges grants for an `AccessToken`. Provider specific
    adapters supply the URLs and may replace the response checker.

    Attributes:
        client_id (str): The OAuth2 Client ID.
        redirect_uri (str | None): The redirect URI sent with authorization and code grants.
        default_scopes (list[str]): Scopes requested when the caller passes none.
        scope_separator (str): Separator used to join scope lists.
        state (str | None): The `state` of the last authorization URL built.
    """

    def __init__(
        self,
        client_id: str,
        client: httpx.Client,
        client_secret: str | None = None,
        redirect_uri: str | None = None,
        default_scopes: Sequence[str] = (),
        scope_separator: str = " ",
        response_checker: ResponseChecker = check_response,
    ) -> None:
        """
        Initialize the GenericOAuth2Client.

        Args:
            client_id: The OAuth2 Client ID.
            client: The HTTP client to use for requests.
            client_secret: The client secret, sent in the request body (client_secret_post).
            redirect_uri: The registered redirect URI.
            default_scopes: Scopes requested when the caller passes none.
            scope_separator: Separator used to join scope lists.
            response_checker: Called with every parsed token/userinfo response before use.
        """
        self.client_id = client_id
        self.client = client
        self._client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.default_scopes = list(default_scopes)
        self.scope_separator = scope_separator
        self.response_checker = response_checker
        self.state: str | None = None

    def get_authorization_parameters(self, options: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """
        Authorization request parameters, with caller options taking precedence.

        A random `state` is generated unless one is given; it is kept in `self.state`
        so the callback can be checked against it.
        """
        params: dict[str, Any] = dict(options or {})

        params.setdefault("state", generate_token(32))
        self.state = params["state"]

        scope = params.get("scope") or self.default_scopes
        if not isinstance(scope, str):
            scope = self.scope_separator.join(scope)
        params["scope"] = scope

        params.setdefault("response_type", "code")
        if self.redirect_uri and "redirect_uri" not in params:
            params["redirect_uri"] = self.redirect_uri
        params["client_id"] = self.client_id
        return params

    def build_authorization_url(self, base_url: str, options: Mapping[str, Any] | None = None) -> str:
        """Authorization endpoint `base_url` with the authorization request query appended."""
        return append_query(base_url, self.get_authorization_parameters(options))

    def exchange(self, token_url: str, grant_type: str, params: Mapping[str, Any]) -> AccessToken:
        """
        Exchanges a grant for an access token.

        Emits an OpenTelemetry span `keycloak.grant`.

        Args:
            token_url: The token endpoint.
            grant_type: The OAuth2 grant type (e.g. "authorization_code").
            params: Grant specific parameters (e.g. `code`, `refresh_token`).

        Returns:
            AccessToken: The issued bearer credential.

        Raises:
            IdentityProviderError: If the IdP answers with an error payload or an unusable token response.
            ProviderCommunicationError: If the IdP cannot be reached or returns an unreadable body.
            OversizedResponseError: If the response is too large.
        """
        data: dict[str, Any] = {"grant_type": grant_type, "client_id": self.client_id, **params}
        if self._client_secret:
            data["client_secret"] = self._client_secret
        if grant_type == "authorization_code" and self.redirect_uri:
            data.setdefault("redirect_uri", self.redirect_uri)

        with tracer.start_as_current_span("keycloak.grant") as span:
            span.set_attribute("oauth.grant_type", grant_type)
            try:
                response = fetch(self.client, "POST", token_url, data=data, headers={"Accept": "application/json"})
                body = response.parsed()
                self.response_checker(body)

                if not isinstance(body, Mapping):
                    raise IdentityProviderError(
                        f"invalid_token_response: unexpected {response.content_type or 'untyped'} body "
                        f"(HTTP {response.status_code})",
                        code="invalid_token_response",
                        raw=body,
                    )
                try:
                    token = AccessToken.model_validate(body)
                except ValidationError as e:
                    raise IdentityProviderError(
                        f"invalid_token_response: {e}", code="invalid_token_response", raw=body
                    ) from e
            except KeycloakConnectError as e:
                logger.warning(f"Grant '{grant_type}' failed: {e}")
                span.record_exception(e)
                span.set_status(Status(StatusCode.ERROR, str(e)))
                raise

            logger.info(f"Grant '{grant_type}' succeeded")
            span.set_status(Status(StatusCode.OK))
            return token

    def get_authenticated(self, url: str, token: AccessToken) -> ProviderResponse:
        """GET `url` with the bearer credential."""
        return fetch(
            self.client,
            "GET",
            url,
            headers={
                "Authorization": f"Bearer {token.access_token}",
                "Accept": "application/json, application/jwt",
            },
        )
