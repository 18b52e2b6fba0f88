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
Endpoint resolution for Keycloak realm URLs.
"""

from collections.abc import Mapping
from typing import Any
from urllib.parse import urlencode

OIDC_PROTOCOL_PATH = "/protocol/openid-connect"


def append_query(url: str, params: Mapping[str, Any]) -> str:
    """Appends url-encoded params to `url`, keeping any query it already carries."""
    query = urlencode(params, doseq=True)
    if not query:
        return url
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{query}"


class KeycloakEndpoints:
    """
    Derives the OpenID Connect endpoints of a realm.

    URLs are built verbatim from the configured values. Malformed base URLs are not rejected here,
    they surface when the HTTP layer tries to use them.

    Attributes:
        auth_server_url (str): Keycloak base URL, e.g. http://localhost:8080/auth.
        realm (str): The realm name.
    """

    def __init__(self, auth_server_url: str, realm: str) -> None:
        self.auth_server_url = auth_server_url
        self.realm = realm

    def realm_url(self, base_url: str) -> str:
        return f"{base_url}/realms/{self.realm}"

    @property
    def identity_provider_base_url(self) -> str:
        return self.realm_url(self.auth_server_url)

    def _protocol_url(self, endpoint: str, base_url: str | None = None) -> str:
        realm_url = self.identity_provider_base_url if base_url is None else self.realm_url(base_url)
        return f"{realm_url}{OIDC_PROTOCOL_PATH}/{endpoint}"

    @property
    def authorization_url(self) -> str:
        return self._protocol_url("auth")

    @property
    def token_url(self) -> str:
        return self._protocol_url("token")

    @property
    def userinfo_url(self) -> str:
        return self._protocol_url("userinfo")

    @property
    def logout_url(self) -> str:
        return self._protocol_url("logout")

    def authorization_url_for(self, base_url: str) -> str:
        """
        Authorization endpoint on an alternate base URL.

        Used when the browser reaches Keycloak through a different host than the backend
        (e.g. `localhost` versus the docker network service name).

        Args:
            base_url: The override base URL, in the same shape as `auth_server_url`.

        Returns:
            str: The authorization endpoint for this realm under `base_url`.
        """
        return self._protocol_url("auth", base_url)

    def build_logout_url(self, params: Mapping[str, Any] | None = None) -> str:
        """
        Logout endpoint with caller-supplied query parameters
        (e.g. `post_logout_redirect_uri`, `id_token_hint`).
        """
        return append_query(self.logout_url, params or {})
