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
Resource owner identity built from verified Keycloak claims.
"""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def _roles(node: Any) -> list[str]:
    if not isinstance(node, Mapping):
        return []
    roles = node.get("roles")
    if isinstance(roles, list):
        return [r for r in roles if isinstance(r, str)]
    return []


class KeycloakResourceOwner(BaseModel):
    """
    Read-only view over the claims of an authenticated Keycloak user.

    Claims are not checked for completeness: providers differ in what they issue,
    so a missing claim reads as None (or an empty list for roles).
    """

    model_config = ConfigDict(frozen=True)

    claims: dict[str, Any] = Field(default_factory=dict)

    @property
    def id(self) -> str | None:
        return self.claims.get("sub")

    @property
    def name(self) -> str | None:
        return self.claims.get("name")

    @property
    def email(self) -> str | None:
        return self.claims.get("email")

    @property
    def email_verified(self) -> bool | None:
        return self.claims.get("email_verified")

    @property
    def preferred_username(self) -> str | None:
        return self.claims.get("preferred_username")

    @property
    def given_name(self) -> str | None:
        return self.claims.get("given_name")

    @property
    def family_name(self) -> str | None:
        return self.claims.get("family_name")

    @property
    def realm_roles(self) -> list[str]:
        """Roles from `realm_access.roles`."""
        return _roles(self.claims.get("realm_access"))

    def client_roles(self, client_id: str) -> list[str]:
        """Roles granted on one client, from `resource_access.<client_id>.roles`."""
        resource_access = self.claims.get("resource_access")
        if not isinstance(resource_access, Mapping):
            return []
        return _roles(resource_access.get(client_id))

    def get(self, claim: str, default: Any = None) -> Any:
        return self.claims.get(claim, default)

    def to_dict(self) -> dict[str, Any]:
        return dict(self.claims)

    def __repr__(self) -> str:
        # PII fields MUST be redacted in __repr__
        return f"KeycloakResourceOwner(id='<REDACTED>', claims={sorted(self.claims)!r})"

    def __str__(self) -> str:
        return self.__repr__()


def build_resource_owner(claims: Mapping[str, Any]) -> KeycloakResourceOwner:
    """
    Wraps verified claims into a resource owner.

    Args:
        claims: The verified claims.

    Returns:
        KeycloakResourceOwner: The immutable identity view.
    """
    return KeycloakResourceOwner(claims=dict(claims))
