# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/keycloak_connect

import os
import time
from collections.abc import Callable, Generator
from typing import Any
from unittest.mock import patch

import pytest
from authlib.jose import JsonWebKey, jwt


@pytest.fixture(autouse=True)
def clean_environment() -> Generator[None, None, None]:
    """
    Removes KEYCLOAK_CONNECT_* variables so settings come only from the test itself.
    """
    with patch.dict(os.environ):
        for name in list(os.environ):
            if name.upper().startswith("KEYCLOAK_CONNECT_"):
                del os.environ[name]
        yield


@pytest.fixture(scope="session")
def key_pair() -> Any:
    # Generate a realm key pair for testing
    return JsonWebKey.generate_key("RSA", 2048, is_private=True)


@pytest.fixture(scope="session")
def public_key_pem(key_pair: Any) -> str:
    return key_pair.as_pem(is_private=False).decode("ascii")  # type: ignore[no-any-return]


@pytest.fixture(scope="session")
def public_key_string(public_key_pem: str) -> str:
    """The bare base64 key, as shown in the Keycloak realm "Keys" tab."""
    lines = public_key_pem.strip().splitlines()
    return "".join(lines[1:-1])


@pytest.fixture
def make_token(key_pair: Any) -> Callable[..., str]:
    def _make_token(claims: dict[str, Any] | None = None, alg: str = "RS256", key: Any = None) -> str:
        now = int(time.time())
        payload = {"sub": "user-123", "iat": now, "exp": now + 300}
        if claims:
            payload.update(claims)
        token = jwt.encode({"alg": alg, "typ": "JWT"}, payload, key or key_pair)
        return token.decode("utf-8")  # type: ignore[no-any-return]

    return _make_token
