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
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from keycloak_connect.config import KeycloakConnectConfig


def base_settings(**overrides: object) -> dict[str, object]:
    settings: dict[str, object] = {
        "auth_server_url": "https://idp.example.com",
        "realm": "demo",
        "client_id": "my-app",
    }
    settings.update(overrides)
    return settings


def test_config_loading_from_env() -> None:
    """Test loading configuration from environment variables."""
    with patch.dict(
        os.environ,
        {
            "KEYCLOAK_CONNECT_AUTH_SERVER_URL": "http://localhost:8080/auth",
            "KEYCLOAK_CONNECT_REALM": "master",
            "KEYCLOAK_CONNECT_CLIENT_ID": "cid",
            "KEYCLOAK_CONNECT_CLIENT_SECRET": "s3cret",
            "keycloak_connect_http_timeout": "2.5",
        },
    ):
        config = KeycloakConnectConfig()

    assert config.auth_server_url == "http://localhost:8080/auth"
    assert config.realm == "master"
    assert config.client_id == "cid"
    assert config.client_secret is not None
    assert config.client_secret.get_secret_value() == "s3cret"
    assert config.http_timeout == 2.5


def test_defaults() -> None:
    config = KeycloakConnectConfig(**base_settings())

    assert config.client_secret is None
    assert config.redirect_uri is None
    assert config.encryption_algorithm is None
    assert config.encryption_key is None
    assert config.http_timeout == 10.0
    assert config.scope_separator == " "


def test_secret_not_leaked_in_repr() -> None:
    config = KeycloakConnectConfig(**base_settings(client_secret="s3cret"))
    assert "s3cret" not in repr(config)


def test_realm_required_and_non_empty() -> None:
    with pytest.raises(ValidationError, match="realm"):
        KeycloakConnectConfig(auth_server_url="https://idp.example.com", client_id="cid")

    with pytest.raises(ValidationError, match="non-empty"):
        KeycloakConnectConfig(**base_settings(realm="   "))


def test_encryption_pair(public_key_pem: str) -> None:
    config = KeycloakConnectConfig(**base_settings(encryption_algorithm="RS256", encryption_key=public_key_pem))

    assert config.encryption_algorithm == "RS256"
    assert config.encryption_key == public_key_pem


@pytest.mark.parametrize(
    "overrides",
    [
        {"encryption_algorithm": "RS256"},
        {"encryption_key": "-----BEGIN PUBLIC KEY-----\nabc\n-----END PUBLIC KEY-----"},
        {"encryption_algorithm": "RS256", "encryption_key": ""},
    ],
)
def test_partial_encryption_rejected(overrides: dict[str, str]) -> None:
    """Algorithm and key must come together."""
    with pytest.raises(ValidationError, match="both be set or both be omitted"):
        KeycloakConnectConfig(**base_settings(**overrides))


def test_key_string_is_formatted(public_key_string: str, public_key_pem: str) -> None:
    config = KeycloakConnectConfig(
        **base_settings(encryption_algorithm="RS256", encryption_key_string=public_key_string)
    )

    assert config.encryption_key is not None
    assert config.encryption_key.startswith("-----BEGIN PUBLIC KEY-----\n")
    assert config.encryption_key.splitlines() == public_key_pem.strip().splitlines()


def test_explicit_key_wins_over_key_string(public_key_pem: str) -> None:
    config = KeycloakConnectConfig(
        **base_settings(encryption_algorithm="RS256", encryption_key=public_key_pem, encryption_key_string="abc")
    )
    assert config.encryption_key == public_key_pem


def test_key_string_from_env(public_key_string: str) -> None:
    with patch.dict(
        os.environ,
        {
            "KEYCLOAK_CONNECT_ENCRYPTION_ALGORITHM": "RS256",
            "KEYCLOAK_CONNECT_ENCRYPTION_KEY_STRING": public_key_string,
        },
    ):
        config = KeycloakConnectConfig(**base_settings())

    assert config.encryption_key is not None
    assert public_key_string[:64] in config.encryption_key


def test_empty_env_values_mean_unset() -> None:
    with patch.dict(
        os.environ,
        {"KEYCLOAK_CONNECT_ENCRYPTION_ALGORITHM": "", "KEYCLOAK_CONNECT_ENCRYPTION_KEY": ""},
    ):
        config = KeycloakConnectConfig(**base_settings())

    assert config.encryption_algorithm is None
    assert config.encryption_key is None


@pytest.mark.parametrize("algorithm", ["none", "None", "RSA256", "rs256", "HS1"])
def test_unsupported_algorithm(algorithm: str) -> None:
    with pytest.raises(ValidationError, match="Unsupported encryption algorithm"):
        KeycloakConnectConfig(**base_settings(encryption_algorithm=algorithm, encryption_key="k"))


@pytest.mark.parametrize("algorithm", ["RS256", "RS512", "ES256", "PS384", "HS256", "EdDSA"])
def test_supported_algorithms(algorithm: str) -> None:
    config = KeycloakConnectConfig(**base_settings(encryption_algorithm=algorithm, encryption_key="k"))
    assert config.encryption_algorithm == algorithm


def test_config_is_frozen() -> None:
    config = KeycloakConnectConfig(**base_settings())

    with pytest.raises(ValidationError):
        config.realm = "other"  # type: ignore[misc]
