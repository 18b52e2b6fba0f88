# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/keycloak_connect

import pytest

from keycloak_connect.key_format import PEM_FOOTER, PEM_HEADER, build_public_key_with_format


@pytest.mark.parametrize("length", [1, 63, 64, 65, 128, 392])
def test_pem_shape(length: int) -> None:
    raw = ("MIIBIjANBgkqhkiG9w0BAQEFAAOCAQ8A" * 20)[:length]

    pem = build_public_key_with_format(raw)

    assert pem.startswith(f"{PEM_HEADER}\n")
    assert pem.endswith(PEM_FOOTER)
    body = pem.splitlines()[1:-1]
    assert "".join(body) == raw
    assert all(len(line) == 64 for line in body[:-1])
    assert 0 < len(body[-1]) <= 64


def test_exact_output() -> None:
    assert build_public_key_with_format("abc") == "-----BEGIN PUBLIC KEY-----\nabc\n-----END PUBLIC KEY-----"

    raw = "A" * 64 + "B" * 64
    assert build_public_key_with_format(raw) == (
        "-----BEGIN PUBLIC KEY-----\n" + "A" * 64 + "\n" + "B" * 64 + "\n-----END PUBLIC KEY-----"
    )


def test_no_validation_of_key_material() -> None:
    """Garbage is wrapped as-is; verification reports it later."""
    pem = build_public_key_with_format("not base64 at all!")
    assert "not base64 at all!" in pem


def test_matches_standard_pem(public_key_pem: str, public_key_string: str) -> None:
    """Re-armoring the bare realm key reproduces the standard PEM body."""
    assert build_public_key_with_format(public_key_string).splitlines() == public_key_pem.strip().splitlines()
