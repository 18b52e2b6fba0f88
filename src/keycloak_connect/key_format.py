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
Public key formatting for the realm keys published by Keycloak.
"""

PEM_HEADER = "-----BEGIN PUBLIC KEY-----"
PEM_FOOTER = "-----END PUBLIC KEY-----"
PEM_LINE_WIDTH = 64


def build_public_key_with_format(raw_key: str) -> str:
    """
    Wraps a bare base64 public key (as shown in the Keycloak realm "Keys" tab) in PEM armor.

    The key body is split into 64-character lines. No validation of the key bytes is done here;
    unusable material is reported later by the signature verification step.

    Args:
        raw_key: The base64 key string without header/footer.

    Returns:
        str: The PEM formatted public key.
    """
    body = "".join(
        f"{raw_key[i : i + PEM_LINE_WIDTH]}\n" for i in range(0, len(raw_key), PEM_LINE_WIDTH)
    )
    return f"{PEM_HEADER}\n{body}{PEM_FOOTER}"
