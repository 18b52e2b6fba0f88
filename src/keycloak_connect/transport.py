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
Bounded HTTP fetching for Identity Provider responses.
"""

import json
from typing import Any

import httpx
from loguru import logger
from pydantic import BaseModel, ConfigDict

from keycloak_connect.exceptions import OversizedResponseError, ProviderCommunicationError

MAX_RESPONSE_BYTES = 1_000_000


class ProviderResponse(BaseModel):
    """
    A fully read IdP response.

    Attributes:
        status_code (int): The HTTP status code.
        content_type (str): The media type, without parameters (e.g. "application/json").
        content (bytes): The body, at most `MAX_RESPONSE_BYTES` long.
    """

    model_config = ConfigDict(frozen=True)

    status_code: int
    content_type: str
    content: bytes

    def parsed(self) -> Any:
        """
        Decodes the body by media type.

        Returns:
            Any: A mapping for JSON bodies, the stripped text for `application/jwt`
            (and any other non-JSON body).

        Raises:
            ProviderCommunicationError: If a JSON body cannot be decoded.
        """
        text = self.content.decode("utf-8", errors="replace")
        is_json = self.content_type == "application/json" or self.content_type.endswith("+json")
        # Untyped bodies are sniffed
        if is_json or (not self.content_type and text.lstrip().startswith("{")):
            try:
                return json.loads(text)
            except json.JSONDecodeError as e:
                raise ProviderCommunicationError(f"Invalid JSON response from IdP: {e}") from e
        return text.strip()


def fetch(client: httpx.Client, method: str, url: str, **kwargs: Any) -> ProviderResponse:
    """
    Performs a request and reads the body with a hard size limit.

    4xx/5xx responses are returned, not raised: OAuth2 endpoints report errors in the body
    (e.g. `invalid_grant` with status 400), which callers must inspect.

    Args:
        client: The HTTP client to use.
        method: HTTP method.
        url: Target URL.
        **kwargs: Passed to `httpx.Client.stream` (data, headers, ...).

    Returns:
        ProviderResponse: The status, media type and body.

    Raises:
        OversizedResponseError: If the body exceeds `MAX_RESPONSE_BYTES`.
        ProviderCommunicationError: On transport failures.
    """
    try:
        with client.stream(method, url, **kwargs) as response:
            content_length = response.headers.get("Content-Length")
            if content_length:
                try:
                    if int(content_length) > MAX_RESPONSE_BYTES:
                        raise OversizedResponseError("Response too large")
                except ValueError:
                    pass

            content = bytearray()
            for chunk in response.iter_bytes():
                content.extend(chunk)
                if len(content) > MAX_RESPONSE_BYTES:
                    raise OversizedResponseError("Response too large")

            content_type = response.headers.get("Content-Type", "").split(";")[0].strip().lower()
            return ProviderResponse(
                status_code=response.status_code, content_type=content_type, content=bytes(content)
            )
    except httpx.HTTPError as e:
        logger.error(f"Request to IdP failed: {method} {url}: {e}")
        raise ProviderCommunicationError(f"Request to {url} failed: {e}") from e
