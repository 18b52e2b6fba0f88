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
ResponseVerifier component for resolving resource owner responses into claims.
"""

from collections.abc import Mapping
from typing import Any, cast

from authlib.jose import JsonWebToken
from authlib.jose.errors import ExpiredTokenError, JoseError
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from keycloak_connect.exceptions import EncryptionConfigurationError, SignatureVerificationError
from keycloak_connect.models import EncodedResponse, RawResourceOwnerResponse, StructuredResponse, classify_response
from keycloak_connect.utils.logger import logger

tracer = trace.get_tracer(__name__)

# Clock skew tolerated between Keycloak and this host when checking iat/nbf/exp.
DEFAULT_LEEWAY = 5


class ResponseVerifier:
    """
    Turns a raw resource owner response into a claims dictionary.

    Structured (already decoded) responses pass through untouched. Encoded responses are
    verified against the configured public key, accepting only the configured algorithm.

    Attributes:
        algorithm (str | None): The single accepted JWS algorithm.
        key (str | None): PEM public key material.
        leeway (int): Clock skew tolerance in seconds for time based claims.
    """

    def __init__(self, algorithm: str | None, key: str | None, leeway: int = DEFAULT_LEEWAY) -> None:
        self.algorithm = algorithm
        self.key = key
        self.leeway = leeway

    def uses_encryption(self) -> bool:
        """Checks if both an algorithm and key material are configured."""
        return bool(self.algorithm) and bool(self.key)

    def resolve(self, response: str | bytes | Mapping[str, Any] | RawResourceOwnerResponse) -> dict[str, Any]:
        """
        Resolves a resource owner response into verified claims.

        Emits an OpenTelemetry span `keycloak.resolve_response`.

        Args:
            response: A compact token string, a claims mapping, or an already tagged response.

        Returns:
            dict[str, Any]: The claims.

        Raises:
            EncryptionConfigurationError: If an encoded response arrives and no algorithm/key is configured.
            SignatureVerificationError: If the encoded response fails verification.
        """
        if not isinstance(response, (EncodedResponse, StructuredResponse)):
            response = classify_response(response)

        with tracer.start_as_current_span("keycloak.resolve_response") as span:
            span.set_attribute("response.kind", response.kind)
            try:
                match response:
                    case StructuredResponse(claims=claims):
                        return claims
                    case EncodedResponse(token=token):
                        return self.decode(token)
            except (EncryptionConfigurationError, SignatureVerificationError) as e:
                span.record_exception(e)
                span.set_status(Status(StatusCode.ERROR, str(e)))
                raise

        raise TypeError(f"Unsupported resource owner response: {response!r}")  # pragma: no cover

    def decode(self, token: str) -> dict[str, Any]:
        """
        Verifies the token signature and time based claims.

        Args:
            token: The compact serialized token.

        Returns:
            dict[str, Any]: The verified claims.

        Raises:
            EncryptionConfigurationError: If no algorithm/key is configured. No decoding is attempted.
            SignatureVerificationError: On a bad signature, a foreign algorithm, a malformed token,
                unusable key material, or time based claims outside the leeway.
        """
        if not self.uses_encryption():
            logger.error("Encoded response received but no encryption algorithm/key is configured")
            raise EncryptionConfigurationError.undetermined_encryption()

        algorithm = cast("str", self.algorithm)
        jwt = JsonWebToken([algorithm])

        try:
            # Cast to Any to bypass MyPy overload confusion in authlib stubs
            claims = cast("Any", jwt).decode(token.strip(), self.key)
            claims.validate(leeway=self.leeway)
        except ExpiredTokenError as e:
            logger.warning("Verification failed: Token expired")
            raise SignatureVerificationError(f"Token has expired: {e}") from e
        except JoseError as e:
            logger.warning(f"Verification failed: {e.error}")
            raise SignatureVerificationError(f"Token verification failed: {e}") from e
        except (ValueError, TypeError) as e:
            # Raised by authlib for undecodable segments or unusable key material
            logger.warning("Verification failed: Malformed token or key")
            raise SignatureVerificationError(f"Token verification failed: {e}") from e

        logger.debug(f"Encoded response verified with {algorithm}")
        return dict(claims)
