"""
Security utilities for SubTrack

This module provides the single-secret session authenticator, the cookie
helpers that carry its credential, and error-message sanitization for
responses that cross the gateway boundary.
"""

import base64
import hmac
import logging
import re
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request, Response

from subtrack.core.config import Settings, get_settings
from subtrack.core.errors import AuthenticationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credential:
    """Cookie-borne session credential."""

    value: str
    max_age: int

    @property
    def is_revocation(self) -> bool:
        return self.max_age == 0


def encode_secret(secret: str) -> str:
    """Deterministic token for a secret: base64 of its UTF-8 bytes."""
    return base64.b64encode(secret.encode("utf-8")).decode("ascii")


class SessionAuthenticator:
    """
    Issues and validates the credential derived from one shared secret.

    The token is the same for every login and only changes when the
    configured secret changes, which invalidates every outstanding cookie.
    """

    def __init__(self, secret: str, max_age: int = 60 * 60 * 24 * 30):
        self._secret = secret or ""
        self.max_age = max_age

    @property
    def expected_token(self) -> str:
        return encode_secret(self._secret)

    def issue_credential(self, candidate: Optional[str]) -> Optional[Credential]:
        """
        Mint the credential if ``candidate`` equals the configured secret.

        Returns:
            The credential, or None when the candidate is rejected
        """
        if not self._secret or candidate is None:
            return None
        if not hmac.compare_digest(candidate.encode("utf-8"), self._secret.encode("utf-8")):
            return None
        return Credential(value=self.expected_token, max_age=self.max_age)

    def validate(self, token: Optional[str]) -> bool:
        if not self._secret or not token:
            return False
        return hmac.compare_digest(token.encode("utf-8"), self.expected_token.encode("utf-8"))

    def revoke(self) -> Credential:
        """Credential that clears the client-held cookie immediately."""
        return Credential(value="", max_age=0)


def apply_credential_cookie(response: Response, credential: Credential, cookie_name: str) -> None:
    """Write (or clear, for a revocation) the session cookie on ``response``."""
    response.set_cookie(
        key=cookie_name,
        value=credential.value,
        max_age=credential.max_age,
        path="/",
        secure=True,
        httponly=True,
        samesite="strict",
    )


def get_authenticator(settings: Settings = Depends(get_settings)) -> SessionAuthenticator:
    """Dependency building the authenticator from the configured secret."""
    return SessionAuthenticator(settings.password, max_age=settings.cookie_max_age)


def is_authenticated(request: Request, authenticator: SessionAuthenticator, cookie_name: str) -> bool:
    return authenticator.validate(request.cookies.get(cookie_name))


def require_credential(
    request: Request,
    authenticator: SessionAuthenticator = Depends(get_authenticator),
    settings: Settings = Depends(get_settings),
) -> None:
    """
    Dependency guarding API routes.

    Raises:
        AuthenticationError: If the request carries no valid credential
    """
    if not is_authenticated(request, authenticator, settings.cookie_name):
        logger.info("Unauthorized API request to %s", request.url.path)
        raise AuthenticationError()


def sanitize_error_message(error_msg: str) -> str:
    """
    Sanitize error messages to prevent sensitive data leakage.

    Args:
        error_msg: The raw error message to sanitize

    Returns:
        A sanitized error message safe for API responses
    """
    if not error_msg:
        return "Unknown error occurred"

    error_msg = str(error_msg)

    sensitive_patterns = [
        # Long base64-ish runs (tokens, encoded secrets)
        (r'\b[A-Za-z0-9+/]{20,}={0,2}', '****'),
        (r'token[\'"\s]*[:=][\'"\s]*[^\s\'"]+', 'token=****'),
        (r'password[\'"\s]*[:=][\'"\s]*[^\s\'"]+', 'password=****'),
        (r'cookie[\'"\s]*[:=][\'"\s]*[^\s\'"]+', 'cookie=****'),
    ]

    sanitized = error_msg
    for pattern, replacement in sensitive_patterns:
        sanitized = re.sub(pattern, replacement, sanitized, flags=re.IGNORECASE)

    # Truncate very long error messages
    if len(sanitized) > 200:
        sanitized = sanitized[:200] + "..."

    return sanitized
