"""Authentication - HTTP Basic authentication.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import base64
import binascii
import hmac
import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from authgateway_core.security.credentials import CredentialStore

logger = logging.getLogger(__name__)

BASIC_PREFIX = "Basic "


class AuthStatus(Enum):
    """Authentication status."""

    SUCCESS = auto()
    MISSING = auto()
    MALFORMED = auto()
    INVALID = auto()


@dataclass
class AuthResult:
    """Result of authentication attempt.

    ``error`` is for logs only and is never sent to the client.
    """

    status: AuthStatus
    identity: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        """Check if authentication succeeded."""
        return self.status == AuthStatus.SUCCESS


@dataclass(frozen=True)
class Credentials:
    """User credentials parsed from one request."""

    username: str
    password: str

    def __repr__(self) -> str:
        return f"Credentials(username={self.username!r}, password='***')"


class BasicAuthenticator:
    """HTTP Basic Authentication.

    Validates username:password from the Authorization header against a
    CredentialStore.
    """

    def __init__(self, store: CredentialStore):
        self._store = store

    @property
    def store(self) -> CredentialStore:
        return self._store

    def extract_credentials(self, header_value: Optional[str]) -> Optional[Credentials]:
        """Parse a Basic Authorization header value.

        Returns None when the header is absent, uses another scheme, is
        not valid base64, or the decoded text has no ':' separator. The
        password is everything after the first ':' and may hold colons.
        """
        return self._parse(header_value)[0]

    def authenticate(self, creds: Credentials) -> bool:
        """Exact match of the password stored for ``creds.username``."""
        stored = self._store.lookup(creds.username)
        if stored is None:
            return False
        return hmac.compare_digest(stored.encode("utf-8"), creds.password.encode("utf-8"))

    def check(self, header_value: Optional[str]) -> AuthResult:
        """Extract and validate in one step, keeping the failure reason."""
        creds, status, error = self._parse(header_value)
        if creds is None:
            return AuthResult(status=status, error=error)

        if not self.authenticate(creds):
            return AuthResult(
                status=AuthStatus.INVALID,
                error=f"Invalid credentials for user {creds.username!r}",
            )

        return AuthResult(status=AuthStatus.SUCCESS, identity=creds.username)

    def _parse(self, header_value: Optional[str]):
        if header_value is None:
            return None, AuthStatus.MISSING, "No credentials provided"

        if not header_value.startswith(BASIC_PREFIX):
            return None, AuthStatus.MALFORMED, "Not a Basic authorization header"

        encoded = header_value[len(BASIC_PREFIX):]
        try:
            decoded = base64.b64decode(encoded, validate=True).decode("utf-8")
        except (binascii.Error, ValueError):
            return None, AuthStatus.MALFORMED, "Invalid base64 in Basic credentials"

        if ":" not in decoded:
            return None, AuthStatus.MALFORMED, "Missing ':' in Basic credentials"

        username, password = decoded.split(":", 1)
        return Credentials(username, password), AuthStatus.SUCCESS, None


def encode_basic(username: str, password: str) -> str:
    """Build an Authorization header value for the given credentials."""
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return f"{BASIC_PREFIX}{token}"


__all__ = [
    "AuthResult",
    "AuthStatus",
    "BasicAuthenticator",
    "Credentials",
    "encode_basic",
]
