"""Security module - Basic authentication and credential stores."""

from authgateway_core.security.auth import (
    AuthResult,
    AuthStatus,
    BasicAuthenticator,
    Credentials,
    encode_basic,
)
from authgateway_core.security.credentials import (
    CredentialStore,
    StaticCredentialStore,
)

__all__ = [
    "AuthResult",
    "AuthStatus",
    "BasicAuthenticator",
    "CredentialStore",
    "Credentials",
    "StaticCredentialStore",
    "encode_basic",
]
