"""Security: caller authentication (local JWT or core introspection)."""

from app.infrastructure.security.auth import (
    Authenticator,
    CallerIdentity,
    identity_from_claims,
)
from app.infrastructure.security.jwt import verify_token

__all__ = [
    "Authenticator",
    "CallerIdentity",
    "identity_from_claims",
    "verify_token",
]
