"""JWT verification for locally verified callers.

Tokens are issued by the core service with the shared secret; this
service only verifies them. Uses app.core.config for secret and algorithm.
"""

from typing import Any

from jose import JWTError, jwt

from app.core.config import get_settings


def verify_token(token: str) -> dict[str, Any]:
    """Verify and decode a JWT. Returns the payload.

    Signature and expiry are checked by python-jose; a token without an
    exp claim is rejected.

    Raises:
        ValueError: If token is invalid, expired, or has no exp claim.
    """
    settings = get_settings()
    secret = settings.secret_key.get_secret_value()
    if not secret:
        raise ValueError("JWT secret is not configured")
    try:
        return jwt.decode(
            token,
            secret,
            algorithms=[settings.algorithm],
            options={"require_exp": True},
        )
    except JWTError as e:
        raise ValueError(f"Invalid token: {e!s}") from e
