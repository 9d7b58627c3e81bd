"""Caller authentication dependencies (composition root)."""

from __future__ import annotations

import hmac
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import get_settings
from app.domain.exceptions import AuthenticationException
from app.infrastructure.security.auth import Authenticator, CallerIdentity

_http_bearer = HTTPBearer(auto_error=False)


def get_authenticator(request: Request) -> Authenticator:
    """Process-wide authenticator (set at startup; built on demand otherwise)."""
    authenticator = getattr(request.app.state, "authenticator", None)
    if authenticator is None:
        authenticator = Authenticator(get_settings())
        request.app.state.authenticator = authenticator
    return authenticator


async def get_current_caller(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_http_bearer)],
    authenticator: Annotated[Authenticator, Depends(get_authenticator)],
) -> CallerIdentity:
    """Return the caller for the bearer token; 401 if missing or invalid."""
    token = credentials.credentials if credentials else None
    try:
        return await authenticator.authenticate(token)
    except AuthenticationException as e:
        raise HTTPException(
            status_code=401,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


async def get_organization_id(
    caller: Annotated[CallerIdentity, Depends(get_current_caller)],
) -> str:
    """Organization of the authenticated caller (tenancy boundary)."""
    return caller.organization_id


def _events_token_matches(candidate: str | None) -> bool:
    expected = get_settings().events_token.get_secret_value()
    if not expected or not candidate:
        return False
    return hmac.compare_digest(candidate.encode(), expected.encode())


async def get_event_caller(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_http_bearer)],
    authenticator: Annotated[Authenticator, Depends(get_authenticator)],
    x_events_token: Annotated[str | None, Header()] = None,
) -> CallerIdentity | None:
    """Authenticate POST /flows/events.

    Returns None when the shared events token was presented (X-Events-Token
    or as the bearer token); the organization then comes from the payload.
    Otherwise the bearer token must identify a caller.
    """
    bearer = credentials.credentials if credentials else None
    if _events_token_matches(x_events_token) or _events_token_matches(bearer):
        return None
    try:
        return await authenticator.authenticate(bearer)
    except AuthenticationException as e:
        raise HTTPException(
            status_code=401,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


def require_webhook_secret(expected: str | None, provided: str | None) -> None:
    """Raise 401 unless the X-VEX-SECRET header matches the configured secret."""
    if not expected:
        raise HTTPException(status_code=503, detail="webhook_not_configured")
    if not provided or not hmac.compare_digest(provided.encode(), expected.encode()):
        raise HTTPException(status_code=401, detail="unauthorized")
