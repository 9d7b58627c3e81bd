"""Caller authentication: bearer token -> CallerIdentity.

Two modes (settings.auth_mode):
- "jwt": verify the token locally (python-jose, shared secret).
- "introspect": ask the core service (GET core_url + core_introspect_path
  with the same bearer token); positive answers are cached for
  introspect_cache_ttl_seconds.

allow_anon (development only) turns a missing or rejected token into an
anonymous caller of anon_organization_id.
"""

from __future__ import annotations

import hashlib
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from app.core.config import Settings
from app.domain.exceptions import AuthenticationException
from app.infrastructure.security.jwt import verify_token
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

_CACHE_MAX_ENTRIES = 1024
_INTROSPECT_TIMEOUT_SECONDS = 5.0


@dataclass(frozen=True)
class CallerIdentity:
    """Authenticated caller. organization_id is the tenancy boundary for every request."""

    user_id: str | None
    email: str | None
    organization_id: str
    role: str = "user"
    anonymous: bool = False


def identity_from_claims(claims: Mapping[str, Any]) -> CallerIdentity:
    """Normalize token claims or an introspection body to a CallerIdentity.

    Raises:
        AuthenticationException: If no organization can be found in the claims.
    """
    user = claims.get("user") if isinstance(claims.get("user"), Mapping) else {}
    org = (
        claims.get("org_id")
        or claims.get("organization_id")
        or claims.get("organizacion_id")
        or user.get("org_id")
        or user.get("organization_id")
    )
    if org is None or str(org) == "":
        raise AuthenticationException("Token carries no organization")
    user_id = claims.get("id") or claims.get("sub") or claims.get("user_id") or user.get("id")
    return CallerIdentity(
        user_id=str(user_id) if user_id is not None else None,
        email=claims.get("email") or user.get("email"),
        organization_id=str(org),
        role=claims.get("role") or user.get("role") or "user",
    )


class Authenticator:
    """Resolves bearer tokens to callers. One instance per process (holds the cache)."""

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._settings = settings
        self._http = http_client
        self._clock = clock
        self._cache: dict[str, tuple[float, CallerIdentity]] = {}

    def anonymous(self) -> CallerIdentity:
        return CallerIdentity(
            user_id=None,
            email="anon@dev",
            organization_id=self._settings.anon_organization_id,
            anonymous=True,
        )

    async def authenticate(self, token: str | None) -> CallerIdentity:
        """Return the caller for token.

        Raises:
            AuthenticationException: Missing or invalid token (unless allow_anon).
        """
        if not token:
            if self._settings.allow_anon:
                return self.anonymous()
            raise AuthenticationException("Missing bearer token")
        try:
            if self._settings.auth_mode == "jwt":
                return self._verify_jwt(token)
            return await self._introspect(token)
        except AuthenticationException:
            if self._settings.allow_anon:
                return self.anonymous()
            raise

    def _verify_jwt(self, token: str) -> CallerIdentity:
        try:
            claims = verify_token(token)
        except ValueError as e:
            logger.debug("JWT rejected: %s", e)
            raise AuthenticationException("Invalid or expired token") from e
        return identity_from_claims(claims)

    def _cache_key(self, token: str) -> str:
        return hashlib.sha256(token.encode()).hexdigest()

    def _cached(self, key: str) -> CallerIdentity | None:
        hit = self._cache.get(key)
        if hit is None:
            return None
        expires_at, identity = hit
        if self._clock() >= expires_at:
            del self._cache[key]
            return None
        return identity

    def _remember(self, key: str, identity: CallerIdentity) -> None:
        ttl = self._settings.introspect_cache_ttl_seconds
        if ttl <= 0:
            return
        now = self._clock()
        if len(self._cache) >= _CACHE_MAX_ENTRIES:
            self._cache = {k: v for k, v in self._cache.items() if v[0] > now}
            if len(self._cache) >= _CACHE_MAX_ENTRIES:
                self._cache.clear()
        self._cache[key] = (now + ttl, identity)

    async def _introspect(self, token: str) -> CallerIdentity:
        key = self._cache_key(token)
        cached = self._cached(key)
        if cached is not None:
            return cached
        if not self._settings.core_url:
            raise AuthenticationException("core_auth_failed")

        url = self._settings.core_url.rstrip("/") + self._settings.core_introspect_path
        headers = {"Authorization": f"Bearer {token}"}
        try:
            if self._http is not None:
                response = await self._http.get(
                    url, headers=headers, timeout=_INTROSPECT_TIMEOUT_SECONDS
                )
            else:
                async with httpx.AsyncClient(timeout=_INTROSPECT_TIMEOUT_SECONDS) as client:
                    response = await client.get(url, headers=headers)
            data = response.json() if response.content else {}
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Token introspection failed: %s", e.__class__.__name__)
            raise AuthenticationException("core_auth_failed") from e

        if not isinstance(data, dict) or not (
            data.get("ok") is True or data.get("active") is True
        ):
            reason = (
                (data.get("error") or data.get("message")) if isinstance(data, dict) else None
            )
            raise AuthenticationException(str(reason or "invalid_token"))

        body = data.get("user") if isinstance(data.get("user"), dict) else data
        identity = identity_from_claims(body)
        self._remember(key, identity)
        return identity
