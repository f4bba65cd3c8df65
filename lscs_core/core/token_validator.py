"""
Bearer token validation strategies.

Two independent strategies resolve a bearer token to an email:
locally signed API keys (HS256, our secret) and Google ID tokens (RS256,
Google's published keys). An endpoint accepts exactly one of them.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import httpx
import structlog
from fastapi import HTTPException, status
from joserfc import jwt as jose_jwt
from joserfc.errors import JoseError
from joserfc.jwk import KeySet, OctKey

logger = structlog.get_logger()

GOOGLE_CERTS_URL = "https://www.googleapis.com/oauth2/v3/certs"
GOOGLE_ISSUERS = ["accounts.google.com", "https://accounts.google.com"]


@dataclass(frozen=True)
class TokenValidationResult:
    email: str
    claims: dict
    issuer: str


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


class TokenValidationStrategy(ABC):
    @abstractmethod
    async def validate(self, token: str) -> TokenValidationResult:
        raise NotImplementedError


class LocalJWTValidationStrategy(TokenValidationStrategy):
    """Validates API keys issued by this service"""

    issuer = "lscs-core"

    def __init__(self, secret_key: str, algorithm: str = "HS256") -> None:
        self._jwt_key = OctKey.import_key(secret_key)
        self._algorithm = algorithm
        # exp is validated when present; admin keys carry none
        self._claims_registry = jose_jwt.JWTClaimsRegistry(email={"essential": True})

    def verify(self, token: str) -> TokenValidationResult:
        try:
            token_obj = jose_jwt.decode(token, self._jwt_key, algorithms=[self._algorithm])
            self._claims_registry.validate(token_obj.claims)
        except (JoseError, ValueError) as exc:
            logger.warning("API key verification failed", error=str(exc))
            raise _unauthorized("Invalid or expired API key")

        payload = token_obj.claims
        email = payload.get("email")
        if not isinstance(email, str) or not email:
            logger.warning("API key missing email claim")
            raise _unauthorized("Invalid API key: missing email")

        logger.debug("API key verified", email=email)
        return TokenValidationResult(email=email, claims=dict(payload), issuer=self.issuer)

    async def validate(self, token: str) -> TokenValidationResult:
        return self.verify(token)


class GoogleIDTokenValidationStrategy(TokenValidationStrategy):
    """
    Validates Google-issued ID tokens against the configured audience.

    Google's signing keys are fetched from its JWKS endpoint and kept for
    `cache_ttl` seconds.
    """

    def __init__(
        self,
        audience: str,
        certs_url: str = GOOGLE_CERTS_URL,
        cache_ttl: float = 3600.0,
        timeout: float = 10.0,
    ) -> None:
        self._audience = audience
        self._certs_url = certs_url
        self._cache_ttl = cache_ttl
        self._timeout = timeout
        self._key_set: Optional[KeySet] = None
        self._fetched_at = 0.0

    async def _get_key_set(self) -> KeySet:
        if self._key_set is not None and time.monotonic() - self._fetched_at < self._cache_ttl:
            return self._key_set

        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.get(self._certs_url)
            response.raise_for_status()
            key_set = KeySet.import_key_set(response.json())

        self._key_set = key_set
        self._fetched_at = time.monotonic()
        logger.debug("Google signing keys refreshed", keys=len(key_set.keys))
        return key_set

    async def validate(self, token: str) -> TokenValidationResult:
        if not self._audience:
            logger.error("GOOGLE_CLIENT_ID not configured")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Internal server error",
            )

        try:
            key_set = await self._get_key_set()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Failed to fetch Google signing keys", error=str(exc))
            raise _unauthorized("Invalid ID token")

        registry = jose_jwt.JWTClaimsRegistry(
            iss={"essential": True, "values": GOOGLE_ISSUERS},
            aud={"essential": True, "value": self._audience},
            email={"essential": True},
        )
        try:
            token_obj = jose_jwt.decode(token, key_set, algorithms=["RS256"])
            registry.validate(token_obj.claims)
        except (JoseError, ValueError) as exc:
            logger.warning("Failed to validate Google ID token", error=str(exc))
            raise _unauthorized("Invalid ID token")

        payload = token_obj.claims
        email = payload.get("email")
        if not isinstance(email, str) or not email:
            raise _unauthorized("Email not found in token")
        if payload.get("email_verified") is False:
            logger.warning("Google ID token email not verified", email=email)
            raise _unauthorized("Email not verified")

        logger.debug("Google ID token verified", email=email)
        return TokenValidationResult(email=email, claims=dict(payload), issuer=str(payload.get("iss")))
