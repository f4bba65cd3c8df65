"""
API key issuance
Signed HS256 tokens carrying the member email; only their SHA-256 is stored
"""

import hashlib
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

import structlog
from joserfc import jwt as jose_jwt
from joserfc.jwk import OctKey

from lscs_core.core.config import Settings

logger = structlog.get_logger()


class KeyType(str, Enum):
    DEV = "dev"
    PROD = "prod"
    ADMIN = "admin"


class APIKeyIssuer:
    """Creates API key tokens with an expiry that depends on the key type"""

    def __init__(self, settings: Settings) -> None:
        self._algorithm = settings.JWT_ALGORITHM
        self._jwt_key = OctKey.import_key(settings.JWT_SECRET)
        self.dev_expiry_days = settings.JWT_DEV_EXPIRY_DAYS
        self.prod_expiry_days = settings.JWT_PROD_EXPIRY_DAYS

    def expiry_for(self, key_type: KeyType, now: datetime) -> Optional[datetime]:
        """Admin keys never expire"""
        if key_type == KeyType.DEV:
            return now + timedelta(days=self.dev_expiry_days)
        if key_type == KeyType.PROD:
            return now + timedelta(days=self.prod_expiry_days)
        return None

    def generate(
        self,
        email: str,
        key_type: KeyType,
        now: Optional[datetime] = None,
    ) -> tuple[str, Optional[datetime]]:
        """
        Create an API key token

        Args:
            email: Owning member email, stored in the custom "email" claim
            key_type: dev, prod or admin
            now: Issue time (defaults to the current UTC time)

        Returns:
            Encoded token and its expiration (None for admin keys)
        """
        key_type = KeyType(key_type)
        now = now or datetime.now(timezone.utc)
        expires_at = self.expiry_for(key_type, now)

        claims = {
            "email": email,
            "iat": int(now.timestamp()),
        }
        if expires_at is not None:
            claims["exp"] = int(expires_at.timestamp())

        token = jose_jwt.encode({"alg": self._algorithm}, claims, self._jwt_key)

        logger.info("API key token generated", email=email, key_type=key_type.value, expires=expires_at)
        return token, expires_at


def hash_api_key(token: str) -> str:
    """SHA-256 hex digest of a token, the only form persisted"""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
