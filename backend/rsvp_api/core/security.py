from __future__ import annotations

import hashlib
import hmac
import logging
import time
from typing import Any, Callable, Dict, Optional

from jose import JWTError, jwt

from rsvp_api.core.config import INSECURE_JWT_SECRETS, Settings

logger = logging.getLogger("rsvp.auth")

ADMIN_ROLE = "admin"


class TokenService:
    """
    Issues and verifies signed, expiring admin tokens (HS256 JWTs).

    There is no revocation list: rotating the secret is the only way to
    invalidate tokens that have already been handed out.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret:
            raise ValueError("Token signing secret must not be empty")
        self._secret = secret
        self._algorithm = algorithm
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        # Hard guard: never allow a default secret in production-like envs
        if settings.is_prod and settings.jwt_secret in INSECURE_JWT_SECRETS:
            raise RuntimeError(
                "Insecure JWT_SECRET configured in production environment. "
                "Set a strong random secret via the JWT_SECRET env var."
            )
        return cls(settings.jwt_secret, settings.jwt_algorithm)

    def issue(self, claims: Dict[str, Any], ttl_seconds: int) -> str:
        now = int(self._clock())
        payload = dict(claims)
        payload["iat"] = now
        payload["exp"] = now + int(ttl_seconds)
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> Optional[Dict[str, Any]]:
        """
        Return the token's claims, or None when it is malformed, badly
        signed or expired.

        Expiry is checked here against the injected clock rather than by
        python-jose, and a token is already dead at its exp instant.
        """
        if not token or token.count(".") != 2:
            return None

        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"verify_exp": False, "verify_iat": False},
            )
        except JWTError:
            return None

        exp = claims.get("exp")
        if isinstance(exp, bool) or not isinstance(exp, (int, float)):
            return None
        if exp <= self._clock():
            return None

        return claims


def hash_admin_password(salt: str, password: str) -> str:
    return hashlib.sha256((salt + password).encode("utf-8")).hexdigest()


def verify_admin_password(settings: Settings, password: str) -> bool:
    """
    Constant-time comparison of sha256(salt + password) against the configured hash.
    """
    expected = settings.admin_password_hash.strip().lower()
    if not expected:
        logger.warning("Admin login attempted but ADMIN_PASSWORD_HASH is not configured")
        return False

    computed = hash_admin_password(settings.admin_password_salt, password)
    return hmac.compare_digest(computed.encode("utf-8"), expected.encode("utf-8"))


def parse_bearer(header_value: Optional[str]) -> Optional[str]:
    """
    Extract the token from an `Authorization: Bearer <token>` header.
    The scheme is matched case-insensitively.
    """
    if not header_value:
        return None
    scheme, _, token = header_value.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    return token or None


def is_admin(claims: Optional[Dict[str, Any]]) -> bool:
    return bool(claims) and claims.get("role") == ADMIN_ROLE
