"""Password hashing and bearer token handling."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from muabook.core.config import Settings
from muabook.core.errors import Unauthenticated

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


class PasswordHasher:
    """bcrypt password hashing through passlib."""

    def __init__(self, rounds: int = 12) -> None:
        self._context = CryptContext(
            schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds
        )

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        try:
            return self._context.verify(password, password_hash)
        except (ValueError, TypeError):
            logger.warning("unreadable password hash")
            return False


class JWTAuthenticationProvider:
    """Issue and validate HS256 bearer tokens bound to a user id."""

    def __init__(
        self,
        secret: str,
        *,
        algorithm: str = "HS256",
        expiration_seconds: int = 7 * 24 * 60 * 60,
    ) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self.expiration_seconds = expiration_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> "JWTAuthenticationProvider":
        return cls(
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            expiration_seconds=settings.jwt_expiration_seconds,
        )

    def issue(self, user_id: uuid.UUID, *, now: datetime | None = None) -> str:
        issued_at = now or datetime.now(timezone.utc)
        claims: dict[str, Any] = {
            "sub": str(user_id),
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + timedelta(seconds=self.expiration_seconds)).timestamp()),
        }
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> uuid.UUID:
        """Return the user id carried by ``token``."""

        try:
            claims = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except JWTError as exc:
            logger.info("rejected bearer token", extra={"reason": str(exc)})
            raise Unauthenticated("Invalid or expired token") from exc

        subject = claims.get("sub")
        try:
            return uuid.UUID(str(subject))
        except ValueError as exc:
            raise Unauthenticated("Invalid user id in token") from exc

    def authenticate(self, header: str | None) -> uuid.UUID:
        """Resolve an ``Authorization`` header value to a user id."""

        if not header:
            raise Unauthenticated("Missing authorization header")
        if not header.startswith(BEARER_PREFIX):
            raise Unauthenticated("Invalid authorization format")
        token = header[len(BEARER_PREFIX):].strip()
        if not token:
            raise Unauthenticated("Invalid authorization format")
        return self.verify(token)


__all__ = ["BEARER_PREFIX", "JWTAuthenticationProvider", "PasswordHasher"]
