"""
Credentials — password hashes, session tokens, one-time account tokens.

Sessions are signed JWTs. Password reset and email verification share one
mechanism: a random token is mailed to the user and only its SHA-256 digest
is stored.
"""

from __future__ import annotations

import hashlib
import secrets
from datetime import datetime, timedelta, timezone

import jwt
from passlib.context import CryptContext

from lascentlo._types import UserId


class Passwords:
    def __init__(self, rounds: int = 29000) -> None:
        self._context = CryptContext(
            schemes=["pbkdf2_sha256"],
            deprecated="auto",
            pbkdf2_sha256__rounds=rounds,
        )

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, hashed: str) -> bool:
        return self._context.verify(password, hashed)


class SessionTokens:
    def __init__(self, secret: str, *, algorithm: str = "HS256", ttl: timedelta = timedelta(days=30)) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._ttl = ttl

    def issue(self, user_id: UserId) -> str:
        issued = datetime.now(timezone.utc)
        return jwt.encode(
            {"sub": user_id, "iat": issued, "exp": issued + self._ttl},
            self._secret,
            algorithm=self._algorithm,
        )

    def subject(self, token: str) -> UserId | None:
        """User id the token was issued for, or None if it is invalid or expired."""
        try:
            claims = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except jwt.PyJWTError:
            return None
        sub = claims.get("sub")
        return sub if isinstance(sub, str) else None


def one_time_token() -> tuple[str, str]:
    """Returns (token to mail, digest to store)."""
    token = secrets.token_hex(32)
    return token, digest(token)


def digest(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


__all__ = ("Passwords", "SessionTokens", "one_time_token", "digest")
