"""
Credential handling: bcrypt password digests and signed, time-bound
identity tokens (JWT).
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import jwt
from passlib.context import CryptContext

from .exceptions import TokenExpired, TokenMalformed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """Claims carried by a token and bound to a request by the access guard."""
    user_id: int
    email: str
    username: str


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PasswordHasher:
    def __init__(self, rounds: int = 12):
        self._context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, digest: str) -> bool:
        return self._context.verify(password, digest)


class CredentialService:
    """Issues and validates bearer tokens.

    The signing key is handed in at construction; tokens cannot be revoked
    and stay valid for the whole window even if the account changes.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        expires_delta: timedelta = timedelta(hours=2),
        clock: Callable[[], datetime] = utcnow,
    ):
        if not secret_key:
            raise ValueError("secret_key must not be empty")
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._expires_delta = expires_delta
        self._clock = clock

    def issue(self, identity: Identity) -> str:
        expire = self._clock() + self._expires_delta
        payload = {
            "user_id": identity.user_id,
            "email": identity.email,
            "username": identity.username,
            "exp": expire,
        }
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def validate(self, token: Optional[str]) -> Identity:
        if not token:
            raise TokenMalformed()
        try:
            # Expiry is checked against the injected clock below
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"verify_exp": False, "require": ["exp", "user_id", "email", "username"]},
            )
        except jwt.InvalidTokenError as e:
            logger.warning(f"Rejected token: {e}")
            raise TokenMalformed()

        user_id = payload["user_id"]
        exp = payload["exp"]
        if not isinstance(user_id, int) or isinstance(user_id, bool) or not isinstance(exp, (int, float)):
            logger.warning("Rejected token: claims have unexpected types")
            raise TokenMalformed()

        if self._clock().timestamp() > exp:
            logger.warning(f"Rejected expired token for user_id={user_id}")
            raise TokenExpired()

        return Identity(user_id=user_id, email=payload["email"], username=payload["username"])
