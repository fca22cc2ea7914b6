from __future__ import annotations

import logging
import secrets
import string
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

import jwt
from flask import Request, current_app

from app.backoffice.constants import Profile

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS512"
BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class Principal:
    """The authenticated caller for one request. Never persisted."""

    id: int
    email: str
    roles: frozenset[Profile] = field(default_factory=frozenset)

    def has_role(self, role: Profile) -> bool:
        return role in self.roles

    @classmethod
    def from_customer(cls, customer) -> "Principal":
        return cls(id=customer.id, email=customer.email, roles=frozenset(customer.profiles))


def create_token(email: str, *, secret: str | None = None, expiration_seconds: int | None = None) -> str:
    secret = secret or current_app.config["JWT_SECRET"]
    if expiration_seconds is None:
        expiration_seconds = int(current_app.config["JWT_EXPIRATION_SECONDS"])
    now = datetime.now(timezone.utc)
    payload = {
        "sub": email,
        "iat": now,
        "exp": now + timedelta(seconds=expiration_seconds),
    }
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def decode_token(token: str, *, secret: str | None = None) -> dict | None:
    """
    Verify and decode a token.
    Returns the claims, or None when the token is expired, tampered with or has no subject.
    """
    secret = secret or current_app.config["JWT_SECRET"]
    try:
        claims = jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.info("JWT expired")
        return None
    except jwt.InvalidTokenError as e:
        logger.warning("Invalid JWT: %s", e)
        return None
    if not claims.get("sub"):
        return None
    return claims


def bearer_token(req: Request) -> str | None:
    header = req.headers.get("Authorization") or ""
    if not header.startswith(BEARER_PREFIX):
        return None
    token = header[len(BEARER_PREFIX):].strip()
    return token or None


def generate_password(length: int = 10) -> str:
    """Random password of digits, upper and lower case letters."""
    alphabet = string.digits + string.ascii_uppercase + string.ascii_lowercase
    return "".join(secrets.choice(alphabet) for _ in range(length))
