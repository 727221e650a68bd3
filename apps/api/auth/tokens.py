"""Bearer-token extraction and JWT validation."""

import uuid
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone

import jwt

from errors import AuthError

TOKEN_ISSUER = "tubely-access"
ALGORITHM = "HS256"


def get_bearer_token(headers: Mapping[str, str]) -> str:
    """Return the token from an ``Authorization: Bearer <token>`` header."""
    value = headers.get("authorization") or headers.get("Authorization")
    if not value:
        raise AuthError("Couldn't find JWT")

    scheme, _, token = value.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise AuthError("Couldn't find JWT")
    return token


def validate_jwt(token: str, secret: str) -> uuid.UUID:
    """Verify signature, expiry and issuer; return the user id from ``sub``."""
    try:
        claims = jwt.decode(
            token,
            secret,
            algorithms=[ALGORITHM],
            issuer=TOKEN_ISSUER,
            options={"require": ["exp", "sub", "iss"]},
        )
        return uuid.UUID(claims["sub"])
    except (jwt.PyJWTError, ValueError) as exc:
        raise AuthError("Couldn't validate JWT") from exc


def make_jwt(user_id: uuid.UUID, secret: str, expires_in: timedelta = timedelta(hours=1)) -> str:
    now = datetime.now(timezone.utc)
    return jwt.encode(
        {"iss": TOKEN_ISSUER, "sub": str(user_id), "iat": now, "exp": now + expires_in},
        secret,
        algorithm=ALGORITHM,
    )
