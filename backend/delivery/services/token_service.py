# Overview: Service-layer operations for session tokens; issues and verifies signed JWTs.

"""
Session Token Service

WHY: Every protected request carries the caller's identity. Tokens are
signed JWTs embedding {id, username, role}, so verification is stateless:
no session table and no database round-trip per request.

SECURITY FEATURES:
- HS256 signature with JWT_SECRET_KEY
- Absolute expiry (JWT_EXPIRES_IN, default 7 days)
- Role claim must name a known role or the token is rejected
"""

from dataclasses import dataclass
from datetime import timedelta

from flask import current_app
from jose import JWTError, jwt

from ..errors import InvalidTokenError
from ..models import Role, User
from delivery.time_utils import parse_duration, utcnow


@dataclass(frozen=True)
class TokenClaims:
    """Identity carried by a verified token."""
    id: int
    username: str
    role: Role

    @property
    def is_courier(self) -> bool:
        return self.role is Role.COURIER


def token_lifetime() -> timedelta:
    return parse_duration(current_app.config.get("JWT_EXPIRES_IN", "7d"))


def issue_token(user: User, expires_in: timedelta | None = None) -> str:
    """
    Issue a signed token for an authenticated user.

    Returns the compact JWT string sent to the client.
    """
    now = utcnow()
    lifetime = expires_in if expires_in is not None else token_lifetime()
    claims = {
        "id": user.id,
        "username": user.username,
        "role": user.role.value,
        "iat": now,
        "exp": now + lifetime,
    }
    return jwt.encode(
        claims,
        current_app.config["JWT_SECRET_KEY"],
        algorithm=current_app.config.get("JWT_ALGORITHM", "HS256"),
    )


def decode_token(token: str) -> TokenClaims:
    """
    Verify signature and expiry and return the embedded identity.

    Raises InvalidTokenError for bad signatures, expired tokens and payloads
    that do not carry a usable identity.
    """
    try:
        payload = jwt.decode(
            token,
            current_app.config["JWT_SECRET_KEY"],
            algorithms=[current_app.config.get("JWT_ALGORITHM", "HS256")],
        )
    except JWTError as e:
        current_app.logger.warning("Rejected session token: %s", e)
        raise InvalidTokenError()

    try:
        return TokenClaims(
            id=int(payload["id"]),
            username=str(payload["username"]),
            role=Role(payload["role"]),
        )
    except (KeyError, TypeError, ValueError):
        current_app.logger.warning("Rejected session token: malformed claims")
        raise InvalidTokenError()
