"""JWT token creation and verification.

One kind of token: a 24-hour access token. The payload carries the
user id in "sub" and the user's role, which is all a protected route
needs to scope its work.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from taskdesk.config import Settings

ACCESS_TOKEN_TYPE = "access"


class TokenError(Exception):
    """Raised when token verification fails."""


def create_access_token(
    settings: Settings,
    user_id: str,
    role: str,
    expires_hours: Optional[int] = None,
) -> str:
    """Create a signed JWT access token for a user."""
    now = datetime.now(timezone.utc)
    expires = now + timedelta(
        hours=expires_hours or settings.access_token_expire_hours
    )
    payload = {
        "sub": user_id,
        "role": role,
        "type": ACCESS_TOKEN_TYPE,
        "exp": expires,
        "iat": now,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(settings: Settings, token: str) -> dict:
    """Verify and decode a JWT access token.

    Returns the payload dict on success.
    Raises TokenError on failure.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}")

    if payload.get("type") != ACCESS_TOKEN_TYPE:
        raise TokenError("Not an access token")
    return payload
