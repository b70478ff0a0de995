"""FastAPI auth dependencies.

Used as Depends() in route handlers to turn the Authorization header
into a CurrentIdentity. The identity is then passed explicitly into every
task service call; nothing downstream reads it from the request.
"""

import uuid
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header

from taskdesk.auth.jwt import TokenError, verify_token
from taskdesk.config import Settings, get_settings
from taskdesk.errors import UnauthorizedError


@dataclass(frozen=True)
class CurrentIdentity:
    """The authenticated user making the request."""

    user_id: uuid.UUID
    role: str = "user"


def identity_from_token(settings: Settings, token: str) -> CurrentIdentity:
    """Verify a bearer token and build the identity it carries."""
    try:
        payload = verify_token(settings, token)
        return CurrentIdentity(
            user_id=uuid.UUID(str(payload["sub"])),
            role=payload.get("role", "user"),
        )
    except TokenError as e:
        raise UnauthorizedError(str(e))
    except ValueError:
        raise UnauthorizedError("Invalid token: malformed subject")


async def get_current_user(
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> CurrentIdentity:
    """Extract current identity (required — 401 if no valid bearer token)."""
    if not authorization:
        raise UnauthorizedError("Authentication required")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise UnauthorizedError("Malformed Authorization header")

    return identity_from_token(settings, token.strip())
