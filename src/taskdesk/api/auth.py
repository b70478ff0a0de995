"""Auth API — registration, login, current user.

- POST /auth/register → create a user, returns {token, user}
- POST /auth/login → email/password → {token, user}
- GET /auth/me → the authenticated user's record

Register and login fields are declared optional so that a missing field
reaches IdentityService and comes back as the same 400 a blank one gets.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from taskdesk.auth.dependencies import CurrentIdentity, get_current_user
from taskdesk.config import Settings, get_settings
from taskdesk.db.engine import get_db
from taskdesk.db.models import EMAIL_MAX_LENGTH, NAME_MAX_LENGTH
from taskdesk.schemas.user import UserRead
from taskdesk.services.identity_service import IdentityService

router = APIRouter(prefix="/auth")


def _identity_svc(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> IdentityService:
    return IdentityService(db, settings)


# ─── Schemas ─────────────────────────────────────────────


class RegisterRequest(BaseModel):
    name: Optional[str] = Field(None, max_length=NAME_MAX_LENGTH)
    email: Optional[str] = Field(None, max_length=EMAIL_MAX_LENGTH)
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = Field(None, max_length=EMAIL_MAX_LENGTH)
    password: Optional[str] = None


class AuthResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    user: UserRead


# ─── Routes ──────────────────────────────────────────────


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    body: RegisterRequest,
    svc: IdentityService = Depends(_identity_svc),
):
    """Create a new user account and log it in."""
    token, user = await svc.register(
        name=body.name or "",
        email=body.email or "",
        password=body.password or "",
    )
    return AuthResponse(token=token, user=UserRead.model_validate(user))


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    svc: IdentityService = Depends(_identity_svc),
):
    """Login with email and password → JWT token."""
    token, user = await svc.login(body.email or "", body.password or "")
    return AuthResponse(token=token, user=UserRead.model_validate(user))


@router.get("/me", response_model=UserRead)
async def get_me(
    identity: CurrentIdentity = Depends(get_current_user),
    svc: IdentityService = Depends(_identity_svc),
):
    """Get the current authenticated user's info."""
    return await svc.get_user(identity.user_id)
