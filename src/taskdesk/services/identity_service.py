"""Identity service — registration, login, and token issuance.

Service layer separates business logic from HTTP routing: routes call
services, services call the database. This one has no knowledge of tasks.
"""

import functools
import uuid

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taskdesk.auth.jwt import create_access_token
from taskdesk.auth.password import hash_password, verify_password
from taskdesk.config import Settings
from taskdesk.db.models import User
from taskdesk.errors import (
    ConflictError,
    InvalidCredentialsError,
    NotFoundError,
    ValidationError,
)

logger = structlog.get_logger()


def normalize_email(email: str) -> str:
    return email.strip().lower()


@functools.lru_cache
def _dummy_hash(rounds: int) -> str:
    # Checked against when the email is unknown so the response time
    # doesn't reveal which emails are registered.
    return hash_password("taskdesk-no-such-user", rounds=rounds)


class IdentityService:
    """Business logic for user accounts and credentials."""

    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings

    # ─── Register ────────────────────────────────────────

    async def register(
        self, name: str, email: str, password: str
    ) -> tuple[str, User]:
        """Create a user and return (token, user).

        Raises:
            ValidationError: if name, email or password is missing/blank
            ConflictError: if the email is already registered
        """
        missing = [
            field
            for field, value in (("name", name), ("email", email), ("password", password))
            if not value or not value.strip()
        ]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        email = normalize_email(email)
        if await self._find_by_email(email):
            raise ConflictError("Email already exists")

        user = User(
            name=name.strip(),
            email=email,
            password_hash=hash_password(password, rounds=self.settings.bcrypt_rounds),
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration of the same email.
            await self.db.rollback()
            raise ConflictError("Email already exists")
        await self.db.refresh(user)

        logger.info("auth.registered", user_id=str(user.id))
        return self._issue_token(user), user

    # ─── Login ───────────────────────────────────────────

    async def login(self, email: str, password: str) -> tuple[str, User]:
        """Check email/password and return (token, user).

        Unknown email and wrong password both raise InvalidCredentialsError
        with the same message, and both pay for one bcrypt check.
        """
        user = await self._find_by_email(normalize_email(email or ""))
        if user:
            valid = verify_password(password or "", user.password_hash)
        else:
            verify_password(password or "", _dummy_hash(self.settings.bcrypt_rounds))
            valid = False
        if not valid:
            logger.info("auth.login_failed")
            raise InvalidCredentialsError()

        logger.info("auth.logged_in", user_id=str(user.id))
        return self._issue_token(user), user

    # ─── Lookup ──────────────────────────────────────────

    async def get_user(self, user_id: uuid.UUID) -> User:
        user = await self.db.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    async def _find_by_email(self, email: str) -> User | None:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalars().first()

    def _issue_token(self, user: User) -> str:
        return create_access_token(self.settings, str(user.id), user.role)
