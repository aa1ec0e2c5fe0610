"""User service: registration, credential checks, activation.

Learn: Service layer separates business logic from HTTP routing.
API routes and the admin CLI share these methods. Password hashing is an
explicit step here (not a model hook): the plaintext never reaches the
User row.
"""

from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from projectdesk.auth.password import (
    PASSWORD_RULES_MESSAGE,
    hash_password,
    is_strong_password,
    verify_password,
)
from projectdesk.db.models import User
from projectdesk.errors import AuthenticationError, NotFoundError, ValidationError

logger = structlog.get_logger()


class UserService:
    """Business logic for user accounts."""

    def __init__(self, db: AsyncSession, bcrypt_rounds: int = 12):
        self.db = db
        self.bcrypt_rounds = bcrypt_rounds

    # ─── Read ────────────────────────────────────────────

    async def get_user(self, user_id: int) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.email == email.strip().lower())
        )
        return result.scalars().first()

    # ─── Register ────────────────────────────────────────

    async def register(
        self,
        name: str,
        email: str,
        password: str,
        role: Optional[str] = None,
    ) -> User:
        """Create a user account.

        Learn: Checks run in a fixed order (duplicate email first, then
        password strength) so a taken address is reported even when the
        password is also weak. Only an explicit "admin" yields an admin.
        """
        if await self.get_by_email(email):
            raise ValidationError("email already registered")

        if not is_strong_password(password):
            raise ValidationError(PASSWORD_RULES_MESSAGE)

        user = User(
            name=name,
            email=email.strip().lower(),
            password_hash=hash_password(password, rounds=self.bcrypt_rounds),
            role="admin" if role == "admin" else "user",
            active=True,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration of the same email.
            await self.db.rollback()
            raise ValidationError("email already registered")

        logger.info("user.registered", user_id=user.id, role=user.role)
        return user

    # ─── Login ───────────────────────────────────────────

    async def authenticate(self, email: str, password: str) -> User:
        """Return the user for valid credentials or raise AuthenticationError."""
        user = await self.get_by_email(email)
        if not user:
            raise AuthenticationError("invalid credentials")

        if not user.active:
            raise AuthenticationError("user is inactive, contact an administrator")

        if not verify_password(password, user.password_hash):
            logger.info("auth.bad_password", user_id=user.id)
            raise AuthenticationError("invalid credentials")

        return user

    # ─── Activation / roles ──────────────────────────────

    async def set_active(self, email: str, active: bool) -> User:
        """Flip a user's active flag. Users are never hard-deleted."""
        user = await self.get_by_email(email)
        if not user:
            raise NotFoundError("user not found")
        user.active = active
        await self.db.commit()
        logger.info("user.activation_changed", user_id=user.id, active=active)
        return user

    async def set_role(self, email: str, role: str) -> User:
        if role not in ("admin", "user"):
            raise ValidationError(f"unknown role '{role}'")
        user = await self.get_by_email(email)
        if not user:
            raise NotFoundError("user not found")
        user.role = role
        await self.db.commit()
        logger.info("user.role_changed", user_id=user.id, role=role)
        return user
