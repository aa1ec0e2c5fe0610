"""FastAPI auth dependencies: the authentication gate.

Learn: get_current_user is used as Depends() on every protected route.
It turns the Authorization header into a CurrentIdentity, or stops the
request with a 401 envelope:

    no header                     → "no token provided"
    not "Bearer <token>"          → "invalid token format"
    bad signature / expired       → "invalid or expired token"
    unknown or inactive user      → "user not found or inactive"

The identity is always built from the freshly loaded user row, never
from token claims, so deactivation and role changes apply immediately.
"""

from typing import Optional

import structlog
from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from projectdesk.auth.jwt import TokenCodec, get_token_codec
from projectdesk.db.engine import get_db
from projectdesk.db.models import User
from projectdesk.errors import AuthenticationError, InternalError

logger = structlog.get_logger()


class CurrentIdentity:
    """The authenticated user making the request.

    Learn: This is the unified auth context. Downstream code (gates,
    handlers) reads id and role from here; it is also stored on
    request.state.user.
    """

    def __init__(self, id: int, email: str, role: str = "user"):
        self.id = id
        self.email = email
        self.role = role

    @classmethod
    def from_user(cls, user: User) -> "CurrentIdentity":
        return cls(id=user.id, email=user.email, role=user.role)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def as_dict(self) -> dict:
        return {"id": self.id, "email": self.email, "role": self.role}


def extract_bearer_token(authorization: Optional[str]) -> str:
    """Return the token from an Authorization header or raise AuthenticationError."""
    if not authorization:
        raise AuthenticationError("no token provided")

    scheme, _, token = authorization.partition(" ")
    if scheme != "Bearer" or not token or " " in token:
        raise AuthenticationError("invalid token format")
    return token


async def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
    codec: TokenCodec = Depends(get_token_codec),
) -> CurrentIdentity:
    """Authenticate the request (required: 401 envelope otherwise)."""
    token = extract_bearer_token(authorization)

    claims = codec.verify(token)
    if claims is None:
        raise AuthenticationError("invalid or expired token")

    try:
        user = await db.get(User, claims.user_id)
    except Exception:
        logger.exception("auth.lookup_failed", user_id=claims.user_id)
        raise InternalError("authentication error")

    if not user or not user.active:
        logger.info("auth.rejected_user", user_id=claims.user_id)
        raise AuthenticationError("user not found or inactive")

    identity = CurrentIdentity.from_user(user)
    request.state.user = identity
    return identity
