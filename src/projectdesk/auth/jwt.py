"""JWT token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication. The token
carries the user id, email and role plus an expiry; there is no
revocation list, so verification is signature + expiry only.

The codec is built from explicit settings by create_app() and lives on
app.state, so each app (and each test) can use its own secret.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
import structlog
from fastapi import Request

logger = structlog.get_logger()


@dataclass(frozen=True)
class TokenClaims:
    """Decoded claims of a verified token.

    These may be stale relative to the database; authorization always
    re-reads the live user by `user_id`.
    """

    user_id: int
    email: str
    role: str
    expires_at: datetime


class TokenCodec:
    """Issue and verify signed access tokens."""

    def __init__(self, secret: str, algorithm: str = "HS256", expire_minutes: int = 60):
        self.secret = secret
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    @classmethod
    def from_settings(cls, settings) -> "TokenCodec":
        return cls(
            secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            expire_minutes=settings.access_token_expire_minutes,
        )

    def issue(self, user, expires_minutes: Optional[int] = None) -> str:
        """Create a signed token for a user (anything with id/email/role)."""
        now = datetime.now(timezone.utc)
        if expires_minutes is None:
            expires_minutes = self.expire_minutes
        expires = now + timedelta(minutes=expires_minutes)
        payload = {
            "sub": str(user.id),
            "email": user.email,
            "role": user.role,
            "iat": now,
            "exp": expires,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> Optional[TokenClaims]:
        """Verify and decode a token.

        Returns None for any malformed, tampered or expired token. The
        reason is logged but never distinguished to callers.
        """
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp"]},
            )
            return TokenClaims(
                user_id=int(payload["sub"]),
                email=payload.get("email", ""),
                role=payload.get("role", "user"),
                expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            )
        except jwt.ExpiredSignatureError:
            logger.info("token.expired")
        except jwt.InvalidTokenError as e:
            logger.info("token.invalid", error=str(e))
        except (TypeError, ValueError) as e:
            logger.info("token.bad_claims", error=str(e))
        return None


def get_token_codec(request: Request) -> TokenCodec:
    """FastAPI dependency: the codec configured for this app."""
    return request.app.state.token_codec
