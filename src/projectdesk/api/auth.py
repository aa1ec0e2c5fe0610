"""Auth API: registration, login, profile.

Learn: Routes for user authentication:
- POST /auth/register → create a new user account
- POST /auth/login → email/password → bearer token
- GET /auth/profile → current user info (password never included)

Register and login are open; profile sits behind the authentication gate.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from projectdesk.auth.dependencies import CurrentIdentity, get_current_user
from projectdesk.auth.jwt import TokenCodec, get_token_codec
from projectdesk.db.engine import get_db
from projectdesk.errors import NotFoundError, ValidationError, guarded
from projectdesk.responses import Responder, get_responder
from projectdesk.schemas.user import LoginRequest, LoginResponse, RegisterRequest, UserRead
from projectdesk.services.user_service import UserService

router = APIRouter(prefix="/auth")


def _svc(request: Request, db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db, bcrypt_rounds=request.app.state.settings.bcrypt_rounds)


# ─── Register ────────────────────────────────────────────


@router.post("/register", status_code=201)
@guarded("error registering user")
async def register(
    body: RegisterRequest,
    svc: UserService = Depends(_svc),
    respond: Responder = Depends(get_responder),
):
    """Create a new user account."""
    user = await svc.register(
        name=body.name,
        email=body.email,
        password=body.password,
        role=body.role,
    )
    return respond(201, UserRead.model_validate(user), "user registered")


# ─── Login ───────────────────────────────────────────────


@router.post("/login")
@guarded("error logging in")
async def login(
    body: LoginRequest,
    svc: UserService = Depends(_svc),
    codec: TokenCodec = Depends(get_token_codec),
    respond: Responder = Depends(get_responder),
):
    """Login with email and password → bearer token."""
    if not body.email or not body.password:
        raise ValidationError("email and password are required")

    user = await svc.authenticate(body.email, body.password)
    token = codec.issue(user)

    return respond(
        200,
        LoginResponse(user=UserRead.model_validate(user), token=token),
        "login successful",
    )


# ─── Current user ───────────────────────────────────────


@router.get("/profile")
@guarded("error fetching profile")
async def get_profile(
    identity: CurrentIdentity = Depends(get_current_user),
    svc: UserService = Depends(_svc),
    respond: Responder = Depends(get_responder),
):
    """Get the current authenticated user's info."""
    user = await svc.get_user(identity.id)
    if not user:
        raise NotFoundError("user not found")
    return respond(200, UserRead.model_validate(user), "profile retrieved")
