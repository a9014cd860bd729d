"""Authentication endpoints: register, login, current user."""

import logging

from fastapi import APIRouter, status
from pydantic import BaseModel, EmailStr
from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from panda.api.deps import Caller, Registry, Session
from panda.core.config import get_settings
from panda.core.errors import Conflict, Forbidden, NotFound, Unauthenticated
from panda.core.roles import get_limits
from panda.core.security import create_jwt, hash_password, verify_password
from panda.models.user import User, UserCreate, UserRead, UserRole

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


# ── Schemas ──────────────────────────────────────────────────

class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserRead


class TunnelQuota(BaseModel):
    used: int
    limit: int | None  # None = unlimited


class MeResponse(BaseModel):
    user: UserRead
    tunnels: TunnelQuota


# ── Routes ───────────────────────────────────────────────────

@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def register(body: UserCreate, session: Session) -> UserRead:
    """Create an account. The configured admin e-mail is bootstrapped as ADMIN."""
    existing = await session.execute(select(User).where(User.email == body.email))
    if existing.scalar_one_or_none():
        raise Conflict("User already exists")

    admin_email = get_settings().admin_email
    is_admin = bool(admin_email) and body.email.lower() == admin_email.lower()

    user = User(
        email=body.email,
        username=body.username,
        password_hash=hash_password(body.password),
        role=UserRole.ADMIN if is_admin else UserRole.FREE,
    )
    session.add(user)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise Conflict("User already exists") from exc
    await session.refresh(user)

    if is_admin:
        logger.info("Bootstrapped admin account %s", user.id)
    return UserRead.model_validate(user)


@router.post("/login", response_model=LoginResponse)
async def login(body: LoginRequest, session: Session) -> LoginResponse:
    """Authenticate with email + password, receive a JWT."""
    result = await session.execute(select(User).where(User.email == body.email))
    user = result.scalar_one_or_none()

    if user is None or not verify_password(body.password, user.password_hash):
        raise Unauthenticated("Invalid credentials")

    if not user.is_active:
        raise Forbidden("Account is disabled")

    token = create_jwt(subject=str(user.id), role=user.role, email=user.email)
    return LoginResponse(access_token=token, user=UserRead.model_validate(user))


@router.get("/me", response_model=MeResponse)
async def get_me(caller: Caller, session: Session, registry: Registry) -> MeResponse:
    """Return the current user and how many tunnels their grade still allows."""
    user = await session.get(User, caller.user_id)
    if user is None:
        raise NotFound("User not found")

    used = await registry.count_for_owner(user.id)
    return MeResponse(
        user=UserRead.model_validate(user),
        tunnels=TunnelQuota(used=used, limit=get_limits(caller.role).max_tunnels),
    )
