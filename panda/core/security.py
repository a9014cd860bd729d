"""Security utilities: password hashing, token helpers, caller resolution."""

import uuid
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext

from panda.core.config import get_settings
from panda.core.errors import Forbidden, Unauthenticated
from panda.models.user import UserRole

settings = get_settings()

# ── Password hashing (Argon2) ────────────────────────────────

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


# ── JWT ───────────────────────────────────────────────────────

def create_jwt(
    subject: str,
    role: str,
    email: str = "",
    expires_delta: timedelta | None = None,
) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.jwt_expire_minutes)
    )
    payload = {
        "sub": subject,
        "role": role,
        "email": email,
        "exp": expire,
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_jwt(token: str) -> dict:
    """Decode and verify a JWT. Raises jose.JWTError on failure."""
    return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])


# ── Caller identity ───────────────────────────────────────────

class CallerIdentity:
    """Resolved identity carried through a request."""

    __slots__ = ("user_id", "role", "email")

    def __init__(self, user_id: uuid.UUID, role: UserRole, email: str = "") -> None:
        self.user_id = user_id
        self.role = role
        self.email = email

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


def authenticate(credential: str | None) -> CallerIdentity:
    """Resolve a bearer credential to a caller. Stateless, no DB access."""
    if not credential:
        raise Unauthenticated()

    try:
        payload = decode_jwt(credential)
    except JWTError as exc:
        raise Unauthenticated("Unauthorized: Invalid or expired token") from exc

    try:
        return CallerIdentity(
            user_id=uuid.UUID(payload["sub"]),
            role=UserRole(payload["role"]),
            email=payload.get("email") or "",
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise Unauthenticated("Unauthorized: Malformed token payload") from exc


def require_role(caller: CallerIdentity, role: UserRole) -> None:
    if caller.role != role:
        raise Forbidden(f"Forbidden: {role} access required")
