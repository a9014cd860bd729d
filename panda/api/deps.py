"""FastAPI dependencies for authentication and service wiring."""

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from panda.core.database import get_session
from panda.core.security import CallerIdentity, authenticate, require_role
from panda.models.user import UserRole
from panda.services.registry import ServiceRegistry
from panda.services.tunnel_config import ClientConfigRenderer

SESSION_COOKIE_NAME = "panda_session_token"

# auto_error=False: a missing header must surface as our Unauthenticated, not a bare 403
bearer_scheme = HTTPBearer(auto_error=False)


async def get_caller(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> CallerIdentity:
    """Resolve the caller from ``Authorization: Bearer`` or the session cookie."""
    token = credentials.credentials if credentials else request.cookies.get(SESSION_COOKIE_NAME)
    return authenticate(token)


async def get_admin(
    caller: Annotated[CallerIdentity, Depends(get_caller)],
) -> CallerIdentity:
    require_role(caller, UserRole.ADMIN)
    return caller


async def get_registry(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> ServiceRegistry:
    return ServiceRegistry(session)


def get_renderer() -> ClientConfigRenderer:
    return ClientConfigRenderer()


# Typed shorthand for use in route signatures
Caller = Annotated[CallerIdentity, Depends(get_caller)]
AdminCaller = Annotated[CallerIdentity, Depends(get_admin)]
Session = Annotated[AsyncSession, Depends(get_session)]
Registry = Annotated[ServiceRegistry, Depends(get_registry)]
Renderer = Annotated[ClientConfigRenderer, Depends(get_renderer)]
