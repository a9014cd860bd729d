"""Admin-only endpoints: global service listing and user grades."""

import logging
import uuid

from fastapi import APIRouter
from sqlmodel import select

from panda.api.deps import AdminCaller, Registry, Session
from panda.api.v1.services import to_service_read
from panda.core.errors import Forbidden, NotFound
from panda.models.service import ServiceRead
from panda.models.user import User, UserRead, UserRole, UserRoleUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/services", response_model=list[ServiceRead])
async def list_all_services(admin: AdminCaller, registry: Registry) -> list[ServiceRead]:
    return [to_service_read(s) for s in await registry.list_all(admin)]


@router.get("/users", response_model=list[UserRead])
async def list_users(admin: AdminCaller, session: Session) -> list[UserRead]:
    stmt = select(User).order_by(User.created_at.desc())  # type: ignore[union-attr]
    result = await session.execute(stmt)
    return [UserRead.model_validate(u) for u in result.scalars().all()]


@router.put("/users/{user_id}/role", response_model=UserRead)
async def update_user_role(
    user_id: uuid.UUID,
    body: UserRoleUpdate,
    admin: AdminCaller,
    session: Session,
) -> UserRead:
    """Change a user's grade. Takes effect on the user's next login."""
    if user_id == admin.user_id and body.role != UserRole.ADMIN:
        raise Forbidden("Admins cannot demote themselves via this endpoint.")

    user = await session.get(User, user_id)
    if user is None:
        raise NotFound("User not found")

    user.role = body.role
    user.touch()
    session.add(user)
    await session.commit()
    await session.refresh(user)

    logger.info("User %s role set to %s by admin %s", user.id, user.role, admin.user_id)
    return UserRead.model_validate(user)
