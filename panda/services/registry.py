"""Service registry: lifecycle of registered tunnels with ownership checks.

All persistence failures are reclassified here: a unique-constraint violation
on ``subdomain`` becomes DuplicateSubdomain, anything else from SQLAlchemy
becomes an opaque InternalFailure after being logged.
"""

import logging
import uuid
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from panda.core.config import Settings, get_settings
from panda.core.errors import DuplicateSubdomain, InternalFailure, NotFound, QuotaExceeded
from panda.core.roles import get_limits, has_tunnel_capacity
from panda.core.security import CallerIdentity, require_role
from panda.models.service import Service, ServiceInput
from panda.models.user import UserRole
from panda.services.allocator import build_public_url, ensure_available, is_subdomain_conflict
from panda.services.notifier import schedule_notification
from panda.services.validation import validate_service_input

logger = logging.getLogger(__name__)

Notify = Callable[..., Any]


class ServiceRegistry:
    def __init__(
        self,
        session: AsyncSession,
        settings: Settings | None = None,
        notify: Notify = schedule_notification,
    ) -> None:
        self.session = session
        self.settings = settings or get_settings()
        self._notify = notify

    # ── Reads ─────────────────────────────────────────────────

    async def get(self, caller: CallerIdentity, service_id: uuid.UUID | str) -> Service:
        """Owner or admin only. Missing and not-owned are both NotFound."""
        async with self._guard("loading service"):
            service = await self._load(service_id)
        if service is None or not (caller.is_admin or service.owner_id == caller.user_id):
            raise NotFound("Service not found")
        return service

    async def list_by_owner(self, caller: CallerIdentity) -> list[Service]:
        stmt = (
            select(Service)
            .where(Service.owner_id == caller.user_id)
            .order_by(Service.created_at.desc())  # type: ignore[union-attr]
        )
        async with self._guard("listing services"):
            result = await self.session.execute(stmt)
            return list(result.scalars().all())

    async def list_all(self, caller: CallerIdentity) -> list[Service]:
        require_role(caller, UserRole.ADMIN)
        stmt = select(Service).order_by(Service.created_at.desc())  # type: ignore[union-attr]
        async with self._guard("listing all services"):
            result = await self.session.execute(stmt)
            return list(result.scalars().all())

    async def count_for_owner(self, owner_id: uuid.UUID) -> int:
        stmt = select(func.count()).select_from(Service).where(Service.owner_id == owner_id)
        async with self._guard("counting services"):
            return (await self.session.execute(stmt)).scalar_one()

    # ── Writes ────────────────────────────────────────────────

    async def create(self, caller: CallerIdentity, raw: Any) -> Service:
        data = validate_service_input(raw)

        count = await self.count_for_owner(caller.user_id)
        if not has_tunnel_capacity(caller.role, count):
            limit = get_limits(caller.role).max_tunnels
            raise QuotaExceeded(
                f"Tunnel quota reached for your current grade ({count}/{limit})"
            )

        async with self._guard("registering service", subdomain=data.subdomain):
            await ensure_available(self.session, data.subdomain)
            service = Service(owner_id=caller.user_id, public_url="")
            self._apply(service, data)
            self.session.add(service)
            await self.session.commit()
            await self.session.refresh(service)

        logger.info(
            "Registered service %s (%s, %s) for user %s",
            service.id, service.subdomain, service.frp_type, caller.user_id,
        )
        self._dispatch_notification(service)
        return service

    async def update(
        self, caller: CallerIdentity, service_id: uuid.UUID | str, raw: Any
    ) -> Service:
        """Owner only; every mutable field is rewritten from the validated input."""
        service = await self._get_owned(caller, service_id)
        data = validate_service_input(raw)

        async with self._guard("updating service", subdomain=data.subdomain):
            await ensure_available(self.session, data.subdomain, current=service)
            self._apply(service, data)
            service.touch()
            self.session.add(service)
            await self.session.commit()
            await self.session.refresh(service)

        logger.info("Updated service %s for user %s", service.id, caller.user_id)
        return service

    async def delete(self, caller: CallerIdentity, service_id: uuid.UUID | str) -> None:
        service = await self.get(caller, service_id)
        async with self._guard("deleting service"):
            await self.session.delete(service)
            await self.session.commit()
        logger.info("Deleted service %s (by user %s)", service.id, caller.user_id)

    # ── Internal helpers ──────────────────────────────────────

    def _apply(self, service: Service, data: ServiceInput) -> None:
        service.name = data.name
        service.description = data.description
        service.local_port = data.local_port
        service.subdomain = data.subdomain
        service.frp_type = data.frp_type.value
        service.remote_port = data.remote_port
        service.use_encryption = data.use_encryption
        service.use_compression = data.use_compression
        service.public_url = build_public_url(data.subdomain, self.settings)

    async def _load(self, service_id: uuid.UUID | str) -> Service | None:
        if not isinstance(service_id, uuid.UUID):
            try:
                service_id = uuid.UUID(str(service_id))
            except ValueError:
                return None
        return await self.session.get(Service, service_id)

    async def _get_owned(self, caller: CallerIdentity, service_id: uuid.UUID | str) -> Service:
        async with self._guard("loading service"):
            service = await self._load(service_id)
        if service is None or service.owner_id != caller.user_id:
            raise NotFound("Service not found")
        return service

    def _dispatch_notification(self, service: Service) -> None:
        try:
            self._notify(
                service.owner_id,
                f'Your service "{service.name}" is registered at {service.public_url}.',
                kind="success",
                link=f"/dashboard/service/{service.id}/client-config",
            )
        except Exception:
            logger.exception("Could not schedule notification for service %s", service.id)

    @asynccontextmanager
    async def _guard(self, action: str, subdomain: str | None = None) -> AsyncIterator[None]:
        try:
            yield
        except IntegrityError as exc:
            await self.session.rollback()
            if subdomain is not None and is_subdomain_conflict(exc):
                logger.info("Subdomain %s was claimed concurrently", subdomain)
                raise DuplicateSubdomain(subdomain) from exc
            logger.exception("Integrity error while %s", action)
            raise InternalFailure() from exc
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.exception("Store failure while %s", action)
            raise InternalFailure() from exc
