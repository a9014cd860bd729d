"""Subdomain allocation and public URL derivation.

The lookup in ``ensure_available`` only exists to give a friendly error before
hitting the database. Two concurrent registrations can both pass it; the
unique constraint on ``services.subdomain`` decides which one wins and
``is_subdomain_conflict`` recognises the loser's IntegrityError.
"""

import uuid

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from panda.core.config import Settings
from panda.core.errors import DuplicateSubdomain
from panda.models.service import Service


def base_host(settings: Settings) -> str:
    return settings.panda_tunnel_main_host or settings.frp_server_base_domain


def build_public_url(subdomain: str, settings: Settings) -> str:
    return f"http://{subdomain}.{base_host(settings)}"


async def ensure_available(
    session: AsyncSession,
    subdomain: str,
    current: Service | None = None,
) -> None:
    """Raise DuplicateSubdomain if another service already holds ``subdomain``.

    ``current`` is the service being updated; keeping its own subdomain is
    always allowed.
    """
    if current is not None and current.subdomain == subdomain:
        return

    stmt = select(Service.id).where(Service.subdomain == subdomain)
    if current is not None:
        stmt = stmt.where(Service.id != current.id)
    result = await session.execute(stmt)
    holder: uuid.UUID | None = result.scalars().first()
    if holder is not None:
        raise DuplicateSubdomain(subdomain)


def is_subdomain_conflict(exc: IntegrityError) -> bool:
    """True when the violated constraint is the subdomain uniqueness one."""
    message = str(exc.orig) if exc.orig is not None else str(exc)
    return "subdomain" in message.lower()
