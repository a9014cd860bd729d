"""User notifications: best-effort HTTP POST to the notification service."""

import asyncio
import logging
import uuid

import httpx

from panda.core.config import get_settings

logger = logging.getLogger(__name__)

# Strong references so scheduled tasks aren't garbage-collected mid-flight
_pending: set[asyncio.Task] = set()


async def notify_user(
    user_id: uuid.UUID,
    message: str,
    kind: str = "info",
    link: str | None = None,
) -> None:
    """Deliver one notification. Never raises."""
    settings = get_settings()
    if not settings.notifier_url:
        logger.info("Notification for user %s (no notifier configured): %s", user_id, message)
        return

    payload = {"userId": str(user_id), "message": message, "type": kind, "link": link}
    try:
        async with httpx.AsyncClient(timeout=settings.notifier_timeout_seconds) as client:
            resp = await client.post(settings.notifier_url, json=payload)
        if not resp.is_success:
            logger.warning(
                "Notification for user %s rejected with HTTP %s", user_id, resp.status_code
            )
    except Exception:
        logger.warning("Notification delivery failed for user %s", user_id, exc_info=True)


def schedule_notification(
    user_id: uuid.UUID,
    message: str,
    kind: str = "info",
    link: str | None = None,
) -> asyncio.Task:
    """Fire-and-forget: the caller never awaits or sees the outcome."""
    task = asyncio.create_task(notify_user(user_id, message, kind=kind, link=link))
    _pending.add(task)
    task.add_done_callback(_pending.discard)
    return task
