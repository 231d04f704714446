"""
Cancelling the post-dinner "how did it go?" reminder once an event is done.

Finalization only needs something with ``cancel(event_id, notification_id=None)``.
The router picks the implementation from settings and defers the call to a
background task so a slow or failing push backend never holds up the unload.
"""

from typing import Optional, Protocol
from uuid import UUID

import requests
from fastapi import BackgroundTasks

from core.config import settings
from core.exceptions import NotificationError
from core.logging_config import get_child_logger

logger = get_child_logger("notifications")


class NotificationCanceller(Protocol):
    def cancel(self, event_id: UUID, notification_id: Optional[str] = None) -> None:
        ...


class NullNotificationCanceller:
    """Used when no push backend is configured."""

    def cancel(self, event_id: UUID, notification_id: Optional[str] = None) -> None:
        logger.info("No notification backend configured; dropping cancel for event %s (%s)", event_id, notification_id)


class WebhookNotificationCanceller:
    def __init__(self, base_url: str, timeout: float = 5.0, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def cancel(self, event_id: UUID, notification_id: Optional[str] = None) -> None:
        url = f"{self.base_url}/notifications/{notification_id or event_id}"
        try:
            resp = self.session.delete(url, params={"event_id": str(event_id)}, timeout=self.timeout)
        except requests.RequestException as e:
            raise NotificationError(f"Notification backend unreachable: {e}", original_exception=e)
        # Already gone is fine.
        if resp.status_code == 404:
            return
        if resp.status_code >= 400:
            raise NotificationError(f"Notification cancel failed {resp.status_code}: {resp.text}")
        logger.info("Cancelled post-dinner notification %s for event %s", notification_id, event_id)


class DeferredNotificationCanceller:
    """Queues the cancel on FastAPI background tasks (runs after the response)."""

    def __init__(self, background_tasks: BackgroundTasks, inner: NotificationCanceller):
        self.background_tasks = background_tasks
        self.inner = inner

    def cancel(self, event_id: UUID, notification_id: Optional[str] = None) -> None:
        self.background_tasks.add_task(_cancel_quietly, self.inner, event_id, notification_id)


def _cancel_quietly(inner: NotificationCanceller, event_id: UUID, notification_id: Optional[str]) -> None:
    try:
        inner.cancel(event_id, notification_id)
    except NotificationError as e:
        logger.warning("Could not cancel notification for event %s: %s", event_id, e)


def build_notification_canceller() -> NotificationCanceller:
    if settings.notification_webhook_url:
        return WebhookNotificationCanceller(
            settings.notification_webhook_url,
            timeout=settings.notification_timeout_seconds,
        )
    return NullNotificationCanceller()
