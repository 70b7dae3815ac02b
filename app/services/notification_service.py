"""
Notification Service

Two paths to the same data:
- Dispatch (push): business flows call NotificationDispatcher when something
  a user cares about happens. The notification is persisted first, then one
  best-effort real-time push is attempted through an injected transport.
- Inbox (pull): NotificationService lists, counts, marks and deletes a
  user's stored notifications.

The stored notification is the source of truth. A failed push is logged and
forgotten; the client catches up through the inbox.
"""

import logging
from typing import Optional, Protocol

from pymongo.database import Database

from app.core.errors import NotFound, ensure_allowed
from app.core.policy import Action, Actor, NotificationResource, can_perform
from app.schemas.schemas import ApplicationStatus, NotificationCategory, RelatedModel
from app.services.mongo_service import NotificationStore

logger = logging.getLogger(__name__)


# ============================================================
# TRANSPORTS
# ============================================================

class NotificationTransport(Protocol):
    """Anything that can deliver a payload to a user or a room."""

    def push_to_user(self, recipient_id: str, payload: dict) -> None:
        ...

    def push_to_room(self, room_id: str, payload: dict) -> None:
        ...


class NullTransport:
    """Transport for contexts without a real-time channel (scripts, jobs)."""

    def push_to_user(self, recipient_id: str, payload: dict) -> None:
        return None

    def push_to_room(self, room_id: str, payload: dict) -> None:
        return None


def user_room(user_id: str) -> str:
    return f"user-{user_id}"


def project_room(project_id: str) -> str:
    return f"project-{project_id}"


# ============================================================
# DISPATCH
# ============================================================

class NotificationDispatcher:
    """Persist-then-push notification delivery."""

    def __init__(self, store: NotificationStore, transport: Optional[NotificationTransport] = None):
        self.store = store
        self.transport = transport or NullTransport()

    def notify(
        self,
        recipient_id: str,
        message: str,
        category: NotificationCategory = NotificationCategory.info,
        related: Optional[dict] = None
    ) -> dict:
        """
        Store a notification for `recipient_id` and push it if they are online.

        Persistence errors propagate to the caller. Push errors do not.
        """
        notification = self.store.insert(
            recipient_id,
            message,
            NotificationCategory(category).value,
            related
        )
        try:
            self.transport.push_to_user(
                recipient_id,
                {"type": "notification", "notification": notification}
            )
        except Exception:
            logger.warning("Real-time push to user %s failed", recipient_id, exc_info=True)
        return notification

    def application_received(self, company_id: str, project: dict, application_id: str) -> dict:
        return self.notify(
            company_id,
            f'New application received for project "{project["title"]}"',
            NotificationCategory.info,
            {"model": RelatedModel.application.value, "id": application_id}
        )

    def application_status_changed(
        self,
        applicant_id: str,
        project: dict,
        application_id: str,
        status: ApplicationStatus
    ) -> dict:
        status = ApplicationStatus(status)
        title = project["title"]
        if status == ApplicationStatus.accepted:
            message = f'Your application for project "{title}" has been accepted!'
            category = NotificationCategory.success
        elif status == ApplicationStatus.rejected:
            message = f'Your application for project "{title}" has been rejected.'
            category = NotificationCategory.warning
        else:
            message = f'Your application status for project "{title}" has been updated to {status.value}.'
            category = NotificationCategory.info
        return self.notify(
            applicant_id,
            message,
            category,
            {"model": RelatedModel.application.value, "id": application_id}
        )

    def application_withdrawn(self, company_id: str, project: dict, application_id: str) -> dict:
        return self.notify(
            company_id,
            f'An application for project "{project["title"]}" has been withdrawn.',
            NotificationCategory.info,
            {"model": RelatedModel.application.value, "id": application_id}
        )

    def work_submitted(self, company_id: str, project: dict, application_id: str) -> dict:
        return self.notify(
            company_id,
            f'Work has been submitted for project "{project["title"]}".',
            NotificationCategory.success,
            {"model": RelatedModel.application.value, "id": application_id}
        )

    def broadcast_to_project(self, project_id: str, event: str, payload: dict) -> None:
        """Ephemeral event for everyone watching a project. Nothing is stored."""
        try:
            self.transport.push_to_room(project_room(project_id), dict(payload, type=event))
        except Exception:
            logger.warning("Broadcast of %s to project %s failed", event, project_id, exc_info=True)


# ============================================================
# INBOX
# ============================================================

class NotificationService:
    """A user's stored notifications."""

    def __init__(self, db: Database = None):
        self.store = NotificationStore(db)

    def _get_owned(self, actor: Actor, notification_id: str, action: Action) -> dict:
        notification = self.store.get_by_id(notification_id)
        if not notification:
            raise NotFound("Notification not found")
        ensure_allowed(can_perform(actor, action, NotificationResource(recipient_id=notification["user"])))
        return notification

    def list_notifications(
        self, actor: Actor, read: Optional[bool] = None, page: int = 1, page_size: int = 10
    ) -> dict:
        notifications, total = self.store.list_for_user(actor.subject_id, read, page, page_size)
        return {
            "notifications": notifications,
            "total": total,
            "unread": self.store.count_unread(actor.subject_id),
            "page": page,
            "page_size": page_size
        }

    def unread_count(self, actor: Actor) -> int:
        return self.store.count_unread(actor.subject_id)

    def mark_read(self, actor: Actor, notification_id: str) -> dict:
        self._get_owned(actor, notification_id, Action.update)
        return self.store.update_fields(notification_id, {"read": True})

    def mark_all_read(self, actor: Actor) -> int:
        return self.store.mark_all_read(actor.subject_id)

    def delete(self, actor: Actor, notification_id: str) -> None:
        self._get_owned(actor, notification_id, Action.delete)
        self.store.delete(notification_id)
