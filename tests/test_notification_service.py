"""
Notification dispatch and inbox tests.
"""
import pytest
from pymongo.errors import PyMongoError

from app.core.errors import Forbidden, NotFound
from app.schemas.schemas import ApplicationStatus, NotificationCategory, NotificationResponse
from app.services.mongo_service import NotificationStore
from app.services.notification_service import NotificationDispatcher, NotificationService
from tests.conftest import FailingTransport, actor_for

PROJECT = {"id": "0123456789abcdef01234567", "title": "Landing page"}
APPLICATION_ID = "89abcdef0123456789abcdef"


def test_notify_persists_then_pushes(db, dispatcher, transport, junior):
    notification = dispatcher.notify(junior["id"], "Hello")

    stored = NotificationStore(db).get_by_id(notification["id"])
    assert stored["message"] == "Hello"
    assert stored["type"] == "info"
    assert stored["read"] is False

    assert transport.user_pushes == [
        (junior["id"], {"type": "notification", "notification": notification})
    ]


def test_push_failure_is_swallowed(db, junior):
    dispatcher = NotificationDispatcher(NotificationStore(db), FailingTransport())

    notification = dispatcher.notify(junior["id"], "Still stored")

    assert NotificationStore(db).get_by_id(notification["id"]) is not None


def test_error_category_is_stored_and_served(db, dispatcher, junior):
    notification = dispatcher.notify(junior["id"], "Upload failed", NotificationCategory.error)

    assert NotificationStore(db).get_by_id(notification["id"])["type"] == "error"
    assert NotificationResponse.model_validate(notification).type == NotificationCategory.error


def test_persistence_failure_propagates_and_nothing_is_pushed(db, transport, junior, monkeypatch):
    store = NotificationStore(db)

    def broken_insert(*args, **kwargs):
        raise PyMongoError("write failed")

    monkeypatch.setattr(store, "insert", broken_insert)
    dispatcher = NotificationDispatcher(store, transport)

    with pytest.raises(PyMongoError):
        dispatcher.notify(junior["id"], "Lost")
    assert transport.user_pushes == []


def test_application_received_template(dispatcher, company):
    notification = dispatcher.application_received(company["id"], PROJECT, APPLICATION_ID)

    assert notification["message"] == 'New application received for project "Landing page"'
    assert notification["type"] == "info"
    assert notification["related_to"] == {"model": "Application", "id": APPLICATION_ID}


@pytest.mark.parametrize("status, category, fragment", [
    (ApplicationStatus.accepted, "success", "accepted"),
    (ApplicationStatus.rejected, "warning", "rejected"),
    (ApplicationStatus.withdrawn, "info", "updated to withdrawn"),
    (ApplicationStatus.pending, "info", "updated to pending"),
])
def test_status_change_templates(dispatcher, junior, status, category, fragment):
    notification = dispatcher.application_status_changed(junior["id"], PROJECT, APPLICATION_ID, status)

    assert notification["type"] == category
    assert fragment in notification["message"]
    assert "Landing page" in notification["message"]


def test_broadcast_goes_to_project_room_and_is_not_stored(db, dispatcher, transport):
    dispatcher.broadcast_to_project(PROJECT["id"], "newComment", {"comment": {"content": "Hi"}})

    assert transport.room_pushes == [
        (f"project-{PROJECT['id']}", {"type": "newComment", "comment": {"content": "Hi"}})
    ]
    assert db["notifications"].count_documents({}) == 0


def test_broadcast_failure_is_swallowed(db):
    dispatcher = NotificationDispatcher(NotificationStore(db), FailingTransport())
    dispatcher.broadcast_to_project(PROJECT["id"], "deleteComment", {"comment_id": "x"})


# ============================================================
# INBOX
# ============================================================

def test_inbox_lists_counts_and_marks(db, dispatcher, junior, other_junior):
    first = dispatcher.notify(junior["id"], "one")
    dispatcher.notify(junior["id"], "two")
    dispatcher.notify(other_junior["id"], "not yours")
    service = NotificationService(db)
    actor = actor_for(junior)

    listing = service.list_notifications(actor)
    assert listing["total"] == 2
    assert listing["unread"] == 2

    service.mark_read(actor, first["id"])
    assert service.unread_count(actor) == 1
    assert service.list_notifications(actor, read=True)["total"] == 1

    assert service.mark_all_read(actor) == 1
    assert service.unread_count(actor) == 0


def test_inbox_rejects_other_users_notification(db, dispatcher, junior, other_junior):
    notification = dispatcher.notify(junior["id"], "private")
    service = NotificationService(db)

    with pytest.raises(Forbidden) as exc:
        service.mark_read(actor_for(other_junior), notification["id"])
    assert exc.value.status_code == 403

    with pytest.raises(Forbidden):
        service.delete(actor_for(other_junior), notification["id"])


def test_inbox_not_found_before_authorization(db, other_junior):
    with pytest.raises(NotFound):
        NotificationService(db).delete(actor_for(other_junior), "0123456789abcdef01234567")


def test_inbox_delete(db, dispatcher, junior):
    notification = dispatcher.notify(junior["id"], "bye")
    NotificationService(db).delete(actor_for(junior), notification["id"])
    assert NotificationStore(db).get_by_id(notification["id"]) is None
