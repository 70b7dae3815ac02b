"""
Application lifecycle tests: apply, decide, withdraw, submit work.
"""
import pytest
from pymongo.errors import PyMongoError

from app.core.errors import Conflict, Forbidden, NotFound
from app.schemas.schemas import (
    ApplicationCreate, ApplicationStatusUpdate, ProjectCreate, ProjectUpdate, SubmitWorkRequest
)
from app.services.application_service import ApplicationService
from app.services.mongo_service import NotificationStore, ProjectStore, UserStore
from app.services.notification_service import NotificationDispatcher
from app.services.project_service import ProjectService
from tests.conftest import FailingTransport, actor_for, project_payload

COVER = ApplicationCreate(cover_letter="I would love to build this")


@pytest.fixture
def project(db, company):
    return ProjectService(db).create_project(actor_for(company), ProjectCreate(**project_payload()))


@pytest.fixture
def service(db, dispatcher):
    return ApplicationService(db, dispatcher, close_project_on_accept=False)


def company_notifications(db, company):
    return NotificationStore(db).list_for_user(company["id"])[0]


def test_apply_creates_pending_application_with_back_references(db, service, project, junior):
    application = service.apply(actor_for(junior), project["id"], COVER)

    assert application["status"] == "pending"
    assert application["applicant"] == junior["id"]
    assert application["id"] in ProjectStore(db).get_by_id(project["id"])["applications"]
    assert application["id"] in UserStore(db).get_by_id(junior["id"])["applications"]


def test_apply_notifies_company_exactly_once(db, service, project, junior, company, transport):
    service.apply(actor_for(junior), project["id"], COVER)

    notifications = company_notifications(db, company)
    assert len(notifications) == 1
    assert notifications[0]["type"] == "info"
    assert project["title"] in notifications[0]["message"]
    assert [recipient for recipient, _ in transport.user_pushes] == [company["id"]]


def test_apply_succeeds_when_push_fails(db, project, junior, company):
    dispatcher = NotificationDispatcher(NotificationStore(db), FailingTransport())
    service = ApplicationService(db, dispatcher, close_project_on_accept=False)

    application = service.apply(actor_for(junior), project["id"], COVER)

    assert service.applications.get_by_id(application["id"]) is not None
    assert len(company_notifications(db, company)) == 1


def test_notification_write_failure_surfaces_but_application_is_kept(db, project, junior, transport, monkeypatch):
    store = NotificationStore(db)

    def broken_insert(*args, **kwargs):
        raise PyMongoError("down")

    monkeypatch.setattr(store, "insert", broken_insert)
    service = ApplicationService(db, NotificationDispatcher(store, transport), close_project_on_accept=False)

    with pytest.raises(PyMongoError):
        service.apply(actor_for(junior), project["id"], COVER)

    assert db["applications"].count_documents({}) == 1


def test_duplicate_application_is_conflict(db, service, project, junior):
    service.apply(actor_for(junior), project["id"], COVER)

    with pytest.raises(Conflict) as exc:
        service.apply(actor_for(junior), project["id"], COVER)
    assert exc.value.reason == "already_applied"
    assert db["applications"].count_documents({}) == 1


def test_company_cannot_apply(service, project, company):
    with pytest.raises(Forbidden) as exc:
        service.apply(actor_for(company), project["id"], COVER)
    assert exc.value.reason == "wrong_role"


def test_admin_cannot_apply(db, service, project, admin):
    with pytest.raises(Forbidden) as exc:
        service.apply(actor_for(admin), project["id"], COVER)
    assert exc.value.reason == "wrong_role"
    assert db["applications"].count_documents({}) == 0
    assert UserStore(db).get_by_id(admin["id"]).get("applications", []) == []


def test_apply_to_missing_project_is_not_found(service, junior):
    with pytest.raises(NotFound):
        service.apply(actor_for(junior), "0123456789abcdef01234567", COVER)


def test_apply_to_closed_project_is_invalid_state(db, service, project, junior, company):
    ProjectService(db).update_project(
        actor_for(company), project["id"], ProjectUpdate(status="in-progress")
    )

    with pytest.raises(Forbidden) as exc:
        service.apply(actor_for(junior), project["id"], COVER)
    assert exc.value.reason == "invalid_state"
    assert exc.value.status_code == 400


def test_accept_notifies_applicant_with_success(db, service, project, junior, company):
    application = service.apply(actor_for(junior), project["id"], COVER)

    updated = service.update_status(
        actor_for(company), application["id"], ApplicationStatusUpdate(status="accepted", feedback="Welcome")
    )

    assert updated["status"] == "accepted"
    assert updated["feedback"] == "Welcome"
    notifications = NotificationStore(db).list_for_user(junior["id"])[0]
    assert [n["type"] for n in notifications] == ["success"]


def test_reject_notifies_with_warning(db, service, project, junior, company):
    application = service.apply(actor_for(junior), project["id"], COVER)
    service.update_status(actor_for(company), application["id"], ApplicationStatusUpdate(status="rejected"))

    notifications = NotificationStore(db).list_for_user(junior["id"])[0]
    assert [n["type"] for n in notifications] == ["warning"]


def test_same_status_does_not_notify(db, service, project, junior, company):
    application = service.apply(actor_for(junior), project["id"], COVER)
    service.update_status(actor_for(company), application["id"], ApplicationStatusUpdate(status="accepted"))
    service.update_status(actor_for(company), application["id"], ApplicationStatusUpdate(status="accepted"))

    assert len(NotificationStore(db).list_for_user(junior["id"])[0]) == 1


def test_withdraw_through_status_update_notifies_company(db, service, project, junior, company):
    application = service.apply(actor_for(junior), project["id"], COVER)

    updated = service.update_status(
        actor_for(junior), application["id"], ApplicationStatusUpdate(status="withdrawn")
    )

    assert updated["status"] == "withdrawn"
    messages = [n["message"] for n in company_notifications(db, company)]
    assert len(messages) == 2
    assert any("has been withdrawn" in message for message in messages)
    assert NotificationStore(db).list_for_user(junior["id"])[0] == []


def test_other_junior_cannot_read_or_withdraw(service, project, junior, other_junior):
    application = service.apply(actor_for(junior), project["id"], COVER)

    for call in (service.get_application, service.withdraw):
        with pytest.raises(Forbidden) as exc:
            call(actor_for(other_junior), application["id"])
        assert exc.value.reason == "not_owner"


def test_withdraw_keeps_record_and_blocks_reapply(db, service, project, junior, company):
    application = service.apply(actor_for(junior), project["id"], COVER)

    withdrawn = service.withdraw(actor_for(junior), application["id"])

    assert withdrawn["status"] == "withdrawn"
    with pytest.raises(Conflict):
        service.apply(actor_for(junior), project["id"], COVER)
    with pytest.raises(Forbidden) as exc:
        service.withdraw(actor_for(junior), application["id"])
    assert exc.value.reason == "invalid_state"


def test_submit_work_requires_acceptance(service, project, junior, company):
    application = service.apply(actor_for(junior), project["id"], COVER)
    submission = SubmitWorkRequest(submission_link="https://github.com/jane/landing")

    with pytest.raises(Forbidden) as exc:
        service.submit_work(actor_for(junior), application["id"], submission)
    assert exc.value.reason == "invalid_state"
    assert "not accepted yet" in exc.value.message

    service.update_status(actor_for(company), application["id"], ApplicationStatusUpdate(status="accepted"))

    with pytest.raises(Forbidden) as exc:
        service.submit_work(actor_for(company), application["id"], submission)
    assert exc.value.reason == "not_owner"

    done = service.submit_work(actor_for(junior), application["id"], submission)
    assert done["submission_link"].startswith("https://github.com/jane/landing")


def test_second_junior_can_apply_after_first_is_accepted(service, project, junior, other_junior, company):
    first = service.apply(actor_for(junior), project["id"], COVER)
    service.update_status(actor_for(company), first["id"], ApplicationStatusUpdate(status="accepted"))

    second = service.apply(actor_for(other_junior), project["id"], COVER)
    assert second["status"] == "pending"


def test_close_project_on_accept_stops_new_applications(db, dispatcher, project, junior, other_junior, company):
    service = ApplicationService(db, dispatcher, close_project_on_accept=True)
    first = service.apply(actor_for(junior), project["id"], COVER)
    service.update_status(actor_for(company), first["id"], ApplicationStatusUpdate(status="accepted"))

    stored = ProjectStore(db).get_by_id(project["id"])
    assert stored["is_accepting_applications"] is False
    assert stored["selected_developer"] == junior["id"]

    with pytest.raises(Forbidden) as exc:
        service.apply(actor_for(other_junior), project["id"], COVER)
    assert exc.value.reason == "invalid_state"


def test_admin_only_listing_and_delete(db, service, project, junior, admin):
    application = service.apply(actor_for(junior), project["id"], COVER)

    with pytest.raises(Forbidden):
        service.list_applications(actor_for(junior))
    assert service.list_applications(actor_for(admin))["total"] == 1

    with pytest.raises(Forbidden) as exc:
        service.delete_application(actor_for(junior), application["id"])
    assert exc.value.reason == "wrong_role"

    service.delete_application(actor_for(admin), application["id"])
    assert application["id"] not in ProjectStore(db).get_by_id(project["id"])["applications"]
    assert application["id"] not in UserStore(db).get_by_id(junior["id"])["applications"]
