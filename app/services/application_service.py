"""
Application Service

A junior applies to a project; the owning company accepts or rejects; the
applicant may withdraw and, once accepted, submit work.

    pending -> accepted -> (submit work)
            -> rejected
            -> withdrawn

Every state change the other side cares about produces one notification.
"""

import logging
from typing import Optional

from pymongo.database import Database

from app.core.config import get_settings
from app.core.errors import Forbidden, NotFound, ensure_allowed
from app.core.policy import Action, Actor, ApplicationResource, DenyReason, can_perform
from app.schemas.schemas import (
    ApplicationCreate, ApplicationStatus, ApplicationStatusUpdate, SubmitWorkRequest, UserRole
)
from app.services.mongo_service import ApplicationStore, ProjectStore, UserStore, to_object_id
from app.services.notification_service import NotificationDispatcher
from app.services.project_service import accepts_applications

logger = logging.getLogger(__name__)


class ApplicationService:
    def __init__(
        self,
        db: Database = None,
        dispatcher: NotificationDispatcher = None,
        close_project_on_accept: Optional[bool] = None
    ):
        self.applications = ApplicationStore(db)
        self.projects = ProjectStore(db)
        self.users = UserStore(db)
        self.dispatcher = dispatcher
        if close_project_on_accept is None:
            close_project_on_accept = get_settings().close_project_on_accept
        self.close_project_on_accept = close_project_on_accept

    # ============================================================
    # HELPERS
    # ============================================================

    def _load(self, application_id: str):
        """Fetch an application together with its project."""
        application = self.applications.get_by_id(application_id)
        if not application:
            raise NotFound("Application not found")
        project = self.projects.get_by_id(application["project"])
        return application, project

    @staticmethod
    def _resource(application: dict, project: Optional[dict], target: ApplicationStatus = None):
        return ApplicationResource(
            applicant_id=application["applicant"],
            company_id=project["company"] if project else None,
            status=ApplicationStatus(application["status"]),
            target_status=target
        )

    # ============================================================
    # OPERATIONS
    # ============================================================

    def apply(self, actor: Actor, project_id: str, data: ApplicationCreate) -> dict:
        project = self.projects.get_by_id(project_id)
        if not project:
            raise NotFound("Project not found")

        resource = ApplicationResource(applicant_id=actor.subject_id, company_id=project["company"])
        ensure_allowed(can_perform(actor, Action.create, resource))
        if actor.role != UserRole.junior:
            raise Forbidden("Only juniors can apply to projects", DenyReason.wrong_role)

        if not accepts_applications(project):
            raise Forbidden("Project is not accepting applications", DenyReason.invalid_state)

        # (project, applicant) uniqueness is enforced by the store
        application = self.applications.insert({
            "project": to_object_id(project_id, "project"),
            "applicant": to_object_id(actor.subject_id, "user"),
            "cover_letter": data.cover_letter,
            "status": ApplicationStatus.pending.value,
            "submission_link": None,
            "feedback": None
        })
        self.projects.add_application(project_id, application["id"])
        self.users.add_application(actor.subject_id, application["id"])

        self.dispatcher.application_received(project["company"], project, application["id"])
        return application

    def get_application(self, actor: Actor, application_id: str) -> dict:
        application, project = self._load(application_id)
        ensure_allowed(can_perform(actor, Action.read, self._resource(application, project)))
        return application

    def list_applications(
        self,
        actor: Actor,
        status: Optional[ApplicationStatus] = None,
        project_id: Optional[str] = None,
        applicant_id: Optional[str] = None,
        page: int = 1,
        page_size: int = 10
    ) -> dict:
        """All applications across the platform. Only admins see this list."""
        ensure_allowed(can_perform(actor, Action.read, ApplicationResource()))
        applications, total = self.applications.list_applications(
            status=status.value if status else None,
            project_id=project_id,
            applicant_id=applicant_id,
            page=page,
            page_size=page_size
        )
        return {"applications": applications, "total": total, "page": page, "page_size": page_size}

    def update_status(self, actor: Actor, application_id: str, data: ApplicationStatusUpdate) -> dict:
        application, project = self._load(application_id)
        target = ApplicationStatus(data.status)
        ensure_allowed(can_perform(actor, Action.transition_status, self._resource(application, project, target)))

        previous = application["status"]
        fields = {"status": target.value}
        if data.feedback is not None:
            fields["feedback"] = data.feedback
        updated = self.applications.update_fields(application_id, fields)

        if target == ApplicationStatus.accepted and self.close_project_on_accept and project:
            self.projects.update_fields(project["id"], {
                "is_accepting_applications": False,
                "selected_developer": to_object_id(application["applicant"], "user")
            })

        if previous == target.value or not project:
            return updated
        if target == ApplicationStatus.withdrawn:
            self.dispatcher.application_withdrawn(project["company"], project, application_id)
        else:
            self.dispatcher.application_status_changed(
                application["applicant"], project, application_id, target
            )
        return updated

    def update_feedback(self, actor: Actor, application_id: str, feedback: str) -> dict:
        application, project = self._load(application_id)
        ensure_allowed(can_perform(actor, Action.update, self._resource(application, project)))
        return self.applications.update_fields(application_id, {"feedback": feedback})

    def withdraw(self, actor: Actor, application_id: str) -> dict:
        """The record stays, so the applicant cannot apply to the same project again."""
        application, project = self._load(application_id)
        ensure_allowed(can_perform(actor, Action.withdraw, self._resource(application, project)))

        updated = self.applications.update_fields(
            application_id, {"status": ApplicationStatus.withdrawn.value}
        )
        if project:
            self.dispatcher.application_withdrawn(project["company"], project, application_id)
        return updated

    def submit_work(self, actor: Actor, application_id: str, data: SubmitWorkRequest) -> dict:
        application, project = self._load(application_id)
        ensure_allowed(can_perform(actor, Action.submit_work, self._resource(application, project)))

        updated = self.applications.update_fields(
            application_id, {"submission_link": str(data.submission_link)}
        )
        if project:
            self.dispatcher.work_submitted(project["company"], project, application_id)
        return updated

    def delete_application(self, actor: Actor, application_id: str) -> None:
        application, project = self._load(application_id)
        ensure_allowed(can_perform(actor, Action.delete, self._resource(application, project)))

        self.projects.remove_application(application["project"], application_id)
        self.users.remove_application(application["applicant"], application_id)
        self.applications.delete(application_id)
        logger.info("Application %s deleted by %s", application_id, actor.subject_id)
