"""
User Service

Profiles, admin user management and profile pictures.

A user document is always one variant of UserProfile (junior, company or
admin). Every write is merged with the stored document and validated
against that variant before it is saved, and fields that belong to another
variant are refused. The role itself never changes here.
"""

import logging
from typing import Optional

from pydantic import ValidationError
from pymongo.database import Database

from app.core.errors import Forbidden, NotFound, ValidationFailed, ensure_allowed
from app.core.policy import (
    Action, Actor, ApplicationResource, DenyReason, UserResource, can_perform
)
from app.schemas.schemas import UserRole, UserUpdate, user_profile_adapter
from app.services.mongo_service import (
    ApplicationStore, CommentStore, NotificationStore, ProjectStore, UserStore
)
from app.services.project_service import ProjectService
from app.utils.file_upload import delete_upload, save_image

logger = logging.getLogger(__name__)


def validate_profile(doc: dict):
    """Validate a user document against its role variant."""
    try:
        return user_profile_adapter.validate_python(doc)
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ValidationFailed(f"Invalid user profile: {errors}")


class UserService:
    def __init__(self, db: Database = None):
        self.db = db
        self.users = UserStore(db)
        self.projects = ProjectStore(db)
        self.applications = ApplicationStore(db)
        self.comments = CommentStore(db)
        self.notifications = NotificationStore(db)

    def get_user(self, user_id: str) -> dict:
        user = self.users.get_by_id(user_id)
        if not user:
            raise NotFound("User not found")
        return user

    def list_users(
        self,
        role: Optional[UserRole] = None,
        search: Optional[str] = None,
        page: int = 1,
        page_size: int = 10
    ) -> dict:
        users, total = self.users.list_users(
            role=role.value if role else None, search=search, page=page, page_size=page_size
        )
        return {"users": users, "total": total, "page": page, "page_size": page_size}

    def update_user(self, actor: Actor, user_id: str, data: UserUpdate) -> dict:
        user = self.get_user(user_id)
        ensure_allowed(can_perform(actor, Action.update, UserResource(user_id=user["id"])))

        fields = data.model_dump(exclude_unset=True, exclude_none=True, mode="json")
        if not fields:
            return user

        profile = validate_profile(user)
        foreign = sorted(set(fields) - set(type(profile).model_fields))
        if foreign:
            raise ValidationFailed(
                f"Fields not allowed for role {user['role']}: {', '.join(foreign)}"
            )
        validate_profile(dict(user, **fields))

        return self.users.update_fields(user_id, fields)

    def delete_user(self, actor: Actor, user_id: str) -> None:
        """
        Remove a user and everything they own:
        notifications, comments, their applications and (for companies)
        their projects. Refused while one of their projects has an
        accepted application.
        """
        user = self.get_user(user_id)
        ensure_allowed(can_perform(actor, Action.delete, UserResource(user_id=user["id"])))

        owned_projects = self.projects.find_by_company(user_id)
        if any(self.applications.has_accepted(project["id"]) for project in owned_projects):
            raise Forbidden(
                "Cannot delete user with projects that have accepted applications",
                DenyReason.invalid_state
            )

        project_service = ProjectService(self.db)
        for project in owned_projects:
            project_service.cascade_delete(project)

        for application in self.applications.find_by_applicant(user_id):
            self.projects.remove_application(application["project"], application["id"])
            self.applications.delete(application["id"])

        self.comments.delete_by_author(user_id)
        self.notifications.delete_for_user(user_id)
        delete_upload(user.get("profile_picture"))
        self.users.delete(user_id)
        logger.info("User %s deleted by %s", user_id, actor.subject_id)

    def list_user_projects(self, user_id: str, page: int = 1, page_size: int = 10) -> dict:
        self.get_user(user_id)
        projects, total = self.projects.list_projects(company_id=user_id, page=page, page_size=page_size)
        return {"projects": projects, "total": total, "page": page, "page_size": page_size}

    def list_user_applications(self, actor: Actor, user_id: str, page: int = 1, page_size: int = 10) -> dict:
        user = self.get_user(user_id)
        ensure_allowed(can_perform(actor, Action.read, ApplicationResource(applicant_id=user["id"])))
        applications, total = self.applications.list_applications(
            applicant_id=user_id, page=page, page_size=page_size
        )
        return {"applications": applications, "total": total, "page": page, "page_size": page_size}

    # ============================================================
    # PROFILE PICTURE
    # ============================================================

    def upload_profile_picture(self, actor: Actor, user_id: str, filename: str, content: bytes) -> dict:
        user = self.get_user(user_id)
        ensure_allowed(can_perform(actor, Action.update, UserResource(user_id=user["id"])))

        url = save_image(filename, content, "profiles")
        delete_upload(user.get("profile_picture"))
        return self.users.update_fields(user_id, {"profile_picture": url})

    def delete_profile_picture(self, actor: Actor, user_id: str) -> dict:
        user = self.get_user(user_id)
        ensure_allowed(can_perform(actor, Action.update, UserResource(user_id=user["id"])))

        delete_upload(user.get("profile_picture"))
        return self.users.update_fields(user_id, {"profile_picture": ""})
