"""
Project Service

Lifecycle of a project posted by a company:
    open -> in-progress -> completed / canceled

A project takes new applications only while its status is "open" AND
`is_accepting_applications` is true. The flag follows the status on every
write: leaving "open" clears it, returning to "open" sets it again unless
the same write turns it off.
"""

import logging
from typing import List, Optional

from pymongo.database import Database

from app.core.errors import Forbidden, NotFound, ensure_allowed
from app.core.policy import (
    Action, Actor, ApplicationResource, DenyReason, ProjectResource, can_perform
)
from app.schemas.schemas import ProjectCreate, ProjectStatus, ProjectUpdate, UserRole
from app.services.mongo_service import (
    ApplicationStore, CommentStore, ProjectStore, UserStore, to_object_id
)
from app.utils.file_upload import delete_upload, save_image

logger = logging.getLogger(__name__)


def accepts_applications(project: dict) -> bool:
    return (
        project.get("status") == ProjectStatus.open.value
        and bool(project.get("is_accepting_applications"))
    )


def sync_accepting_flag(current: dict, fields: dict) -> dict:
    """Return `fields` with is_accepting_applications consistent with status."""
    fields = dict(fields)
    status = fields.get("status", current.get("status"))
    if status != ProjectStatus.open.value:
        fields["is_accepting_applications"] = False
    elif (
        "status" in fields
        and current.get("status") != ProjectStatus.open.value
        and "is_accepting_applications" not in fields
    ):
        fields["is_accepting_applications"] = True
    return fields


class ProjectService:
    def __init__(self, db: Database = None):
        self.projects = ProjectStore(db)
        self.applications = ApplicationStore(db)
        self.comments = CommentStore(db)
        self.users = UserStore(db)

    def get_project(self, project_id: str) -> dict:
        project = self.projects.get_by_id(project_id)
        if not project:
            raise NotFound("Project not found")
        return project

    def list_projects(
        self,
        status: Optional[ProjectStatus] = None,
        skills: Optional[List[str]] = None,
        search: Optional[str] = None,
        page: int = 1,
        page_size: int = 10,
        sort: str = "created_at",
        order: str = "desc"
    ) -> dict:
        projects, total = self.projects.list_projects(
            status=status.value if status else None,
            skills=skills,
            search=search,
            page=page,
            page_size=page_size,
            sort=sort,
            order=order
        )
        return {"projects": projects, "total": total, "page": page, "page_size": page_size}

    def create_project(self, actor: Actor, data: ProjectCreate) -> dict:
        ensure_allowed(can_perform(actor, Action.create, ProjectResource(company_id=actor.subject_id)))
        if actor.role != UserRole.company:
            raise Forbidden("Only companies can own projects", DenyReason.wrong_role)

        doc = data.model_dump()
        doc.update({
            "company": to_object_id(actor.subject_id, "user"),
            "status": ProjectStatus.open.value,
            "is_accepting_applications": True,
            "images": [],
            "applications": [],
            "selected_developer": None,
            "likes": 0
        })
        project = self.projects.insert(doc)
        self.users.add_project(actor.subject_id, project["id"])

        logger.info("Project %s created by %s", project["id"], actor.subject_id)
        return project

    def update_project(self, actor: Actor, project_id: str, data: ProjectUpdate) -> dict:
        project = self.get_project(project_id)
        ensure_allowed(can_perform(actor, Action.update, ProjectResource(company_id=project["company"])))

        fields = data.model_dump(exclude_unset=True, exclude={"images_to_remove"})
        fields = {key: value for key, value in fields.items() if value is not None}
        if "status" in fields:
            fields["status"] = ProjectStatus(fields["status"]).value
        fields = sync_accepting_flag(project, fields)

        if data.images_to_remove:
            current = project.get("images", [])
            removed = [url for url in current if url in data.images_to_remove]
            fields["images"] = [url for url in current if url not in data.images_to_remove]
            for url in removed:
                delete_upload(url)

        return self.projects.update_fields(project_id, fields)

    def add_images(self, actor: Actor, project_id: str, files: List[tuple]) -> dict:
        """Attach uploaded images. `files` is a list of (filename, content)."""
        project = self.get_project(project_id)
        ensure_allowed(can_perform(actor, Action.update, ProjectResource(company_id=project["company"])))

        urls = [save_image(filename, content, "projects") for filename, content in files]
        return self.projects.update_fields(project_id, {"images": project.get("images", []) + urls})

    def delete_project(self, actor: Actor, project_id: str) -> None:
        project = self.get_project(project_id)
        resource = ProjectResource(
            company_id=project["company"],
            has_accepted_applications=self.applications.has_accepted(project_id)
        )
        ensure_allowed(can_perform(actor, Action.delete, resource))
        self.cascade_delete(project)
        logger.info("Project %s deleted by %s", project_id, actor.subject_id)

    def cascade_delete(self, project: dict) -> None:
        """Remove a project with its applications, comments and back-references."""
        project_id = project["id"]
        for application in self.applications.delete_by_project(project_id):
            self.users.remove_application(application["applicant"], application["id"])
        self.comments.delete_by_project(project_id)
        self.users.remove_project(project["company"], project_id)
        for url in project.get("images", []):
            delete_upload(url)
        self.projects.delete(project_id)

    def list_project_applications(
        self, actor: Actor, project_id: str, status: Optional[str] = None
    ) -> List[dict]:
        project = self.get_project(project_id)
        ensure_allowed(can_perform(actor, Action.read, ApplicationResource(company_id=project["company"])))
        return self.applications.find_by_project(project_id, status)
