"""
Comment Service

Comments are public discussion on a project. Every change is broadcast to
the project's room so open project pages update live; nothing about the
broadcast is stored.
"""

from pymongo.database import Database

from app.core.errors import NotFound, ensure_allowed
from app.core.policy import Action, Actor, CommentResource, can_perform
from app.schemas.schemas import CommentCreate
from app.services.mongo_service import CommentStore, ProjectStore, to_object_id
from app.services.notification_service import NotificationDispatcher


class CommentService:
    def __init__(self, db: Database = None, dispatcher: NotificationDispatcher = None):
        self.comments = CommentStore(db)
        self.projects = ProjectStore(db)
        self.dispatcher = dispatcher

    def _get_project(self, project_id: str) -> dict:
        project = self.projects.get_by_id(project_id)
        if not project:
            raise NotFound("Project not found")
        return project

    def _get_comment(self, comment_id: str) -> dict:
        comment = self.comments.get_by_id(comment_id)
        if not comment:
            raise NotFound("Comment not found")
        return comment

    def list_comments(self, project_id: str, page: int = 1, page_size: int = 50) -> dict:
        self._get_project(project_id)
        comments, total = self.comments.list_by_project(project_id, page, page_size)
        return {"comments": comments, "total": total, "page": page, "page_size": page_size}

    def create_comment(self, actor: Actor, project_id: str, data: CommentCreate) -> dict:
        self._get_project(project_id)
        ensure_allowed(can_perform(actor, Action.create, CommentResource(author_id=actor.subject_id)))

        comment = self.comments.insert({
            "project": to_object_id(project_id, "project"),
            "author": to_object_id(actor.subject_id, "user"),
            "content": data.content
        })
        self.dispatcher.broadcast_to_project(project_id, "newComment", {"comment": comment})
        return comment

    def update_comment(self, actor: Actor, comment_id: str, data: CommentCreate) -> dict:
        comment = self._get_comment(comment_id)
        ensure_allowed(can_perform(actor, Action.update, CommentResource(author_id=comment["author"])))

        updated = self.comments.update_fields(comment_id, {"content": data.content})
        self.dispatcher.broadcast_to_project(comment["project"], "updateComment", {"comment": updated})
        return updated

    def delete_comment(self, actor: Actor, comment_id: str) -> None:
        comment = self._get_comment(comment_id)
        ensure_allowed(can_perform(actor, Action.delete, CommentResource(author_id=comment["author"])))

        self.comments.delete(comment_id)
        self.dispatcher.broadcast_to_project(
            comment["project"], "deleteComment", {"comment_id": comment_id, "project": comment["project"]}
        )
