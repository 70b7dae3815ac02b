"""
Route dependencies - database, transport and service factories.

Tests replace `get_database` and `get_transport` through
`app.dependency_overrides`; everything else follows from those two.
"""

from fastapi import Depends, Request
from pymongo.database import Database

from app.core.auth import get_current_actor
from app.core.errors import Forbidden
from app.core.policy import Actor, DenyReason
from app.db.mongodb import get_mongo_db
from app.services.ai_service import AIService
from app.services.application_service import ApplicationService
from app.services.auth_service import AuthService
from app.services.comment_service import CommentService
from app.services.notification_service import (
    NotificationDispatcher, NotificationService, NotificationTransport, NullTransport
)
from app.services.mongo_service import NotificationStore
from app.services.project_service import ProjectService
from app.services.user_service import UserService


def get_database() -> Database:
    return get_mongo_db()


def get_transport(request: Request) -> NotificationTransport:
    manager = getattr(request.app.state, "connection_manager", None)
    if manager is None:
        return NullTransport()
    return manager


def get_dispatcher(
    db: Database = Depends(get_database),
    transport: NotificationTransport = Depends(get_transport)
) -> NotificationDispatcher:
    return NotificationDispatcher(NotificationStore(db), transport)


def get_auth_service(db: Database = Depends(get_database)) -> AuthService:
    return AuthService(db)


def get_user_service(db: Database = Depends(get_database)) -> UserService:
    return UserService(db)


def get_project_service(db: Database = Depends(get_database)) -> ProjectService:
    return ProjectService(db)


def get_application_service(
    db: Database = Depends(get_database),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher)
) -> ApplicationService:
    return ApplicationService(db, dispatcher)


def get_comment_service(
    db: Database = Depends(get_database),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher)
) -> CommentService:
    return CommentService(db, dispatcher)


def get_notification_service(db: Database = Depends(get_database)) -> NotificationService:
    return NotificationService(db)


def get_ai_service() -> AIService:
    return AIService()


async def get_current_admin(actor: Actor = Depends(get_current_actor)) -> Actor:
    """Dependency - Require admin role."""
    if not actor.is_admin:
        raise Forbidden("Admins only", DenyReason.wrong_role)
    return actor
