"""
MongoDB Service - CRUD operations for document collections.

Collections in this database:
1. users          - juniors, companies and admins
2. projects       - short projects posted by companies
3. applications   - a junior's application to a project
4. comments       - discussion on a project
5. notifications  - per-user messages created on state transitions

Each store takes an optional `db` so tests can hand in an in-memory database.
References between documents are stored as ObjectIds and serialized to
strings on the way out.
"""

import re
from datetime import datetime
from typing import Optional, List, Dict, Any, Tuple
from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from app.core.errors import Conflict, ValidationFailed
from app.db.mongodb import get_collection, COLLECTIONS


# ============================================================
# HELPER: Convert ObjectId to string for JSON serialization
# ============================================================

def _plain(value):
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, list):
        return [_plain(v) for v in value]
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    return value


def serialize_doc(doc: dict) -> dict:
    """Convert MongoDB document to JSON-serializable dict ("_id" -> "id")."""
    if doc is None:
        return None
    out = {}
    for key, value in doc.items():
        if key == "_id":
            out["id"] = str(value)
        else:
            out[key] = _plain(value)
    return out


def serialize_docs(docs) -> list:
    """Convert list of MongoDB documents to JSON-serializable list."""
    return [serialize_doc(doc) for doc in docs]


def to_object_id(value, label: str = "resource") -> ObjectId:
    """Parse an id from a path or document, rejecting malformed ones."""
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    raise ValidationFailed(f"Invalid {label} ID")


def _paginate(cursor, page: int, page_size: int):
    return cursor.skip((page - 1) * page_size).limit(page_size)


class BaseStore:
    """Shared fetch/update/delete for a single collection."""

    collection_name: str = None
    label: str = "resource"

    def __init__(self, db: Database = None):
        self.collection: Collection = get_collection(COLLECTIONS[self.collection_name], db)

    def get_by_id(self, doc_id) -> Optional[dict]:
        doc = self.collection.find_one({"_id": to_object_id(doc_id, self.label)})
        return serialize_doc(doc)

    def find(
        self,
        query: dict,
        page: int = 1,
        page_size: int = 10,
        sort: List[Tuple[str, int]] = None
    ) -> Tuple[List[dict], int]:
        """Fetch a page of documents plus the total match count."""
        total = self.collection.count_documents(query)
        cursor = self.collection.find(query).sort(sort or [("created_at", DESCENDING)])
        return serialize_docs(_paginate(cursor, page, page_size)), total

    def update_fields(self, doc_id, fields: Dict[str, Any]) -> Optional[dict]:
        """$set the given fields and return the updated document."""
        fields = dict(fields, updated_at=datetime.utcnow())
        doc = self.collection.find_one_and_update(
            {"_id": to_object_id(doc_id, self.label)},
            {"$set": fields},
            return_document=ReturnDocument.AFTER
        )
        return serialize_doc(doc)

    def delete(self, doc_id) -> bool:
        result = self.collection.delete_one({"_id": to_object_id(doc_id, self.label)})
        return result.deleted_count > 0

    def _insert(self, doc: dict) -> dict:
        now = datetime.utcnow()
        doc = dict(doc, created_at=now, updated_at=now)
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return serialize_doc(doc)


# ============================================================
# USERS COLLECTION
# ============================================================

SECRET_USER_FIELDS = {"password_hash": 0, "refresh_token": 0}


class UserStore(BaseStore):
    """
    Handles user accounts.
    Secrets (password hash, refresh token) are never returned by the
    public getters.
    """

    collection_name = "users"
    label = "user"

    def insert(self, doc: dict) -> dict:
        try:
            user = self._insert(doc)
        except DuplicateKeyError:
            raise Conflict("User already exists with this email")
        user.pop("password_hash", None)
        user.pop("refresh_token", None)
        return user

    def get_by_id(self, user_id) -> Optional[dict]:
        doc = self.collection.find_one({"_id": to_object_id(user_id, self.label)}, SECRET_USER_FIELDS)
        return serialize_doc(doc)

    def get_by_email(self, email: str, with_secrets: bool = False) -> Optional[dict]:
        projection = None if with_secrets else SECRET_USER_FIELDS
        doc = self.collection.find_one({"email": email.lower()}, projection)
        return serialize_doc(doc)

    def get_by_google_id(self, google_id: str) -> Optional[dict]:
        doc = self.collection.find_one({"google_id": google_id}, SECRET_USER_FIELDS)
        return serialize_doc(doc)

    def get_refresh_token(self, user_id) -> Optional[str]:
        doc = self.collection.find_one({"_id": to_object_id(user_id, self.label)}, {"refresh_token": 1})
        return doc.get("refresh_token") if doc else None

    def set_refresh_token(self, user_id, token: Optional[str]) -> None:
        """Store the latest refresh token, or clear it when token is None."""
        update = {"$set": {"refresh_token": token}} if token else {"$unset": {"refresh_token": ""}}
        self.collection.update_one({"_id": to_object_id(user_id, self.label)}, update)

    def update_fields(self, user_id, fields: Dict[str, Any]) -> Optional[dict]:
        fields = dict(fields, updated_at=datetime.utcnow())
        doc = self.collection.find_one_and_update(
            {"_id": to_object_id(user_id, self.label)},
            {"$set": fields},
            projection=SECRET_USER_FIELDS,
            return_document=ReturnDocument.AFTER
        )
        return serialize_doc(doc)

    def list_users(
        self, role: str = None, search: str = None, page: int = 1, page_size: int = 10
    ) -> Tuple[List[dict], int]:
        query: Dict[str, Any] = {}
        if role:
            query["role"] = role
        if search:
            pattern = {"$regex": re.escape(search), "$options": "i"}
            query["$or"] = [{"name": pattern}, {"email": pattern}, {"company_name": pattern}]
        total = self.collection.count_documents(query)
        cursor = self.collection.find(query, SECRET_USER_FIELDS).sort("created_at", DESCENDING)
        return serialize_docs(_paginate(cursor, page, page_size)), total

    # Back-references kept on the user document

    def add_project(self, user_id, project_id) -> None:
        self.collection.update_one(
            {"_id": to_object_id(user_id, self.label)},
            {"$push": {"projects": to_object_id(project_id)}}
        )

    def remove_project(self, user_id, project_id) -> None:
        self.collection.update_one(
            {"_id": to_object_id(user_id, self.label)},
            {"$pull": {"projects": to_object_id(project_id)}}
        )

    def add_application(self, user_id, application_id) -> None:
        self.collection.update_one(
            {"_id": to_object_id(user_id, self.label)},
            {"$push": {"applications": to_object_id(application_id)}}
        )

    def remove_application(self, user_id, application_id) -> None:
        self.collection.update_one(
            {"_id": to_object_id(user_id, self.label)},
            {"$pull": {"applications": to_object_id(application_id)}}
        )


# ============================================================
# PROJECTS COLLECTION
# ============================================================

PROJECT_SORT_FIELDS = {"created_at", "updated_at", "title", "likes"}


class ProjectStore(BaseStore):
    """
    Handles project documents.
    `applications` holds ids of Application documents for this project.
    """

    collection_name = "projects"
    label = "project"

    def insert(self, doc: dict) -> dict:
        return self._insert(doc)

    def list_projects(
        self,
        status: str = None,
        skills: List[str] = None,
        search: str = None,
        company_id: str = None,
        page: int = 1,
        page_size: int = 10,
        sort: str = "created_at",
        order: str = "desc"
    ) -> Tuple[List[dict], int]:
        query: Dict[str, Any] = {}
        if status:
            query["status"] = status
        if skills:
            query["skills_required"] = {"$in": skills}
        if company_id:
            query["company"] = to_object_id(company_id, "user")
        if search:
            pattern = {"$regex": re.escape(search), "$options": "i"}
            query["$or"] = [{"title": pattern}, {"description": pattern}, {"tags": pattern}]

        sort_field = sort if sort in PROJECT_SORT_FIELDS else "created_at"
        direction = ASCENDING if order == "asc" else DESCENDING
        return self.find(query, page, page_size, [(sort_field, direction)])

    def find_by_company(self, company_id) -> List[dict]:
        cursor = self.collection.find({"company": to_object_id(company_id, "user")})
        return serialize_docs(cursor)

    def add_application(self, project_id, application_id) -> None:
        self.collection.update_one(
            {"_id": to_object_id(project_id, self.label)},
            {"$push": {"applications": to_object_id(application_id)}}
        )

    def remove_application(self, project_id, application_id) -> None:
        self.collection.update_one(
            {"_id": to_object_id(project_id, self.label)},
            {"$pull": {"applications": to_object_id(application_id)}}
        )


# ============================================================
# APPLICATIONS COLLECTION
# ============================================================

class ApplicationStore(BaseStore):
    """
    Handles applications.
    The unique (project, applicant) index makes a second insert for the same
    pair fail; that failure is reported as Conflict("already_applied").
    """

    collection_name = "applications"
    label = "application"

    def insert(self, doc: dict) -> dict:
        try:
            return self._insert(doc)
        except DuplicateKeyError:
            raise Conflict("You have already applied to this project", reason="already_applied")

    def list_applications(
        self,
        status: str = None,
        project_id: str = None,
        applicant_id: str = None,
        page: int = 1,
        page_size: int = 10
    ) -> Tuple[List[dict], int]:
        query: Dict[str, Any] = {}
        if status:
            query["status"] = status
        if project_id:
            query["project"] = to_object_id(project_id, "project")
        if applicant_id:
            query["applicant"] = to_object_id(applicant_id, "user")
        return self.find(query, page, page_size)

    def find_by_project(self, project_id, status: str = None) -> List[dict]:
        query: Dict[str, Any] = {"project": to_object_id(project_id, "project")}
        if status:
            query["status"] = status
        cursor = self.collection.find(query).sort("created_at", DESCENDING)
        return serialize_docs(cursor)

    def find_by_applicant(self, applicant_id) -> List[dict]:
        cursor = self.collection.find(
            {"applicant": to_object_id(applicant_id, "user")}
        ).sort("created_at", DESCENDING)
        return serialize_docs(cursor)

    def has_accepted(self, project_id) -> bool:
        return self.collection.find_one(
            {"project": to_object_id(project_id, "project"), "status": "accepted"},
            {"_id": 1}
        ) is not None

    def delete_by_project(self, project_id) -> List[dict]:
        """Delete every application of a project. Returns what was removed."""
        removed = self.find_by_project(project_id)
        self.collection.delete_many({"project": to_object_id(project_id, "project")})
        return removed


# ============================================================
# COMMENTS COLLECTION
# ============================================================

class CommentStore(BaseStore):
    collection_name = "comments"
    label = "comment"

    def insert(self, doc: dict) -> dict:
        return self._insert(doc)

    def list_by_project(self, project_id, page: int = 1, page_size: int = 50) -> Tuple[List[dict], int]:
        return self.find({"project": to_object_id(project_id, "project")}, page, page_size)

    def delete_by_author(self, author_id) -> int:
        result = self.collection.delete_many({"author": to_object_id(author_id, "user")})
        return result.deleted_count

    def delete_by_project(self, project_id) -> int:
        result = self.collection.delete_many({"project": to_object_id(project_id, "project")})
        return result.deleted_count


# ============================================================
# NOTIFICATIONS COLLECTION
# ============================================================

class NotificationStore(BaseStore):
    """
    Handles persisted notifications.
    This is the source of truth; real-time push is only a shortcut for
    clients that happen to be connected.
    """

    collection_name = "notifications"
    label = "notification"

    def insert(
        self,
        user_id,
        message: str,
        category: str = "info",
        related_to: Optional[dict] = None
    ) -> dict:
        doc = {
            "user": to_object_id(user_id, "user"),
            "message": message,
            "type": category,
            "read": False
        }
        if related_to:
            doc["related_to"] = {
                "model": related_to["model"],
                "id": to_object_id(related_to["id"])
            }
        return self._insert(doc)

    def list_for_user(
        self, user_id, read: Optional[bool] = None, page: int = 1, page_size: int = 10
    ) -> Tuple[List[dict], int]:
        query: Dict[str, Any] = {"user": to_object_id(user_id, "user")}
        if read is not None:
            query["read"] = read
        return self.find(query, page, page_size)

    def count_unread(self, user_id) -> int:
        return self.collection.count_documents({"user": to_object_id(user_id, "user"), "read": False})

    def mark_all_read(self, user_id) -> int:
        result = self.collection.update_many(
            {"user": to_object_id(user_id, "user"), "read": False},
            {"$set": {"read": True, "updated_at": datetime.utcnow()}}
        )
        return result.modified_count

    def delete_for_user(self, user_id) -> int:
        result = self.collection.delete_many({"user": to_object_id(user_id, "user")})
        return result.deleted_count


# ============================================================
# CONVENIENCE FUNCTION: Get all stores
# ============================================================

def get_mongo_services(db: Database = None) -> dict:
    """
    Get all store instances bound to one database.

    Usage:
        stores = get_mongo_services()
        stores['projects'].get_by_id(...)
    """
    return {
        "users": UserStore(db),
        "projects": ProjectStore(db),
        "applications": ApplicationStore(db),
        "comments": CommentStore(db),
        "notifications": NotificationStore(db)
    }
