"""
Shared fixtures.

- db: an in-memory mongomock database with the production indexes
- transport: records every real-time push instead of sending it
- client: TestClient with the database and transport swapped in
"""
from datetime import datetime, timedelta

import mongomock
import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_database, get_transport
from app.core.auth import issue_tokens
from app.core.policy import Actor
from app.db.mongodb import init_mongo_indexes
from app.main import app
from app.schemas.schemas import UserRole
from app.services.mongo_service import NotificationStore, UserStore
from app.services.notification_service import NotificationDispatcher


class RecordingTransport:
    """Transport that keeps pushes in memory."""

    def __init__(self):
        self.user_pushes = []
        self.room_pushes = []

    def push_to_user(self, recipient_id, payload):
        self.user_pushes.append((recipient_id, payload))

    def push_to_room(self, room_id, payload):
        self.room_pushes.append((room_id, payload))


class FailingTransport:
    """Transport whose every push blows up."""

    def push_to_user(self, recipient_id, payload):
        raise RuntimeError("socket closed")

    def push_to_room(self, room_id, payload):
        raise RuntimeError("socket closed")


@pytest.fixture
def db():
    database = mongomock.MongoClient()["juniorhub_test"]
    init_mongo_indexes(database)
    return database


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def dispatcher(db, transport):
    return NotificationDispatcher(NotificationStore(db), transport)


def make_user(db, role, name=None, email=None, **fields):
    """Insert a valid user of the given role straight into the store."""
    role = UserRole(role).value
    name = name or f"{role} user"
    doc = {
        "name": name,
        "email": email or f"{name.replace(' ', '.').lower()}@example.com",
        "role": role,
        "bio": "",
        "skills": [],
        "profile_picture": "",
        "projects": [],
        "applications": []
    }
    if role == "junior":
        doc["experience_level"] = "beginner"
        doc["portfolio"] = []
    elif role == "company":
        doc["company_name"] = f"{name} Inc"
    doc.update(fields)
    return UserStore(db).insert(doc)


def actor_for(user) -> Actor:
    return Actor(subject_id=user["id"], role=UserRole(user["role"]))


def auth_header(user) -> dict:
    token = issue_tokens(user["id"], user["role"]).access_token
    return {"Authorization": f"Bearer {token}"}


def project_payload(title="Build a landing page", **overrides) -> dict:
    start = datetime(2030, 1, 1)
    payload = {
        "title": title,
        "description": "A small static site for a product launch",
        "requirements": ["Responsive layout"],
        "timeframe": {
            "start_date": start.isoformat(),
            "end_date": (start + timedelta(days=14)).isoformat()
        },
        "skills_required": ["HTML", "CSS"],
        "tags": ["frontend"]
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def company(db):
    return make_user(db, "company", name="Acme")


@pytest.fixture
def junior(db):
    return make_user(db, "junior", name="Jane Junior")


@pytest.fixture
def other_junior(db):
    return make_user(db, "junior", name="Jack Junior")


@pytest.fixture
def admin(db):
    return make_user(db, "admin", name="Ada Admin")


@pytest.fixture
def client(db, transport):
    app.dependency_overrides[get_database] = lambda: db
    app.dependency_overrides[get_transport] = lambda: transport
    yield TestClient(app)
    app.dependency_overrides.clear()
