"""
MongoDB Connection Utility

MongoDB stores everything:
- users (juniors, companies, admins)
- projects posted by companies
- applications from juniors to projects
- comments on projects
- notifications for users

Uniqueness rules live here as indexes, not in application code:
- one account per email
- one account per Google id
- one application per (project, applicant)
"""
import logging

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database
from pymongo.collection import Collection
from app.core.config import get_settings

logger = logging.getLogger(__name__)

# Global client (connection pooling handled internally by pymongo)
_client: MongoClient = None
_db: Database = None


def get_mongo_client() -> MongoClient:
    """Get or create MongoDB client (singleton pattern)"""
    global _client
    if _client is None:
        _client = MongoClient(get_settings().mongodb_uri)
    return _client


def get_mongo_db() -> Database:
    """Get the juniorhub database"""
    global _db
    if _db is None:
        client = get_mongo_client()
        _db = client[get_settings().mongodb_db]
    return _db


def get_collection(name: str, db: Database = None) -> Collection:
    """
    Get a specific collection.
    Collections we'll use:
    - users
    - projects
    - applications
    - comments
    - notifications
    """
    if db is None:
        db = get_mongo_db()
    return db[name]


def test_mongo_connection() -> bool:
    """
    Test if MongoDB is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        client = get_mongo_client()
        # ping command checks connection
        client.admin.command('ping')
        return True
    except Exception as e:
        logger.warning("MongoDB connection failed: %s", e)
        return False


# Collection name constants (avoid typos)
COLLECTIONS = {
    "users": "users",
    "projects": "projects",
    "applications": "applications",
    "comments": "comments",
    "notifications": "notifications"
}


def init_mongo_indexes(db: Database = None):
    """
    Create indexes for uniqueness and query performance.
    Call this once during app startup.
    """
    if db is None:
        db = get_mongo_db()

    users = db[COLLECTIONS["users"]]
    users.create_index("email", unique=True)
    # sparse: password users have no google_id
    users.create_index("google_id", unique=True, sparse=True)

    # A junior may apply to a given project at most once
    applications = db[COLLECTIONS["applications"]]
    applications.create_index([
        ("project", ASCENDING),
        ("applicant", ASCENDING)
    ], unique=True)
    applications.create_index("applicant")

    projects = db[COLLECTIONS["projects"]]
    projects.create_index("company")
    projects.create_index("status")

    db[COLLECTIONS["comments"]].create_index([
        ("project", ASCENDING),
        ("created_at", DESCENDING)
    ])

    notifications = db[COLLECTIONS["notifications"]]
    notifications.create_index([("user", ASCENDING), ("read", ASCENDING)])
    notifications.create_index([("created_at", DESCENDING)])

    logger.info("MongoDB indexes created successfully")
