#!/usr/bin/env python3
"""
Create Admin Script

Admins cannot register through the API. Run this once per admin account.
Usage: python scripts/create_admin.py <name> <email> <password>
"""
import sys
sys.path.insert(0, '.')

from app.core.auth import hash_password
from app.core.errors import Conflict
from app.db.mongodb import init_mongo_indexes
from app.services.mongo_service import UserStore
from app.services.user_service import validate_profile


def main():
    if len(sys.argv) != 4:
        print("Usage: python scripts/create_admin.py <name> <email> <password>")
        sys.exit(1)

    name, email, password = sys.argv[1:]
    if len(password) < 6:
        print("Password must be at least 6 characters")
        sys.exit(1)

    init_mongo_indexes()

    doc = {
        "name": name,
        "email": email.lower(),
        "role": "admin",
        "bio": "",
        "skills": [],
        "profile_picture": "",
        "projects": [],
        "applications": []
    }
    validate_profile(dict(doc, id="new"))
    doc["password_hash"] = hash_password(password)

    try:
        user = UserStore().insert(doc)
    except Conflict as e:
        print(f"Failed: {e.message}")
        sys.exit(1)

    print(f"Admin created: {user['id']} ({user['email']})")


if __name__ == "__main__":
    main()
