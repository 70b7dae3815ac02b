#!/usr/bin/env python3
"""
Connection Test Script

Run this to verify MongoDB and the Groq API are reachable.
Usage: python scripts/test_connections.py
"""
import sys
sys.path.insert(0, '.')

from app.core.config import get_settings
from app.db.mongodb import init_mongo_indexes, test_mongo_connection
from app.services.ai_service import AIService


def main():
    settings = get_settings()
    print("=" * 50)
    print("JUNIORHUB - CONNECTION TEST")
    print("=" * 50)

    # Test MongoDB
    print("\n[1] Testing MongoDB...")
    print(f"    URI: {settings.mongodb_uri}")
    print(f"    Database: {settings.mongodb_db}")
    if test_mongo_connection():
        print("    MongoDB: CONNECTED")
        init_mongo_indexes()
        print("    Indexes: OK")
    else:
        print("    MongoDB: FAILED")

    # Test Groq (only if API key is set)
    print("\n[2] Testing Groq API...")
    if settings.groq_api_key:
        print(f"    Base URL: {settings.groq_base_url}")
        print(f"    Model: {settings.groq_model}")
        if AIService().test_connection():
            print("    Groq: CONNECTED")
        else:
            print("    Groq: FAILED")
    else:
        print("    Groq: API key not configured (AI enhancement disabled)")

    print("\n" + "=" * 50)
    print("Connection test complete!")
    print("=" * 50)


if __name__ == "__main__":
    main()
