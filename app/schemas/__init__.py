"""
Schemas module - Request/Response schemas for API endpoints.

All schemas live in app.schemas.schemas:
- Request schemas (what API accepts)
- Response schemas (what API returns)
- The UserProfile tagged union (junior / company / admin)
"""
