"""
API Routes - Combines all route modules into single router.

The WebSocket router is mounted separately at the app root (/ws).
"""

from fastapi import APIRouter

from app.api.routes.auth_routes import router as auth_router
from app.api.routes.user_routes import router as user_router
from app.api.routes.project_routes import router as project_router
from app.api.routes.application_routes import router as application_router
from app.api.routes.comment_routes import router as comment_router
from app.api.routes.notification_routes import router as notification_router
from app.api.routes.ai_routes import router as ai_router
from app.api.routes.realtime_routes import router as realtime_router

# Main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(auth_router)
api_router.include_router(user_router)
api_router.include_router(project_router)
api_router.include_router(application_router)
api_router.include_router(comment_router)
api_router.include_router(notification_router)
api_router.include_router(ai_router)

__all__ = ["api_router", "realtime_router"]
