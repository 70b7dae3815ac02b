"""
API module - FastAPI routers, endpoint definitions and their dependencies.

Usage:
    from app.api.routes import api_router, realtime_router
    app.include_router(api_router, prefix="/api")
    app.include_router(realtime_router)
"""
