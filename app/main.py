"""
JuniorHub - Main Application

FastAPI backend with:
- MongoDB for users, projects, applications, comments, notifications
- JWT authentication (access + refresh tokens) and Google sign-in
- WebSocket push for notifications and project comments
- Groq AI for project description enhancement

Run: uvicorn app.main:app --reload
"""

import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.api.routes import api_router, realtime_router
from app.core.config import get_settings
from app.core.errors import register_exception_handlers
from app.core.logging_config import setup_logging
from app.db.mongodb import init_mongo_indexes, test_mongo_connection
from app.services.realtime import ConnectionManager

settings = get_settings()
setup_logging(settings.log_level)

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="JuniorHub",
    description="""
    Connects junior developers with companies posting short projects.

    ## Features
    - **Authentication**: email/password and Google sign-in, JWT access + refresh tokens
    - **Projects**: companies post projects; anyone can browse and search
    - **Applications**: juniors apply, companies accept or reject, juniors submit work
    - **Comments**: public discussion on each project, pushed live
    - **Notifications**: stored per user and pushed over WebSocket (/ws)
    - **AI**: project description enhancement for companies
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# One connection manager per process; it is the notification transport
app.state.connection_manager = ConnectionManager()

register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.client_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router, prefix="/api")
app.include_router(realtime_router)

# Uploaded images
os.makedirs(settings.upload_dir, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.upload_dir), name="uploads")


@app.on_event("startup")
async def startup_event():
    """Initialize MongoDB indexes on startup."""
    try:
        init_mongo_indexes()
    except Exception:
        logger.warning("MongoDB index initialization failed", exc_info=True)


@app.on_event("shutdown")
async def shutdown_event():
    await app.state.connection_manager.drain()


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check."""
    return {
        "status": "healthy",
        "mongodb": "connected" if test_mongo_connection() else "disconnected"
    }
