"""
User Routes

GET /users - List users (admin only)
GET /users/{user_id} - Get a user's public profile
PUT /users/{user_id} - Update profile (self or admin)
DELETE /users/{user_id} - Delete user and their data (admin only)
GET /users/{user_id}/projects - Projects posted by a company
GET /users/{user_id}/applications - Applications by a junior (self or admin)
POST /users/{user_id}/profile-picture - Upload profile picture
DELETE /users/{user_id}/profile-picture - Remove profile picture
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile

from app.api.deps import get_current_admin, get_user_service
from app.core.auth import get_current_actor
from app.core.policy import Actor
from app.schemas.schemas import (
    ApplicationListResponse, MessageResponse, ProjectListResponse,
    UserListResponse, UserProfile, UserRole, UserUpdate
)
from app.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("", response_model=UserListResponse)
async def list_users(
    role: Optional[UserRole] = Query(None),
    search: Optional[str] = Query(None, description="Search name, email or company name"),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    admin: Actor = Depends(get_current_admin),
    service: UserService = Depends(get_user_service)
):
    return service.list_users(role, search, page, page_size)


@router.get("/{user_id}", response_model=UserProfile)
async def get_user(user_id: str, service: UserService = Depends(get_user_service)):
    return service.get_user(user_id)


@router.put("/{user_id}", response_model=UserProfile)
async def update_user(
    user_id: str,
    update: UserUpdate,
    actor: Actor = Depends(get_current_actor),
    service: UserService = Depends(get_user_service)
):
    """Update profile fields. Fields of another role are rejected."""
    return service.update_user(actor, user_id, update)


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: str,
    actor: Actor = Depends(get_current_actor),
    service: UserService = Depends(get_user_service)
):
    service.delete_user(actor, user_id)
    return MessageResponse(message="User deleted")


@router.get("/{user_id}/projects", response_model=ProjectListResponse)
async def list_user_projects(
    user_id: str,
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=50),
    service: UserService = Depends(get_user_service)
):
    return service.list_user_projects(user_id, page, page_size)


@router.get("/{user_id}/applications", response_model=ApplicationListResponse)
async def list_user_applications(
    user_id: str,
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=50),
    actor: Actor = Depends(get_current_actor),
    service: UserService = Depends(get_user_service)
):
    return service.list_user_applications(actor, user_id, page, page_size)


@router.post("/{user_id}/profile-picture", response_model=UserProfile)
async def upload_profile_picture(
    user_id: str,
    file: UploadFile = File(...),
    actor: Actor = Depends(get_current_actor),
    service: UserService = Depends(get_user_service)
):
    """Upload an image (jpg, png, gif, webp) as the profile picture."""
    content = await file.read()
    return service.upload_profile_picture(actor, user_id, file.filename, content)


@router.delete("/{user_id}/profile-picture", response_model=UserProfile)
async def delete_profile_picture(
    user_id: str,
    actor: Actor = Depends(get_current_actor),
    service: UserService = Depends(get_user_service)
):
    return service.delete_profile_picture(actor, user_id)
