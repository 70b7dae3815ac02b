"""
Comment Routes

GET /projects/{project_id}/comments - List comments on a project
POST /projects/{project_id}/comments - Add a comment
PUT /comments/{comment_id} - Edit own comment
DELETE /comments/{comment_id} - Delete own comment

Changes are broadcast to the project's real-time room.
"""

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_comment_service
from app.core.auth import get_current_actor
from app.core.policy import Actor
from app.schemas.schemas import (
    CommentCreate, CommentListResponse, CommentResponse, MessageResponse
)
from app.services.comment_service import CommentService

router = APIRouter(tags=["Comments"])


@router.get("/projects/{project_id}/comments", response_model=CommentListResponse)
async def list_comments(
    project_id: str,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
    service: CommentService = Depends(get_comment_service)
):
    return service.list_comments(project_id, page, page_size)


@router.post("/projects/{project_id}/comments", response_model=CommentResponse, status_code=201)
async def create_comment(
    project_id: str,
    comment: CommentCreate,
    actor: Actor = Depends(get_current_actor),
    service: CommentService = Depends(get_comment_service)
):
    return service.create_comment(actor, project_id, comment)


@router.put("/comments/{comment_id}", response_model=CommentResponse)
async def update_comment(
    comment_id: str,
    comment: CommentCreate,
    actor: Actor = Depends(get_current_actor),
    service: CommentService = Depends(get_comment_service)
):
    return service.update_comment(actor, comment_id, comment)


@router.delete("/comments/{comment_id}", response_model=MessageResponse)
async def delete_comment(
    comment_id: str,
    actor: Actor = Depends(get_current_actor),
    service: CommentService = Depends(get_comment_service)
):
    service.delete_comment(actor, comment_id)
    return MessageResponse(message="Comment deleted")
