"""
Application Routes

GET /applications - List all applications (admin only)
GET /applications/{application_id} - Get application (applicant or project owner)
PUT /applications/{application_id}/status - Accept / reject (owner) or withdraw (applicant)
PUT /applications/{application_id}/feedback - Leave feedback (owner)
POST /applications/{application_id}/withdraw - Withdraw (applicant)
POST /applications/{application_id}/submit - Submit work link (applicant, accepted only)
DELETE /applications/{application_id} - Delete (admin only)

Applying to a project is POST /projects/{project_id}/apply.
"""

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query

from app.api.deps import get_application_service
from app.core.auth import get_current_actor
from app.core.policy import Actor
from app.schemas.schemas import (
    ApplicationListResponse, ApplicationResponse, ApplicationStatus,
    ApplicationStatusUpdate, MessageResponse, SubmitWorkRequest
)
from app.services.application_service import ApplicationService

router = APIRouter(prefix="/applications", tags=["Applications"])


@router.get("", response_model=ApplicationListResponse)
async def list_applications(
    status: Optional[ApplicationStatus] = Query(None),
    project: Optional[str] = Query(None, description="Filter by project id"),
    applicant: Optional[str] = Query(None, description="Filter by applicant id"),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    actor: Actor = Depends(get_current_actor),
    service: ApplicationService = Depends(get_application_service)
):
    return service.list_applications(actor, status, project, applicant, page, page_size)


@router.get("/{application_id}", response_model=ApplicationResponse)
async def get_application(
    application_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ApplicationService = Depends(get_application_service)
):
    return service.get_application(actor, application_id)


@router.put("/{application_id}/status", response_model=ApplicationResponse)
async def update_application_status(
    application_id: str,
    update: ApplicationStatusUpdate,
    actor: Actor = Depends(get_current_actor),
    service: ApplicationService = Depends(get_application_service)
):
    """
    Change application status.

    Project owner: accepted / rejected. Applicant: withdrawn.
    The applicant is notified when the status actually changes.
    """
    return service.update_status(actor, application_id, update)


@router.put("/{application_id}/feedback", response_model=ApplicationResponse)
async def update_application_feedback(
    application_id: str,
    feedback: str = Body(..., embed=True, min_length=1),
    actor: Actor = Depends(get_current_actor),
    service: ApplicationService = Depends(get_application_service)
):
    return service.update_feedback(actor, application_id, feedback)


@router.post("/{application_id}/withdraw", response_model=ApplicationResponse)
async def withdraw_application(
    application_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ApplicationService = Depends(get_application_service)
):
    return service.withdraw(actor, application_id)


@router.post("/{application_id}/submit", response_model=ApplicationResponse)
async def submit_work(
    application_id: str,
    submission: SubmitWorkRequest,
    actor: Actor = Depends(get_current_actor),
    service: ApplicationService = Depends(get_application_service)
):
    """Submit a link to the finished work. Only for accepted applications."""
    return service.submit_work(actor, application_id, submission)


@router.delete("/{application_id}", response_model=MessageResponse)
async def delete_application(
    application_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ApplicationService = Depends(get_application_service)
):
    service.delete_application(actor, application_id)
    return MessageResponse(message="Application deleted")
