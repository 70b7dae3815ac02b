"""
Project Routes

GET /projects - List projects with filters, search, sorting
POST /projects - Create project (company only)
GET /projects/{project_id} - Get project details
PUT /projects/{project_id} - Update project (owner only)
DELETE /projects/{project_id} - Delete project (owner only, no accepted applications)
POST /projects/{project_id}/images - Upload project images (owner only)
GET /projects/{project_id}/applications - Applications for a project (owner only)
POST /projects/{project_id}/apply - Apply to project (junior only)
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile

from app.api.deps import get_application_service, get_project_service
from app.core.auth import get_current_actor
from app.core.policy import Actor
from app.schemas.schemas import (
    ApplicationCreate, ApplicationResponse, ApplicationStatus, MessageResponse,
    ProjectCreate, ProjectListResponse, ProjectResponse, ProjectStatus, ProjectUpdate
)
from app.services.application_service import ApplicationService
from app.services.project_service import ProjectService

router = APIRouter(prefix="/projects", tags=["Projects"])


@router.get("", response_model=ProjectListResponse)
async def list_projects(
    status: Optional[ProjectStatus] = Query(None),
    skills: Optional[List[str]] = Query(None, description="Match any of these skills"),
    search: Optional[str] = Query(None, description="Search title, description and tags"),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=50),
    sort: str = Query("created_at", description="created_at, updated_at, title or likes"),
    order: str = Query("desc", pattern="^(asc|desc)$"),
    service: ProjectService = Depends(get_project_service)
):
    """List projects with filters and pagination."""
    return service.list_projects(status, skills, search, page, page_size, sort, order)


@router.post("", response_model=ProjectResponse, status_code=201)
async def create_project(
    project: ProjectCreate,
    actor: Actor = Depends(get_current_actor),
    service: ProjectService = Depends(get_project_service)
):
    """Create a new project. Only companies can create projects."""
    return service.create_project(actor, project)


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(project_id: str, service: ProjectService = Depends(get_project_service)):
    return service.get_project(project_id)


@router.put("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: str,
    update: ProjectUpdate,
    actor: Actor = Depends(get_current_actor),
    service: ProjectService = Depends(get_project_service)
):
    """
    Update a project.

    Moving status away from "open" stops new applications.
    `images_to_remove` lists image URLs to drop.
    """
    return service.update_project(actor, project_id, update)


@router.delete("/{project_id}", response_model=MessageResponse)
async def delete_project(
    project_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ProjectService = Depends(get_project_service)
):
    service.delete_project(actor, project_id)
    return MessageResponse(message="Project deleted")


@router.post("/{project_id}/images", response_model=ProjectResponse)
async def upload_project_images(
    project_id: str,
    files: List[UploadFile] = File(...),
    actor: Actor = Depends(get_current_actor),
    service: ProjectService = Depends(get_project_service)
):
    uploads = [(file.filename, await file.read()) for file in files]
    return service.add_images(actor, project_id, uploads)


@router.get("/{project_id}/applications", response_model=List[ApplicationResponse])
async def list_project_applications(
    project_id: str,
    status: Optional[ApplicationStatus] = Query(None),
    actor: Actor = Depends(get_current_actor),
    service: ProjectService = Depends(get_project_service)
):
    """All applications for a project. Only the owning company (or admin) can see them."""
    return service.list_project_applications(actor, project_id, status.value if status else None)


@router.post("/{project_id}/apply", response_model=ApplicationResponse, status_code=201)
async def apply_to_project(
    project_id: str,
    application: ApplicationCreate,
    actor: Actor = Depends(get_current_actor),
    service: ApplicationService = Depends(get_application_service)
):
    """Apply to a project. Juniors only, once per project."""
    return service.apply(actor, project_id, application)
