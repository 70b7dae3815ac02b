"""
AI Routes

POST /ai/enhance-project - Improve a project draft (company only)
"""

from fastapi import APIRouter, Depends

from app.api.deps import get_ai_service
from app.core.auth import get_current_actor
from app.core.policy import Actor
from app.schemas.schemas import EnhanceProjectRequest, EnhanceProjectResponse
from app.services.ai_service import AIService

router = APIRouter(prefix="/ai", tags=["AI"])


@router.post("/enhance-project", response_model=EnhanceProjectResponse)
async def enhance_project(
    request: EnhanceProjectRequest,
    actor: Actor = Depends(get_current_actor),
    service: AIService = Depends(get_ai_service)
):
    """
    Suggest a better description, tags, skills and requirements.

    Returns 502 when the AI provider is unavailable or answers with
    something that is not the expected JSON.
    """
    return service.enhance_project(actor, request.title, request.description)
