from fastapi import APIRouter, Depends
from app.database.supabase_client import get_service_supabase
from app.modules.jobs.schemas import JobResponse
from app.modules.templates.schemas import TemplateCreate, TemplateUpdate, TemplateResponse
from app.modules.templates.service import TemplateService
from app.core.dependencies import get_current_user
from app.core.policy import Caller
from supabase import Client
from typing import List, Optional

router = APIRouter(prefix="/templates", tags=["templates"])


def get_template_service(supabase: Client = Depends(get_service_supabase)) -> TemplateService:
    return TemplateService(supabase)


@router.get("", response_model=List[TemplateResponse])
async def list_templates(
    category: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
    caller: Caller = Depends(get_current_user),
    service: TemplateService = Depends(get_template_service),
):
    """List public templates and the caller's private ones, optionally by category."""
    return service.list_templates(caller, category=category, limit=limit, offset=offset)


@router.post("", response_model=TemplateResponse, status_code=201)
async def create_template(
    template_data: TemplateCreate,
    caller: Caller = Depends(get_current_user),
    service: TemplateService = Depends(get_template_service)
):
    """Create a new template"""
    return service.create_template(caller, template_data)


@router.get("/{template_id}", response_model=TemplateResponse)
async def get_template(
    template_id: str,
    caller: Caller = Depends(get_current_user),
    service: TemplateService = Depends(get_template_service),
):
    """Get template by ID."""
    return service.get_template(caller, template_id)


@router.put("/{template_id}", response_model=TemplateResponse)
async def update_template(
    template_id: str,
    template_data: TemplateUpdate,
    caller: Caller = Depends(get_current_user),
    service: TemplateService = Depends(get_template_service)
):
    """Update template (creator only)"""
    return service.update_template(caller, template_id, template_data)


@router.delete("/{template_id}", status_code=204)
async def delete_template(
    template_id: str,
    caller: Caller = Depends(get_current_user),
    service: TemplateService = Depends(get_template_service)
):
    """Delete template (creator only)"""
    service.delete_template(caller, template_id)
    return None


@router.post("/{template_id}/use", response_model=JobResponse, status_code=201)
async def use_template(
    template_id: str,
    caller: Caller = Depends(get_current_user),
    service: TemplateService = Depends(get_template_service)
):
    """Create a pending job from a template"""
    return service.use_template(caller, template_id)
