from supabase import Client
from app.core.policy import Caller, PolicyEngine, get_policy_engine
from app.database.resource_store import ResourceStore, utcnow_iso
from app.modules.jobs.schemas import JobResponse
from app.modules.templates.schemas import (
    TemplateCreate, TemplateUpdate, TemplateResponse, TemplateData, default_template_data
)
from pydantic import ValidationError
from typing import Any, Dict, List, Optional
import logging

logger = logging.getLogger(__name__)


def template_response(row: Dict[str, Any]) -> TemplateResponse:
    """Build the response for a stored row; unreadable template_data comes back as None"""
    data = row.get("template_data")
    if data is not None:
        try:
            TemplateData.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Template {row.get('id')} has invalid template_data ({e.error_count()} error(s)); returning it without data")
            row = {**row, "template_data": None}
    return TemplateResponse(**row)


class TemplateService:
    def __init__(self, supabase: Client, policy: Optional[PolicyEngine] = None):
        self.policy = policy or get_policy_engine()
        self.templates = ResourceStore(supabase, "project_templates", self.policy)
        self.jobs = ResourceStore(supabase, "jobs", self.policy)

    def create_template(self, caller: Caller, template_data: TemplateCreate) -> TemplateResponse:
        """Create a new template owned by the caller"""
        document = template_data.template_data or default_template_data()
        row = self.templates.insert(caller, {
            "name": template_data.name,
            "description": template_data.description,
            "thumbnail": template_data.thumbnail,
            "category": template_data.category,
            "is_public": template_data.is_public,
            "template_data": document.model_dump(mode="json"),
        })
        logger.info(f"Template {row['id']} created by {caller.id} (public={row.get('is_public')})")
        return template_response(row)

    def get_template(self, caller: Caller, template_id: str) -> TemplateResponse:
        """Get template by ID; private templates of others look missing"""
        return template_response(self.templates.get(caller, template_id))

    def list_templates(
        self,
        caller: Caller,
        category: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> List[TemplateResponse]:
        """Public templates plus the caller's private ones, newest first"""
        eq = {"category": category} if category else None
        rows = self.templates.select(caller, eq=eq, limit=limit, offset=offset)
        return [template_response(row) for row in rows]

    def update_template(self, caller: Caller, template_id: str, template_data: TemplateUpdate) -> TemplateResponse:
        """Update template (creator only)"""
        patch = template_data.model_dump(exclude_none=True, exclude={"template_data"})
        if template_data.template_data is not None:
            patch["template_data"] = template_data.template_data.model_dump(mode="json")
        row = self.templates.update(caller, template_id, patch, extra={"updated_at": utcnow_iso()})
        return template_response(row)

    def delete_template(self, caller: Caller, template_id: str) -> None:
        """Delete template (creator only)"""
        self.templates.delete(caller, template_id)
        logger.info(f"Template {template_id} deleted by {caller.id}")

    def use_template(self, caller: Caller, template_id: str) -> JobResponse:
        """Start a new pending job from a template"""
        template = self.templates.get(caller, template_id)
        row = self.jobs.insert(caller, {
            "name": f"{template['name']} - Copy",
            "description": template.get("description"),
            "status": "pending",
            "priority": "medium",
        })
        logger.info(f"Job {row['id']} created from template {template_id} by {caller.id}")
        return JobResponse(**row)
