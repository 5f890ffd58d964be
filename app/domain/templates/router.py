"""Template router - Admin CRUD for email templates"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .schemas import TemplateCreate, TemplateUpdate
from .service import TemplateService, serialize_template

router = APIRouter(prefix="/api/templates", tags=["Templates"])


def get_template_service(db: Session = Depends(get_db)) -> TemplateService:
    """Dependency injection for TemplateService"""
    return TemplateService(db)


@router.get("")
async def list_templates(
    current_user: User = Depends(get_current_user),
    service: TemplateService = Depends(get_template_service),
):
    return {"success": True, "templates": service.list_templates()}


@router.get("/{template_id}")
async def get_template(
    template_id: int,
    current_user: User = Depends(get_current_user),
    service: TemplateService = Depends(get_template_service),
):
    return {"success": True, "template": serialize_template(service.get_template(template_id))}


@router.post("")
async def create_template(
    data: TemplateCreate,
    current_user: User = Depends(get_current_user),
    service: TemplateService = Depends(get_template_service),
):
    template = service.create_template(data)
    return {"success": True, "id": template.id}


@router.put("/{template_id}")
async def update_template(
    template_id: int,
    data: TemplateUpdate,
    current_user: User = Depends(get_current_user),
    service: TemplateService = Depends(get_template_service),
):
    service.update_template(template_id, data)
    return {"success": True}


@router.delete("/{template_id}")
async def delete_template(
    template_id: int,
    current_user: User = Depends(get_current_user),
    service: TemplateService = Depends(get_template_service),
):
    service.delete_template(template_id)
    return {"success": True}
