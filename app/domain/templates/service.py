"""Template service - Business logic for reusable email templates"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...errors import AppError, NotFoundError
from ...models import Template
from ...utils.dates import to_iso, utcnow
from .repository import TemplateRepository
from .schemas import TemplateBase

logger = logging.getLogger(__name__)


def serialize_template(template: Template) -> dict:
    return {
        "id": template.id,
        "name": template.name,
        "subject": template.subject,
        "subject_en": template.subject_en,
        "subject_lt": template.subject_lt,
        "body_en": template.body_en,
        "body_lt": template.body_lt,
        "style": template.style,
        "category": template.category,
        "created_at": to_iso(template.created_at),
        "updated_at": to_iso(template.updated_at),
    }


class TemplateService:
    """Service layer for template business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = TemplateRepository()

    def list_templates(self) -> list[dict]:
        return [serialize_template(t) for t in self.repo.list_templates(self.db)]

    def get_template(self, template_id: int) -> Template:
        template = self.repo.get_by_id(self.db, template_id)
        if not template:
            raise NotFoundError("Template not found")
        return template

    def _fields(self, data: TemplateBase) -> dict:
        return {
            "name": data.name,
            "subject": data.subject,
            "subject_en": data.subject_en,
            "subject_lt": data.subject_lt,
            "body_en": data.body_en,
            "body_lt": data.body_lt,
            "style": data.style or "elegant",
            "category": data.category,
        }

    def _check_name(self, name: str, template_id=None) -> None:
        existing = self.repo.get_by_name(self.db, name)
        if existing and existing.id != template_id:
            raise AppError(400, "A template with this name already exists", "DUPLICATE_NAME")

    def create_template(self, data: TemplateBase) -> Template:
        self._check_name(data.name)
        try:
            template = self.repo.create(self.db, **self._fields(data))
        except IntegrityError as e:
            self.db.rollback()
            raise AppError(400, "A template with this name already exists", "DUPLICATE_NAME") from e
        logger.info(f"✅ Template created: {template.name}")
        return template

    def update_template(self, template_id: int, data: TemplateBase) -> Template:
        template = self.get_template(template_id)
        self._check_name(data.name, template.id)
        return self.repo.update(self.db, template, updated_at=utcnow(), **self._fields(data))

    def delete_template(self, template_id: int) -> None:
        template = self.get_template(template_id)
        self.repo.delete(self.db, template)
        logger.info(f"🗑️ Template deleted: {template_id}")
