"""Template repository - Database operations for email templates"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Template


class TemplateRepository:
    """Repository for template database operations"""

    @staticmethod
    def list_templates(db: Session) -> list[Template]:
        return db.query(Template).order_by(Template.created_at.desc(), Template.id.desc()).all()

    @staticmethod
    def get_by_id(db: Session, template_id: int) -> Optional[Template]:
        return db.query(Template).filter(Template.id == template_id).first()

    @staticmethod
    def get_by_name(db: Session, name: str) -> Optional[Template]:
        return db.query(Template).filter(Template.name == name).first()

    @staticmethod
    def create(db: Session, **data) -> Template:
        template = Template(**data)
        db.add(template)
        db.commit()
        db.refresh(template)
        return template

    @staticmethod
    def update(db: Session, template: Template, **updates) -> Template:
        for key, value in updates.items():
            if hasattr(template, key):
                setattr(template, key, value)
        db.commit()
        db.refresh(template)
        return template

    @staticmethod
    def delete(db: Session, template: Template) -> None:
        db.delete(template)
        db.commit()
