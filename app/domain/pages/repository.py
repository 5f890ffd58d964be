"""Page repository - Database operations for pages and their translations"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Page, PageTranslation


class PageRepository:
    """Repository for page database operations"""

    @staticmethod
    def list_pages(db: Session, include_deleted: bool = False) -> list[Page]:
        query = db.query(Page)
        if not include_deleted:
            query = query.filter(Page.deleted_at.is_(None))
        return query.order_by(Page.nav_order, Page.id).all()

    @staticmethod
    def get_by_id(db: Session, page_id: int, include_deleted: bool = True) -> Optional[Page]:
        query = db.query(Page).filter(Page.id == page_id)
        if not include_deleted:
            query = query.filter(Page.deleted_at.is_(None))
        return query.first()

    @staticmethod
    def get_by_slug(db: Session, slug: str) -> Optional[Page]:
        """Live (non-deleted) page by slug"""
        return db.query(Page).filter(Page.slug == slug, Page.deleted_at.is_(None)).first()

    @staticmethod
    def slug_taken(db: Session, slug: str, exclude_id: Optional[int] = None) -> bool:
        query = db.query(Page.id).filter(Page.slug == slug)
        if exclude_id is not None:
            query = query.filter(Page.id != exclude_id)
        return query.first() is not None

    @staticmethod
    def nav_pages(db: Session) -> list[Page]:
        return (
            db.query(Page)
            .filter(Page.is_published.is_(True), Page.show_in_nav.is_(True), Page.deleted_at.is_(None))
            .order_by(Page.nav_order, Page.id)
            .all()
        )

    @staticmethod
    def translations(db: Session, page_id: int, include_deleted: bool = True) -> list[PageTranslation]:
        query = db.query(PageTranslation).filter(PageTranslation.page_id == page_id)
        if not include_deleted:
            query = query.filter(PageTranslation.deleted_at.is_(None))
        return query.order_by(PageTranslation.locale).all()

    @staticmethod
    def translation_for(
        db: Session, page_id: int, locale: str, include_deleted: bool = False
    ) -> Optional[PageTranslation]:
        query = db.query(PageTranslation).filter(
            PageTranslation.page_id == page_id, PageTranslation.locale == locale
        )
        if not include_deleted:
            query = query.filter(PageTranslation.deleted_at.is_(None))
        return query.first()
