"""Page service - admin page editing and public page delivery"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...errors import AppError, NotFoundError
from ...models import Guest, Page, PageTranslation
from ...utils.blocks import BlockError, process_blocks
from ...utils.dates import to_iso, utcnow
from .repository import PageRepository
from .schemas import PageCreate, PageFields, TranslationInput

logger = logging.getLogger(__name__)

FALLBACK_LOCALE = "en"
PAGE_FIELDS = ("slug", "is_published", "requires_rsvp", "show_in_nav", "nav_order", "header_image_url")


def serialize_translation(translation: PageTranslation) -> dict:
    return {
        "id": translation.id,
        "page_id": translation.page_id,
        "locale": translation.locale,
        "title": translation.title,
        "content": translation.content or [],
        "deleted_at": to_iso(translation.deleted_at),
        "updated_at": to_iso(translation.updated_at),
    }


def serialize_page(page: Page, translations: Optional[list] = None) -> dict:
    data = {
        "id": page.id,
        "slug": page.slug,
        "is_published": bool(page.is_published),
        "requires_rsvp": bool(page.requires_rsvp),
        "show_in_nav": bool(page.show_in_nav),
        "nav_order": page.nav_order,
        "header_image_url": page.header_image_url,
        "deleted_at": to_iso(page.deleted_at),
        "created_at": to_iso(page.created_at),
        "updated_at": to_iso(page.updated_at),
    }
    if translations is not None:
        data["translations"] = [serialize_translation(t) for t in translations]
    return data


def guest_is_attending(guest: Optional[Guest]) -> bool:
    if guest is None:
        return False
    return (guest.rsvp_status or "").lower() == "attending" or guest.attending is True


def rsvp_denial_reason(guest: Optional[Guest]) -> str:
    if guest is None:
        return "no_session"
    return guest.rsvp_status or "not_attending"


class PageService:
    """Service layer for content pages"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = PageRepository()

    # Admin

    def list_pages(self, include_deleted: bool = False) -> list[dict]:
        return [serialize_page(p) for p in self.repo.list_pages(self.db, include_deleted)]

    def get_page(self, page_id: int) -> Page:
        page = self.repo.get_by_id(self.db, page_id)
        if not page:
            raise NotFoundError("Page not found")
        return page

    def get_page_detail(self, page_id: int) -> dict:
        page = self.get_page(page_id)
        return serialize_page(page, self.repo.translations(self.db, page.id))

    def _validated_content(self, translation: TranslationInput) -> list:
        content = translation.content
        if isinstance(content, dict):
            content = content.get("blocks", [])
        try:
            return process_blocks(content, mode="admin")
        except BlockError as e:
            raise AppError(400, f"Invalid content for locale '{translation.locale}': {e}", "INVALID_BLOCK_DATA") from e

    def _save_translations(self, page: Page, translations: list[TranslationInput]) -> None:
        """Upsert translations per locale; entries without locale or content are skipped"""
        for translation in translations:
            if not translation.locale or translation.content is None:
                logger.warning(f"⚠️ Skipping translation without locale/content for page {page.id}")
                continue
            content = self._validated_content(translation)
            existing = self.repo.translation_for(self.db, page.id, translation.locale, include_deleted=True)
            if existing:
                existing.title = translation.title or ""
                existing.content = content
                existing.deleted_at = None
                existing.updated_at = utcnow()
            else:
                self.db.add(
                    PageTranslation(
                        page_id=page.id,
                        locale=translation.locale,
                        title=translation.title or "",
                        content=content,
                    )
                )

    def create_page(self, data: PageCreate) -> dict:
        if self.repo.slug_taken(self.db, data.slug):
            raise AppError(400, "Slug already exists. Please use a unique slug.", "SLUG_EXISTS")

        page = Page(slug=data.slug)
        for field in PAGE_FIELDS[1:]:
            value = getattr(data, field)
            if value is not None:
                setattr(page, field, value)
        try:
            self.db.add(page)
            self.db.flush()
            self._save_translations(page, data.translations)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise AppError(400, "Slug already exists. Please use a unique slug.", "SLUG_EXISTS") from e
        except AppError:
            self.db.rollback()
            raise

        logger.info(f"✅ Page created: {page.slug}")
        return self.get_page_detail(page.id)

    def update_page(self, page_id: int, data: PageFields) -> dict:
        page = self.get_page(page_id)
        if data.slug and self.repo.slug_taken(self.db, data.slug, exclude_id=page.id):
            raise AppError(400, "Slug already exists. Please use a unique slug.", "SLUG_EXISTS")

        for field in PAGE_FIELDS:
            if field in data.model_fields_set and getattr(data, field) is not None:
                setattr(page, field, getattr(data, field))
        if "header_image_url" in data.model_fields_set:
            page.header_image_url = data.header_image_url
        page.updated_at = utcnow()
        try:
            self._save_translations(page, data.translations)
            self.db.commit()
        except AppError:
            self.db.rollback()
            raise
        return self.get_page_detail(page.id)

    def delete_page(self, page_id: int) -> None:
        """Soft delete the page and its translations"""
        page = self.get_page(page_id)
        now = utcnow()
        for translation in self.repo.translations(self.db, page.id):
            translation.deleted_at = now
        page.deleted_at = now
        self.db.commit()
        logger.info(f"🗑️ Page soft-deleted: {page.slug}")

    # Public

    def public_page(self, slug: str, locale: Optional[str], guest: Optional[Guest]) -> dict:
        page = self.repo.get_by_slug(self.db, slug)
        if not page or not page.is_published:
            raise NotFoundError("Page not found or unpublished")

        if page.requires_rsvp and not guest_is_attending(guest):
            reason = rsvp_denial_reason(guest)
            logger.info(f"🔒 Page '{slug}' denied: {reason}")
            raise AppError(403, "Not allowed to access this page", "RSVP_REQUIRED", extra={"reason": reason})

        locale = (locale or FALLBACK_LOCALE).lower()
        translation = self.repo.translation_for(self.db, page.id, locale)
        if not translation and locale != FALLBACK_LOCALE:
            logger.info(f"🌐 No '{locale}' translation for '{slug}', falling back to '{FALLBACK_LOCALE}'")
            translation = self.repo.translation_for(self.db, page.id, FALLBACK_LOCALE)
        if not translation:
            raise NotFoundError("Translation not found")

        content = translation.content if isinstance(translation.content, list) else []
        return {
            "slug": page.slug,
            "locale": translation.locale,
            "title": translation.title,
            "header_image_url": page.header_image_url,
            "content": process_blocks(content, mode="public"),
        }

    def navigation(self, locale: Optional[str]) -> list[dict]:
        locale = (locale or FALLBACK_LOCALE).lower()
        items = []
        for page in self.repo.nav_pages(self.db):
            translation = self.repo.translation_for(self.db, page.id, locale) or self.repo.translation_for(
                self.db, page.id, FALLBACK_LOCALE
            )
            items.append(
                {
                    "slug": page.slug,
                    "title": translation.title if translation and translation.title else page.slug,
                    "nav_order": page.nav_order,
                    "requires_rsvp": bool(page.requires_rsvp),
                }
            )
        return items
