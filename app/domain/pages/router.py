"""Page routers - admin page editor and public page delivery"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user, get_optional_guest
from ...database import get_db
from ...models import Guest, User
from .schemas import PageCreate, PageUpdate
from .service import PageService

admin_router = APIRouter(prefix="/api/admin/pages", tags=["Pages (admin)"])
public_router = APIRouter(prefix="/api/pages", tags=["Pages"])


def get_page_service(db: Session = Depends(get_db)) -> PageService:
    """Dependency injection for PageService"""
    return PageService(db)


@admin_router.get("")
async def list_pages(
    include_deleted: bool = Query(False, alias="includeDeleted"),
    current_user: User = Depends(get_current_user),
    service: PageService = Depends(get_page_service),
):
    return service.list_pages(include_deleted)


@admin_router.get("/{page_id}")
async def get_page(
    page_id: int,
    current_user: User = Depends(get_current_user),
    service: PageService = Depends(get_page_service),
):
    """Page with all its translations (deleted ones included)"""
    return service.get_page_detail(page_id)


@admin_router.post("", status_code=201)
async def create_page(
    data: PageCreate,
    current_user: User = Depends(get_current_user),
    service: PageService = Depends(get_page_service),
):
    return service.create_page(data)


@admin_router.put("/{page_id}")
async def update_page(
    page_id: int,
    data: PageUpdate,
    current_user: User = Depends(get_current_user),
    service: PageService = Depends(get_page_service),
):
    return service.update_page(page_id, data)


@admin_router.delete("/{page_id}")
async def delete_page(
    page_id: int,
    current_user: User = Depends(get_current_user),
    service: PageService = Depends(get_page_service),
):
    service.delete_page(page_id)
    return {"success": True}


@public_router.get("")
async def navigation(
    locale: Optional[str] = Query("en"),
    service: PageService = Depends(get_page_service),
):
    """Published pages shown in the site navigation"""
    return {"pages": service.navigation(locale)}


@public_router.get("/{slug}")
async def public_page(
    slug: str,
    locale: Optional[str] = Query("en"),
    guest: Optional[Guest] = Depends(get_optional_guest),
    service: PageService = Depends(get_page_service),
):
    return service.public_page(slug, locale, guest)
