"""Settings router - Admin email, guest and site settings"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .schemas import EmailSettingsUpdate, GuestSettingsUpdate, SiteSettingsUpdate
from .service import SettingsService

router = APIRouter(prefix="/api/settings", tags=["Settings"])


def get_settings_service(db: Session = Depends(get_db)) -> SettingsService:
    return SettingsService(db)


@router.get("/email")
async def get_email_settings(
    current_user: User = Depends(get_current_user),
    service: SettingsService = Depends(get_settings_service),
):
    """Email provider settings; the API key is masked"""
    return service.get_email_settings()


@router.post("/email")
async def update_email_settings(
    data: EmailSettingsUpdate,
    current_user: User = Depends(get_current_user),
    service: SettingsService = Depends(get_settings_service),
):
    service.update_email_settings(data)
    return {"success": True}


@router.get("/guests")
async def get_guest_settings(
    current_user: User = Depends(get_current_user),
    service: SettingsService = Depends(get_settings_service),
):
    return service.get_guest_settings()


@router.post("/guests")
async def update_guest_settings(
    data: GuestSettingsUpdate,
    current_user: User = Depends(get_current_user),
    service: SettingsService = Depends(get_settings_service),
):
    """Save the RSVP window; the deadline is applied to every guest"""
    return service.update_guest_settings(data)


@router.get("/site")
async def get_site_settings(
    current_user: User = Depends(get_current_user),
    service: SettingsService = Depends(get_settings_service),
):
    return {"success": True, "settings": service.get_site_settings()}


@router.put("/site")
async def update_site_settings(
    data: SiteSettingsUpdate,
    current_user: User = Depends(get_current_user),
    service: SettingsService = Depends(get_settings_service),
):
    return {"success": True, "settings": service.update_site_settings(data)}
