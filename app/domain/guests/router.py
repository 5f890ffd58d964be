"""Guest router - Admin guest list, analytics and RSVP edits"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...email_generation import send_confirmation_email_task
from ...models import User
from ..rsvp.schemas import AdminRsvpUpdate, AdminRsvpUpdateById
from ..rsvp.service import RsvpService, check_business_rules
from .schemas import GuestCreate, GuestUpdate
from .service import GuestService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/guests", tags=["Guests"])


def get_guest_service(db: Session = Depends(get_db)) -> GuestService:
    """Dependency injection for GuestService"""
    return GuestService(db)


def get_rsvp_service(db: Session = Depends(get_db)) -> RsvpService:
    return RsvpService(db)


@router.get("")
async def list_guests(
    attending: Optional[bool] = Query(None),
    group_id: Optional[int] = Query(None),
    rsvp_status: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(None),
    page: Optional[int] = Query(1),
    per_page: int = Query(40, ge=1, le=500),
    current_user: User = Depends(get_current_user),
    service: GuestService = Depends(get_guest_service),
):
    """List guests with filters, sorting and pagination"""
    return service.list_guests(attending, group_id, rsvp_status, sort_by, page, per_page)


@router.get("/analytics")
async def guest_analytics(
    current_user: User = Depends(get_current_user),
    service: GuestService = Depends(get_guest_service),
):
    """RSVP statistics for the admin dashboard"""
    return {"success": True, **service.analytics()}


@router.post("/rsvp")
async def admin_rsvp_by_body(
    data: AdminRsvpUpdateById,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    guests: GuestService = Depends(get_guest_service),
    rsvp: RsvpService = Depends(get_rsvp_service),
):
    """Update a guest's RSVP, identified by id in the body"""
    return _apply_admin_rsvp(data.id, data, background_tasks, guests, rsvp)


@router.get("/{guest_id}")
async def get_guest(
    guest_id: int,
    current_user: User = Depends(get_current_user),
    service: GuestService = Depends(get_guest_service),
):
    return service.get_guest_detail(guest_id)


@router.post("", status_code=201)
async def create_guest(
    data: GuestCreate,
    current_user: User = Depends(get_current_user),
    service: GuestService = Depends(get_guest_service),
):
    guest = service.create_guest(data)
    return {"id": guest.id}


@router.put("/{guest_id}")
async def update_guest(
    guest_id: int,
    data: GuestUpdate,
    current_user: User = Depends(get_current_user),
    service: GuestService = Depends(get_guest_service),
):
    service.update_guest(guest_id, data)
    return {"success": True}


@router.delete("/{guest_id}")
async def delete_guest(
    guest_id: int,
    current_user: User = Depends(get_current_user),
    service: GuestService = Depends(get_guest_service),
):
    service.delete_guest(guest_id)
    return {"success": True}


@router.put("/{guest_id}/rsvp")
async def admin_rsvp_by_path(
    guest_id: int,
    data: AdminRsvpUpdate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    guests: GuestService = Depends(get_guest_service),
    rsvp: RsvpService = Depends(get_rsvp_service),
):
    """Update a guest's RSVP, identified by path"""
    return _apply_admin_rsvp(guest_id, data, background_tasks, guests, rsvp)


def _apply_admin_rsvp(
    guest_id: int,
    data: AdminRsvpUpdate,
    background_tasks: BackgroundTasks,
    guests: GuestService,
    rsvp: RsvpService,
) -> dict:
    guest = guests.get_guest(guest_id)
    check_business_rules(guest, data.plus_one_name)

    kwargs = {}
    if "rsvp_deadline" in data.model_fields_set:
        kwargs["rsvp_deadline"] = data.rsvp_deadline
    guest = rsvp.apply_rsvp(
        guest,
        attending=data.attending,
        dietary=data.dietary,
        notes=data.notes,
        plus_one_name=data.plus_one_name,
        plus_one_dietary=data.plus_one_dietary,
        **kwargs,
    )

    if data.wants_email:
        background_tasks.add_task(send_confirmation_email_task, guest.id)
        logger.info(f"📧 Confirmation email queued for guest {guest.id}")

    return {"success": True}
