"""Message router - Admin guest messaging endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .schemas import MessageCreate, MessageUpdate, PreviewRequest, ScheduleRequest, SendRequest
from .service import MessageService, serialize_message

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/messages", tags=["Messages"])


def get_message_service(db: Session = Depends(get_db)) -> MessageService:
    """Dependency injection for MessageService"""
    return MessageService(db)


# ============================================================================
# COLLECTION-LEVEL ROUTES (declared before /{message_id})
# ============================================================================


@router.post("")
async def create_message(
    data: MessageCreate,
    current_user: User = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
):
    message = service.create_message(data)
    return {"success": True, "id": message.id}


@router.get("")
async def list_messages(
    current_user: User = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
):
    return {"success": True, "messages": service.list_messages()}


@router.get("/quota")
async def get_quota(
    current_user: User = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
):
    """Daily and monthly email quota usage"""
    return {"success": True, "quota": service.quota()}


@router.get("/latest-delivery")
async def latest_delivery(
    current_user: User = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
):
    """Delivery stats for the most recently created message"""
    return {"success": True, **service.latest_delivery()}


@router.post("/preview")
async def preview_message(
    data: PreviewRequest,
    current_user: User = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
):
    return {"success": True, **service.preview(data)}


# ============================================================================
# SINGLE MESSAGE ROUTES
# ============================================================================


@router.get("/{message_id}")
async def get_message(
    message_id: int,
    current_user: User = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
):
    return {"success": True, "message": serialize_message(service.get_message(message_id))}


@router.put("/{message_id}")
async def update_message(
    message_id: int,
    data: MessageUpdate,
    current_user: User = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
):
    message = service.update_message(message_id, data)
    return {"success": True, "message": serialize_message(message)}


@router.delete("/{message_id}")
async def delete_message(
    message_id: int,
    current_user: User = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
):
    service.delete_message(message_id)
    return {"success": True}


@router.post("/{message_id}/send")
async def send_message(
    message_id: int,
    data: Optional[SendRequest] = Body(None),
    current_user: User = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
):
    """Send a draft immediately to the selected guests, or all guests"""
    guest_ids = data.guest_ids if data else None
    results = await service.send_message(message_id, guest_ids)
    return {"success": True, "results": results}


@router.post("/{message_id}/schedule")
async def schedule_message(
    message_id: int,
    data: ScheduleRequest,
    current_user: User = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
):
    return service.schedule_message(message_id, data)


@router.get("/{message_id}/logs")
async def message_logs(
    message_id: int,
    current_user: User = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
):
    return {"success": True, "logs": service.delivery_logs(message_id)}


@router.get("/{message_id}/stats")
async def message_stats(
    message_id: int,
    current_user: User = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
):
    return {"success": True, **service.delivery_stats(message_id)}
