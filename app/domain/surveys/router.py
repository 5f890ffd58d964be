"""Survey routers - admin survey management and public responses"""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query, Request
from sqlalchemy.orm import Session

from ...auth import get_current_user, get_optional_guest
from ...config import SURVEY_RESPONSE_MAX, SURVEY_RESPONSE_WINDOW_SECONDS
from ...database import get_db
from ...models import Guest, User
from ...rate_limiter import enforce_rate_limit, get_client_ip
from .service import SurveyService, parse_survey_id, serialize_survey

admin_router = APIRouter(prefix="/api/admin/surveys", tags=["Surveys (admin)"])
public_router = APIRouter(prefix="/api/surveys", tags=["Surveys"])


def get_survey_service(db: Session = Depends(get_db)) -> SurveyService:
    """Dependency injection for SurveyService"""
    return SurveyService(db)


def survey_response_limit(request: Request) -> None:
    """5 submissions per 5 minutes per client IP and survey"""
    survey_key = request.path_params.get("survey_id", "")
    enforce_rate_limit(
        f"survey_respond:{get_client_ip(request)}:{survey_key}",
        SURVEY_RESPONSE_MAX,
        SURVEY_RESPONSE_WINDOW_SECONDS,
        "Too many submissions. Try again later.",
    )


# ============================================================================
# ADMIN SURVEYS
# ============================================================================


@admin_router.get("")
async def list_surveys(
    page: int = Query(1),
    limit: int = Query(20),
    include_deleted: bool = Query(False, alias="includeDeleted"),
    page_id: Optional[int] = Query(None),
    current_user: User = Depends(get_current_user),
    service: SurveyService = Depends(get_survey_service),
):
    return service.list_surveys(page, limit, include_deleted, page_id)


@admin_router.post("", status_code=201)
async def create_survey(
    body: Any = Body(None),
    current_user: User = Depends(get_current_user),
    service: SurveyService = Depends(get_survey_service),
):
    return serialize_survey(service.create_survey(body))


@admin_router.get("/{survey_id}")
async def get_survey(
    survey_id: str,
    current_user: User = Depends(get_current_user),
    service: SurveyService = Depends(get_survey_service),
):
    return serialize_survey(service.get_survey(parse_survey_id(survey_id)))


@admin_router.put("/{survey_id}")
async def update_survey(
    survey_id: str,
    body: Any = Body(None),
    current_user: User = Depends(get_current_user),
    service: SurveyService = Depends(get_survey_service),
):
    return serialize_survey(service.update_survey(parse_survey_id(survey_id), body))


@admin_router.delete("/{survey_id}")
async def delete_survey(
    survey_id: str,
    current_user: User = Depends(get_current_user),
    service: SurveyService = Depends(get_survey_service),
):
    """Soft delete"""
    service.soft_delete(parse_survey_id(survey_id))
    return {"success": True}


@admin_router.put("/{survey_id}/restore")
async def restore_survey(
    survey_id: str,
    current_user: User = Depends(get_current_user),
    service: SurveyService = Depends(get_survey_service),
):
    return serialize_survey(service.restore(parse_survey_id(survey_id)))


@admin_router.delete("/{survey_id}/destroy")
async def destroy_survey(
    survey_id: str,
    current_user: User = Depends(get_current_user),
    service: SurveyService = Depends(get_survey_service),
):
    """Permanently remove the survey and its responses"""
    service.destroy(parse_survey_id(survey_id))
    return {"success": True}


# ============================================================================
# ADMIN RESPONSES
# ============================================================================


@admin_router.get("/{survey_id}/responses")
async def list_responses(
    survey_id: str,
    filter: str = Query("all"),
    page: int = Query(1),
    limit: int = Query(100),
    format: str = Query("json"),
    current_user: User = Depends(get_current_user),
    service: SurveyService = Depends(get_survey_service),
):
    """Responses filtered by all/anonymous/guest; ``format=csv`` exports the page as CSV"""
    sid = parse_survey_id(survey_id)
    data, meta = service.list_responses(sid, filter, page, limit)
    if format.lower() == "csv":
        return service.export_responses_csv(sid, data)
    return {"data": data, "meta": meta}


@admin_router.delete("/{survey_id}/responses")
async def delete_responses(
    survey_id: str,
    current_user: User = Depends(get_current_user),
    service: SurveyService = Depends(get_survey_service),
):
    deleted = service.delete_responses(parse_survey_id(survey_id))
    return {"success": True, "deleted": deleted}


# ============================================================================
# PUBLIC
# ============================================================================


@public_router.post("/{survey_id}/respond")
async def respond(
    survey_id: str,
    body: Any = Body(None),
    _: None = Depends(survey_response_limit),
    guest: Optional[Guest] = Depends(get_optional_guest),
    service: SurveyService = Depends(get_survey_service),
):
    raw = body.get("response") if isinstance(body, dict) else None
    service.respond(parse_survey_id(survey_id), raw, guest)
    return {"success": True}
