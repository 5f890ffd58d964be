"""Survey service - admin survey management and public responses"""

import csv
import logging
import math
from datetime import datetime
from io import StringIO
from typing import Any, Optional

from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from ...errors import AppError, NotFoundError
from ...models import Guest, Page, SurveyBlock
from ...shared.validators import validate_positive_int
from ...utils.dates import to_iso, utcnow
from ..pages.service import guest_is_attending
from .repository import SurveyRepository
from .schemas import survey_fields, validate_survey_payload

logger = logging.getLogger(__name__)

INVALID_RESPONSE_MESSAGE = "Your response does not meet survey requirements, please check and try again"
RESPONSE_FILTERS = ("all", "anonymous", "guest")


def parse_survey_id(raw: Any) -> int:
    survey_id = validate_positive_int(raw)
    if survey_id is None:
        raise AppError(400, "Invalid survey id", "INVALID_ID")
    return survey_id


def serialize_survey(survey: SurveyBlock) -> dict:
    return {
        "id": survey.id,
        "page_id": survey.page_id,
        "locale": survey.locale,
        "question": survey.question,
        "type": survey.type,
        "options": survey.options or [],
        "is_required": bool(survey.is_required),
        "is_anonymous": bool(survey.is_anonymous),
        "requires_rsvp": bool(survey.requires_rsvp),
        "block_order": survey.block_order,
        "deleted_at": to_iso(survey.deleted_at),
        "created_at": to_iso(survey.created_at),
        "updated_at": to_iso(survey.updated_at),
    }


def _option_for(value: Any, options: list) -> Any:
    """Map a label or a 1-based option index to the option label"""
    if isinstance(value, str) and value in options:
        return value
    if isinstance(value, bool):
        return value
    index = None
    if isinstance(value, int):
        index = value
    elif isinstance(value, str) and value.strip().isdigit():
        index = int(value.strip())
    if index is not None and 1 <= index <= len(options):
        return options[index - 1]
    return value


def normalize_response(survey: SurveyBlock, raw: Any):
    """
    Validate ``raw`` against the survey type and options.
    Returns the normalized answer (str, list or None) or raises INVALID_RESPONSE.
    """
    options = survey.options or []
    required = bool(survey.is_required)

    def invalid():
        return AppError(400, INVALID_RESPONSE_MESSAGE, "INVALID_RESPONSE")

    if survey.type == "radio":
        if raw is None or raw == "":
            if required:
                raise invalid()
            return None
        answer = _option_for(raw, options)
        if not isinstance(answer, str) or answer not in options:
            raise invalid()
        return answer

    if survey.type == "checkbox":
        if raw is None:
            raw = []
        if not isinstance(raw, list):
            raise invalid()
        answers = [_option_for(item, options) for item in raw]
        if not all(isinstance(a, str) and a in options for a in answers):
            raise invalid()
        if required and not answers:
            raise invalid()
        return answers

    if survey.type == "text":
        if raw is None:
            raw = ""
        if not isinstance(raw, str):
            raise invalid()
        answer = raw.strip()
        if required and not answer:
            raise invalid()
        return answer

    raise AppError(400, "Unsupported survey type", "INVALID_TYPE")


class SurveyService:
    """Service layer for surveys and their responses"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SurveyRepository()

    def get_survey(self, survey_id: int, include_deleted: bool = True) -> SurveyBlock:
        survey = self.repo.get_by_id(self.db, survey_id, include_deleted)
        if not survey:
            raise NotFoundError("Survey not found")
        return survey

    # Admin

    def list_surveys(self, page: int, limit: int, include_deleted: bool, page_id: Optional[int]) -> dict:
        page = max(page or 1, 1)
        limit = min(max(limit or 20, 1), 100)
        rows, total = self.repo.list_surveys(self.db, include_deleted, page_id, page, limit)
        return {
            "data": [serialize_survey(s) for s in rows],
            "meta": {
                "page": page,
                "limit": limit,
                "total": total,
                "total_pages": math.ceil(total / limit),
                "includeDeleted": include_deleted,
            },
        }

    def _check_page(self, fields: dict) -> None:
        page_id = fields.get("page_id")
        if page_id is not None and not self.db.query(Page.id).filter(Page.id == page_id).first():
            raise AppError(400, "page_id does not reference an existing page", "INVALID_SURVEY")

    def create_survey(self, body: Any) -> SurveyBlock:
        errors = validate_survey_payload(body)
        if errors:
            raise AppError(400, ", ".join(errors), "INVALID_SURVEY")
        fields = survey_fields(body)
        self._check_page(fields)
        survey = self.repo.create(self.db, **fields)
        logger.info(f"✅ Survey created: {survey.id} ({survey.type})")
        return survey

    def update_survey(self, survey_id: int, body: Any) -> SurveyBlock:
        survey = self.get_survey(survey_id)
        errors = validate_survey_payload(body, for_update=True, current_type=survey.type)
        if errors:
            raise AppError(400, ", ".join(errors), "INVALID_SURVEY")
        fields = survey_fields(body, current_type=survey.type)
        self._check_page(fields)
        for key, value in fields.items():
            setattr(survey, key, value)
        survey.updated_at = utcnow()
        self.db.commit()
        self.db.refresh(survey)
        return survey

    def soft_delete(self, survey_id: int) -> None:
        survey = self.get_survey(survey_id)
        survey.deleted_at = utcnow()
        self.db.commit()
        logger.info(f"🗑️ Survey soft-deleted: {survey_id}")

    def restore(self, survey_id: int) -> SurveyBlock:
        survey = self.get_survey(survey_id)
        survey.deleted_at = None
        survey.updated_at = utcnow()
        self.db.commit()
        self.db.refresh(survey)
        return survey

    def destroy(self, survey_id: int) -> None:
        survey = self.get_survey(survey_id)
        self.repo.destroy(self.db, survey)
        logger.info(f"🗑️ Survey destroyed with its responses: {survey_id}")

    # Responses (admin)

    def list_responses(self, survey_id: int, filter_by: str, page: int, limit: int) -> tuple[list[dict], dict]:
        self.get_survey(survey_id)
        filter_by = (filter_by or "all").lower()
        if filter_by not in RESPONSE_FILTERS:
            filter_by = "all"
        page = max(page or 1, 1)
        limit = min(max(limit or 100, 1), 1000)

        rows = self.repo.responses(self.db, survey_id, filter_by)
        total = len(rows)
        offset = (page - 1) * limit
        data = [
            {
                "id": response.id,
                "survey_block_id": response.survey_block_id,
                "guest_id": response.guest_id,
                "guest_name": guest_name,
                "response_text": response.response_text,
                "response_json": response.response_json,
                "created_at": to_iso(response.created_at),
            }
            for response, guest_name in rows[offset:offset + limit]
        ]
        meta = {
            "filter": filter_by,
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": math.ceil(total / limit),
        }
        return data, meta

    def export_responses_csv(self, survey_id: int, data: list[dict]) -> StreamingResponse:
        output = StringIO()
        writer = csv.writer(output)
        writer.writerow(["id", "survey_block_id", "guest_id", "guest_name", "response_text", "created_at"])
        for row in data:
            answer = row["response_text"]
            if answer is None and isinstance(row["response_json"], list):
                answer = "; ".join(row["response_json"])
            writer.writerow(
                [
                    row["id"],
                    row["survey_block_id"],
                    row["guest_id"] if row["guest_id"] is not None else "",
                    row["guest_name"] or "",
                    answer or "",
                    row["created_at"] or "",
                ]
            )

        filename = f"survey_{survey_id}_responses_{datetime.now().strftime('%Y%m%d_%H%M%S')}.csv"
        logger.info(f"📊 Survey {survey_id} responses exported ({len(data)} rows)")
        return StreamingResponse(
            iter([output.getvalue()]),
            media_type="text/csv",
            headers={
                "Content-Disposition": f"attachment; filename={filename}",
                "Cache-Control": "no-cache",
            },
        )

    def delete_responses(self, survey_id: int) -> int:
        deleted = self.repo.delete_responses(self.db, survey_id)
        logger.info(f"🗑️ Deleted {deleted} responses for survey {survey_id}")
        return deleted

    # Public

    def _check_rsvp_gate(self, survey: SurveyBlock, guest: Optional[Guest]) -> None:
        gated = bool(survey.requires_rsvp)
        if not gated and survey.page_id:
            page = (
                self.db.query(Page)
                .filter(Page.id == survey.page_id, Page.deleted_at.is_(None))
                .first()
            )
            gated = bool(page and page.requires_rsvp)
        if gated and not guest_is_attending(guest):
            raise AppError(403, "RSVP required to respond to this survey", "RSVP_REQUIRED")

    def respond(self, survey_id: int, raw_response: Any, guest: Optional[Guest]) -> None:
        """Record a public survey answer after gating, validation and identity checks"""
        survey = self.get_survey(survey_id, include_deleted=False)
        self._check_rsvp_gate(survey, guest)
        answer = normalize_response(survey, raw_response)

        guest_id = None
        if not survey.is_anonymous:
            if guest is None:
                raise AppError(
                    401,
                    "This survey is for attending guests. An attending RSVP required to respond to this survey",
                    "AUTH_REQUIRED",
                )
            guest_id = guest.id

        self.repo.add_response(
            self.db,
            survey_block_id=survey.id,
            guest_id=guest_id,
            response_text=answer if isinstance(answer, str) else None,
            response_json=answer if isinstance(answer, list) else None,
        )
        logger.info(f"📝 Survey {survey.id} response recorded ({'guest' if guest_id else 'anonymous'})")
