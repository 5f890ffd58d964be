"""Survey repository - Database operations for survey blocks and responses"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Guest, SurveyBlock, SurveyResponse


class SurveyRepository:
    """Repository for survey database operations"""

    @staticmethod
    def list_surveys(
        db: Session,
        include_deleted: bool = False,
        page_id: Optional[int] = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[SurveyBlock], int]:
        query = db.query(SurveyBlock)
        if not include_deleted:
            query = query.filter(SurveyBlock.deleted_at.is_(None))
        if page_id is not None:
            query = query.filter(SurveyBlock.page_id == page_id)
        total = query.count()
        rows = (
            query.order_by(SurveyBlock.block_order, SurveyBlock.id)
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return rows, total

    @staticmethod
    def get_by_id(db: Session, survey_id: int, include_deleted: bool = True) -> Optional[SurveyBlock]:
        query = db.query(SurveyBlock).filter(SurveyBlock.id == survey_id)
        if not include_deleted:
            query = query.filter(SurveyBlock.deleted_at.is_(None))
        return query.first()

    @staticmethod
    def create(db: Session, **data) -> SurveyBlock:
        survey = SurveyBlock(**data)
        db.add(survey)
        db.commit()
        db.refresh(survey)
        return survey

    @staticmethod
    def destroy(db: Session, survey: SurveyBlock) -> None:
        db.query(SurveyResponse).filter(SurveyResponse.survey_block_id == survey.id).delete(
            synchronize_session=False
        )
        db.delete(survey)
        db.commit()

    @staticmethod
    def responses(db: Session, survey_id: int, filter_by: str = "all") -> list[tuple]:
        """Responses joined with the responding guest's name (None for anonymous)"""
        query = (
            db.query(SurveyResponse, Guest.name)
            .outerjoin(Guest, Guest.id == SurveyResponse.guest_id)
            .filter(SurveyResponse.survey_block_id == survey_id)
        )
        if filter_by == "anonymous":
            query = query.filter(SurveyResponse.guest_id.is_(None))
        elif filter_by == "guest":
            query = query.filter(SurveyResponse.guest_id.isnot(None))
        return query.order_by(SurveyResponse.created_at.desc(), SurveyResponse.id.desc()).all()

    @staticmethod
    def add_response(db: Session, **data) -> SurveyResponse:
        response = SurveyResponse(**data)
        db.add(response)
        db.commit()
        db.refresh(response)
        return response

    @staticmethod
    def delete_responses(db: Session, survey_id: int) -> int:
        deleted = (
            db.query(SurveyResponse)
            .filter(SurveyResponse.survey_block_id == survey_id)
            .delete(synchronize_session=False)
        )
        db.commit()
        return deleted
