"""SQLAlchemy-backed survey store."""

import logging
from datetime import datetime, timedelta
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import case, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from survey_insights.errors import StorageError
from survey_insights.models.response import Answer, Response
from survey_insights.models.survey import Question, Survey
from survey_insights.models.user import User
from survey_insights.schemas.survey import (
    AnswerIn,
    AnswerOut,
    CompletionStats,
    ImprovementScores,
    QuestionOut,
    ResponseOut,
    SurveyOut,
    parse_question,
)
from survey_insights.schemas.user import UserOut
from survey_insights.storage.base import STATS_WINDOW_DAYS, SurveyStore, missing_ids

logger = logging.getLogger(__name__)


class SqlSurveyStore(SurveyStore):
    name = "sqlite"
    atomic_submission = True

    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: int) -> Optional[UserOut]:
        user = self.db.query(User).filter(User.id == user_id).first()
        return UserOut.model_validate(user) if user else None

    def get_user_by_email(self, email: str) -> Optional[UserOut]:
        user = self.db.query(User).filter(User.email == email).first()
        return UserOut.model_validate(user) if user else None

    def get_survey(self, survey_id: int) -> Optional[SurveyOut]:
        survey = self.db.query(Survey).filter(Survey.id == survey_id).first()
        return SurveyOut.model_validate(survey) if survey else None

    def get_surveys_by_role(self, role: str) -> List[SurveyOut]:
        query = self.db.query(Survey).filter(Survey.is_active == True)
        if role != "all":
            query = query.filter(Survey.target_role == role)
        return [SurveyOut.model_validate(row) for row in query.order_by(Survey.id.asc()).all()]

    def get_questions_by_survey(self, survey_id: int) -> List[QuestionOut]:
        rows = (
            self.db.query(Question)
            .filter(Question.survey_id == survey_id)
            .order_by(Question.question_order.asc())
            .all()
        )
        return [parse_question(row) for row in rows]

    def get_responses_by_survey(self, survey_id: int) -> List[ResponseOut]:
        rows = (
            self.db.query(Response)
            .filter(Response.survey_id == survey_id, Response.is_complete == True)
            .order_by(Response.id.asc())
            .all()
        )
        return [ResponseOut.model_validate(row) for row in rows]

    def get_answers_by_response(self, response_id: int) -> List[AnswerOut]:
        rows = (
            self.db.query(Answer)
            .filter(Answer.response_id == response_id)
            .order_by(Answer.id.asc())
            .all()
        )
        return [AnswerOut.model_validate(row) for row in rows]

    def validate_question_ids(self, question_ids: Sequence[int], survey_id: int) -> Tuple[bool, List[int]]:
        if not question_ids:
            return True, []
        existing = [
            int(row[0])
            for row in self.db.query(Question.id)
            .filter(Question.id.in_(list(question_ids)), Question.survey_id == survey_id)
            .all()
        ]
        missing = missing_ids(question_ids, existing)
        return not missing, missing

    def submit_response(
        self,
        *,
        survey_id: int,
        answers: Sequence[AnswerIn],
        session_id: str,
        started_at: datetime,
        response_time_seconds: Optional[int],
        user_id: Optional[int] = None,
        is_anonymous: bool = True,
    ) -> int:
        try:
            response = Response(
                survey_id=survey_id,
                user_id=user_id,
                session_id=session_id,
                is_anonymous=is_anonymous,
                started_at=started_at,
            )
            self.db.add(response)
            self.db.flush()
            for answer in answers:
                self.db.add(
                    Answer(
                        response_id=response.id,
                        question_id=answer.question_id,
                        answer_value=answer.stored_value(),
                        answer_numeric=answer.numeric_value,
                        confidence_score=answer.confidence_score,
                    )
                )
            response.completed_at = datetime.utcnow()
            response.is_complete = True
            response.response_time_seconds = response_time_seconds
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("[storage] submission rolled back for survey %s: %s", survey_id, exc)
            raise StorageError(str(exc)) from exc
        return int(response.id)

    def get_completion_stats(self) -> CompletionStats:
        since = datetime.utcnow() - timedelta(days=STATS_WINDOW_DAYS)
        row = (
            self.db.query(
                func.count(Response.id),
                func.avg(Response.response_time_seconds),
                func.count(case((Survey.target_role == "manager", 1))),
                func.count(case((Survey.target_role == "sales", 1))),
            )
            .join(Survey, Response.survey_id == Survey.id)
            .filter(Response.is_complete == True, Response.completed_at >= since)
            .one()
        )
        return CompletionStats(
            total_responses=row[0] or 0,
            avg_response_time=float(row[1] or 0),
            manager_responses=row[2] or 0,
            sales_responses=row[3] or 0,
        )

    def get_improvement_metrics(self) -> ImprovementScores:
        since = datetime.utcnow() - timedelta(days=STATS_WINDOW_DAYS)

        def tagged_avg(tag: str):
            return func.avg(
                case(
                    (Question.analysis_tags.like(f"%{tag}%"), Answer.answer_numeric),
                )
            )

        row = (
            self.db.query(
                tagged_avg("efficiency"),
                tagged_avg("productivity"),
                tagged_avg("satisfaction"),
            )
            .select_from(Answer)
            .join(Question, Answer.question_id == Question.id)
            .join(Response, Answer.response_id == Response.id)
            .filter(
                Answer.answer_numeric.isnot(None),
                Response.is_complete == True,
                Response.completed_at >= since,
            )
            .one()
        )
        return ImprovementScores(
            efficiency_score=row[0],
            productivity_score=row[1],
            satisfaction_score=row[2],
        )

    def get_question_count(self, survey_id: int) -> int:
        return self.db.query(func.count(Question.id)).filter(Question.survey_id == survey_id).scalar() or 0
