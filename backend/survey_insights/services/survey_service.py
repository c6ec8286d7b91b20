"""Survey service layer: question loading, submission and completion stats."""

import logging
import secrets
import time
from datetime import datetime
from typing import Any, List

from sqlalchemy.exc import SQLAlchemyError

from survey_insights.errors import ApiError, StorageError
from survey_insights.schemas.survey import SubmitRequest, SubmitResult, SurveyOut, SurveyQuestionsOut
from survey_insights.storage.base import SurveyStore
from survey_insights.utils.helpers import clamp, round_half_up

logger = logging.getLogger(__name__)

SURVEY_ROLES = {"manager", "sales", "all"}

# Baselines used when no tagged answers exist yet.
BASELINE_EFFICIENCY = 6.5
BASELINE_PRODUCTIVITY = 7.0
BASELINE_SATISFACTION = 6.0

FALLBACK_IMPROVEMENTS = {"dataEntry": 25, "leadResponse": 40, "productivity": 60}


def _parse_survey_id(raw: Any) -> int:
    try:
        survey_id = int(str(raw).strip())
    except (TypeError, ValueError):
        raise ApiError(400, "Invalid survey ID")
    if survey_id <= 0:
        raise ApiError(400, "Invalid survey ID")
    return survey_id


def get_survey_questions(store: SurveyStore, raw_survey_id: Any) -> SurveyQuestionsOut:
    survey_id = _parse_survey_id(raw_survey_id)
    survey = store.get_survey(survey_id)
    if survey is None:
        raise ApiError(404, "Survey not found")
    return SurveyQuestionsOut(survey=survey, questions=store.get_questions_by_survey(survey_id))


def list_surveys(store: SurveyStore, role: str = "all") -> List[SurveyOut]:
    role = (role or "all").strip().lower()
    if role not in SURVEY_ROLES:
        raise ApiError(400, "Invalid role", details=f"Role must be one of {', '.join(sorted(SURVEY_ROLES))}")
    return store.get_surveys_by_role(role)


def _new_session_id() -> str:
    return f"session_{int(time.time() * 1000)}_{secrets.token_hex(5)[:9]}"


def submit_survey(store: SurveyStore, request: SubmitRequest) -> SubmitResult:
    question_ids = [answer.question_id for answer in request.answers]
    logger.info(
        "[submit] survey=%s answers=%s session=%s",
        request.survey_id,
        len(request.answers),
        request.session_id,
    )
    if not request.answers:
        raise ApiError(400, "No answers provided")

    try:
        valid, missing = store.validate_question_ids(question_ids, request.survey_id)
        if not valid:
            logger.warning("[submit] unknown question ids for survey %s: %s", request.survey_id, missing)
            raise ApiError(
                400,
                "Invalid question IDs",
                missingIds=missing,
                details=f"Question IDs {', '.join(str(qid) for qid in missing)} do not exist for survey {request.survey_id}",
            )
        response_id = store.submit_response(
            survey_id=request.survey_id,
            answers=request.answers,
            session_id=request.session_id or _new_session_id(),
            started_at=request.started_at or datetime.utcnow(),
            response_time_seconds=request.response_time or 0,
        )
    except (StorageError, SQLAlchemyError) as exc:
        logger.exception("[submit] survey %s submission failed", request.survey_id)
        raise ApiError(500, "Failed to submit survey", details=str(exc)) from exc
    return SubmitResult(response_id=response_id)


def improvement_percentages(efficiency: float, productivity: float, satisfaction: float) -> dict:
    """Scale 0-10 scores to the improvement ranges shown after completion."""
    data_entry = round_half_up((efficiency - 5) / 5 * 30)
    lead_response = round_half_up((productivity - 5) / 5 * 50)
    productivity_increase = round_half_up((satisfaction - 4) / 6 * 80)
    return {
        "dataEntry": int(clamp(data_entry, 15, 35)),
        "leadResponse": int(clamp(lead_response, 25, 55)),
        "productivity": int(clamp(productivity_increase, 40, 80)),
    }


def get_completion_stats(store: SurveyStore) -> dict:
    try:
        stats = store.get_completion_stats()
        scores = store.get_improvement_metrics()
    except (StorageError, SQLAlchemyError) as exc:
        logger.error("[stats] completion stats unavailable: %s", exc)
        return {
            "totalResponses": 0,
            "avgResponseTime": 0,
            "managerResponses": 0,
            "salesResponses": 0,
            "improvements": dict(FALLBACK_IMPROVEMENTS),
        }
    return {
        "totalResponses": stats.total_responses or 0,
        "avgResponseTime": int(round_half_up(stats.avg_response_time or 0)),
        "managerResponses": stats.manager_responses or 0,
        "salesResponses": stats.sales_responses or 0,
        "improvements": improvement_percentages(
            scores.efficiency_score or BASELINE_EFFICIENCY,
            scores.productivity_score or BASELINE_PRODUCTIVITY,
            scores.satisfaction_score or BASELINE_SATISFACTION,
        ),
    }
