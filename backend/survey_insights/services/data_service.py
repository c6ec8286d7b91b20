"""Loads complete survey responses from the store and validates them for analytics."""

import logging
import re
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from survey_insights.config import settings
from survey_insights.errors import StorageError
from survey_insights.schemas.analytics import (
    AnswerRecord,
    QuestionGroup,
    QuestionMetadata,
    ResponseRecord,
    ValidatedResponses,
)
from survey_insights.storage.base import SurveyStore

logger = logging.getLogger(__name__)

_LEADING_NUMBER_RE = re.compile(r"^\s*[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")

QUESTION_METADATA = [
    QuestionMetadata(
        id=57,
        section="Time Allocation",
        text="How much time do you spend on strategic planning vs. system problem-solving?",
        type="percentage",
        tags=["time", "management", "strategic"],
    ),
    QuestionMetadata(
        id=131,
        section="System Complexity",
        text="How often do you need to use workarounds for system limitations?",
        type="likert",
        tags=["system", "workarounds", "complexity"],
    ),
    QuestionMetadata(
        id=141,
        section="System Complexity",
        text="What are the most critical workarounds you regularly use?",
        type="text",
        tags=["system", "workarounds", "critical"],
    ),
    QuestionMetadata(
        id=161,
        section="Process Bottlenecks",
        text="What percentage of leads are lost during the application process?",
        type="percentage",
        tags=["process", "leads", "conversion"],
    ),
    QuestionMetadata(
        id=172,
        section="Time Allocation",
        text="What percentage of your time is spent on administrative tasks?",
        type="percentage",
        tags=["time", "administrative"],
    ),
    QuestionMetadata(
        id=218,
        section="System Complexity",
        text="How many different tools do you use in your daily work?",
        type="rating",
        tags=["system", "tools", "complexity"],
    ),
    QuestionMetadata(
        id=248,
        section="Time Allocation",
        text="What percentage of your time is spent on sales activities?",
        type="percentage",
        tags=["time", "sales"],
    ),
    QuestionMetadata(
        id=258,
        section="System Complexity",
        text="How many separate logins do you use during a typical day?",
        type="rating",
        tags=["system", "logins", "complexity"],
    ),
    QuestionMetadata(
        id=270,
        section="Process Bottlenecks",
        text="How confident are you in the accuracy of lead tracking?",
        type="likert",
        tags=["process", "tracking", "confidence"],
    ),
    QuestionMetadata(
        id=290,
        section="System Complexity",
        text="Rate the prevalence of workarounds in your daily work",
        type="likert",
        tags=["system", "workarounds", "frequency"],
    ),
    QuestionMetadata(
        id=310,
        section="Process Bottlenecks",
        text="How many minutes does it typically take to access needed information?",
        type="rating",
        tags=["process", "data", "access"],
    ),
    QuestionMetadata(
        id=322,
        section="Team Collaboration",
        text="How would you rate information sharing quality in your team?",
        type="likert",
        tags=["team", "information", "sharing"],
    ),
    QuestionMetadata(
        id=332,
        section="Team Collaboration",
        text="How effective are handoffs between team members?",
        type="likert",
        tags=["team", "handoffs", "effectiveness"],
    ),
    QuestionMetadata(
        id=342,
        section="Team Collaboration",
        text="How significant is the communication gap between roles?",
        type="likert",
        tags=["team", "communication", "gaps"],
    ),
    QuestionMetadata(
        id=354,
        section="Team Collaboration",
        text="How often do you review the pipeline as a team?",
        type="rating",
        tags=["team", "pipeline", "reviews"],
    ),
    QuestionMetadata(
        id=364,
        section="Process Bottlenecks",
        text="At which stage do most leads drop out of the process?",
        type="multiple_choice",
        tags=["process", "leads", "stages"],
        options=[
            "Initial Inquiry",
            "Application Started",
            "Document Collection",
            "Review Process",
            "Decision Stage",
        ],
    ),
]


def get_question_metadata() -> List[QuestionMetadata]:
    return list(QUESTION_METADATA)


def fetch_survey_data(store: SurveyStore, survey_id: Optional[int] = None) -> List[ResponseRecord]:
    """Return every complete response of the analytics survey with its answers.

    Backend failures are logged and produce an empty list so the dashboard can
    still render its defaults.
    """
    survey_id = survey_id or settings.ANALYTICS_SURVEY_ID
    try:
        survey = store.get_survey(survey_id)
        role = survey.target_role if survey else None
        records = []
        for response in store.get_responses_by_survey(survey_id):
            answers = [
                AnswerRecord(
                    question_id=answer.question_id,
                    answer_value=answer.answer_value or "",
                    answer_numeric=answer.answer_numeric,
                    answer_text=answer.answer_value if isinstance(answer.answer_value, str) else "",
                )
                for answer in store.get_answers_by_response(response.id)
            ]
            records.append(
                ResponseRecord(
                    id=response.id,
                    survey_id=response.survey_id,
                    user_id=response.user_id,
                    role=role,
                    completed_at=response.completed_at or response.started_at,
                    answers=answers,
                )
            )
        return records
    except (StorageError, SQLAlchemyError) as exc:
        logger.error("[analytics] failed to fetch survey %s data: %s", survey_id, exc)
        return []


def validate_responses(responses: List[ResponseRecord], min_answers: Optional[int] = None) -> ValidatedResponses:
    min_answers = settings.MIN_ANSWERS_PER_RESPONSE if min_answers is None else min_answers
    valid: List[ResponseRecord] = []
    issues: List[str] = []
    invalid_count = 0
    for response in responses:
        if not response.id or not response.survey_id or not response.completed_at:
            issues.append(f"Response {response.id or 'unknown'} missing required fields")
            invalid_count += 1
            continue
        if len(response.answers) < min_answers:
            issues.append(f"Response {response.id} has insufficient answers ({len(response.answers)})")
            invalid_count += 1
            continue
        valid.append(response)
    if issues:
        logger.info("[analytics] dropped %s responses during validation", invalid_count)
    return ValidatedResponses(
        responses=valid,
        valid_count=len(valid),
        invalid_count=invalid_count,
        validation_issues=issues,
    )


def group_by_question(validated: ValidatedResponses) -> Dict[int, QuestionGroup]:
    metadata = {question.id: question for question in QUESTION_METADATA}
    groups: Dict[int, QuestionGroup] = {}
    for response in validated.responses:
        for answer in response.answers:
            group = groups.get(answer.question_id)
            if group is None:
                group = QuestionGroup(
                    question_id=answer.question_id,
                    metadata=metadata.get(answer.question_id)
                    or QuestionMetadata(
                        id=answer.question_id,
                        section="Unknown",
                        text=f"Question {answer.question_id}",
                        type="text",
                    ),
                )
                groups[answer.question_id] = group
            group.answers.append(answer)
    return groups


def _parse_leading_number(text: str) -> Optional[float]:
    match = _LEADING_NUMBER_RE.match(text)
    return float(match.group(0)) if match else None


def extract_numeric_value(value: Any) -> Optional[float]:
    """Numbers pass through, numeric strings parse by their leading number, and
    strings that only parse once ``%`` is removed are returned as fractions."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        parsed = _parse_leading_number(value)
        if parsed is not None:
            return parsed
        if "%" in value:
            percent = _parse_leading_number(value.replace("%", ""))
            if percent is not None:
                return percent / 100
    return None
