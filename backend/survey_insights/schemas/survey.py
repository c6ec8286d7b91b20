"""Survey, question and submission contracts.

Stored questions carry ``options`` and ``validation_rules`` as JSON text.
``parse_question`` decodes them once at the storage boundary so nothing
downstream re-parses raw strings.
"""

import json
import logging
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)


class ValidationRules(BaseModel):
    min: Optional[float] = None
    max: Optional[float] = None
    word_limit: Optional[int] = None
    required: Optional[bool] = None
    sum_to_100: Optional[bool] = None


class SurveyOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    target_role: str
    version: int = 1
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class QuestionOut(BaseModel):
    id: int
    survey_id: int
    section: str
    question_text: str
    question_type: str
    question_order: int
    is_required: bool = True
    options: List[str] = Field(default_factory=list)
    validation_rules: ValidationRules = Field(default_factory=ValidationRules)
    analysis_tags: List[str] = Field(default_factory=list)


class SurveyQuestionsOut(BaseModel):
    survey: SurveyOut
    questions: List[QuestionOut]


def _row_value(row: Any, name: str, default: Any = None) -> Any:
    if isinstance(row, dict):
        return row.get(name, default)
    return getattr(row, name, default)


def _load_json(raw: Any, *, field: str, question_id: Any) -> Any:
    if raw is None or raw == "":
        return None
    if isinstance(raw, (list, dict)):
        return raw
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, TypeError) as exc:
        logger.warning("[questions] invalid %s json on question %s: %s", field, question_id, exc)
        return None


def parse_options(raw: Any, *, question_id: Any = None) -> List[str]:
    parsed = _load_json(raw, field="options", question_id=question_id)
    if parsed is None:
        return []
    if not isinstance(parsed, list):
        logger.warning("[questions] options on question %s is not a list", question_id)
        return []
    return [str(v) for v in parsed]


def parse_validation_rules(raw: Any, *, question_id: Any = None) -> ValidationRules:
    parsed = _load_json(raw, field="validation_rules", question_id=question_id)
    if not isinstance(parsed, dict):
        if parsed is not None:
            logger.warning("[questions] validation_rules on question %s is not an object", question_id)
        return ValidationRules()
    try:
        return ValidationRules.model_validate(parsed)
    except ValidationError as exc:
        logger.warning("[questions] unusable validation_rules on question %s: %s", question_id, exc)
        return ValidationRules()


def parse_analysis_tags(raw: Any) -> List[str]:
    if not raw:
        return []
    if isinstance(raw, (list, tuple, set)):
        return sorted({str(v).strip() for v in raw if str(v).strip()})
    return sorted({tag.strip() for tag in str(raw).split(",") if tag.strip()})


def parse_question(row: Any) -> QuestionOut:
    """Build a typed question from an ORM row or a REST record."""
    question_id = _row_value(row, "id")
    return QuestionOut(
        id=question_id,
        survey_id=_row_value(row, "survey_id"),
        section=_row_value(row, "section") or "",
        question_text=_row_value(row, "question_text") or "",
        question_type=_row_value(row, "question_type") or "text",
        question_order=_row_value(row, "question_order") or 0,
        is_required=bool(_row_value(row, "is_required", True)),
        options=parse_options(_row_value(row, "options"), question_id=question_id),
        validation_rules=parse_validation_rules(_row_value(row, "validation_rules"), question_id=question_id),
        analysis_tags=parse_analysis_tags(_row_value(row, "analysis_tags")),
    )


class AnswerIn(BaseModel):
    question_id: int = Field(alias="questionId")
    value: Any = None
    numeric_value: Optional[float] = Field(default=None, alias="numericValue")
    confidence_score: Optional[int] = Field(default=None, alias="confidenceScore")

    model_config = {"populate_by_name": True}

    def stored_value(self) -> str:
        if self.value is None:
            return ""
        if isinstance(self.value, (list, dict)):
            return json.dumps(self.value, ensure_ascii=False)
        return str(self.value)


class SubmitRequest(BaseModel):
    survey_id: int = Field(alias="surveyId")
    answers: List[AnswerIn]
    completed_at: Optional[datetime] = Field(default=None, alias="completedAt")
    response_time: Optional[int] = Field(default=None, alias="responseTime")
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    started_at: Optional[datetime] = Field(default=None, alias="startedAt")

    model_config = {"populate_by_name": True}


class SubmitResult(BaseModel):
    success: bool = True
    response_id: int = Field(serialization_alias="responseId")
    message: str = "Survey submitted successfully"


class ResponseOut(BaseModel):
    id: int
    survey_id: int
    user_id: Optional[int] = None
    session_id: Optional[str] = None
    is_anonymous: bool = True
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    is_complete: bool = False
    response_time_seconds: Optional[int] = None

    model_config = {"from_attributes": True}


class AnswerOut(BaseModel):
    id: int
    response_id: int
    question_id: int
    answer_value: Optional[str] = None
    answer_numeric: Optional[float] = None
    confidence_score: Optional[int] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CompletionStats(BaseModel):
    total_responses: int = 0
    avg_response_time: float = 0
    manager_responses: int = 0
    sales_responses: int = 0


class ImprovementScores(BaseModel):
    efficiency_score: Optional[float] = None
    productivity_score: Optional[float] = None
    satisfaction_score: Optional[float] = None
