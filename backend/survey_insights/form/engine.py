"""Survey form state and its transitions.

Transitions are plain functions that take a ``FormState`` and return a new
one; ``SurveyForm`` binds them to a question list and saves every change
through a ``FormStateStore``.
"""

import logging
import math
import re
import secrets
import time
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from survey_insights.schemas.survey import QuestionOut

logger = logging.getLogger(__name__)

REQUIRED_MESSAGE = "This field is required"

# Written to the draft storage; errors are never persisted.
PERSISTED_FIELDS = {
    "user_id",
    "is_anonymous",
    "current_survey_id",
    "current_question_index",
    "current_section",
    "session_id",
    "answers",
    "start_time",
    "total_questions",
}


class DraftAnswer(BaseModel):
    question_id: int = Field(alias="questionId")
    value: str
    numeric_value: Optional[float] = Field(default=None, alias="numericValue")
    confidence_score: Optional[int] = Field(default=None, alias="confidenceScore")

    model_config = {"populate_by_name": True}


class FormState(BaseModel):
    current_survey_id: Optional[int] = Field(default=None, alias="currentSurveyId")
    current_question_index: int = Field(default=0, alias="currentQuestionIndex")
    current_section: Optional[str] = Field(default=None, alias="currentSection")
    answers: Dict[int, DraftAnswer] = Field(default_factory=dict)
    errors: Dict[int, str] = Field(default_factory=dict)
    start_time: Optional[datetime] = Field(default=None, alias="startTime")
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    total_questions: int = Field(default=0, alias="totalQuestions")
    user_id: Optional[int] = Field(default=None, alias="userId")
    is_anonymous: bool = Field(default=True, alias="isAnonymous")

    model_config = {"populate_by_name": True}

    def persisted(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, include=PERSISTED_FIELDS)


def new_session_id() -> str:
    return f"session_{int(time.time() * 1000)}_{secrets.token_hex(5)[:9]}"


def start_survey(
    state: FormState,
    survey_id: int,
    total_questions: int,
    *,
    now: Optional[datetime] = None,
    session_id: Optional[str] = None,
) -> FormState:
    return state.model_copy(update={
        "current_survey_id": survey_id,
        "session_id": session_id or new_session_id(),
        "total_questions": total_questions,
        "current_question_index": 0,
        "answers": {},
        "start_time": now or datetime.utcnow(),
        "errors": {},
    })


def set_current_question(state: FormState, index: int, section: Optional[str]) -> FormState:
    return state.model_copy(update={"current_question_index": index, "current_section": section})


def has_answer(state: FormState, question_id: int) -> bool:
    answer = state.answers.get(question_id)
    return bool(answer and answer.value)


def can_advance(state: FormState, questions: List[QuestionOut]) -> bool:
    index = state.current_question_index
    if index + 1 >= len(questions):
        return False
    current = questions[index]
    return not (current.is_required and not has_answer(state, current.id))


def next_question(state: FormState, questions: List[QuestionOut]) -> FormState:
    if not can_advance(state, questions):
        return state
    index = state.current_question_index + 1
    return set_current_question(state, index, questions[index].section)


def previous_question(state: FormState, questions: List[QuestionOut]) -> FormState:
    index = state.current_question_index
    if index <= 0 or index > len(questions):
        return state
    return set_current_question(state, index - 1, questions[index - 1].section)


def set_answer(
    state: FormState,
    question_id: int,
    value: str,
    numeric_value: Optional[float] = None,
    confidence_score: Optional[int] = None,
) -> FormState:
    answers = dict(state.answers)
    answers[question_id] = DraftAnswer(
        question_id=question_id,
        value=value,
        numeric_value=numeric_value,
        confidence_score=confidence_score,
    )
    errors = {qid: message for qid, message in state.errors.items() if qid != question_id}
    return state.model_copy(update={"answers": answers, "errors": errors})


def set_error(state: FormState, question_id: int, message: str) -> FormState:
    return state.model_copy(update={"errors": {**state.errors, question_id: message}})


def clear_error(state: FormState, question_id: int) -> FormState:
    errors = {qid: message for qid, message in state.errors.items() if qid != question_id}
    return state.model_copy(update={"errors": errors})


def _format_bound(value: float) -> str:
    return f"{value:g}"


def validate_input(question: QuestionOut, value: str) -> Optional[str]:
    """Return the error message for ``value`` on ``question``, or None when it is acceptable."""
    text = (value or "").strip()
    if question.is_required and not text:
        return REQUIRED_MESSAGE

    rules = question.validation_rules
    if rules.word_limit and text:
        word_count = len(re.split(r"\s+", text))
        if word_count > rules.word_limit:
            return f"Please limit your answer to {rules.word_limit} words (current: {word_count})"

    if rules.min is not None and rules.max is not None:
        try:
            number = float(text)
        except ValueError:
            number = None
        if number is None or not math.isfinite(number) or number < rules.min or number > rules.max:
            return f"Please enter a value between {_format_bound(rules.min)} and {_format_bound(rules.max)}"
    return None


def answer_question(
    state: FormState,
    question: QuestionOut,
    value: str,
    numeric_value: Optional[float] = None,
) -> FormState:
    error = validate_input(question, value)
    if error:
        return set_error(state, question.id, error)
    return set_answer(state, question.id, value, numeric_value)


def validate_answers(state: FormState) -> bool:
    return len(state.answers) > 0 and not state.errors


def get_progress(state: FormState) -> float:
    if state.total_questions <= 0:
        return 0.0
    progress = (state.current_question_index + 1) / state.total_questions * 100
    return min(progress, 100.0)


def reset_survey(state: FormState) -> FormState:
    return FormState(user_id=state.user_id, is_anonymous=state.is_anonymous)


class SurveyForm:
    """A survey being filled in, persisted after every change."""

    def __init__(self, questions: List[QuestionOut], store):
        self.questions = list(questions)
        self.store = store
        self.state = store.load()

    def _apply(self, state: FormState) -> FormState:
        self.state = state
        self.store.save(state)
        return state

    @property
    def current_question(self) -> Optional[QuestionOut]:
        index = self.state.current_question_index
        if 0 <= index < len(self.questions):
            return self.questions[index]
        return None

    @property
    def progress(self) -> float:
        return get_progress(self.state)

    def start(self, survey_id: int) -> FormState:
        state = start_survey(self.state, survey_id, len(self.questions))
        if self.questions:
            state = set_current_question(state, 0, self.questions[0].section)
        return self._apply(state)

    def resume_or_start(self, survey_id: int) -> FormState:
        if self.state.current_survey_id == survey_id and self.state.session_id:
            logger.info("[form] resuming draft %s at question %s", self.state.session_id, self.state.current_question_index)
            return self.state
        return self.start(survey_id)

    def answer(self, value: str, numeric_value: Optional[float] = None) -> FormState:
        question = self.current_question
        if question is None:
            return self.state
        return self._apply(answer_question(self.state, question, value, numeric_value))

    def next(self) -> FormState:
        return self._apply(next_question(self.state, self.questions))

    def previous(self) -> FormState:
        return self._apply(previous_question(self.state, self.questions))

    def reset(self) -> FormState:
        return self._apply(reset_survey(self.state))
