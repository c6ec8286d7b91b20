"""Storage port shared by the SQL and hosted backends."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from survey_insights.schemas.survey import (
    AnswerIn,
    AnswerOut,
    CompletionStats,
    ImprovementScores,
    QuestionOut,
    ResponseOut,
    SurveyOut,
)
from survey_insights.schemas.user import UserOut

# Completion stats and improvement scores only look at this many days.
STATS_WINDOW_DAYS = 30


class SurveyStore(ABC):
    """Uniform persistence surface for surveys, responses and answers.

    Contract: ``submit_response`` is atomic. Either the response, every one
    of its answers and its completion mark are stored, or nothing is.
    Backends that cannot honour this set ``atomic_submission = False``.
    """

    name = "base"
    atomic_submission = True

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[UserOut]:
        ...

    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[UserOut]:
        ...

    @abstractmethod
    def get_survey(self, survey_id: int) -> Optional[SurveyOut]:
        ...

    @abstractmethod
    def get_surveys_by_role(self, role: str) -> List[SurveyOut]:
        """Active surveys for ``role``; ``"all"`` returns every active survey."""

    @abstractmethod
    def get_questions_by_survey(self, survey_id: int) -> List[QuestionOut]:
        """Questions ordered by ``question_order`` with options and rules already decoded."""

    @abstractmethod
    def get_responses_by_survey(self, survey_id: int) -> List[ResponseOut]:
        """Complete responses only."""

    @abstractmethod
    def get_answers_by_response(self, response_id: int) -> List[AnswerOut]:
        ...

    @abstractmethod
    def validate_question_ids(self, question_ids: Sequence[int], survey_id: int) -> Tuple[bool, List[int]]:
        """Return ``(valid, missing_ids)`` preserving the order of ``question_ids``."""

    @abstractmethod
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
        """Persist a completed response with its answers and return the response id."""

    @abstractmethod
    def get_completion_stats(self) -> CompletionStats:
        ...

    @abstractmethod
    def get_improvement_metrics(self) -> ImprovementScores:
        ...

    @abstractmethod
    def get_question_count(self, survey_id: int) -> int:
        ...


def missing_ids(requested: Sequence[int], existing: Sequence[int]) -> List[int]:
    found = set(existing)
    return [qid for qid in requested if qid not in found]
