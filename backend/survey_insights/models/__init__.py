"""SQLAlchemy model package."""

from survey_insights.models.user import User
from survey_insights.models.survey import Survey, Question
from survey_insights.models.response import Response, Answer

__all__ = [
    "User",
    "Survey", "Question",
    "Response", "Answer",
]
