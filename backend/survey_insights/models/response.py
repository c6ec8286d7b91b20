"""Response and answer models."""

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from survey_insights.database import Base


class Response(Base):
    __tablename__ = "responses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    survey_id = Column(Integer, ForeignKey("surveys.id"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    session_id = Column(String(100))
    is_anonymous = Column(Boolean, nullable=False, default=True)
    started_at = Column(DateTime, server_default=func.now())
    completed_at = Column(DateTime, nullable=True)
    is_complete = Column(Boolean, nullable=False, default=False)
    response_time_seconds = Column(Integer, nullable=True)

    survey = relationship("Survey", back_populates="responses")
    user = relationship("User", back_populates="responses")
    answers = relationship(
        "Answer",
        back_populates="response",
        cascade="all, delete-orphan",
        order_by="Answer.id.asc()",
    )

    __table_args__ = (
        Index("idx_responses_survey", "survey_id"),
        Index("idx_responses_complete", "is_complete", "completed_at"),
    )


class Answer(Base):
    __tablename__ = "answers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    response_id = Column(Integer, ForeignKey("responses.id", ondelete="CASCADE"), nullable=False)
    question_id = Column(Integer, ForeignKey("questions.id"), nullable=False)
    answer_value = Column(Text)
    answer_numeric = Column(Float, nullable=True)
    confidence_score = Column(Integer, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    response = relationship("Response", back_populates="answers")
    question = relationship("Question", back_populates="answers")

    __table_args__ = (
        Index("idx_answers_response", "response_id"),
        Index("idx_answers_question", "question_id"),
    )
