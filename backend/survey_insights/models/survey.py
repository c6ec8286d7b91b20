"""Survey and question models."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from survey_insights.database import Base


class Survey(Base):
    __tablename__ = "surveys"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    description = Column(Text)
    target_role = Column(String(20), nullable=False)  # manager/sales/all
    version = Column(Integer, nullable=False, default=1)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    questions = relationship(
        "Question",
        back_populates="survey",
        cascade="all, delete-orphan",
        order_by="Question.question_order.asc()",
    )
    responses = relationship("Response", back_populates="survey")

    __table_args__ = (
        CheckConstraint("target_role IN ('manager', 'sales', 'all')", name="ck_surveys_target_role"),
    )


class Question(Base):
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    survey_id = Column(Integer, ForeignKey("surveys.id", ondelete="CASCADE"), nullable=False)
    section = Column(String(100), nullable=False)
    question_text = Column(Text, nullable=False)
    question_type = Column(String(30), nullable=False)
    question_order = Column(Integer, nullable=False)
    is_required = Column(Boolean, nullable=False, default=True)
    # JSON text columns, decoded once by survey_insights.schemas.survey.parse_question
    options = Column(Text)
    validation_rules = Column(Text)
    analysis_tags = Column(String(255))
    created_at = Column(DateTime, server_default=func.now())

    survey = relationship("Survey", back_populates="questions")
    answers = relationship("Answer", back_populates="question")

    __table_args__ = (
        UniqueConstraint("survey_id", "question_order", name="uq_questions_survey_order"),
        CheckConstraint(
            "question_type IN ('likert', 'multiple_choice', 'text', 'ranking', 'percentage', 'checkbox')",
            name="ck_questions_type",
        ),
        Index("idx_questions_survey", "survey_id"),
    )
