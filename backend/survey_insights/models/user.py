"""User model for survey respondents and staff."""

from sqlalchemy import Boolean, CheckConstraint, Column, Date, DateTime, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from survey_insights.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False)
    role = Column(String(20), nullable=False)  # admin/manager/sales
    name = Column(String(100))
    department = Column(String(100))
    hire_date = Column(Date)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, server_default=func.now())

    responses = relationship("Response", back_populates="user")

    __table_args__ = (
        CheckConstraint("role IN ('admin', 'manager', 'sales')", name="ck_users_role"),
    )
