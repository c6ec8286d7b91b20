"""User and analytics authentication schemas."""

from datetime import date, datetime
from typing import Dict, Optional

from pydantic import BaseModel


class UserOut(BaseModel):
    id: int
    email: str
    role: str
    name: Optional[str] = None
    department: Optional[str] = None
    hire_date: Optional[date] = None
    is_active: bool = True
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class LoginRequest(BaseModel):
    username: str = ""
    password: str = ""


class AuthSession(BaseModel):
    user_id: str
    username: str
    role: str
    created_at: datetime
    expires_at: datetime


class AuthResult(BaseModel):
    success: bool
    session: Optional[AuthSession] = None
    error: Optional[str] = None


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    session: AuthSession
    permissions: Dict[str, bool]
