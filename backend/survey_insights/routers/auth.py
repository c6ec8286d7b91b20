"""Analytics auth API router."""

from fastapi import APIRouter, Depends

from survey_insights.errors import ApiError
from survey_insights.middleware.auth_middleware import get_current_session
from survey_insights.schemas.user import AuthSession, LoginRequest, TokenResponse
from survey_insights.services.auth_service import authenticate, create_access_token
from survey_insights.utils.permissions import permissions_for

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
def login(request: LoginRequest):
    result = authenticate(request.username, request.password)
    if not result.success:
        raise ApiError(401, result.error or "Invalid credentials")
    session = result.session
    return TokenResponse(
        access_token=create_access_token(session),
        session=session,
        permissions=permissions_for(session.role) or {},
    )


@router.get("/me", response_model=AuthSession)
def me(session: AuthSession = Depends(get_current_session)):
    return session


@router.get("/permissions")
def my_permissions(session: AuthSession = Depends(get_current_session)):
    return {"role": session.role, "permissions": permissions_for(session.role) or {}}
