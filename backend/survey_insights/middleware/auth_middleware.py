from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from survey_insights.config import settings
from survey_insights.errors import ApiError
from survey_insights.schemas.user import AuthSession
from survey_insights.services.auth_service import decode_access_token

optional_bearer = HTTPBearer(auto_error=False)


def get_current_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_bearer),
) -> AuthSession:
    if credentials is None:
        raise ApiError(401, "Unauthorized")
    session = decode_access_token(credentials.credentials)
    if session is None:
        raise ApiError(401, "Unauthorized")
    return session


def authorize_analytics_request(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_bearer),
) -> Optional[AuthSession]:
    """Analytics routes accept any valid token; without one only development mode is let through."""
    if credentials is None:
        if settings.is_development:
            return None
        raise ApiError(401, "Unauthorized")
    session = decode_access_token(credentials.credentials)
    if session is None:
        raise ApiError(401, "Unauthorized")
    return session
