"""Analytics dashboard API router."""

import logging
from contextlib import contextmanager
from typing import Optional

from fastapi import APIRouter, Depends, Query

from survey_insights.errors import ApiError
from survey_insights.middleware.auth_middleware import authorize_analytics_request
from survey_insights.schemas.user import AuthSession
from survey_insights.services import analytics_service
from survey_insights.storage import SurveyStore, get_store
from survey_insights.utils.permissions import COORDINATOR

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/analytics", tags=["analytics"])


def _resolve_role(role: Optional[str], session: Optional[AuthSession]) -> str:
    if role:
        return role
    if session is not None:
        return session.role
    return COORDINATOR


@contextmanager
def _failure_as(message: str):
    try:
        yield
    except ApiError:
        raise
    except Exception as exc:
        logger.exception("[analytics] %s", message)
        raise ApiError(500, message, details=str(exc)) from exc


@router.get("/summary")
def summary(
    role: Optional[str] = Query(None),
    session: Optional[AuthSession] = Depends(authorize_analytics_request),
    store: SurveyStore = Depends(get_store),
):
    with _failure_as("Failed to load analytics summary data"):
        return analytics_service.build_summary(store, _resolve_role(role, session))


@router.get("/process")
def process(
    role: Optional[str] = Query(None),
    session: Optional[AuthSession] = Depends(authorize_analytics_request),
    store: SurveyStore = Depends(get_store),
):
    with _failure_as("Failed to load application process data"):
        return analytics_service.build_process_view(store, _resolve_role(role, session))


@router.get("/team")
def team(
    role: Optional[str] = Query(None),
    session: Optional[AuthSession] = Depends(authorize_analytics_request),
    store: SurveyStore = Depends(get_store),
):
    with _failure_as("Failed to load team collaboration data"):
        return analytics_service.build_team_view(store, _resolve_role(role, session))


@router.get("/recommendations")
def recommendations(
    role: Optional[str] = Query(None),
    id: Optional[str] = Query(None),
    session: Optional[AuthSession] = Depends(authorize_analytics_request),
    store: SurveyStore = Depends(get_store),
):
    resolved = _resolve_role(role, session)
    with _failure_as("Failed to load recommendations data"):
        if id:
            return analytics_service.build_recommendation_detail(store, id, resolved)
        return analytics_service.build_recommendations_view(store, resolved)
