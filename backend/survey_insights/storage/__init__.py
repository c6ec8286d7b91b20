"""Storage backends and the request-scoped store dependency."""

import logging

from fastapi import Depends
from sqlalchemy.orm import Session

from survey_insights.config import settings
from survey_insights.database import get_db
from survey_insights.errors import ApiError, StorageError
from survey_insights.storage.base import SurveyStore
from survey_insights.storage.hosted_store import HostedSurveyStore
from survey_insights.storage.sql_store import SqlSurveyStore

logger = logging.getLogger(__name__)

_hosted_store = None


def _get_hosted_store() -> HostedSurveyStore:
    global _hosted_store
    if _hosted_store is None:
        _hosted_store = HostedSurveyStore()
        logger.warning("[storage] hosted backend does not submit responses atomically")
    return _hosted_store


def get_store(db: Session = Depends(get_db)) -> SurveyStore:
    if str(settings.DATABASE_TYPE or "").strip().lower() == "hosted":
        try:
            return _get_hosted_store()
        except StorageError as exc:
            logger.error("[storage] hosted backend unavailable: %s", exc)
            raise ApiError(500, "Storage backend unavailable", details=str(exc)) from exc
    return SqlSurveyStore(db)


__all__ = ["SurveyStore", "SqlSurveyStore", "HostedSurveyStore", "get_store"]
