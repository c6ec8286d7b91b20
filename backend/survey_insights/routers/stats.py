from fastapi import APIRouter, Depends

from survey_insights.services import survey_service
from survey_insights.storage import SurveyStore, get_store

router = APIRouter(prefix="/api/completion-stats", tags=["stats"])


@router.get("")
def completion_stats(store: SurveyStore = Depends(get_store)):
    return survey_service.get_completion_stats(store)
