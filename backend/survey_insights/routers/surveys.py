"""Survey API router: question loading, listing and submission."""

from typing import List

from fastapi import APIRouter, Depends, Query

from survey_insights.schemas.survey import SubmitRequest, SurveyOut, SurveyQuestionsOut
from survey_insights.services import survey_service
from survey_insights.storage import SurveyStore, get_store

router = APIRouter(prefix="/api/surveys", tags=["surveys"])


@router.get("", response_model=List[SurveyOut])
def list_surveys(role: str = Query("all"), store: SurveyStore = Depends(get_store)):
    return survey_service.list_surveys(store, role)


@router.get("/{survey_id}/questions", response_model=SurveyQuestionsOut)
def get_survey_questions(survey_id: str, store: SurveyStore = Depends(get_store)):
    return survey_service.get_survey_questions(store, survey_id)


@router.post("/submit")
def submit_survey(request: SubmitRequest, store: SurveyStore = Depends(get_store)):
    result = survey_service.submit_survey(store, request)
    return result.model_dump(by_alias=True)
