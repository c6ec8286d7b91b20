"""Posts a finished form to the submission endpoint."""

import logging
import math
from datetime import datetime
from typing import List, Optional

import httpx

from survey_insights.form.engine import FormState, validate_answers
from survey_insights.form.storage import FormStateStore

logger = logging.getLogger(__name__)

SUBMIT_PATH = "/api/surveys/submit"
RETRY_MESSAGE = "Failed to submit survey. Please try again."


class SubmissionError(Exception):
    pass


class StaleSurveyError(SubmissionError):
    """The server no longer knows some answered questions; the draft was discarded."""

    def __init__(self, missing_ids: List[int]):
        super().__init__("The survey has changed since this draft was started. Reload it and try again.")
        self.missing_ids = missing_ids


class SurveySubmissionClient:
    def __init__(
        self,
        base_url: str,
        store: FormStateStore,
        *,
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ):
        self.store = store
        self.client = client or httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout)

    def build_payload(self, state: FormState, now: Optional[datetime] = None) -> dict:
        now = now or datetime.utcnow()
        response_time = 0
        if state.start_time is not None:
            start = state.start_time.replace(tzinfo=None)
            response_time = max(0, math.floor((now - start).total_seconds()))
        return {
            "surveyId": state.current_survey_id,
            "answers": [answer.model_dump(by_alias=True) for answer in state.answers.values()],
            "completedAt": now.isoformat(),
            "responseTime": response_time,
            "sessionId": state.session_id,
            "startedAt": state.start_time.isoformat() if state.start_time else None,
        }

    def submit(self, state: FormState, now: Optional[datetime] = None) -> int:
        """Submit ``state`` and return the stored response id."""
        if not validate_answers(state):
            raise SubmissionError("Please complete all required questions before submitting.")
        try:
            response = self.client.post(SUBMIT_PATH, json=self.build_payload(state, now))
        except httpx.HTTPError as exc:
            logger.warning("[form] submission request failed: %s", exc)
            raise SubmissionError(RETRY_MESSAGE) from exc

        if response.is_success:
            return int(response.json()["responseId"])

        try:
            body = response.json()
        except ValueError:
            body = {}
        logger.warning("[form] submission rejected (%s): %s", response.status_code, body)
        if isinstance(body, dict) and body.get("error") == "Invalid question IDs":
            self.store.clear()
            raise StaleSurveyError(list(body.get("missingIds") or []))
        raise SubmissionError(RETRY_MESSAGE)
