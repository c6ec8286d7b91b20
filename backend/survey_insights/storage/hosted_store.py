"""Survey store backed by a hosted PostgREST-compatible service (e.g. Supabase)."""

import logging
from datetime import datetime, timedelta
from typing import Any, List, Optional, Sequence, Tuple

import httpx

from survey_insights.config import settings
from survey_insights.errors import StorageError
from survey_insights.schemas.survey import (
    AnswerIn,
    AnswerOut,
    CompletionStats,
    ImprovementScores,
    QuestionOut,
    ResponseOut,
    SurveyOut,
    parse_question,
)
from survey_insights.schemas.user import UserOut
from survey_insights.storage.base import STATS_WINDOW_DAYS, SurveyStore, missing_ids

logger = logging.getLogger(__name__)


def _mean(values: List[float]) -> Optional[float]:
    return sum(values) / len(values) if values else None


class HostedSurveyStore(SurveyStore):
    """REST adapter. Submission is three separate calls, so it is not atomic."""

    name = "hosted"
    atomic_submission = False

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        client: Optional[httpx.Client] = None,
    ):
        base_url = str(base_url or settings.HOSTED_DB_URL or "").rstrip("/")
        if not base_url and client is None:
            raise StorageError("HOSTED_DB_URL is not configured")
        api_key = api_key if api_key is not None else settings.HOSTED_DB_API_KEY
        headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        self._client = client or httpx.Client(
            base_url=f"{base_url}/rest/v1",
            headers=headers,
            timeout=float(timeout or settings.HOSTED_DB_TIMEOUT_SECONDS),
        )

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, table: str, **kwargs) -> Any:
        try:
            response = self._client.request(method, f"/{table}", **kwargs)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("[storage] hosted %s %s failed: %s", method, table, exc)
            raise StorageError(f"{method} {table} failed: {exc}") from exc
        if not response.content:
            return []
        return response.json()

    def _select(self, table: str, **params: str) -> List[dict]:
        params.setdefault("select", "*")
        return self._request("GET", table, params=params)

    def _first(self, table: str, **params: str) -> Optional[dict]:
        rows = self._select(table, limit="1", **params)
        return rows[0] if rows else None

    def _insert(self, table: str, payload: Any) -> List[dict]:
        return self._request("POST", table, json=payload, headers={"Prefer": "return=representation"})

    def _update(self, table: str, payload: dict, **params: str) -> List[dict]:
        return self._request(
            "PATCH", table, json=payload, params=params, headers={"Prefer": "return=representation"}
        )

    def get_user(self, user_id: int) -> Optional[UserOut]:
        row = self._first("users", id=f"eq.{user_id}")
        return UserOut.model_validate(row) if row else None

    def get_user_by_email(self, email: str) -> Optional[UserOut]:
        row = self._first("users", email=f"eq.{email}")
        return UserOut.model_validate(row) if row else None

    def get_survey(self, survey_id: int) -> Optional[SurveyOut]:
        row = self._first("surveys", id=f"eq.{survey_id}")
        return SurveyOut.model_validate(row) if row else None

    def get_surveys_by_role(self, role: str) -> List[SurveyOut]:
        params = {"is_active": "eq.true", "order": "id.asc"}
        if role != "all":
            params["target_role"] = f"eq.{role}"
        return [SurveyOut.model_validate(row) for row in self._select("surveys", **params)]

    def get_questions_by_survey(self, survey_id: int) -> List[QuestionOut]:
        rows = self._select("questions", survey_id=f"eq.{survey_id}", order="question_order.asc")
        return [parse_question(row) for row in rows]

    def get_responses_by_survey(self, survey_id: int) -> List[ResponseOut]:
        rows = self._select("responses", survey_id=f"eq.{survey_id}", is_complete="eq.true", order="id.asc")
        return [ResponseOut.model_validate(row) for row in rows]

    def get_answers_by_response(self, response_id: int) -> List[AnswerOut]:
        rows = self._select("answers", response_id=f"eq.{response_id}", order="id.asc")
        return [AnswerOut.model_validate(row) for row in rows]

    def validate_question_ids(self, question_ids: Sequence[int], survey_id: int) -> Tuple[bool, List[int]]:
        if not question_ids:
            return True, []
        id_list = ",".join(str(int(qid)) for qid in question_ids)
        rows = self._select("questions", select="id", id=f"in.({id_list})", survey_id=f"eq.{survey_id}")
        missing = missing_ids(question_ids, [int(row["id"]) for row in rows])
        return not missing, missing

    def submit_response(
        self,
        *,
        survey_id: int,
        answers: Sequence[AnswerIn],
        session_id: str,
        started_at: datetime,
        response_time_seconds: Optional[int],
        user_id: Optional[int] = None,
        is_anonymous: bool = True,
    ) -> int:
        created = self._insert(
            "responses",
            {
                "survey_id": survey_id,
                "user_id": user_id,
                "session_id": session_id,
                "is_anonymous": is_anonymous,
                "started_at": started_at.isoformat(),
            },
        )
        if not created:
            raise StorageError("response insert returned no row")
        response_id = int(created[0]["id"])
        try:
            if answers:
                self._insert(
                    "answers",
                    [
                        {
                            "response_id": response_id,
                            "question_id": answer.question_id,
                            "answer_value": answer.stored_value(),
                            "answer_numeric": answer.numeric_value,
                            "confidence_score": answer.confidence_score,
                        }
                        for answer in answers
                    ],
                )
            self._update(
                "responses",
                {
                    "completed_at": datetime.utcnow().isoformat(),
                    "is_complete": True,
                    "response_time_seconds": response_time_seconds,
                },
                id=f"eq.{response_id}",
            )
        except StorageError:
            # The response row already exists; it stays incomplete and is ignored by analytics.
            logger.error("[storage] partial submission left incomplete response %s", response_id)
            raise
        return response_id

    def get_completion_stats(self) -> CompletionStats:
        since = (datetime.utcnow() - timedelta(days=STATS_WINDOW_DAYS)).isoformat()
        rows = self._select(
            "responses",
            select="response_time_seconds,surveys(target_role)",
            is_complete="eq.true",
            completed_at=f"gte.{since}",
        )
        times = [float(row["response_time_seconds"]) for row in rows if row.get("response_time_seconds") is not None]
        roles = [(row.get("surveys") or {}).get("target_role") for row in rows]
        return CompletionStats(
            total_responses=len(rows),
            avg_response_time=_mean(times) or 0,
            manager_responses=roles.count("manager"),
            sales_responses=roles.count("sales"),
        )

    def get_improvement_metrics(self) -> ImprovementScores:
        since = (datetime.utcnow() - timedelta(days=STATS_WINDOW_DAYS)).isoformat()
        rows = self._select(
            "answers",
            select="answer_numeric,questions!inner(analysis_tags),responses!inner(is_complete,completed_at)",
            answer_numeric="not.is.null",
            **{"responses.is_complete": "eq.true", "responses.completed_at": f"gte.{since}"},
        )
        buckets: dict[str, List[float]] = {"efficiency": [], "productivity": [], "satisfaction": []}
        for row in rows:
            tags = str((row.get("questions") or {}).get("analysis_tags") or "")
            for tag, values in buckets.items():
                if tag in tags:
                    values.append(float(row["answer_numeric"]))
        return ImprovementScores(
            efficiency_score=_mean(buckets["efficiency"]),
            productivity_score=_mean(buckets["productivity"]),
            satisfaction_score=_mean(buckets["satisfaction"]),
        )

    def get_question_count(self, survey_id: int) -> int:
        return len(self._select("questions", select="id", survey_id=f"eq.{survey_id}"))
