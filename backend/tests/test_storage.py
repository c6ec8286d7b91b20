import json
from datetime import datetime

import httpx
import pytest

from survey_insights.errors import StorageError
from survey_insights.models import Response
from survey_insights.schemas.survey import AnswerIn
from survey_insights.storage import HostedSurveyStore, SqlSurveyStore


def test_sql_store_declares_atomic_submission(db):
    assert SqlSurveyStore(db).atomic_submission is True
    assert HostedSurveyStore.atomic_submission is False


def test_sql_store_validate_question_ids_keeps_request_order(db, seed_surveys):
    store = SqlSurveyStore(db)
    assert store.validate_question_ids([57, 131], 1) == (True, [])
    assert store.validate_question_ids([12, 57, 3], 1) == (False, [12, 3])


def test_sql_store_rolls_back_failed_submission(db, seed_surveys):
    store = SqlSurveyStore(db)
    answers = [
        AnswerIn(question_id=57, value="ok"),
        AnswerIn.model_construct(question_id=None, value="broken", numeric_value=None, confidence_score=None),
    ]
    with pytest.raises(StorageError):
        store.submit_response(
            survey_id=1,
            answers=answers,
            session_id="session_rollback",
            started_at=datetime.utcnow(),
            response_time_seconds=10,
        )
    assert db.query(Response).count() == 0


def test_sql_store_lists_complete_responses_only(db, seed_surveys):
    store = SqlSurveyStore(db)
    db.add(Response(survey_id=1, session_id="draft", is_complete=False))
    db.commit()
    response_id = store.submit_response(
        survey_id=1,
        answers=[AnswerIn(question_id=218, value="7", numeric_value=7)],
        session_id="done",
        started_at=datetime.utcnow(),
        response_time_seconds=42,
    )
    responses = store.get_responses_by_survey(1)
    assert [r.id for r in responses] == [response_id]
    answers = store.get_answers_by_response(response_id)
    assert answers[0].answer_numeric == 7
    assert store.get_question_count(1) == 16


def test_sql_store_looks_up_users(db, seed_users):
    store = SqlSurveyStore(db)
    manager = store.get_user(seed_users["manager"].id)
    assert manager.email == "manager@example.com"
    assert manager.role == "manager"
    assert store.get_user_by_email("sales@example.com").id == seed_users["sales"].id
    assert store.get_user(9999) is None
    assert store.get_user_by_email("nobody@example.com") is None


def test_hosted_backend_misconfiguration_is_reported(client, monkeypatch):
    monkeypatch.setattr("survey_insights.storage.settings.DATABASE_TYPE", "hosted")
    monkeypatch.setattr("survey_insights.storage.hosted_store.settings.HOSTED_DB_URL", "")
    monkeypatch.setattr("survey_insights.storage._hosted_store", None)
    res = client.get("/api/surveys/1/questions")
    assert res.status_code == 500
    assert res.json() == {"error": "Storage backend unavailable", "details": "HOSTED_DB_URL is not configured"}


class FakePostgrest:
    """Records requests and answers them like a PostgREST endpoint."""

    def __init__(self, fail_on=None):
        self.requests = []
        self.fail_on = fail_on

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        table = request.url.path.rsplit("/", 1)[-1]
        if self.fail_on == (request.method, table):
            return httpx.Response(503, json={"message": "unavailable"})
        if request.method == "GET" and table == "surveys":
            return httpx.Response(200, json=[{"id": 1, "name": "Manager Feedback Survey", "target_role": "manager"}])
        if request.method == "GET" and table == "questions":
            if request.url.params.get("select") == "id":
                return httpx.Response(200, json=[{"id": 57}, {"id": 131}])
            return httpx.Response(200, json=[{
                "id": 364,
                "survey_id": 1,
                "section": "Process Bottlenecks",
                "question_text": "At which stage do most leads drop out?",
                "question_type": "multiple_choice",
                "question_order": 1,
                "is_required": True,
                "options": "[\"Initial Inquiry\", \"Decision Stage\"]",
                "validation_rules": None,
                "analysis_tags": "process,stages",
            }])
        if request.method == "GET" and table == "users":
            wanted = {"id": "eq.3", "email": "eq.sales@example.com"}
            if any(request.url.params.get(key) == value for key, value in wanted.items()):
                return httpx.Response(200, json=[{"id": 3, "email": "sales@example.com", "role": "sales", "name": "Advisor"}])
            return httpx.Response(200, json=[])
        if request.method == "POST" and table == "responses":
            return httpx.Response(201, json=[{"id": 77}])
        if request.method == "POST" and table == "answers":
            return httpx.Response(201, json=json.loads(request.content))
        if request.method == "PATCH":
            return httpx.Response(200, json=[{"id": 77, "is_complete": True}])
        return httpx.Response(200, json=[])


def hosted_store(handler) -> HostedSurveyStore:
    client = httpx.Client(base_url="https://db.example.com/rest/v1", transport=httpx.MockTransport(handler))
    return HostedSurveyStore(client=client)


def test_hosted_store_requires_url(monkeypatch):
    monkeypatch.setattr("survey_insights.storage.hosted_store.settings.HOSTED_DB_URL", "")
    with pytest.raises(StorageError):
        HostedSurveyStore()


def test_hosted_store_reads_with_postgrest_filters():
    handler = FakePostgrest()
    store = hosted_store(handler)
    survey = store.get_survey(1)
    assert survey.target_role == "manager"
    assert handler.requests[0].url.params["id"] == "eq.1"
    assert handler.requests[0].url.params["limit"] == "1"

    questions = store.get_questions_by_survey(1)
    assert questions[0].options == ["Initial Inquiry", "Decision Stage"]
    assert handler.requests[1].url.params["order"] == "question_order.asc"


def test_hosted_store_validate_question_ids():
    handler = FakePostgrest()
    store = hosted_store(handler)
    assert store.validate_question_ids([57, 131, 999], 1) == (False, [999])
    assert handler.requests[0].url.params["id"] == "in.(57,131,999)"


def test_hosted_store_submission_is_three_calls():
    handler = FakePostgrest()
    store = hosted_store(handler)
    response_id = store.submit_response(
        survey_id=1,
        answers=[AnswerIn(question_id=57, value="x"), AnswerIn(question_id=131, value="6", numeric_value=6)],
        session_id="session_hosted",
        started_at=datetime(2026, 1, 5, 9, 0, 0),
        response_time_seconds=120,
    )
    assert response_id == 77
    assert [(r.method, r.url.path.rsplit("/", 1)[-1]) for r in handler.requests] == [
        ("POST", "responses"),
        ("POST", "answers"),
        ("PATCH", "responses"),
    ]
    inserted = json.loads(handler.requests[1].content)
    assert [row["response_id"] for row in inserted] == [77, 77]
    assert handler.requests[2].url.params["id"] == "eq.77"


def test_hosted_store_partial_failure_raises_storage_error():
    handler = FakePostgrest(fail_on=("POST", "answers"))
    store = hosted_store(handler)
    with pytest.raises(StorageError):
        store.submit_response(
            survey_id=1,
            answers=[AnswerIn(question_id=57, value="x")],
            session_id="session_partial",
            started_at=datetime(2026, 1, 5, 9, 0, 0),
            response_time_seconds=120,
        )
    # The response row was created and never marked complete.
    assert [r.method for r in handler.requests] == ["POST", "POST"]


def test_hosted_store_looks_up_users():
    handler = FakePostgrest()
    store = hosted_store(handler)
    user = store.get_user(3)
    assert user.email == "sales@example.com"
    assert handler.requests[0].url.params["id"] == "eq.3"
    assert store.get_user_by_email("sales@example.com").role == "sales"
    assert handler.requests[1].url.params["email"] == "eq.sales@example.com"
    assert store.get_user(4) is None
