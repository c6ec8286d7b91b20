from survey_insights.models import Answer, Response
from tests.conftest import full_answers, submit


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_get_questions_parses_stored_json(client, seed_surveys):
    resp = client.get("/api/surveys/1/questions")
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["survey"]["name"] == "Manager Feedback Survey"
    questions = data["questions"]
    assert [q["question_order"] for q in questions] == list(range(1, 17))
    loss_stage = next(q for q in questions if q["id"] == 364)
    assert loss_stage["options"][2] == "Document Collection"
    likert = next(q for q in questions if q["id"] == 131)
    assert likert["validation_rules"]["min"] == 1
    assert likert["validation_rules"]["max"] == 10
    assert likert["analysis_tags"] == ["efficiency", "system", "workarounds"]


def test_get_questions_degrades_on_broken_json(client, seed_surveys):
    resp = client.get("/api/surveys/2/questions")
    assert resp.status_code == 200, resp.text
    question = resp.json()["questions"][0]
    assert question["options"] == []
    assert question["validation_rules"] == {
        "min": None, "max": None, "word_limit": None, "required": None, "sum_to_100": None,
    }


def test_get_questions_invalid_and_unknown_survey(client, seed_surveys):
    resp = client.get("/api/surveys/abc/questions")
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid survey ID"}

    resp = client.get("/api/surveys/99/questions")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Survey not found"}


def test_list_surveys_by_role(client, seed_surveys):
    resp = client.get("/api/surveys", params={"role": "sales"})
    assert resp.status_code == 200
    assert [s["id"] for s in resp.json()] == [2]

    resp = client.get("/api/surveys")
    assert [s["id"] for s in resp.json()] == [1, 2]

    resp = client.get("/api/surveys", params={"role": "owner"})
    assert resp.status_code == 400


def test_submit_survey_success(client, db, seed_surveys):
    resp = submit(client, sessionId="session_test_1")
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["success"] is True
    assert data["message"] == "Survey submitted successfully"

    response = db.query(Response).filter(Response.id == data["responseId"]).one()
    assert response.is_complete is True
    assert response.completed_at is not None
    assert response.response_time_seconds == 300
    assert response.session_id == "session_test_1"
    assert db.query(Answer).filter(Answer.response_id == response.id).count() == 16


def test_submit_generates_session_id(client, db, seed_surveys):
    resp = submit(client)
    assert resp.status_code == 200, resp.text
    response = db.query(Response).one()
    assert response.session_id.startswith("session_")


def test_submit_stores_structured_values_as_json(client, db, seed_surveys):
    answers = [{"questionId": 57, "value": {"Strategic planning": 60, "Other": 40}, "numericValue": 2}]
    resp = submit(client, answers=answers)
    assert resp.status_code == 200, resp.text
    answer = db.query(Answer).one()
    assert answer.answer_value == '{"Strategic planning": 60, "Other": 40}'
    assert answer.answer_numeric == 2


def test_submit_rejects_missing_fields(client, seed_surveys):
    resp = client.post("/api/surveys/submit", json={"answers": full_answers()})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid request data"


def test_submit_rejects_empty_answers(client, seed_surveys):
    resp = submit(client, answers=[])
    assert resp.status_code == 400
    assert resp.json() == {"error": "No answers provided"}


def test_submit_reports_unknown_question_ids(client, db, seed_surveys):
    answers = [{"questionId": 57, "value": "x"}, {"questionId": 999, "value": "y"}, {"questionId": 500, "value": "z"}]
    resp = submit(client, answers=answers)
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "Invalid question IDs"
    assert body["missingIds"] == [999, 500]
    assert body["details"] == "Question IDs 999, 500 do not exist for survey 1"
    assert db.query(Response).count() == 0
