import json
from datetime import datetime

import httpx
import pytest

from survey_insights.form import engine
from survey_insights.form.client import StaleSurveyError, SubmissionError, SurveySubmissionClient
from survey_insights.form.engine import FormState, SurveyForm
from survey_insights.form.inputs import CheckboxInput, PercentageInput, RankingInput, likert_numeric
from survey_insights.form.storage import STORAGE_KEY, FormStateStore, JsonFileStorage
from survey_insights.schemas.survey import QuestionOut, ValidationRules


def question(qid: int, section: str = "Time Allocation", required: bool = True, **rules) -> QuestionOut:
    return QuestionOut(
        id=qid,
        survey_id=1,
        section=section,
        question_text=f"Question {qid}",
        question_type="text",
        question_order=qid,
        is_required=required,
        validation_rules=ValidationRules(**rules),
    )


QUESTIONS = [
    question(1, "Time Allocation"),
    question(2, "Time Allocation", required=False),
    question(3, "Team Collaboration", min=1, max=10),
]


def test_start_survey_resets_progress():
    state = engine.set_answer(FormState(user_id=7), 1, "old")
    started = engine.start_survey(state, 1, 3, now=datetime(2026, 1, 5, 9, 0, 0))
    assert started.answers == {}
    assert started.current_question_index == 0
    assert started.session_id.startswith("session_")
    assert started.user_id == 7


def test_next_is_blocked_on_unanswered_required_question():
    state = engine.start_survey(FormState(), 1, 3)
    assert engine.next_question(state, QUESTIONS).current_question_index == 0

    state = engine.answer_question(state, QUESTIONS[0], "done")
    state = engine.next_question(state, QUESTIONS)
    assert state.current_question_index == 1
    assert state.current_section == "Time Allocation"

    state = engine.next_question(state, QUESTIONS)
    assert state.current_question_index == 2
    assert state.current_section == "Team Collaboration"
    assert engine.next_question(state, QUESTIONS).current_question_index == 2

    state = engine.previous_question(state, QUESTIONS)
    assert state.current_question_index == 1
    state = engine.previous_question(engine.previous_question(state, QUESTIONS), QUESTIONS)
    assert state.current_question_index == 0


def test_validate_input_messages():
    assert engine.validate_input(QUESTIONS[0], "  ") == "This field is required"
    limited = question(4, word_limit=3)
    assert engine.validate_input(limited, "one two three four") == "Please limit your answer to 3 words (current: 4)"
    assert engine.validate_input(limited, "one two three") is None
    assert engine.validate_input(QUESTIONS[2], "11") == "Please enter a value between 1 and 10"
    assert engine.validate_input(QUESTIONS[2], "abc") == "Please enter a value between 1 and 10"
    assert engine.validate_input(QUESTIONS[2], "nan") == "Please enter a value between 1 and 10"
    assert engine.validate_input(QUESTIONS[2], "inf") == "Please enter a value between 1 and 10"
    assert engine.validate_input(QUESTIONS[2], "7") is None


def test_failed_validation_keeps_previous_answer():
    state = engine.answer_question(FormState(), QUESTIONS[2], "7", 7)
    state = engine.answer_question(state, QUESTIONS[2], "70", 70)
    assert state.answers[3].value == "7"
    assert state.errors[3] == "Please enter a value between 1 and 10"
    assert engine.validate_answers(state) is False

    state = engine.answer_question(state, QUESTIONS[2], "8", 8)
    assert state.errors == {}
    assert state.answers[3].numeric_value == 8
    assert engine.validate_answers(state) is True


def test_progress_and_reset():
    assert engine.get_progress(FormState()) == 0
    state = engine.start_survey(FormState(), 1, 4)
    assert engine.get_progress(state) == 25
    state = engine.set_current_question(state, 9, None)
    assert engine.get_progress(state) == 100
    reset = engine.reset_survey(state.model_copy(update={"is_anonymous": False}))
    assert reset.current_survey_id is None
    assert reset.is_anonymous is False


def test_ranking_input_keeps_ranks_unique():
    ranking = RankingInput(["A", "B", "C"])
    ranking.assign("A", 1)
    ranking.assign("B", 2)
    value = ranking.assign("C", 1)
    assert json.loads(value) == {"B": 2, "C": 1}
    ranking.assign("B", 3)
    assert ranking.rankings == {"C": 1, "B": 3}
    assert ranking.is_complete is False
    with pytest.raises(ValueError):
        ranking.assign("Z", 1)


def test_percentage_input_sums_to_hundred():
    percentages = PercentageInput([])
    assert percentages.categories == ["Data Entry", "Selling", "Other"]
    percentages.set("Data Entry", "33.3")
    percentages.set("Selling", "33.3")
    percentages.set("Other", "abc")
    assert percentages.is_valid is False
    percentages.set("Other", "33.4")
    assert percentages.total == pytest.approx(100)
    assert percentages.is_valid is True
    restored = PercentageInput([], percentages.value)
    assert restored.percentages == {"Data Entry": 33.3, "Selling": 33.3, "Other": 33.4}


def test_checkbox_and_likert():
    boxes = CheckboxInput(["CRM", "Email"])
    assert boxes.toggle("CRM", True) == '["CRM"]'
    boxes.toggle("Email", True)
    assert boxes.numeric_value == 2
    boxes.toggle("CRM", False)
    assert boxes.toggle("Email", False) == ""
    assert likert_numeric("7") == 7
    assert likert_numeric("x") is None


def test_store_persists_only_draft_fields(tmp_path):
    storage = JsonFileStorage(tmp_path / "draft.json")
    store = FormStateStore(storage)
    state = engine.start_survey(FormState(), 1, 3, session_id="session_x")
    state = engine.set_error(engine.set_answer(state, 1, "hello"), 3, "bad")
    store.save(state)

    persisted = json.loads(storage[STORAGE_KEY])["state"]
    assert "errors" not in persisted
    assert persisted["sessionId"] == "session_x"
    assert persisted["answers"]["1"]["value"] == "hello"

    loaded = FormStateStore(JsonFileStorage(tmp_path / "draft.json")).load()
    assert loaded.answers[1].value == "hello"
    assert loaded.errors == {}
    store.clear()
    assert STORAGE_KEY not in storage


def test_store_discards_unreadable_draft():
    store = FormStateStore({STORAGE_KEY: "{not json"})
    assert store.load() == FormState()


def test_survey_form_saves_on_every_change():
    storage = {}
    form = SurveyForm(QUESTIONS, FormStateStore(storage))
    form.start(1)
    form.answer("first")
    form.next()
    assert json.loads(storage[STORAGE_KEY])["state"]["currentQuestionIndex"] == 1

    resumed = SurveyForm(QUESTIONS, FormStateStore(storage))
    assert resumed.resume_or_start(1).current_question_index == 1
    assert resumed.current_question.id == 2
    assert resumed.progress == pytest.approx(66.666, abs=0.01)


def submission_client(handler, storage) -> SurveySubmissionClient:
    http = httpx.Client(base_url="http://survey.test", transport=httpx.MockTransport(handler))
    return SurveySubmissionClient("http://survey.test", FormStateStore(storage), client=http)


def answered_state() -> FormState:
    state = engine.start_survey(FormState(), 1, 3, now=datetime(2026, 1, 5, 9, 0, 0), session_id="session_s")
    return engine.set_answer(state, 1, "hello")


def test_client_submits_payload():
    seen = []

    def handler(request):
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"success": True, "responseId": 12, "message": "Survey submitted successfully"})

    client = submission_client(handler, {})
    assert client.submit(answered_state(), now=datetime(2026, 1, 5, 9, 5, 30)) == 12
    payload = seen[0]
    assert payload["surveyId"] == 1
    assert payload["responseTime"] == 330
    assert payload["sessionId"] == "session_s"
    assert payload["answers"][0]["questionId"] == 1


def test_client_clears_draft_on_stale_questions():
    def handler(request):
        return httpx.Response(400, json={"error": "Invalid question IDs", "missingIds": [1], "details": "gone"})

    storage = {STORAGE_KEY: "{}"}
    client = submission_client(handler, storage)
    with pytest.raises(StaleSurveyError) as excinfo:
        client.submit(answered_state())
    assert excinfo.value.missing_ids == [1]
    assert STORAGE_KEY not in storage


def test_client_generic_failure_keeps_draft():
    def handler(request):
        return httpx.Response(500, json={"error": "Failed to submit survey"})

    storage = {STORAGE_KEY: "{}"}
    client = submission_client(handler, storage)
    with pytest.raises(SubmissionError) as excinfo:
        client.submit(answered_state())
    assert not isinstance(excinfo.value, StaleSurveyError)
    assert STORAGE_KEY in storage


def test_client_refuses_invalid_state():
    client = submission_client(lambda request: httpx.Response(200), {})
    with pytest.raises(SubmissionError):
        client.submit(FormState())


def test_client_submission_against_api(client, seed_surveys):
    storage = {}
    form = SurveyForm([question(57), question(131)], FormStateStore(storage))
    form.start(1)
    form.answer("plenty")
    submitter = SurveySubmissionClient("http://testserver", FormStateStore(storage), client=client)
    assert submitter.submit(form.state) > 0


def test_ranking_rank_eviction_between_two_options():
    ranking = RankingInput(["A", "B", "C"])
    ranking.assign("A", 2)
    ranking.assign("B", 2)
    assert "A" not in ranking.rankings
    assert ranking.rankings["B"] == 2
    for option, rank in (("A", 1), ("C", 3), ("A", 3), ("B", 1)):
        ranking.assign(option, rank)
        assert len(ranking.rankings) <= len(ranking.options)
        assert len(set(ranking.rankings.values())) == len(ranking.rankings)


def test_percentage_two_categories():
    percentages = PercentageInput(["Calls", "Email"])
    percentages.set("Calls", "60")
    percentages.set("Email", "40")
    assert percentages.is_valid is True
    percentages.set("Email", "30")
    assert percentages.is_valid is False
