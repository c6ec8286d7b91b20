from survey_insights.errors import StorageError
from survey_insights.main import app
from survey_insights.services.survey_service import improvement_percentages
from survey_insights.storage import get_store
from tests.conftest import submit


def test_completion_stats_empty_database(client, seed_surveys):
    resp = client.get("/api/completion-stats")
    assert resp.status_code == 200, resp.text
    assert resp.json() == {
        "totalResponses": 0,
        "avgResponseTime": 0,
        "managerResponses": 0,
        "salesResponses": 0,
        "improvements": {"dataEntry": 15, "leadResponse": 25, "productivity": 40},
    }


def test_completion_stats_counts_roles(client, seed_surveys):
    assert submit(client, responseTime=200).status_code == 200
    assert submit(client, responseTime=301).status_code == 200
    assert submit(client, survey_id=2, answers=[{"questionId": 500, "value": "8", "numericValue": 8}]).status_code == 200

    data = client.get("/api/completion-stats").json()
    assert data["totalResponses"] == 3
    assert data["managerResponses"] == 2
    assert data["salesResponses"] == 1
    assert data["avgResponseTime"] == 267


def test_improvement_percentages_are_clamped():
    assert improvement_percentages(10, 10, 10) == {"dataEntry": 30, "leadResponse": 50, "productivity": 80}
    assert improvement_percentages(1, 1, 1) == {"dataEntry": 15, "leadResponse": 25, "productivity": 40}
    assert improvement_percentages(20, 20, 20) == {"dataEntry": 35, "leadResponse": 55, "productivity": 80}


class BrokenStore:
    def get_completion_stats(self):
        raise StorageError("connection refused")


def test_completion_stats_falls_back_on_backend_error(client):
    app.dependency_overrides[get_store] = lambda: BrokenStore()
    try:
        resp = client.get("/api/completion-stats")
    finally:
        del app.dependency_overrides[get_store]
    assert resp.status_code == 200
    assert resp.json()["improvements"] == {"dataEntry": 25, "leadResponse": 40, "productivity": 60}
    assert resp.json()["totalResponses"] == 0
