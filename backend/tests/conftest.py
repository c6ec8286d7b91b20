import json

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from survey_insights.database import Base, get_db
from survey_insights.main import app
from survey_insights.models import Question, Survey, User

TEST_DB_URL = "sqlite:///./test_feedback.db"

engine = create_engine(TEST_DB_URL, connect_args={"check_same_thread": False})
TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

LOSS_STAGES = [
    "Initial Inquiry",
    "Application Started",
    "Document Collection",
    "Review Process",
    "Decision Stage",
]

# (id, section, type, rules, tags) for the manager survey the dashboard reads.
ANALYTICS_QUESTIONS = [
    (57, "Time Allocation", "percentage", {"sum_to_100": True}, "time,management,strategic"),
    (131, "System Complexity", "likert", {"min": 1, "max": 10}, "system,workarounds,efficiency"),
    (141, "System Complexity", "text", {"word_limit": 20}, "system,workarounds,critical"),
    (161, "Process Bottlenecks", "text", {"min": 0, "max": 100}, "process,leads,conversion"),
    (172, "Time Allocation", "text", {"min": 0, "max": 100}, "time,administrative"),
    (218, "System Complexity", "text", {"min": 1, "max": 50}, "system,tools,complexity"),
    (248, "Time Allocation", "text", {"min": 0, "max": 100}, "time,sales,productivity"),
    (258, "System Complexity", "text", {"min": 0, "max": 30}, "system,logins,complexity"),
    (270, "Process Bottlenecks", "likert", {"min": 1, "max": 10}, "process,tracking,satisfaction"),
    (290, "System Complexity", "likert", {"min": 1, "max": 10}, "system,workarounds,frequency"),
    (310, "Process Bottlenecks", "text", {"min": 0, "max": 240}, "process,data,access"),
    (322, "Team Collaboration", "likert", {"min": 1, "max": 10}, "team,information,sharing"),
    (332, "Team Collaboration", "likert", {"min": 1, "max": 10}, "team,handoffs"),
    (342, "Team Collaboration", "likert", {"min": 1, "max": 10}, "team,communication"),
    (354, "Team Collaboration", "text", {"min": 0, "max": 30}, "team,pipeline,reviews"),
    (364, "Process Bottlenecks", "multiple_choice", {}, "process,leads,stages"),
]


def override_get_db():
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def seed_users(db):
    users = {
        "admin": User(email="admin@example.com", name="Admin", role="admin"),
        "manager": User(email="manager@example.com", name="Manager", role="manager"),
        "sales": User(email="sales@example.com", name="Advisor", role="sales"),
    }
    for u in users.values():
        db.add(u)
    db.commit()
    for u in users.values():
        db.refresh(u)
    return users


@pytest.fixture
def seed_surveys(db):
    manager = Survey(id=1, name="Manager Feedback Survey", target_role="manager")
    sales = Survey(id=2, name="Admissions Team Feedback Survey", target_role="sales")
    retired = Survey(id=3, name="Retired Survey", target_role="all", is_active=False)
    db.add_all([manager, sales, retired])
    db.flush()
    for order, (qid, section, qtype, rules, tags) in enumerate(ANALYTICS_QUESTIONS, start=1):
        db.add(Question(
            id=qid,
            survey_id=1,
            section=section,
            question_text=f"Question {qid}",
            question_type=qtype,
            question_order=order,
            is_required=qid != 141,
            options=json.dumps(LOSS_STAGES) if qid == 364 else None,
            validation_rules=json.dumps(rules) if rules else None,
            analysis_tags=tags,
        ))
    db.add(Question(
        id=500,
        survey_id=2,
        section="Daily Workflow",
        question_text="How easy is it to find an applicant's history?",
        question_type="likert",
        question_order=1,
        options="not json",
        validation_rules="{broken",
        analysis_tags="data,access",
    ))
    db.commit()
    return {"manager": manager, "sales": sales, "retired": retired}


def full_answers(**overrides) -> list:
    """One answer per analytics question; keyword ``q<id>`` overrides the value."""
    defaults = {
        57: "{\"Strategic planning\": 30, \"System problem-solving\": 50, \"Other\": 20}",
        131: "6", 141: "Spreadsheet for document tracking", 161: "30", 172: "40",
        218: "8", 248: "45", 258: "4", 270: "5", 290: "6", 310: "12",
        322: "7", 332: "5", 342: "4", 354: "2", 364: "Document Collection",
    }
    for key, value in overrides.items():
        defaults[int(key.lstrip("q"))] = value
    return [{"questionId": qid, "value": value} for qid, value in defaults.items()]


def submit(client, survey_id: int = 1, answers=None, **extra):
    payload = {
        "surveyId": survey_id,
        "answers": full_answers() if answers is None else answers,
        "completedAt": "2026-01-05T10:00:00Z",
        "responseTime": 300,
        **extra,
    }
    return client.post("/api/surveys/submit", json=payload)


def get_token(client, username: str = "admin", password: str = "admin123") -> str:
    resp = client.post("/api/auth/login", json={"username": username, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()["access_token"]


def auth_headers(client, username: str = "admin", password: str = "admin123") -> dict:
    return {"Authorization": f"Bearer {get_token(client, username, password)}"}
