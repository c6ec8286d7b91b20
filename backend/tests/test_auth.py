from datetime import datetime, timedelta

from survey_insights.config import settings
from survey_insights.services import auth_service
from survey_insights.services.auth_service import SessionStore, authenticate
from survey_insights.utils import permissions
from tests.conftest import auth_headers


def test_authenticate_requires_both_fields():
    result = authenticate("", "admin123")
    assert result.success is False
    assert result.error == "Username and password are required"
    assert authenticate("admin", "").error == "Username and password are required"


def test_authenticate_development_users():
    result = authenticate("coordinator", "coord123")
    assert result.success is True
    assert result.session.role == "coordinator"
    assert result.session.user_id.startswith("user-")
    assert result.session.expires_at - result.session.created_at == timedelta(hours=8)


def test_session_lifetime_follows_settings(monkeypatch):
    monkeypatch.setattr(settings, "ACCESS_TOKEN_EXPIRE_MINUTES", 30)
    session = authenticate("assessor", "assess123").session
    assert session.expires_at - session.created_at == timedelta(minutes=30)
    decoded = auth_service.decode_access_token(auth_service.create_access_token(session))
    assert decoded.expires_at - decoded.created_at == timedelta(minutes=30)


def test_authenticate_shared_password_maps_role_by_username():
    assert authenticate("admin", "uniat").session.role == "admin"
    assert authenticate("jdoe", "uniat").session.role == "assessor"


def test_authenticate_configured_credentials(monkeypatch):
    monkeypatch.setattr(settings, "ANALYTICS_COORDINATOR_USERS", "maria:s3cret, bad-entry")
    monkeypatch.setattr(settings, "ENVIRONMENT", "production")
    result = authenticate("maria", "s3cret")
    assert result.success is True
    assert result.session.role == "coordinator"
    assert authenticate("admin", "admin123").error == "Invalid credentials"


def test_authenticate_rejects_unknown():
    result = authenticate("admin", "wrong")
    assert result.success is False
    assert result.error == "Invalid credentials"


def test_access_token_round_trip():
    session = authenticate("assessor", "assess123").session
    decoded = auth_service.decode_access_token(auth_service.create_access_token(session))
    assert decoded.username == "assessor"
    assert decoded.role == "assessor"
    assert decoded.user_id == session.user_id
    assert auth_service.decode_access_token("not-a-token") is None


def test_session_store_expires_sessions():
    storage = {}
    now = datetime(2026, 1, 5, 9, 0, 0)
    store = SessionStore(storage, clock=lambda: now)
    session = auth_service._new_session("admin", "admin", now=now)
    store.store_session(session)
    assert store.is_authenticated()
    assert store.get_current_role() == "admin"
    assert store.get_current_permissions()["can_export_data"] is True

    later = SessionStore(storage, clock=lambda: now + timedelta(hours=8, seconds=1))
    assert later.retrieve_session() is None
    assert "analytics_auth_session" not in storage


def test_session_store_authorize_access():
    storage = {}
    store = SessionStore(storage)
    assert store.authorize_access([]) is True
    assert store.authorize_access([permissions.CAN_VIEW_ASSESSOR_METRICS]) is False

    store.store_session(authenticate("assessor", "assess123").session)
    assert store.has_permission(permissions.CAN_EXPORT_DATA) is False
    assert store.authorize_access([permissions.CAN_VIEW_ADMIN_METRICS, permissions.CAN_VIEW_ASSESSOR_METRICS]) is True
    assert store.authorize_access([permissions.CAN_VIEW_ADMIN_METRICS]) is False
    store.clear_session()
    assert store.is_authenticated() is False


def test_permission_table():
    assert all(permissions.permissions_for("admin").values())
    coordinator = permissions.permissions_for("coordinator")
    assert coordinator["can_view_admin_metrics"] is False
    assert coordinator["can_export_data"] is True
    assert permissions.permissions_for("guest") is None


def test_login_endpoint(client):
    resp = client.post("/api/auth/login", json={"username": "admin", "password": "admin123"})
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["token_type"] == "bearer"
    assert data["session"]["role"] == "admin"
    assert data["permissions"]["can_view_admin_metrics"] is True


def test_login_endpoint_rejects_bad_password(client):
    resp = client.post("/api/auth/login", json={"username": "admin", "password": "nope"})
    assert resp.status_code == 401
    assert resp.json() == {"error": "Invalid credentials"}


def test_me_and_permissions(client):
    headers = auth_headers(client, "coordinator", "coord123")
    resp = client.get("/api/auth/me", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["username"] == "coordinator"

    resp = client.get("/api/auth/permissions", headers=headers)
    assert resp.json()["permissions"]["can_view_admin_metrics"] is False


def test_me_unauthenticated(client):
    resp = client.get("/api/auth/me")
    assert resp.status_code == 401
    assert resp.json() == {"error": "Unauthorized"}
