"""Analytics sign-in, session tokens and the client-side session store."""

import logging
import secrets
from datetime import datetime, timedelta
from typing import Dict, Iterable, MutableMapping, Optional

from jose import JWTError, jwt
from pydantic import ValidationError

from survey_insights.config import settings
from survey_insights.schemas.user import AuthResult, AuthSession
from survey_insights.utils import permissions

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
SESSION_KEY = "analytics_auth_session"

DEVELOPMENT_USERS = {
    "admin": ("admin123", permissions.ADMIN),
    "coordinator": ("coord123", permissions.COORDINATOR),
    "assessor": ("assess123", permissions.ASSESSOR),
}


def session_duration() -> timedelta:
    return timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)


def _new_session(username: str, role: str, now: Optional[datetime] = None) -> AuthSession:
    created_at = now or datetime.utcnow()
    return AuthSession(
        user_id=f"user-{secrets.token_hex(6)}",
        username=username,
        role=role,
        created_at=created_at,
        expires_at=created_at + session_duration(),
    )


def _match_configured_user(username: str, password: str) -> Optional[str]:
    for role, pairs in settings.analytics_credentials().items():
        for configured_user, configured_password in pairs:
            if configured_user == username and secrets.compare_digest(configured_password, password):
                return role
    return None


def authenticate(username: str, password: str) -> AuthResult:
    username = (username or "").strip()
    if not username or not password:
        return AuthResult(success=False, error="Username and password are required")

    if settings.is_development:
        known = DEVELOPMENT_USERS.get(username)
        if known and known[0] == password:
            return AuthResult(success=True, session=_new_session(username, known[1]))

    if settings.LEGACY_SHARED_PASSWORD and password == settings.LEGACY_SHARED_PASSWORD:
        logger.warning("[auth] shared password used for %s", username)
        return AuthResult(success=True, session=_new_session(username, permissions.role_for_username(username)))

    role = _match_configured_user(username, password)
    if role:
        return AuthResult(success=True, session=_new_session(username, role))

    logger.info("[auth] rejected sign-in for %s", username)
    return AuthResult(success=False, error="Invalid credentials")


def create_access_token(session: AuthSession) -> str:
    payload = {
        "sub": session.user_id,
        "username": session.username,
        "role": session.role,
        "iat": session.created_at,
        "exp": session.expires_at,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Optional[AuthSession]:
    """Return the session carried by ``token``, or None when it is invalid or expired."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as exc:
        logger.info("[auth] token rejected: %s", exc)
        return None
    if payload.get("role") not in permissions.ANALYTICS_ROLES:
        return None
    try:
        return AuthSession(
            user_id=str(payload["sub"]),
            username=str(payload.get("username") or ""),
            role=payload["role"],
            created_at=datetime.utcfromtimestamp(int(payload["iat"])),
            expires_at=datetime.utcfromtimestamp(int(payload["exp"])),
        )
    except (KeyError, TypeError, ValueError, ValidationError) as exc:
        logger.info("[auth] token payload incomplete: %s", exc)
        return None


class SessionStore:
    """Keeps the signed-in analytics session in a key-value storage."""

    def __init__(self, storage: MutableMapping[str, str], clock=datetime.utcnow):
        self.storage = storage
        self.clock = clock

    def store_session(self, session: AuthSession) -> None:
        self.storage[SESSION_KEY] = session.model_dump_json()

    def retrieve_session(self) -> Optional[AuthSession]:
        raw = self.storage.get(SESSION_KEY)
        if not raw:
            return None
        try:
            session = AuthSession.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("[auth] stored session unreadable: %s", exc)
            self.clear_session()
            return None
        if session.expires_at <= self.clock():
            self.clear_session()
            return None
        return session

    def clear_session(self) -> None:
        self.storage.pop(SESSION_KEY, None)

    def is_authenticated(self) -> bool:
        return self.retrieve_session() is not None

    def get_current_role(self) -> Optional[str]:
        session = self.retrieve_session()
        return session.role if session else None

    def get_current_permissions(self) -> Optional[Dict[str, bool]]:
        return permissions.permissions_for(self.get_current_role())

    def has_permission(self, permission: str) -> bool:
        return permissions.has_permission(self.get_current_role(), permission)

    def authorize_access(self, required: Iterable[str]) -> bool:
        return permissions.authorize_access(self.get_current_role(), required)
