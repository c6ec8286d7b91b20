"""Centralised application settings loaded from environment variables."""

from pydantic_settings import BaseSettings
from typing import Dict, List
from pathlib import Path


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./feedback.db"
    # "sqlite" uses DATABASE_URL through SQLAlchemy, "hosted" talks to a PostgREST service.
    DATABASE_TYPE: str = "sqlite"
    HOSTED_DB_URL: str = ""
    HOSTED_DB_API_KEY: str = ""
    HOSTED_DB_TIMEOUT_SECONDS: float = 10.0

    SECRET_KEY: str = "change-me-to-a-random-secret-key"
    ENVIRONMENT: str = "development"
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8000"]
    LOG_LEVEL: str = "INFO"

    # JWT and analytics session lifetime (8 hours)
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 480

    # Analytics credentials, "user1:pass1,user2:pass2"
    ANALYTICS_ADMIN_USERS: str = ""
    ANALYTICS_COORDINATOR_USERS: str = ""
    ANALYTICS_ASSESSOR_USERS: str = ""
    # Shared password accepted for any username. Empty string disables it.
    LEGACY_SHARED_PASSWORD: str = "uniat"

    ANALYTICS_SURVEY_ID: int = 1
    MIN_ANSWERS_PER_RESPONSE: int = 10

    @property
    def is_development(self) -> bool:
        return str(self.ENVIRONMENT or "").strip().lower() == "development"

    def analytics_credentials(self) -> Dict[str, List[tuple[str, str]]]:
        return {
            "admin": _parse_credential_list(self.ANALYTICS_ADMIN_USERS),
            "coordinator": _parse_credential_list(self.ANALYTICS_COORDINATOR_USERS),
            "assessor": _parse_credential_list(self.ANALYTICS_ASSESSOR_USERS),
        }

    class Config:
        # backend/.env is loaded regardless of the working directory.
        env_file = str(Path(__file__).resolve().parents[1] / ".env")


def _parse_credential_list(raw: str) -> List[tuple[str, str]]:
    pairs = []
    for chunk in str(raw or "").split(","):
        username, sep, password = chunk.strip().partition(":")
        if not sep or not username.strip() or not password:
            continue
        pairs.append((username.strip(), password))
    return pairs


settings = Settings()
