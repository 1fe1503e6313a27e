# backend/pharmapos/config.py
from __future__ import annotations
import os


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/pharmapos.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",  # optional alternative location
        "sqlite:///pharmapos.sqlite3",  # default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    BCRYPT_ROUNDS = _env_int("BCRYPT_ROUNDS", 12)

    # Snapshot cache lifetime for the in-process state store
    STATE_CACHE_TTL_SECONDS = _env_int("STATE_CACHE_TTL_SECONDS", 30)

    # Most-recent-N windows used when loading sales and audit history
    SALES_FETCH_LIMIT = _env_int("SALES_FETCH_LIMIT", 100)
    AUDIT_FETCH_LIMIT = _env_int("AUDIT_FETCH_LIMIT", 100)

    DEPOSIT_NOTE_MIN_LENGTH = _env_int("DEPOSIT_NOTE_MIN_LENGTH", 5)
    EXPIRY_WARNING_DAYS = _env_int("EXPIRY_WARNING_DAYS", 60)

    ALLOWED_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            "ALLOWED_ORIGINS",
            "http://localhost:3000,http://127.0.0.1:3000",
        ).split(",")
        if origin.strip()
    ]


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    STATE_CACHE_TTL_SECONDS = 0
    LOG_LEVEL = "WARNING"
    BCRYPT_ROUNDS = 4
