# backend/salon/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/salon.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///salon.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Calendar dates and hours in reports are bucketed in this zone
    SALON_TIMEZONE = os.environ.get("SALON_TIMEZONE", "UTC")

    # Phone lookup while a visit is being entered
    CUSTOMER_LOOKUP_MIN_CHARS = int(os.environ.get("CUSTOMER_LOOKUP_MIN_CHARS", "3"))
    CUSTOMER_LOOKUP_LIMIT = int(os.environ.get("CUSTOMER_LOOKUP_LIMIT", "10"))

    # Self-signup always creates an employee profile
    ALLOW_SIGNUP = _env_bool("ALLOW_SIGNUP", True)

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    CORS_ALLOWED_ORIGINS = tuple(
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:8080",
        ).split(",")
        if origin.strip()
    )
