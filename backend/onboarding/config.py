# backend/onboarding/config.py
from __future__ import annotations
import os


def _csv_env(name: str, default: str) -> set[str]:
    raw = os.environ.get(name, default)
    return {item.strip() for item in raw.split(",") if item.strip()}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/onboarding.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///onboarding.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Prospect spreadsheet: published CSV URL, or a local .csv/.xlsx export
    SHEETS_CSV_URL = os.environ.get("SHEETS_CSV_URL")
    SHEETS_FILE_PATH = os.environ.get("SHEETS_FILE_PATH")
    SHEETS_TIMEOUT_SECONDS = float(os.environ.get("SHEETS_TIMEOUT_SECONDS", "10"))

    # Menu step shows this when the merchant has nothing stored yet
    DEFAULT_MACHINES_QTY = int(os.environ.get("DEFAULT_MACHINES_QTY", "2"))

    CORS_ALLOWED_ORIGINS = _csv_env(
        "CORS_ALLOWED_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173",
    )

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
