# backend/delivery/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/delivery.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///delivery.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Signed session tokens
    JWT_SECRET_KEY = os.environ.get("JWT_SECRET", "secret")
    JWT_ALGORITHM = "HS256"
    JWT_EXPIRES_IN = os.environ.get("JWT_EXPIRES_IN", "7d")

    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    # Uploaded order images live on local disk and are served from /uploads
    UPLOAD_FOLDER = os.environ.get(
        "UPLOAD_FOLDER",
        os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "uploads"),
    )
    PUBLIC_BASE_URL = os.environ.get("PUBLIC_BASE_URL", "").rstrip("/")
    MAX_IMAGE_BYTES = 10 * 1024 * 1024
    # Leaves room for multipart framing around a maximum-size image
    MAX_CONTENT_LENGTH = MAX_IMAGE_BYTES + 1024 * 1024

    DEFAULT_ADMIN_PASSWORD = os.environ.get("DEFAULT_ADMIN_PASSWORD", "admin123")
    BOOTSTRAP_ON_STARTUP = _env_flag("BOOTSTRAP_ON_STARTUP", True)

    CORS_ORIGINS = os.environ.get(
        "CORS_ORIGINS",
        "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000",
    )
