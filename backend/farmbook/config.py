# backend/farmbook/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: str) -> list[str]:
    raw = os.environ.get(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # Session tokens are signed JWTs; falls back to SECRET_KEY when unset
    JWT_SECRET = os.environ.get("JWT_SECRET") or SECRET_KEY
    JWT_ALGORITHM = "HS256"
    TOKEN_TTL_HOURS = int(os.environ.get("TOKEN_TTL_HOURS", "24"))

    # bcrypt cost factor for password hashes
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "10"))

    # SQLite DB stored in backend/instance/farmbook.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///farmbook.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Attachment storage: "s3" (S3-compatible bucket), "local" (directory on disk) or "memory"
    BLOB_STORE_BACKEND = os.environ.get("BLOB_STORE_BACKEND", "local")
    # None means <instance_path>/blobs
    BLOB_STORE_PATH = os.environ.get("BLOB_STORE_PATH")

    # S3-compatible bucket (AWS S3, Cloudflare R2, MinIO). Credentials come from
    # the standard AWS_ACCESS_KEY_ID / AWS_SECRET_ACCESS_KEY environment variables.
    BLOB_STORE_BUCKET = os.environ.get("BLOB_STORE_BUCKET")
    BLOB_STORE_ENDPOINT_URL = os.environ.get("BLOB_STORE_ENDPOINT_URL")
    BLOB_STORE_REGION = os.environ.get("BLOB_STORE_REGION")

    # Base for absolute image URLs; None means the request host
    PUBLIC_BASE_URL = os.environ.get("PUBLIC_BASE_URL")

    SALES_LIST_LIMIT = int(os.environ.get("SALES_LIST_LIMIT", "20"))
    NOTE_SEARCH_CASE_SENSITIVE = _env_bool("NOTE_SEARCH_CASE_SENSITIVE", False)

    CORS_ALLOWED_ORIGINS = _env_list("CORS_ALLOWED_ORIGINS", "*")

    # Uploads larger than this are rejected with 413
    MAX_CONTENT_LENGTH = int(os.environ.get("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))
