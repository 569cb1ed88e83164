# backend/farmbook/routes/system.py
"""
System root and health endpoints.

The health check covers both stores a request depends on: the relational
database and the blob store.
"""

import time
from flask import Blueprint, current_app
from sqlalchemy import text

from ..blobstore import get_blob_store
from ..extensions import db
from ..time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        elapsed_ms = (time.time() - start_time) * 1000
        return {"status": "healthy", "latency_ms": round(elapsed_ms, 2)}
    except Exception:
        db.session.rollback()
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


def check_blob_store_health() -> dict:
    """Check the blob store with a lookup of a key that is never written."""
    start_time = time.time()
    try:
        get_blob_store().exists("healthcheck-sentinel")
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "backend": current_app.config.get("BLOB_STORE_BACKEND"),
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Blob store health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Blob store error"
        }


@system_bp.get("/")
def index():
    return "Farm Management API"


@system_bp.get("/api/health")
def health():
    """
    Health check endpoint.

    Returns:
    - 200: database and blob store reachable
    - 503: either one failed
    """
    database_health = check_database_health()
    blob_health = check_blob_store_health()

    healthy = all(c["status"] == "healthy" for c in (database_health, blob_health))

    response = {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": to_utc_z(utcnow()),
        "database": database_health,
        "blob_store": blob_health,
    }
    return response, 200 if healthy else 503
