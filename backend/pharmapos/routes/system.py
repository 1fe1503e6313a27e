# Overview: Flask API routes for system health; parses input and returns JSON responses.

"""System health endpoint."""

import time
from flask import Blueprint, current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import SessionToken, User
from ..services.state_store import get_state_store
from pharmapos.time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    start_time = time.time()
    try:
        user_count = db.session.query(User).count()
        active_sessions = db.session.query(SessionToken).filter_by(is_revoked=False).count()
    except SQLAlchemyError:
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round((time.time() - start_time) * 1000, 2),
            "error": "Database error",
        }

    return {
        "status": "healthy",
        "latency_ms": round((time.time() - start_time) * 1000, 2),
        "details": {
            "users": user_count,
            "active_sessions": active_sessions,
        },
    }


def check_state_store_health() -> dict:
    store = get_state_store()
    return {
        "status": "healthy",
        "details": {"ttl_seconds": store.ttl_seconds},
    }


@system_bp.get("/api/health")
def health():
    """
    Returns:
    - 200: database reachable
    - 503: database unhealthy
    """
    start_time = time.time()

    checks = {
        "database": check_database_health(),
        "state_store": check_state_store_health(),
    }
    unhealthy = any(check["status"] == "unhealthy" for check in checks.values())

    return {
        "status": "unhealthy" if unhealthy else "healthy",
        "timestamp": to_utc_z(utcnow()),
        "total_latency_ms": round((time.time() - start_time) * 1000, 2),
        "checks": checks,
    }, 503 if unhealthy else 200
