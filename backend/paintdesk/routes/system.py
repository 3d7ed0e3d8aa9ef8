# Overview: System health endpoint.

"""
System health endpoint.

Unauthenticated; reports database reachability and session table state
for deployment checks. Returns 503 when the database is unreachable.
"""

import time
from flask import Blueprint, current_app, jsonify
from ..extensions import db
from ..models import SessionToken, User
from paintdesk.time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__, url_prefix="/api")


def check_database_health() -> dict:
    """
    Check database connectivity and basic operations.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        user_count = db.session.query(User).count()
        now = utcnow()
        active_sessions = db.session.query(SessionToken).filter(SessionToken.expires_at > now).count()
        expired_sessions = db.session.query(SessionToken).filter(SessionToken.expires_at <= now).count()

        elapsed_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "users": user_count,
                "active_sessions": active_sessions,
                "expired_sessions": expired_sessions,
            }
        }
    except Exception:
        db.session.rollback()
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


@system_bp.get("/health")
def health():
    database = check_database_health()
    healthy = database["status"] == "healthy"
    return jsonify({
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": to_utc_z(utcnow()),
        "checks": {"database": database},
    }), 200 if healthy else 503
