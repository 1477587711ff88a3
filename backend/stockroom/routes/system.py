# backend/stockroom/routes/system.py
"""
System health endpoint.

Reports database reachability and whether the permission catalog and the
default roles have been seeded.
"""

import time
from flask import Blueprint, current_app

from ..extensions import db
from ..models import Customer, Permission, Role, User
from ..permissions import DEFAULT_ROLES
from ..time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    start_time = time.time()
    try:
        details = {
            "users": db.session.query(User).count(),
            "roles": db.session.query(Role).count(),
            "permissions": db.session.query(Permission).count(),
            "customers": db.session.query(Customer).count(),
        }
        elapsed_ms = (time.time() - start_time) * 1000
        return {"status": "healthy", "latency_ms": round(elapsed_ms, 2), "details": details}
    except Exception:
        db.session.rollback()
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {"status": "unhealthy", "latency_ms": round(elapsed_ms, 2), "error": "Database error"}


def check_seed_health() -> dict:
    """Roles and permissions must exist before anyone can be authorized."""
    try:
        existing = {name for (name,) in db.session.query(Role.name).all()}
        missing_roles = sorted(set(DEFAULT_ROLES) - existing)
        permission_count = db.session.query(Permission).count()
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Seed health check failed")
        return {"status": "unhealthy", "error": "Database error"}

    if missing_roles or permission_count == 0:
        return {
            "status": "degraded",
            "warning": "Run 'flask system init' to seed roles and permissions",
            "details": {"missing_roles": missing_roles, "permission_count": permission_count},
        }
    return {"status": "healthy", "details": {"permission_count": permission_count}}


@system_bp.get("/health")
def health():
    """
    Health check.

    Returns 200 while the database answers (even if seeding is incomplete)
    and 503 otherwise.
    """
    start_time = time.time()
    database_health = check_database_health()
    seed_health = (
        check_seed_health()
        if database_health["status"] == "healthy"
        else {"status": "unhealthy", "error": "Skipped"}
    )

    checks = [database_health, seed_health]
    if any(c["status"] == "unhealthy" for c in checks):
        overall_status, http_status = "unhealthy", 503
    elif any(c["status"] == "degraded" for c in checks):
        overall_status, http_status = "degraded", 200
    else:
        overall_status, http_status = "healthy", 200

    return {
        "status": overall_status,
        "timestamp": to_utc_z(utcnow()),
        "total_latency_ms": round((time.time() - start_time) * 1000, 2),
        "checks": {"database": database_health, "seed": seed_health},
    }, http_status
