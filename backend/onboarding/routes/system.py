# backend/onboarding/routes/system.py
"""
System health endpoint.

Checks the database and reports whether the prospect spreadsheet is
configured, for deployment debugging.
"""

from flask import Blueprint, current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Merchant, VendorStatusRecord
from onboarding.time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """Row counts for the two tables every lookup and submission touch."""
    try:
        return {
            "status": "healthy",
            "details": {
                "vendors": db.session.query(VendorStatusRecord).count(),
                "merchants": db.session.query(Merchant).count(),
            },
        }
    except SQLAlchemyError:
        current_app.logger.exception("Database health check failed")
        return {"status": "unhealthy", "error": "Database error"}


def check_spreadsheet_config() -> dict:
    """Degraded, not unhealthy: lookups and submissions work without it."""
    url = current_app.config.get("SHEETS_CSV_URL")
    path = current_app.config.get("SHEETS_FILE_PATH")
    if url or path:
        return {"status": "healthy", "details": {"source": "url" if url else "file"}}
    return {"status": "degraded", "warning": "Spreadsheet source not configured"}


@system_bp.get("/health")
def health():
    """
    Health check endpoint.

    Returns:
    - 200: healthy or degraded
    - 503: database unreachable
    """
    checks = {
        "database": check_database_health(),
        "spreadsheet": check_spreadsheet_config(),
    }
    statuses = {check["status"] for check in checks.values()}

    if "unhealthy" in statuses:
        overall_status, http_status = "unhealthy", 503
    elif "degraded" in statuses:
        overall_status, http_status = "degraded", 200
    else:
        overall_status, http_status = "healthy", 200

    return {
        "status": overall_status,
        "timestamp": to_utc_z(utcnow()),
        "checks": checks,
    }, http_status
