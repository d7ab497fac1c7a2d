# backend/scancount/routes/system.py
"""
System health endpoint.

Checks the database and the configured barcode registries so deployments
can tell an empty catalog from a broken one.
"""

import time
from flask import Blueprint, current_app
from ..extensions import db
from ..models import ApiToken, CatalogEntry, ScanningSession
from ..services.product_registries import get_registries
from scancount.time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__, url_prefix="/api")

# Worst status wins
STATUS_RANK = {"healthy": 0, "degraded": 1, "unhealthy": 2}


def _ms_since(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


def check_database_health() -> dict:
    """Row counts for the tables scanners depend on; unhealthy if any query fails."""
    started = time.perf_counter()
    try:
        details = {
            "catalog_entries": db.session.query(CatalogEntry).count(),
            "active_sessions": db.session.query(ScanningSession).filter_by(status="active").count(),
            "active_tokens": db.session.query(ApiToken).filter_by(is_active=True).count(),
        }
    except Exception:
        current_app.logger.exception("Database health check failed")
        db.session.rollback()
        return {"status": "unhealthy", "latency_ms": _ms_since(started), "error": "Database error"}

    return {"status": "healthy", "latency_ms": _ms_since(started), "details": details}


def check_registry_configuration() -> dict:
    """
    Report configured registries without calling them.

    No registries is degraded, not unhealthy: lookups still resolve from
    the local catalog.
    """
    registries = [registry.source for registry in get_registries()]
    if not registries:
        return {
            "status": "degraded",
            "warning": "No external barcode registries configured",
            "details": {"registries": []},
        }
    return {
        "status": "healthy",
        "details": {
            "registries": registries,
            "timeout_seconds": current_app.config["BARCODE_REGISTRY_TIMEOUT"],
        }
    }


@system_bp.get("/health")
def health():
    """
    Health check endpoint.

    Returns:
    - 200: healthy or degraded
    - 503: database unreachable
    """
    started = time.perf_counter()
    checks = {
        "database": check_database_health(),
        "barcode_registries": check_registry_configuration(),
    }
    status = max((check["status"] for check in checks.values()), key=STATUS_RANK.__getitem__)

    response = {
        "status": status,
        "timestamp": to_utc_z(utcnow()),
        "total_latency_ms": _ms_since(started),
        "checks": checks,
    }
    return response, 503 if status == "unhealthy" else 200
