# backend/quickpos/routes/system.py
"""
System health endpoint.

Reports whether the configured backend answers a trivial query.
"""

import time
from flask import Blueprint, current_app

from ..backend import BackendError, get_query_backend
from ..time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)


def check_backend_health() -> dict:
    """
    Check backend connectivity with a store count.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        store_count = len(get_query_backend().select("stores"))
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {"stores": store_count},
        }
    except BackendError:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Backend health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Backend error",
        }


@system_bp.get("/health")
def health():
    backend = check_backend_health()
    status_code = 200 if backend["status"] == "healthy" else 503
    return {
        "status": backend["status"],
        "backend": current_app.config["QUICKPOS_BACKEND"],
        "checks": {"backend": backend},
        "timestamp": to_utc_z(utcnow()),
    }, status_code
