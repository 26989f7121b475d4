# backend/rsvp_api/api/health.py

"""
Health endpoints.

- /health       -> lightweight liveness (no DB)
- /health/db    -> DB readiness probe (small SELECT 1)
"""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

from rsvp_api import __version__
from rsvp_api.db.session import get_db

logger = logging.getLogger("rsvp.health")

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", summary="Liveness probe")
def health():
    """
    Returns 200 as long as the process is up and routing works.
    Does NOT touch the database.
    """
    return {
        "status": "ok",
        "service": "rsvp-api",
        "version": __version__,
        "timestamp_utc": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/db", summary="Database readiness probe")
def health_db(db: Session = Depends(get_db)):
    """
    Tiny `SELECT 1` against the configured database: 200 when reachable,
    503 with {"error": ...} when not.
    """
    start = time.perf_counter()
    try:
        db.execute(text("SELECT 1"))
    except Exception:
        logger.exception("DB health check failed")
        return JSONResponse(status_code=503, content={"error": "Database unavailable", "db": "down"})

    elapsed_ms = int((time.perf_counter() - start) * 1000)
    return {"status": "ok", "db": "up", "latency_ms": elapsed_ms}
