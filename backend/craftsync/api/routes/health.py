"""Health & Readiness Probes — liveness and readiness endpoints for container orchestration.

Invariants:
    - GET /health/ always returns 200 if process is up (liveness)
    - GET /health/ready returns 503 if the database is unreachable, or if a
      configured ledger connection or synchronizer is down (readiness)

Design Decisions:
    - Separate liveness/readiness: liveness restarts, readiness removes from the
      load balancer
    - An unconfigured ledger is reported as "disabled", not as a failure: the
      matching endpoints still serve from the store
"""

import logging
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from craftsync.api.dependencies import get_chain, get_synchronizer
from craftsync.infrastructure import database

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {
        "status": "healthy",
        "service": "craftsync-api",
        "version": "1.0.0",
    }


@router.get("/ready")
async def readiness_check(
    chain=Depends(get_chain),
    synchronizer=Depends(get_synchronizer),
):
    """Readiness probe — database, ledger connection, listener state."""
    manager = database.db_manager
    db_ok = await manager.health_check() if manager else False
    checks = {
        "database": "healthy" if db_ok else "unavailable",
        "chain": _chain_check(chain),
        "synchronizer": synchronizer.state.value if synchronizer else "disabled",
    }
    failing = (
        not db_ok
        or checks["chain"] == "unavailable"
        or (synchronizer is not None and not synchronizer.is_active())
    )
    if failing:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "checks": checks},
        )
    return {"status": "ready", "checks": checks}


def _chain_check(chain) -> str:
    if chain is None:
        return "disabled"
    return "healthy" if chain.is_ready() else "unavailable"
