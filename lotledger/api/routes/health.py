"""
Health check endpoints.
"""

import time

from fastapi import APIRouter

from lotledger.application.dto.responses import ComponentHealthResponse, HealthResponse
from lotledger.config import get_settings

router = APIRouter(prefix="/api/health", tags=["health"])

# Track startup time
_start_time = time.time()


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Basic health check.

    Returns service status and uptime.
    """
    return HealthResponse(
        status="healthy",
        version=get_settings().app_version,
        uptime_seconds=time.time() - _start_time,
    )


@router.get("/db", response_model=HealthResponse)
async def db_health() -> HealthResponse:
    """
    Database health check.

    Tests SQLite connectivity and that the ledger schema is present.
    """
    from lotledger.infrastructure.storage.sqlite import get_pool

    try:
        pool = await get_pool()
        start = time.time()
        async with pool.acquire() as conn:
            cursor = await conn.execute(
                "SELECT COUNT(*) FROM sqlite_master WHERE type='table' AND name='movements'"
            )
            row = await cursor.fetchone()
        latency = (time.time() - start) * 1000

        has_schema = bool(row and row[0])
        db_status = ComponentHealthResponse(
            name="sqlite",
            available=has_schema,
            error=None if has_schema else "ledger schema missing; run migrations",
            latency_ms=latency,
        )

    except Exception as e:
        db_status = ComponentHealthResponse(
            name="sqlite",
            available=False,
            error=str(e),
        )

    return HealthResponse(
        status="healthy" if db_status.available else "unhealthy",
        version=get_settings().app_version,
        uptime_seconds=time.time() - _start_time,
        database=db_status,
    )
