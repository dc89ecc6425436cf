"""
Health Check Module
===================
Liveness, readiness and component health endpoints.
"""

import time
from typing import Optional, Dict, Callable, Awaitable
from enum import Enum

from fastapi import APIRouter, Response
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine
import structlog

logger = structlog.get_logger(__name__)


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class ComponentHealth(BaseModel):
    status: str
    latency_ms: Optional[float] = None
    error: Optional[str] = None


class HealthResponse(BaseModel):
    status: HealthStatus
    service: str
    version: str
    components: Dict[str, ComponentHealth]
    timestamp: float


async def check_database(engine: AsyncEngine) -> ComponentHealth:
    """Check database connectivity and latency."""
    try:
        start = time.time()
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        latency = (time.time() - start) * 1000
        return ComponentHealth(status="connected", latency_ms=round(latency, 2))
    except Exception as e:
        logger.error("Database health check failed", error=str(e))
        return ComponentHealth(status="error", error=str(e))


def create_health_router(
    service_name: str,
    version: str = "1.0.0",
    engine: Optional[AsyncEngine] = None,
    custom_checks: Optional[Dict[str, Callable[[], Awaitable[ComponentHealth]]]] = None,
) -> APIRouter:
    """
    Create a router with /health, /health/live and /health/ready.

    Args:
        service_name: Name reported in the health payload
        version: Service version
        engine: SQLAlchemy async engine (optional)
        custom_checks: Extra named checks; an error degrades the status
    """
    router = APIRouter(tags=["Health"])

    @router.get("/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        """Health check with all component statuses."""
        components: Dict[str, ComponentHealth] = {}
        overall_status = HealthStatus.HEALTHY

        if engine is not None:
            db_health = await check_database(engine)
            components["database"] = db_health
            if db_health.status == "error":
                overall_status = HealthStatus.UNHEALTHY

        for name, check_fn in (custom_checks or {}).items():
            try:
                components[name] = await check_fn()
            except Exception as e:
                components[name] = ComponentHealth(status="error", error=str(e))
            if components[name].status == "error" and overall_status == HealthStatus.HEALTHY:
                overall_status = HealthStatus.DEGRADED

        return HealthResponse(
            status=overall_status,
            service=service_name,
            version=version,
            components=components,
            timestamp=time.time(),
        )

    @router.get("/health/live")
    async def liveness_probe():
        """Always 200 while the process is up."""
        return {"status": "alive"}

    @router.get("/health/ready")
    async def readiness_probe():
        """503 when the database is unreachable."""
        if engine is not None:
            db_health = await check_database(engine)
            if db_health.status == "error":
                return Response(
                    content='{"status": "not_ready", "reason": "database_unavailable"}',
                    status_code=503,
                    media_type="application/json",
                )
        return {"status": "ready"}

    return router
