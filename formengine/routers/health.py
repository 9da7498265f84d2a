"""
Health Check Router - Form Scoring & Access Engine
formengine/routers/health.py

Reports the reachability of the remote store and the local cache. Neither is
fatal: the engine degrades to snapshot reads and in-memory state.
"""
from datetime import datetime, timezone
from typing import Dict

import redis
from fastapi import APIRouter
from pydantic import BaseModel

from formengine.config import settings
from formengine.services.cache import get_cache

router = APIRouter(tags=["Health"])



#  Schemas


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    version: str
    dependencies: Dict[str, str]



#  Dependency Health Checks


def check_redis() -> str:
    cache = get_cache()
    if cache is None:
        return "unavailable"
    try:
        cache.client.ping()
        return "healthy"
    except redis.RedisError as e:
        return f"unhealthy: {e}"


def check_snowflake() -> str:
    return "configured" if settings.snowflake_configured else "not_configured"



#  Routes


@router.get("/healthz", response_model=HealthResponse, summary="Liveness and dependency status")
async def health() -> HealthResponse:
    dependencies = {
        "redis": check_redis(),
        "snowflake": check_snowflake(),
    }
    degraded = dependencies["redis"] != "healthy" or dependencies["snowflake"] != "configured"
    return HealthResponse(
        status="degraded" if degraded else "healthy",
        timestamp=datetime.now(timezone.utc),
        version=settings.APP_VERSION,
        dependencies=dependencies,
    )
