"""Health check endpoint."""
from datetime import datetime, timezone
from typing import Callable
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from talent_reports.config import get_settings
from talent_reports.models import HealthResponse
from talent_reports.services import get_snowflake_service, get_redis_cache, get_s3_storage

router = APIRouter(tags=["Health"])


async def _dependency_status(factory: Callable) -> str:
    try:
        healthy, error = await factory().health_check()
        return "healthy" if healthy else f"unhealthy: {error}"
    except Exception as e:
        return f"unhealthy: {str(e)}"


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health Check",
    description="Report datastore, cache and artifact storage health."
)
async def health_check():
    """200 when every dependency answers, 503 otherwise."""
    settings = get_settings()
    dependencies = {
        "snowflake": await _dependency_status(get_snowflake_service),
        "redis": await _dependency_status(get_redis_cache),
        "s3": await _dependency_status(get_s3_storage),
    }

    all_healthy = all(v == "healthy" for v in dependencies.values())
    response = HealthResponse(
        status="healthy" if all_healthy else "degraded",
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=settings.app_version,
        dependencies=dependencies
    )
    if not all_healthy:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=response.model_dump()
        )
    return response
