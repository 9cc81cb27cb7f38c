from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from api.dependencies import get_service
from api.utils import run_sync
from core.constraint import API_VERSION
from core.pdf_conversion.core import ConversionService
from models.schemas import BackendHealth, HealthStatus

router = APIRouter(tags=["health"])


@router.get("/health", summary="Health check")
def health() -> HealthStatus:
    return HealthStatus(
        status="healthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=API_VERSION,
    )


@router.get("/health/backend", summary="Rendering backend readiness")
async def backend_health(service: ConversionService = Depends(get_service)) -> BackendHealth:
    status = await run_sync(service.backend_status)
    if not status["initialized"]:
        return BackendHealth(status="unhealthy", initialized=False, detail=status.get("detail"))
    components = status.get("components", {})
    return BackendHealth(
        status="healthy" if all(components.values()) else "degraded",
        initialized=True,
        components=components,
    )


__all__ = ["router"]
