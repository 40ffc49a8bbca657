# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: System endpoints — health, readiness, metrics.
Pure HTTP layer — no business logic.
"""

from datetime import datetime, timezone

from fastapi import APIRouter
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from kutu.core.config import settings
from kutu.core.dependencies import get_group_repo, get_group_store

router = APIRouter(tags=["System"])


@router.get("/health")
def health_check():
    """Liveness probe for Docker and orchestration."""
    group_repo = get_group_repo()
    return {
        "status": "ok",
        "service": settings.SERVICE_NAME,
        "version": settings.SERVICE_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "groups_count": group_repo.count(),
    }


@router.get("/health/ready")
def readiness_check():
    """Readiness probe — verifies the service can serve traffic."""
    group_repo = get_group_repo()
    return {
        "status": "ready",
        "service": settings.SERVICE_NAME,
        "store": type(get_group_store()).__name__,
        "groups_loaded": group_repo.count() > 0,
    }


@router.get("/metrics")
def prometheus_metrics():
    """Expose Prometheus metrics in OpenMetrics format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
