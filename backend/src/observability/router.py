"""Observability API endpoints.

Provides metrics, health checks, and readiness probes for monitoring.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from config import get_settings
from database import get_db
from .health import check_database_health, get_overall_health, HealthStatus
from .logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["Observability"])


@router.get(
    "/metrics",
    summary="Prometheus metrics endpoint",
    include_in_schema=False,
)
def metrics():
    """Expose Prometheus metrics in the text exposition format."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


@router.get(
    "/health",
    summary="Health check endpoint",
    description="Returns service health based on a database round trip",
)
def health_check(db: Session = Depends(get_db)):
    """Check health of the database connection.

    Returns 200 when the round trip succeeds, 503 otherwise.
    """
    components = {"database": check_database_health(db)}
    overall_status = get_overall_health(components)

    response_data = {
        "status": overall_status.value,
        "service": get_settings().SERVICE_NAME,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": {
            name: {
                "status": comp.status.value,
                "message": comp.message,
                "latency_ms": comp.latency_ms,
            }
            for name, comp in components.items()
        },
    }

    status_code = 200 if overall_status != HealthStatus.UNHEALTHY else 503
    return JSONResponse(content=response_data, status_code=status_code)


@router.get(
    "/health/ready",
    summary="Readiness check endpoint",
)
def readiness_check():
    """Report that the process is up and able to serve requests."""
    return {
        "ready": True,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
