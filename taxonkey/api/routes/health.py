"""
Health check endpoints.

Provides system health information for monitoring.
"""

from fastapi import APIRouter, HTTPException, Request
import structlog

from taxonkey.core.config import settings

log = structlog.get_logger(__name__)

router = APIRouter()


def _matrix_health(request: Request) -> dict:
    matrix = getattr(request.app.state, "matrix", None)
    if matrix is None:
        return {"status": "unhealthy", "error": "no matrix loaded"}
    return {
        "status": "healthy",
        "name": matrix.name,
        "taxa": len(matrix.taxa),
        "traits": len(matrix.traits),
    }


@router.get("/health")
async def health_check(request: Request):
    """
    Health check endpoint.

    Returns:
        System health status including the loaded matrix.
    """
    matrix_health = _matrix_health(request)

    overall_status = "healthy" if matrix_health["status"] == "healthy" else "unhealthy"

    return {
        "status": overall_status,
        "version": "0.1.0",
        "debug": settings.debug,
        "components": {"matrix": matrix_health},
    }


@router.get("/health/live")
async def liveness():
    """
    Kubernetes-style liveness probe.

    Returns 200 if the application is running.
    """
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness(request: Request):
    """
    Kubernetes-style readiness probe.

    Returns 200 once a trait matrix is available.
    """
    if _matrix_health(request)["status"] != "healthy":
        log.warning("readiness_check_failed", reason="no matrix loaded")
        raise HTTPException(status_code=503, detail="Matrix not loaded")

    return {"status": "ready"}
