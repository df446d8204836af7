"""
Health check endpoint.

Reports the active storage profile and backend status.
"""
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, status

from api.dependencies import AppSettings, Storage

router = APIRouter()


@router.get(
    "/health",
    response_model=Dict[str, Any],
    status_code=status.HTTP_200_OK,
    summary="Health check",
    description="Service and storage backend status for load balancers and monitoring systems.",
    responses={
        200: {
            "description": "Health check completed",
            "content": {
                "application/json": {
                    "example": {
                        "status": "healthy",
                        "timestamp": "2025-01-15T10:30:00+00:00",
                        "version": "1.0.0",
                        "profile": "local",
                        "storage": {"name": "local", "type": "filesystem", "available": True},
                    }
                }
            }
        }
    },
)
async def health_check(
    settings: AppSettings,
    storage: Storage,
) -> Dict[str, Any]:
    """
    Health check.

    The service is reported degraded when the storage backend is not
    reachable; the endpoint itself still answers 200.
    """
    storage_status = await storage.get_status()
    return {
        "status": "healthy" if storage_status.get("available") else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.VERSION,
        "profile": settings.storage_profile,
        "storage": storage_status,
    }
