"""Health check endpoints."""

from typing import Any, Dict

from fastapi import APIRouter

from ...infrastructure.dependencies import get_service_container

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check() -> Dict[str, Any]:
    """Check the health of all service components.

    Returns:
        Overall status plus embedding and store configuration
    """
    container = get_service_container()
    return {
        "status": "healthy" if container.is_started else "starting",
        "components": container.health(),
    }
