"""Liveness endpoints - GET /health and GET /api/status."""

from typing import Annotated

from fastapi import APIRouter, Depends

from docgate.app.models.common import ApiModel
from docgate.app.services import GatewayServices, get_services

router = APIRouter()


class StatusResponse(ApiModel):
    """Response for GET /api/status."""

    success: bool = True
    status: str = "online"
    store_initialized: bool
    store_name: str | None = None


@router.get("/health")
async def health() -> dict[str, str]:
    """Simple health check for Docker/k8s.

    Returns:
        200 OK always (application is running)
    """
    return {"status": "ok"}


@router.get("/api/status", response_model=StatusResponse)
async def store_status(
    services: Annotated[GatewayServices, Depends(get_services)],
) -> StatusResponse:
    """Report whether the remote store has been acquired."""
    store = services.store_handle.current()
    return StatusResponse(
        store_initialized=store is not None,
        store_name=store.display_name if store else None,
    )
