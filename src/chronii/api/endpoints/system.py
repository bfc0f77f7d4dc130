"""System endpoints for health checks and status."""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends  # type: ignore[import-untyped]

from chronii import __version__
from chronii.api.dependencies import get_storage
from chronii.api.models import EntryResponse, HealthResponse, StatusResponse
from chronii.core.errors import StorageError
from chronii.core.models import now_ms
from chronii.core.storage import StorageManager

logger = logging.getLogger(__name__)

router = APIRouter()

# Track server start time for uptime calculation
_server_start_time = time.time()


@router.get("/health", response_model=HealthResponse)
async def health_check(storage: StorageManager = Depends(get_storage)) -> HealthResponse:
    """Health check endpoint.

    Reports "degraded" when the data files cannot be read.

    Example:
        >>> GET /api/v1/health
        {
            "status": "healthy",
            "timestamp": "2026-10-19T10:30:00Z",
            "version": "0.4.0",
            "storage": "ok"
        }
    """
    storage_status = "ok"
    try:
        storage.get_active_entry()
    except StorageError as e:
        logger.warning(f"Health check: storage unavailable: {e}")
        storage_status = str(e)

    return HealthResponse(
        status="healthy" if storage_status == "ok" else "degraded",
        timestamp=datetime.now(timezone.utc),
        version=__version__,
        storage=storage_status,
    )


@router.get("/status", response_model=StatusResponse)
async def get_status(storage: StorageManager = Depends(get_storage)) -> StatusResponse:
    """Running entry, number of known projects and server uptime."""
    active = storage.get_active_entry()
    now = now_ms()
    return StatusResponse(
        active_entry=EntryResponse.from_entry(active, now) if active else None,
        project_count=len(storage.list_projects()),
        uptime_seconds=time.time() - _server_start_time,
    )
