"""Shared dependencies for API endpoints."""

import logging

from harvester.service import HarvesterService

logger = logging.getLogger(__name__)

_service: HarvesterService | None = None


async def init_deps() -> None:
    """Initialize shared dependencies (called on app startup)."""
    global _service
    _service = HarvesterService()
    logger.info("Harvester service ready")


async def close_deps() -> None:
    """Release the browser (called on app shutdown)."""
    global _service
    if _service:
        await _service.release_session()
    _service = None


def get_service() -> HarvesterService:
    """Get the shared HarvesterService."""
    assert _service is not None, "HarvesterService not initialized, call init_deps() first"
    return _service
