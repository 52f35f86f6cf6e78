"""Scraper endpoints: login, feed scrape, browser release, stored posts."""

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, SecretStr

from harvester.api.deps import get_service
from harvester.models.content import ScrapeRequest, ScrapeResult, StoredPost
from harvester.models.session import LoginCredentials, SessionOutcome
from harvester.service import HarvesterService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/scraper", tags=["scraper"])


class LoginRequest(BaseModel):
    """Request body for login. Omitted fields fall back to configuration."""

    email: str | None = None
    password: SecretStr | None = None


# ──────────────────────────────────────────────
# Session
# ──────────────────────────────────────────────

@router.post("/login", response_model=SessionOutcome)
async def login(
    body: LoginRequest | None = None,
    service: HarvesterService = Depends(get_service),
) -> SessionOutcome:
    """Restore the saved session or log in with the given credentials."""
    logger.info("Login request received")
    credentials = None
    if body and body.email and body.password:
        credentials = LoginCredentials(email=body.email, password=body.password)
    return await service.establish_session(credentials)


@router.post("/close")
async def close(service: HarvesterService = Depends(get_service)) -> dict:
    """Close the browser."""
    await service.release_session()
    return {"success": True, "message": "Browser closed successfully"}


# ──────────────────────────────────────────────
# Scraping
# ──────────────────────────────────────────────

@router.post("/group-posts", response_model=ScrapeResult)
async def group_posts(
    body: ScrapeRequest,
    service: HarvesterService = Depends(get_service),
) -> ScrapeResult:
    """Scrape a group feed and store new posts."""
    return await service.scrape_feed(body)


# ──────────────────────────────────────────────
# Stored posts
# ──────────────────────────────────────────────

@router.get("/posts", response_model=list[StoredPost])
async def list_posts(service: HarvesterService = Depends(get_service)) -> list[StoredPost]:
    """All stored posts with comments, newest first."""
    return await service.list_posts()


@router.get("/posts/count")
async def count_posts(service: HarvesterService = Depends(get_service)) -> dict:
    return {"count": await service.count_posts()}


@router.delete("/posts")
async def clear_posts(service: HarvesterService = Depends(get_service)) -> dict:
    deleted = await service.clear_posts()
    return {"success": True, "deleted": deleted}
