"""FastAPI application."""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI

from harvester import __version__
from harvester.api.deps import close_deps, init_deps
from harvester.api.routers import health, scraper

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_deps()
    yield
    await close_deps()


app = FastAPI(
    title="Feed Harvester API",
    description="Authenticated group feed scraping with deduplicated storage",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(health.router)
app.include_router(scraper.router)
