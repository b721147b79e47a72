"""
Domino Ranking - FastAPI Application

Provides a REST API for domino competitions: lifecycle, members and
final player/pair standings.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import config
from .api.dependencies import get_competition_service
from .api.routes import router
from .services.competition_service import CompetitionService

logging.basicConfig(
    level=config.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Startup: open the database so configuration errors surface early
    service = get_competition_service()
    if await service.health_check():
        logger.info("Database is reachable")
    else:
        logger.warning("Database health check failed")

    logger.info("App is ready.")

    yield

    logger.info("Shutting down...")
    service.db.close()


# Initialize FastAPI app with lifespan
app = FastAPI(
    title="Domino Ranking",
    description="Competitions, players and rankings for domino communities",
    version=VERSION,
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.get("/health")
async def health(service: CompetitionService = Depends(get_competition_service)):
    """Health check endpoint."""
    database_ok = await service.health_check()
    return {
        "status": "healthy" if database_ok else "degraded",
        "version": VERSION,
        "database": database_ok,
        "results_cache": service.cache.stats() if service.cache is not None else None,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("domino_ranking.main:app", host=config.HOST, port=config.PORT)
