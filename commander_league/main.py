import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from commander_league.api import (
    admin_router,
    decks_router,
    games_router,
    health_router,
    players_router,
    seasons_router,
)
from commander_league.config import settings
from commander_league.db.database import init_db
from commander_league.models.failure import LeagueError
from commander_league.services.scryfall import ScryfallClient

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging() -> None:
    logging.basicConfig(level=settings.log_level.upper(), format=LOG_FORMAT)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    configure_logging()
    await init_db()
    app.state.catalog = ScryfallClient()
    try:
        yield
    finally:
        await app.state.catalog.aclose()


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("commander-league"),
    lifespan=lifespan,
)


@app.exception_handler(LeagueError)
async def league_error_handler(_request: Request, exc: LeagueError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s: %s (%s)", exc.kind.value, exc.message, exc.detail)
    else:
        logger.info("%s: %s", exc.kind.value, exc.message)

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(mode="json"),
    )


app.include_router(admin_router)
app.include_router(decks_router)
app.include_router(games_router)
app.include_router(health_router)
app.include_router(players_router)
app.include_router(seasons_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Tighten in production
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
