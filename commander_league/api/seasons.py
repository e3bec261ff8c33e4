"""
Season API endpoints.

Seasons, player registrations and per-season leaderboards. Only one season is
active at a time and registration is only open for it.
"""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from commander_league.api.dependencies import require_admin
from commander_league.api.schemas import CamelModel
from commander_league.config import MAX_REGISTERED_DECKS, MIN_REGISTERED_DECKS
from commander_league.db import (
    create_season,
    deregister_player,
    get_active_season,
    get_all_seasons,
    get_season,
    get_season_leaderboard,
    register_player_for_season,
)
from commander_league.db.database import get_session
from commander_league.models.db import PlayerSeasonDB, SeasonDB
from commander_league.models.failure import NotFoundError
from commander_league.models.league import LeaderboardSort

router = APIRouter(prefix="/api/seasons", tags=["seasons"])


class SeasonResponse(CamelModel):
    id: str
    name: str
    start_date: datetime
    end_date: datetime | None = None
    is_active: bool
    description: str | None = None


class SeasonListResponse(CamelModel):
    seasons: list[SeasonResponse]
    count: int


class CreateSeasonRequest(CamelModel):
    """New season. ``isActive`` makes it the active season."""

    name: str = Field(..., min_length=1, max_length=255)
    start_date: datetime
    end_date: datetime | None = None
    description: str | None = None
    is_active: bool = False


class RegistrationRequest(CamelModel):
    player_id: str
    deck_ids: list[str] = Field(
        ..., min_length=MIN_REGISTERED_DECKS, max_length=MAX_REGISTERED_DECKS
    )
    display_name: str | None = None


class RegistrationResponse(CamelModel):
    """A player's registration and standing in a season."""

    player_id: str
    season_id: str
    display_name: str
    registered_deck_ids: list[str]
    points: int = 0
    wins: int = 0
    losses: int = 0
    games_played: int = 0


class LeaderboardResponse(CamelModel):
    season_id: str
    sort_by: LeaderboardSort
    entries: list[RegistrationResponse]
    count: int


def season_to_response(season: SeasonDB) -> SeasonResponse:
    return SeasonResponse(
        id=season.id,
        name=season.name,
        start_date=season.start_date,
        end_date=season.end_date,
        is_active=season.is_active,
        description=season.description,
    )


def registration_to_response(registration: PlayerSeasonDB) -> RegistrationResponse:
    return RegistrationResponse(
        player_id=registration.player_id,
        season_id=registration.season_id,
        display_name=registration.display_name,
        registered_deck_ids=list(registration.registered_deck_ids or []),
        points=registration.points,
        wins=registration.wins,
        losses=registration.losses,
        games_played=registration.games_played,
    )


@router.get("", response_model=SeasonListResponse)
async def list_seasons(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> SeasonListResponse:
    """All seasons, newest first."""
    seasons = await get_all_seasons(session)
    return SeasonListResponse(
        seasons=[season_to_response(season) for season in seasons],
        count=len(seasons),
    )


@router.get("/active", response_model=SeasonResponse)
async def active_season(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> SeasonResponse:
    """The active season. Returns 404 when no season is running."""
    season = await get_active_season(session)
    if season is None:
        raise NotFoundError("Active season", "active")

    return season_to_response(season)


@router.post("", response_model=SeasonResponse, status_code=status.HTTP_201_CREATED)
async def add_season(
    request: CreateSeasonRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
    _admin_id: Annotated[str, Depends(require_admin)],
) -> SeasonResponse:
    """Create a season. Admin only."""
    season = await create_season(
        session,
        name=request.name,
        start_date=request.start_date,
        end_date=request.end_date,
        description=request.description,
        activate=request.is_active,
    )
    return season_to_response(season)


@router.get("/{season_id}", response_model=SeasonResponse)
async def get_season_by_id(
    season_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> SeasonResponse:
    season = await get_season(session, season_id)
    if season is None:
        raise NotFoundError("Season", season_id)

    return season_to_response(season)


@router.post(
    "/{season_id}/registrations",
    response_model=RegistrationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register_player(
    season_id: str,
    request: RegistrationRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> RegistrationResponse:
    """
    Register a player with 1-3 decks for the active season.

    Returns 409 if the player is already registered.
    """
    registration = await register_player_for_season(
        session,
        season_id=season_id,
        player_id=request.player_id,
        deck_ids=request.deck_ids,
        display_name=request.display_name,
    )
    return registration_to_response(registration)


@router.delete(
    "/{season_id}/registrations/{player_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def unregister_player(
    season_id: str,
    player_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> Response:
    """Withdraw a player from a season. Returns 404 if not registered."""
    removed = await deregister_player(session, season_id, player_id)
    if not removed:
        raise NotFoundError("Registration", f"{season_id}/{player_id}")

    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{season_id}/leaderboard", response_model=LeaderboardResponse)
async def season_leaderboard(
    season_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
    sort_by: Annotated[LeaderboardSort, Query(alias="sortBy")] = LeaderboardSort.POINTS,
    limit: Annotated[int | None, Query(ge=1, le=200)] = None,
) -> LeaderboardResponse:
    """Season standings, sorted descending by points, wins or games played."""
    if await get_season(session, season_id) is None:
        raise NotFoundError("Season", season_id)

    entries = await get_season_leaderboard(session, season_id, sort_by=sort_by, limit=limit)
    return LeaderboardResponse(
        season_id=season_id,
        sort_by=sort_by,
        entries=[registration_to_response(entry) for entry in entries],
        count=len(entries),
    )
