"""Player API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from commander_league.api.schemas import CamelModel
from commander_league.db import create_player, get_player, get_players_leaderboard
from commander_league.db.database import get_session
from commander_league.models.db import PlayerDB
from commander_league.models.failure import NotFoundError

router = APIRouter(prefix="/api/players", tags=["players"])


class CreatePlayerRequest(CamelModel):
    display_name: str = Field(..., min_length=1, max_length=255)
    user_id: str | None = None


class PlayerResponse(CamelModel):
    """A player and their all-time stats."""

    id: str
    display_name: str
    user_id: str | None = None
    wins: int = 0
    games: int = 0
    points: int = 0


class PlayerListResponse(CamelModel):
    players: list[PlayerResponse]
    count: int


def player_to_response(player: PlayerDB) -> PlayerResponse:
    return PlayerResponse(
        id=player.id,
        display_name=player.display_name,
        user_id=player.user_id,
        wins=player.wins,
        games=player.games,
        points=player.points,
    )


@router.post("", response_model=PlayerResponse, status_code=status.HTTP_201_CREATED)
async def add_player(
    request: CreatePlayerRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> PlayerResponse:
    """Create a player with zeroed stats."""
    player = await create_player(session, request.display_name, user_id=request.user_id)
    return player_to_response(player)


@router.get("", response_model=PlayerListResponse)
async def list_players(
    session: Annotated[AsyncSession, Depends(get_session)],
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
) -> PlayerListResponse:
    """All-time standings ordered by points, then wins."""
    players = await get_players_leaderboard(session, limit=limit)
    return PlayerListResponse(
        players=[player_to_response(player) for player in players],
        count=len(players),
    )


@router.get("/{player_id}", response_model=PlayerResponse)
async def get_player_by_id(
    player_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> PlayerResponse:
    """Get a player. Returns 404 if not found."""
    player = await get_player(session, player_id)
    if player is None:
        raise NotFoundError("Player", player_id)

    return player_to_response(player)
