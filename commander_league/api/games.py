"""
Game API endpoints.

Recording finished games pins each participant to the deck version they
played, which is what protects that version from retention pruning.
"""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from commander_league.api.schemas import CamelModel
from commander_league.db import get_game, get_recent_games, record_game
from commander_league.db.database import get_session
from commander_league.models.db import GameDB
from commander_league.models.failure import NotFoundError
from commander_league.models.league import GameParticipant, GameRecord

router = APIRouter(prefix="/api/games", tags=["games"])


class GamePlayerRequest(CamelModel):
    player_id: str
    deck_id: str
    deck_version_id: str | None = None
    placement: int | None = Field(default=None, ge=1)


class RecordGameRequest(CamelModel):
    """A finished game."""

    winner_id: str
    players: list[GamePlayerRequest]
    played_at: datetime | None = None
    season_id: str | None = None
    turn_count: int | None = Field(default=None, ge=0)
    notes: str | None = None


class GamePlayerResponse(CamelModel):
    seat: int
    player_id: str
    player_name: str
    deck_id: str
    deck_name: str
    deck_version_id: str | None = None
    placement: int | None = None


class GameResponse(CamelModel):
    """A recorded game."""

    id: str
    played_at: datetime
    season_id: str | None = None
    winner_id: str
    turn_count: int | None = None
    notes: str | None = None
    players: list[GamePlayerResponse]


class GameListResponse(CamelModel):
    games: list[GameResponse]
    count: int


def game_to_response(game: GameDB) -> GameResponse:
    return GameResponse(
        id=game.id,
        played_at=game.played_at,
        season_id=game.season_id,
        winner_id=game.winner_id,
        turn_count=game.turn_count,
        notes=game.notes,
        players=[
            GamePlayerResponse(
                seat=player.seat,
                player_id=player.player_id,
                player_name=player.player_name,
                deck_id=player.deck_id,
                deck_name=player.deck_name,
                deck_version_id=player.deck_version_id,
                placement=player.placement,
            )
            for player in game.players
        ],
    )


@router.post("", response_model=GameResponse, status_code=status.HTTP_201_CREATED)
async def create_game(
    request: RecordGameRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> GameResponse:
    """
    Record a finished game.

    Participants without an explicit deckVersionId are pinned to their
    deck's current version. Deck, player and season stats are updated in the
    same transaction.
    """
    record = GameRecord(
        winner_id=request.winner_id,
        participants=[
            GameParticipant(
                player_id=player.player_id,
                deck_id=player.deck_id,
                placement=player.placement,
                deck_version_id=player.deck_version_id,
            )
            for player in request.players
        ],
        played_at=request.played_at,
        season_id=request.season_id,
        turn_count=request.turn_count,
        notes=request.notes,
    )

    game = await record_game(session, record)
    return game_to_response(game)


@router.get("", response_model=GameListResponse)
async def list_games(
    session: Annotated[AsyncSession, Depends(get_session)],
    season_id: Annotated[str | None, Query(alias="seasonId")] = None,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
) -> GameListResponse:
    """Recent games, newest first."""
    games = await get_recent_games(session, limit=limit, season_id=season_id)
    return GameListResponse(games=[game_to_response(game) for game in games], count=len(games))


@router.get("/{game_id}", response_model=GameResponse)
async def get_game_by_id(
    game_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> GameResponse:
    """Get a game. Returns 404 if not found."""
    game = await get_game(session, game_id)
    if game is None:
        raise NotFoundError("Game", game_id)

    return game_to_response(game)
