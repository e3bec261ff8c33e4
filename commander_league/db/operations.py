"""
Database CRUD operations.

Thin async helpers over the league collections: decks, players, seasons,
season registrations, games and users. Version snapshots have their own
store in ``commander_league.services.deck_versioning``.

These helpers flush but do not commit; the request session commits.
"""

from datetime import UTC, datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from commander_league.config import MAX_REGISTERED_DECKS, MIN_REGISTERED_DECKS, settings
from commander_league.models.db import (
    DeckDB,
    DeckVersionDB,
    GameDB,
    GamePlayerDB,
    PlayerDB,
    PlayerSeasonDB,
    SeasonDB,
    UserDB,
)
from commander_league.models.failure import ConflictError, NotFoundError, ValidationError
from commander_league.models.league import GameRecord, LeaderboardSort

# --- Deck Operations ---


async def get_deck(session: AsyncSession, deck_id: str) -> DeckDB | None:
    """Get a deck by id."""
    return await session.get(DeckDB, deck_id)


async def get_deck_by_url(session: AsyncSession, decklist_url: str) -> DeckDB | None:
    """Get a deck by the external decklist URL it was registered from."""
    result = await session.execute(
        select(DeckDB).where(DeckDB.decklist_url == decklist_url).limit(1)
    )
    return result.scalar_one_or_none()


async def create_deck(
    session: AsyncSession,
    owner_id: str,
    name: str,
    commander: str | None = None,
    colors: list[str] | None = None,
    owner: str | None = None,
    decklist_url: str | None = None,
    season_id: str | None = None,
) -> DeckDB:
    """
    Create a deck shell.

    The shell has no versions; its price fields fill in when the first
    decklist is priced.
    """
    deck = DeckDB(
        name=name,
        commander=commander or "Unknown Commander",
        colors=colors or [],
        owner_id=owner_id,
        owner=owner,
        decklist_url=decklist_url,
        season_id=season_id,
        wins=0,
        games=0,
        version_counter=0,
        current_version_id=None,
        current_price=None,
        last_price_update=None,
        decklist_text=None,
    )
    session.add(deck)
    await session.flush()
    return deck


async def get_or_create_deck(
    session: AsyncSession,
    owner_id: str,
    name: str,
    decklist_url: str | None = None,
    **fields: str | list[str] | None,
) -> tuple[DeckDB, bool]:
    """
    Get the deck registered from ``decklist_url`` or create a new one.

    Without a URL a new deck is always created.

    Returns:
        Tuple of (deck, created) where created is True if new.
    """
    if decklist_url:
        existing = await get_deck_by_url(session, decklist_url)
        if existing:
            return existing, False

    deck = await create_deck(
        session, owner_id=owner_id, name=name, decklist_url=decklist_url, **fields
    )
    return deck, True


# --- Player Operations ---


async def get_player(session: AsyncSession, player_id: str) -> PlayerDB | None:
    """Get a player by id."""
    return await session.get(PlayerDB, player_id)


async def create_player(
    session: AsyncSession, display_name: str, user_id: str | None = None
) -> PlayerDB:
    """Create a player with zeroed stats."""
    player = PlayerDB(display_name=display_name, user_id=user_id, wins=0, games=0, points=0)
    session.add(player)
    await session.flush()
    return player


async def get_players_leaderboard(session: AsyncSession, limit: int = 50) -> list[PlayerDB]:
    """All-time standings, ordered by points then wins."""
    result = await session.execute(
        select(PlayerDB)
        .order_by(PlayerDB.points.desc(), PlayerDB.wins.desc(), PlayerDB.display_name)
        .limit(limit)
    )
    return list(result.scalars().all())


# --- Season Operations ---


async def get_season(session: AsyncSession, season_id: str) -> SeasonDB | None:
    """Get a season by id."""
    return await session.get(SeasonDB, season_id)


async def get_active_season(session: AsyncSession) -> SeasonDB | None:
    """The currently active season, if any."""
    result = await session.execute(select(SeasonDB).where(SeasonDB.is_active.is_(True)).limit(1))
    return result.scalar_one_or_none()


async def get_all_seasons(session: AsyncSession) -> list[SeasonDB]:
    """All seasons, newest start date first."""
    result = await session.execute(select(SeasonDB).order_by(SeasonDB.start_date.desc()))
    return list(result.scalars().all())


async def create_season(
    session: AsyncSession,
    name: str,
    start_date: datetime,
    end_date: datetime | None = None,
    description: str | None = None,
    activate: bool = False,
) -> SeasonDB:
    """
    Create a season.

    Activating it deactivates every other season.
    """
    if end_date is not None and end_date < start_date:
        raise ValidationError("Season end date must not be before its start date")

    if activate:
        await session.execute(
            update(SeasonDB).where(SeasonDB.is_active.is_(True)).values(is_active=False)
        )

    season = SeasonDB(
        name=name,
        start_date=start_date,
        end_date=end_date,
        description=description,
        is_active=activate,
    )
    session.add(season)
    await session.flush()
    return season


async def get_player_season(
    session: AsyncSession, player_id: str, season_id: str
) -> PlayerSeasonDB | None:
    """A player's registration for a season."""
    result = await session.execute(
        select(PlayerSeasonDB).where(
            PlayerSeasonDB.player_id == player_id,
            PlayerSeasonDB.season_id == season_id,
        )
    )
    return result.scalar_one_or_none()


async def register_player_for_season(
    session: AsyncSession,
    season_id: str,
    player_id: str,
    deck_ids: list[str],
    display_name: str | None = None,
) -> PlayerSeasonDB:
    """
    Register a player and 1-3 decks for the active season.

    Raises:
        ValidationError: Wrong deck count or season not active
        NotFoundError: Unknown season, player or deck
        ConflictError: Player already registered
    """
    if not MIN_REGISTERED_DECKS <= len(deck_ids) <= MAX_REGISTERED_DECKS:
        raise ValidationError(
            f"Must register between {MIN_REGISTERED_DECKS} and {MAX_REGISTERED_DECKS} decks"
        )

    season = await get_season(session, season_id)
    if season is None:
        raise NotFoundError("Season", season_id)
    if not season.is_active:
        raise ValidationError("Registration is only open for the active season")

    player = await get_player(session, player_id)
    if player is None:
        raise NotFoundError("Player", player_id)

    for deck_id in deck_ids:
        if await get_deck(session, deck_id) is None:
            raise NotFoundError("Deck", deck_id)

    if await get_player_season(session, player_id, season_id) is not None:
        raise ConflictError("Player already registered for this season")

    registration = PlayerSeasonDB(
        player_id=player_id,
        season_id=season_id,
        display_name=display_name or player.display_name,
        registered_deck_ids=list(deck_ids),
        points=0,
        wins=0,
        losses=0,
        games_played=0,
    )
    session.add(registration)
    await session.flush()
    return registration


async def deregister_player(session: AsyncSession, season_id: str, player_id: str) -> bool:
    """
    Remove a player's season registration.

    Returns True if deleted, False if not registered.
    """
    registration = await get_player_season(session, player_id, season_id)
    if registration is None:
        return False

    await session.delete(registration)
    await session.flush()
    return True


_LEADERBOARD_COLUMNS = {
    LeaderboardSort.POINTS: PlayerSeasonDB.points,
    LeaderboardSort.WINS: PlayerSeasonDB.wins,
    LeaderboardSort.GAMES_PLAYED: PlayerSeasonDB.games_played,
}


async def get_season_leaderboard(
    session: AsyncSession,
    season_id: str,
    sort_by: LeaderboardSort = LeaderboardSort.POINTS,
    limit: int | None = None,
) -> list[PlayerSeasonDB]:
    """Season registrations ordered by the chosen stat, descending."""
    query = (
        select(PlayerSeasonDB)
        .where(PlayerSeasonDB.season_id == season_id)
        .order_by(_LEADERBOARD_COLUMNS[sort_by].desc(), PlayerSeasonDB.display_name)
    )
    if limit:
        query = query.limit(limit)

    result = await session.execute(query)
    return list(result.scalars().all())


# --- Game Operations ---


async def record_game(session: AsyncSession, record: GameRecord) -> GameDB:
    """
    Store a finished game and update deck, player and season stats.

    Each participant is pinned to a deck version: the one given, or the deck's
    current version. The pin is what keeps that snapshot out of retention
    pruning.

    Raises:
        ValidationError: Fewer than two participants, winner not seated,
            version from another deck
        NotFoundError: Unknown player, deck or version
    """
    if len(record.participants) < 2:
        raise ValidationError("A game needs at least two players")

    player_ids = [participant.player_id for participant in record.participants]
    if len(set(player_ids)) != len(player_ids):
        raise ValidationError("A player can only take one seat per game")
    if record.winner_id not in player_ids:
        raise ValidationError("Winner must be one of the game's players")

    season_id = record.season_id
    if season_id is None:
        active = await get_active_season(session)
        season_id = active.id if active else None

    game = GameDB(
        played_at=record.played_at or datetime.now(UTC),
        season_id=season_id,
        winner_id=record.winner_id,
        turn_count=record.turn_count,
        notes=record.notes,
    )

    for seat, participant in enumerate(record.participants):
        player = await get_player(session, participant.player_id)
        if player is None:
            raise NotFoundError("Player", participant.player_id)

        deck = await get_deck(session, participant.deck_id)
        if deck is None:
            raise NotFoundError("Deck", participant.deck_id)

        version_id = participant.deck_version_id or deck.current_version_id
        if participant.deck_version_id:
            version = await session.get(DeckVersionDB, participant.deck_version_id)
            if version is None:
                raise NotFoundError("Deck version", participant.deck_version_id)
            if version.deck_id != deck.id:
                raise ValidationError("Deck version does not belong to the specified deck")

        game.players.append(
            GamePlayerDB(
                seat=seat,
                player_id=player.id,
                player_name=player.display_name,
                deck_id=deck.id,
                deck_name=deck.name,
                deck_version_id=version_id,
                placement=participant.placement,
            )
        )

        won = player.id == record.winner_id
        points = settings.points_per_game + (settings.points_per_win if won else 0)

        deck.games += 1
        player.games += 1
        player.points += points
        if won:
            deck.wins += 1
            player.wins += 1

        if season_id is not None:
            registration = await get_player_season(session, player.id, season_id)
            if registration is not None:
                registration.games_played += 1
                registration.points += points
                if won:
                    registration.wins += 1
                else:
                    registration.losses += 1

    session.add(game)
    await session.flush()
    return game


async def get_game(session: AsyncSession, game_id: str) -> GameDB | None:
    """Get a game with its participants."""
    result = await session.execute(
        select(GameDB).where(GameDB.id == game_id).options(selectinload(GameDB.players))
    )
    return result.scalar_one_or_none()


async def get_recent_games(
    session: AsyncSession, limit: int = 50, season_id: str | None = None
) -> list[GameDB]:
    """Games newest first, optionally restricted to one season."""
    query = select(GameDB).options(selectinload(GameDB.players))
    if season_id:
        query = query.where(GameDB.season_id == season_id)

    result = await session.execute(query.order_by(GameDB.played_at.desc()).limit(limit))
    return list(result.scalars().all())


# --- User Operations ---


async def get_user(session: AsyncSession, user_id: str) -> UserDB | None:
    """Get a user by identity-provider id."""
    return await session.get(UserDB, user_id)


async def get_all_users(session: AsyncSession) -> list[UserDB]:
    """All users, ordered by email."""
    result = await session.execute(select(UserDB).order_by(UserDB.email))
    return list(result.scalars().all())


async def is_admin(session: AsyncSession, user_id: str) -> bool:
    """True if the user exists and is flagged admin."""
    user = await get_user(session, user_id)
    return bool(user and user.is_admin)


async def set_admin(session: AsyncSession, user_id: str, admin: bool) -> UserDB:
    """
    Promote or demote a user.

    Raises:
        NotFoundError: Unknown user
    """
    user = await get_user(session, user_id)
    if user is None:
        raise NotFoundError("User", user_id)

    user.is_admin = admin
    await session.flush()
    return user
