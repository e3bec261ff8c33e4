from commander_league.db.database import get_session, init_db
from commander_league.db.operations import (
    create_deck,
    create_player,
    create_season,
    deregister_player,
    get_active_season,
    get_all_seasons,
    get_all_users,
    get_deck,
    get_deck_by_url,
    get_game,
    get_or_create_deck,
    get_player,
    get_player_season,
    get_players_leaderboard,
    get_recent_games,
    get_season,
    get_season_leaderboard,
    get_user,
    is_admin,
    record_game,
    register_player_for_season,
    set_admin,
)

__all__ = [
    "create_deck",
    "create_player",
    "create_season",
    "deregister_player",
    "get_active_season",
    "get_all_seasons",
    "get_all_users",
    "get_deck",
    "get_deck_by_url",
    "get_game",
    "get_or_create_deck",
    "get_player",
    "get_player_season",
    "get_players_leaderboard",
    "get_recent_games",
    "get_season",
    "get_season_leaderboard",
    "get_session",
    "get_user",
    "init_db",
    "is_admin",
    "record_game",
    "register_player_for_season",
    "set_admin",
]
