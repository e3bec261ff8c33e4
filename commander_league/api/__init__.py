from commander_league.api.admin import router as admin_router
from commander_league.api.decks import router as decks_router
from commander_league.api.games import router as games_router
from commander_league.api.health import router as health_router
from commander_league.api.players import router as players_router
from commander_league.api.seasons import router as seasons_router

__all__ = [
    "admin_router",
    "decks_router",
    "games_router",
    "health_router",
    "players_router",
    "seasons_router",
]
