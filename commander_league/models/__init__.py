from commander_league.models.decklist import (
    CardSection,
    DecklistValidation,
    ParsedCard,
    ParsedDecklist,
)
from commander_league.models.failure import (
    CleanupError,
    ConflictError,
    FailureDetail,
    FailureKind,
    ForbiddenError,
    LeagueError,
    NotFoundError,
    PersistenceError,
    UpstreamRateLimitError,
    ValidationError,
)
from commander_league.models.league import GameParticipant, GameRecord, LeaderboardSort
from commander_league.models.pricing import (
    CardPrice,
    CatalogCard,
    CatalogPrices,
    DeckPriceData,
    PriceEntry,
)

__all__ = [
    "CardPrice",
    "CardSection",
    "CatalogCard",
    "CatalogPrices",
    "CleanupError",
    "ConflictError",
    "DeckPriceData",
    "DecklistValidation",
    "FailureDetail",
    "FailureKind",
    "ForbiddenError",
    "GameParticipant",
    "GameRecord",
    "LeaderboardSort",
    "LeagueError",
    "NotFoundError",
    "ParsedCard",
    "ParsedDecklist",
    "PersistenceError",
    "PriceEntry",
    "UpstreamRateLimitError",
    "ValidationError",
]
