from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class LeaderboardSort(str, Enum):
    """Fields a season leaderboard can be ordered by (always descending)."""

    POINTS = "points"
    WINS = "wins"
    GAMES_PLAYED = "gamesPlayed"


@dataclass(frozen=True, slots=True)
class GameParticipant:
    """
    One seat in a game being recorded.

    Attributes:
        player_id: Player in the seat
        deck_id: Deck they played
        placement: Finishing position (1 = winner), if tracked
        deck_version_id: Priced snapshot in play; defaults to the deck's
            current version when omitted
    """

    player_id: str
    deck_id: str
    placement: int | None = None
    deck_version_id: str | None = None


@dataclass(frozen=True, slots=True)
class GameRecord:
    """A finished game to be stored."""

    winner_id: str
    participants: list[GameParticipant]
    played_at: datetime | None = None
    season_id: str | None = None
    turn_count: int | None = None
    notes: str | None = None
