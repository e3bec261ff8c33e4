"""
SQLAlchemy ORM models for persistent storage.

Table names match the league's document collections (decks, deckVersions,
games, players, playerSeasons, seasons, users). Game participants live in
their own table so a deck version reference is an indexed column rather than
a field buried in an embedded array.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from commander_league.models.pricing import CardPrice

PRICE = Numeric(10, 2)


def generate_id() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class UserDB(Base):
    """Mirror of an identity-provider account."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    email: Mapped[str | None] = mapped_column(String(255), index=True, nullable=True)
    display_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<UserDB(id={self.id}, admin={self.is_admin})>"


class PlayerDB(Base):
    """A league player with all-time stats."""

    __tablename__ = "players"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    user_id: Mapped[str | None] = mapped_column(String(128), index=True, nullable=True)
    display_name: Mapped[str] = mapped_column(String(255))
    wins: Mapped[int] = mapped_column(Integer, default=0)
    games: Mapped[int] = mapped_column(Integer, default=0)
    points: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<PlayerDB(id={self.id}, name={self.display_name})>"


class SeasonDB(Base):
    """A league season. At most one is active at a time."""

    __tablename__ = "seasons"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    name: Mapped[str] = mapped_column(String(255))
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self) -> str:
        return f"<SeasonDB(name={self.name}, active={self.is_active})>"


class PlayerSeasonDB(Base):
    """A player's registration and stats for one season."""

    __tablename__ = "playerSeasons"
    __table_args__ = (UniqueConstraint("player_id", "season_id", name="uq_player_season"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    player_id: Mapped[str] = mapped_column(String(36), ForeignKey("players.id"), index=True)
    season_id: Mapped[str] = mapped_column(String(36), ForeignKey("seasons.id"), index=True)
    display_name: Mapped[str] = mapped_column(String(255))
    registered_deck_ids: Mapped[list[str]] = mapped_column(JSON, default=list)
    points: Mapped[int] = mapped_column(Integer, default=0)
    wins: Mapped[int] = mapped_column(Integer, default=0)
    losses: Mapped[int] = mapped_column(Integer, default=0)
    games_played: Mapped[int] = mapped_column(Integer, default=0)
    registered_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<PlayerSeasonDB(player={self.player_id}, season={self.season_id})>"


class DeckDB(Base):
    """
    A registered deck.

    current_version_id, current_price, last_price_update and decklist_text
    are a projection of the active DeckVersionDB, re-derived every time a
    version is created. DeckVersionDB stays the record of truth for prices.
    """

    __tablename__ = "decks"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    name: Mapped[str] = mapped_column(String(255))
    commander: Mapped[str] = mapped_column(String(255), default="Unknown Commander")
    colors: Mapped[list[str]] = mapped_column(JSON, default=list)
    owner_id: Mapped[str] = mapped_column(String(128), index=True)
    owner: Mapped[str | None] = mapped_column(String(255), nullable=True)
    decklist_url: Mapped[str | None] = mapped_column(String(512), index=True, nullable=True)
    season_id: Mapped[str | None] = mapped_column(String(36), index=True, nullable=True)
    wins: Mapped[int] = mapped_column(Integer, default=0)
    games: Mapped[int] = mapped_column(Integer, default=0)

    # Last version number handed out; advanced in the same transaction as the insert
    version_counter: Mapped[int] = mapped_column(Integer, default=0)

    # Projection of the active version
    current_version_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    current_price: Mapped[Decimal | None] = mapped_column(PRICE, nullable=True)
    last_price_update: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    decklist_text: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<DeckDB(id={self.id}, name={self.name})>"


class DeckVersionDB(Base):
    """
    Immutable, numbered price snapshot of a deck.

    Only is_active ever changes after insert.
    """

    __tablename__ = "deckVersions"
    __table_args__ = (
        UniqueConstraint("deck_id", "version_number", name="uq_deck_version_number"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    deck_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("decks.id", ondelete="CASCADE"), index=True
    )
    version_number: Mapped[int] = mapped_column(Integer)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)

    # Snapshot payload
    deck_name: Mapped[str] = mapped_column(String(255))
    total_price: Mapped[Decimal] = mapped_column(PRICE)
    currency: Mapped[str] = mapped_column(String(3), default="EUR")
    card_count: Mapped[int] = mapped_column(Integer)
    decklist_text: Mapped[str] = mapped_column(Text)
    cards: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)

    # Audit
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    created_by: Mapped[str] = mapped_column(String(128))
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    def card_prices(self) -> list[CardPrice]:
        """Snapshot lines as domain objects."""
        return [CardPrice.from_document(card) for card in self.cards]

    def __repr__(self) -> str:
        return (
            f"<DeckVersionDB(deck={self.deck_id}, v={self.version_number}, "
            f"active={self.is_active})>"
        )


# At most one active version per deck
Index(
    "uq_deck_active_version",
    DeckVersionDB.deck_id,
    unique=True,
    sqlite_where=DeckVersionDB.is_active.is_(True),
    postgresql_where=DeckVersionDB.is_active.is_(True),
)


class GameDB(Base):
    """A completed match. Immutable once recorded."""

    __tablename__ = "games"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    played_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    season_id: Mapped[str | None] = mapped_column(String(36), index=True, nullable=True)
    winner_id: Mapped[str] = mapped_column(String(36))
    turn_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    players: Mapped[list["GamePlayerDB"]] = relationship(
        back_populates="game", cascade="all, delete-orphan", order_by="GamePlayerDB.seat"
    )

    def __repr__(self) -> str:
        return f"<GameDB(id={self.id}, winner={self.winner_id})>"


class GamePlayerDB(Base):
    """
    One participant of a game.

    deck_version_id is a weak reference: it pins the priced snapshot that was
    in play, blocks that snapshot from retention pruning, and never cascades.
    """

    __tablename__ = "gamePlayers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    game_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("games.id", ondelete="CASCADE"), index=True
    )
    seat: Mapped[int] = mapped_column(Integer, default=0)
    player_id: Mapped[str] = mapped_column(String(36), index=True)
    player_name: Mapped[str] = mapped_column(String(255))
    deck_id: Mapped[str] = mapped_column(String(36), index=True)
    deck_name: Mapped[str] = mapped_column(String(255))
    deck_version_id: Mapped[str | None] = mapped_column(String(36), index=True, nullable=True)
    placement: Mapped[int | None] = mapped_column(Integer, nullable=True)

    game: Mapped["GameDB"] = relationship(back_populates="players")

    def __repr__(self) -> str:
        return f"<GamePlayerDB(game={self.game_id}, player={self.player_id})>"
