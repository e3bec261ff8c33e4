"""Tests for SQLAlchemy ORM models."""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from commander_league.models.db import DeckDB, DeckVersionDB
from commander_league.models.pricing import CardPrice


class TestDeckVersionDB:
    async def test_cards_round_trip_exact_decimals(self, session: AsyncSession) -> None:
        """Card lines are stored as JSON without losing cents."""
        deck = DeckDB(id="deck-1", name="Superfriends", owner_id="user-1")
        line = CardPrice(
            name="Sol Ring",
            quantity=3,
            unit_price=Decimal("0.33"),
            line_total=Decimal("0.99"),
            set_code="cmm",
            is_foil=True,
        )
        session.add(deck)
        session.add(
            DeckVersionDB(
                id="version-1",
                deck_id="deck-1",
                version_number=1,
                is_active=True,
                deck_name="Superfriends",
                total_price=Decimal("0.99"),
                currency="EUR",
                card_count=3,
                decklist_text="3 Sol Ring *F*",
                cards=[line.to_document()],
                created_at=datetime.now(UTC),
                created_by="user-1",
            )
        )
        await session.commit()

        result = await session.execute(select(DeckVersionDB).where(DeckVersionDB.id == "version-1"))
        saved = result.scalar_one()

        assert saved.card_prices() == [line]
        assert saved.cards[0]["unit_price"] == "0.33"

    async def test_deck_defaults(self, session: AsyncSession) -> None:
        """A bare deck starts with zeroed stats and no version."""
        session.add(DeckDB(id="deck-2", name="Shell", owner_id="user-1"))
        await session.commit()

        result = await session.execute(select(DeckDB).where(DeckDB.id == "deck-2"))
        deck = result.scalar_one()

        assert deck.commander == "Unknown Commander"
        assert deck.wins == 0
        assert deck.version_counter == 0
        assert deck.current_version_id is None
