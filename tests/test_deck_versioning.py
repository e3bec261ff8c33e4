"""Tests for the deck version store."""

from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from commander_league.db import create_deck
from commander_league.models.db import DeckDB, DeckVersionDB, GameDB, GamePlayerDB, generate_id
from commander_league.models.failure import NotFoundError, PersistenceError
from commander_league.models.pricing import CardPrice, DeckPriceData
from commander_league.services.deck_versioning import DeckVersionStore


def price_data(total: str, text: str = "1 Sol Ring") -> DeckPriceData:
    return DeckPriceData(
        deck_name="Superfriends",
        total_price=Decimal(total),
        currency="EUR",
        card_count=1,
        decklist_text=text,
        cards=[
            CardPrice(
                name="Sol Ring",
                quantity=1,
                unit_price=Decimal(total),
                line_total=Decimal(total),
                set_code="cmm",
            )
        ],
    )


@pytest.fixture
async def deck(session: AsyncSession) -> DeckDB:
    deck = await create_deck(session, owner_id="user-1", name="Superfriends")
    await session.commit()
    return deck


@pytest.fixture
def store(session: AsyncSession) -> DeckVersionStore:
    return DeckVersionStore(session)


async def add_versions(store: DeckVersionStore, deck_id: str, count: int) -> list[DeckVersionDB]:
    return [
        await store.create_version(deck_id, price_data(f"{i}.00", f"{i} Sol Ring"), "user-1")
        for i in range(1, count + 1)
    ]


async def play_game_with(session: AsyncSession, version: DeckVersionDB) -> None:
    game = GameDB(id=generate_id(), played_at=datetime.now(UTC), winner_id="player-1")
    game.players.append(
        GamePlayerDB(
            seat=0,
            player_id="player-1",
            player_name="Alice",
            deck_id=version.deck_id,
            deck_name="Superfriends",
            deck_version_id=version.id,
        )
    )
    session.add(game)
    await session.commit()


class TestCreateVersion:
    async def test_first_version(self, store: DeckVersionStore, deck: DeckDB) -> None:
        version = await store.create_version(deck.id, price_data("10.00"), "user-1", "first")

        assert version.version_number == 1
        assert version.is_active is True
        assert version.total_price == Decimal("10.00")
        assert version.created_by == "user-1"
        assert version.notes == "first"
        assert version.card_prices()[0].name == "Sol Ring"

    async def test_second_version_retires_first(
        self, session: AsyncSession, store: DeckVersionStore, deck: DeckDB
    ) -> None:
        first = await store.create_version(deck.id, price_data("10.00"), "user-1")
        second = await store.create_version(deck.id, price_data("7.50", "2 Sol Ring"), "user-1")

        assert second.version_number == 2
        active = await store.get_active_version(deck.id)
        assert active is not None
        assert active.id == second.id

        active_count = await session.scalar(
            select(func.count())
            .select_from(DeckVersionDB)
            .where(DeckVersionDB.deck_id == deck.id, DeckVersionDB.is_active.is_(True))
        )
        assert active_count == 1

        await session.refresh(first)
        assert first.is_active is False

    async def test_deck_cache_follows_active_version(
        self, session: AsyncSession, store: DeckVersionStore, deck: DeckDB
    ) -> None:
        version = await store.create_version(deck.id, price_data("7.50", "2 Sol Ring"), "user-1")

        await session.refresh(deck)
        assert deck.current_version_id == version.id
        assert deck.current_price == Decimal("7.50")
        assert deck.decklist_text == "2 Sol Ring"
        assert deck.last_price_update is not None
        assert deck.version_counter == 1

    async def test_unknown_deck(self, store: DeckVersionStore) -> None:
        with pytest.raises(NotFoundError):
            await store.create_version("missing", price_data("1.00"), "user-1")

    async def test_write_failure_keeps_previous_active(
        self, session: AsyncSession, store: DeckVersionStore, deck: DeckDB
    ) -> None:
        first = await store.create_version(deck.id, price_data("10.00"), "user-1")

        with (
            patch.object(session, "commit", AsyncMock(side_effect=SQLAlchemyError("disk full"))),
            pytest.raises(PersistenceError),
        ):
            await store.create_version(deck.id, price_data("5.00", "2 Sol Ring"), "user-1")

        active = await store.get_active_version(deck.id)
        assert active is not None
        assert active.id == first.id

    async def test_duplicate_version_number_rejected(
        self, session: AsyncSession, store: DeckVersionStore, deck: DeckDB
    ) -> None:
        first = await store.create_version(deck.id, price_data("10.00"), "user-1")

        session.add(
            DeckVersionDB(
                deck_id=deck.id,
                version_number=first.version_number,
                is_active=False,
                deck_name="dup",
                total_price=Decimal("1.00"),
                currency="EUR",
                card_count=1,
                decklist_text="1 Sol Ring",
                cards=[],
                created_at=datetime.now(UTC),
                created_by="user-1",
            )
        )
        with pytest.raises(IntegrityError):
            await session.commit()
        await session.rollback()

    async def test_second_active_version_rejected(
        self, session: AsyncSession, store: DeckVersionStore, deck: DeckDB
    ) -> None:
        await store.create_version(deck.id, price_data("10.00"), "user-1")

        session.add(
            DeckVersionDB(
                deck_id=deck.id,
                version_number=99,
                is_active=True,
                deck_name="rogue",
                total_price=Decimal("1.00"),
                currency="EUR",
                card_count=1,
                decklist_text="1 Sol Ring",
                cards=[],
                created_at=datetime.now(UTC),
                created_by="user-1",
            )
        )
        with pytest.raises(IntegrityError):
            await session.commit()
        await session.rollback()


class TestQueries:
    async def test_versions_newest_first(self, store: DeckVersionStore, deck: DeckDB) -> None:
        await add_versions(store, deck.id, 3)

        versions = await store.get_versions(deck.id, include_inactive=True)

        assert [v.version_number for v in versions] == [3, 2, 1]

    async def test_default_lists_active_only(self, store: DeckVersionStore, deck: DeckDB) -> None:
        await add_versions(store, deck.id, 3)

        versions = await store.get_versions(deck.id)

        assert [v.version_number for v in versions] == [3]

    async def test_no_active_version_before_first(
        self, store: DeckVersionStore, deck: DeckDB
    ) -> None:
        assert await store.get_active_version(deck.id) is None

    async def test_game_counts(
        self, session: AsyncSession, store: DeckVersionStore, deck: DeckDB
    ) -> None:
        first, second = await add_versions(store, deck.id, 2)
        await play_game_with(session, first)
        await play_game_with(session, first)

        assert await store.count_games(first.id) == 2
        assert await store.count_games_by_version([first.id, second.id]) == {
            first.id: 2,
            second.id: 0,
        }


class TestCleanup:
    async def test_keeps_recent_versions(self, store: DeckVersionStore, deck: DeckDB) -> None:
        await add_versions(store, deck.id, 7)

        result = await store.cleanup_old_versions(deck.id, keep_recent_count=5)

        assert result.kept == 5
        assert result.deleted == 2
        remaining = await store.get_versions(deck.id, include_inactive=True)
        assert [v.version_number for v in remaining] == [7, 6, 5, 4, 3]

    async def test_keeps_versions_used_in_games(
        self, session: AsyncSession, store: DeckVersionStore, deck: DeckDB
    ) -> None:
        versions = await add_versions(store, deck.id, 7)
        await play_game_with(session, versions[0])

        result = await store.cleanup_old_versions(deck.id, keep_recent_count=5)

        assert result.kept == 6
        assert result.deleted == 1
        assert await store.get_version(versions[0].id) is not None

    async def test_nothing_to_do(self, store: DeckVersionStore, deck: DeckDB) -> None:
        await add_versions(store, deck.id, 3)

        result = await store.cleanup_old_versions(deck.id, keep_recent_count=5)

        assert result.kept == 3
        assert result.deleted == 0

    async def test_zero_keeps_active(self, store: DeckVersionStore, deck: DeckDB) -> None:
        versions = await add_versions(store, deck.id, 3)

        result = await store.cleanup_old_versions(deck.id, keep_recent_count=0)

        assert result.kept == 1
        assert result.deleted == 2
        active = await store.get_active_version(deck.id)
        assert active is not None
        assert active.id == versions[-1].id

    async def test_numbers_keep_increasing_after_prune(
        self, store: DeckVersionStore, deck: DeckDB
    ) -> None:
        await add_versions(store, deck.id, 7)
        await store.cleanup_old_versions(deck.id, keep_recent_count=5)

        version = await store.create_version(deck.id, price_data("1.00", "new"), "user-1")

        assert version.version_number == 8

    async def test_negative_count_rejected(self, store: DeckVersionStore, deck: DeckDB) -> None:
        with pytest.raises(ValueError):
            await store.cleanup_old_versions(deck.id, keep_recent_count=-1)
