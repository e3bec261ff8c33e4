"""
Deck version store.

Persists priced snapshots as immutable, sequentially numbered versions and
keeps exactly one of them active per deck. Creating a version, retiring its
siblings and refreshing the deck's cached summary happen in one transaction,
so readers never see two active versions or a deck cache that disagrees with
the active version.

Retention pruning removes old inactive versions but never one that a
recorded game points at.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from commander_league.config import settings
from commander_league.models.db import DeckDB, DeckVersionDB, GamePlayerDB, generate_id
from commander_league.models.failure import CleanupError, NotFoundError, PersistenceError
from commander_league.models.pricing import DeckPriceData

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class VersionCleanupResult:
    """Outcome of a retention pass."""

    kept: int
    deleted: int


class DeckVersionStore:
    """
    Version operations over one database session.

    The store owns its transaction boundaries: create_version and
    cleanup_old_versions each commit (or roll back) before returning, so a
    failed cleanup can never undo the version that triggered it.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_version(
        self,
        deck_id: str,
        price_data: DeckPriceData,
        user_id: str,
        notes: str | None = None,
    ) -> DeckVersionDB:
        """
        Store a new active version of a deck.

        The version number comes from the deck's own counter, read under a row
        lock and advanced in the same transaction as the insert.

        Raises:
            NotFoundError: The deck does not exist
            PersistenceError: The write failed (not retried)
        """
        now = datetime.now(UTC)

        try:
            result = await self.session.execute(
                select(DeckDB)
                .where(DeckDB.id == deck_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            deck = result.scalar_one_or_none()
            if deck is None:
                raise NotFoundError("Deck", deck_id)

            latest = await self.session.scalar(
                select(func.max(DeckVersionDB.version_number)).where(
                    DeckVersionDB.deck_id == deck_id
                )
            )
            version_number = max(deck.version_counter, latest or 0) + 1

            # Retire the previous active version before inserting the new one
            await self.session.execute(
                update(DeckVersionDB)
                .where(DeckVersionDB.deck_id == deck_id, DeckVersionDB.is_active.is_(True))
                .values(is_active=False)
            )

            version = DeckVersionDB(
                id=generate_id(),
                deck_id=deck_id,
                version_number=version_number,
                is_active=True,
                deck_name=price_data.deck_name,
                total_price=price_data.total_price,
                currency=price_data.currency,
                card_count=price_data.card_count,
                decklist_text=price_data.decklist_text,
                cards=[card.to_document() for card in price_data.cards],
                created_at=now,
                created_by=user_id,
                notes=notes,
            )
            self.session.add(version)

            # Re-derive the deck's cached summary from the new version
            deck.version_counter = version_number
            deck.current_version_id = version.id
            deck.current_price = version.total_price
            deck.last_price_update = now
            deck.decklist_text = version.decklist_text

            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Error creating version for deck %s: %s", deck_id, e)
            raise PersistenceError(f"Failed to create deck version: {e}", detail=deck_id) from e

        logger.info("Created version %d for deck %s", version_number, deck_id)
        return version

    async def get_active_version(self, deck_id: str) -> DeckVersionDB | None:
        """The deck's single active version, or None before the first one exists."""
        result = await self.session.execute(
            select(DeckVersionDB).where(
                DeckVersionDB.deck_id == deck_id,
                DeckVersionDB.is_active.is_(True),
            )
        )
        return result.scalar_one_or_none()

    async def get_versions(
        self, deck_id: str, include_inactive: bool = False
    ) -> list[DeckVersionDB]:
        """Versions of a deck, newest first."""
        query = select(DeckVersionDB).where(DeckVersionDB.deck_id == deck_id)
        if not include_inactive:
            query = query.where(DeckVersionDB.is_active.is_(True))

        result = await self.session.execute(query.order_by(DeckVersionDB.version_number.desc()))
        return list(result.scalars().all())

    async def get_version(self, version_id: str) -> DeckVersionDB | None:
        return await self.session.get(DeckVersionDB, version_id)

    async def count_games(self, version_id: str) -> int:
        """Number of games in which this version was played."""
        count = await self.session.scalar(
            select(func.count(func.distinct(GamePlayerDB.game_id))).where(
                GamePlayerDB.deck_version_id == version_id
            )
        )
        return int(count or 0)

    async def count_games_by_version(self, version_ids: list[str]) -> dict[str, int]:
        """Game counts for several versions in one query. Missing ids count zero."""
        if not version_ids:
            return {}

        result = await self.session.execute(
            select(GamePlayerDB.deck_version_id, func.count(func.distinct(GamePlayerDB.game_id)))
            .where(GamePlayerDB.deck_version_id.in_(version_ids))
            .group_by(GamePlayerDB.deck_version_id)
        )
        counts = {version_id: int(count) for version_id, count in result.all()}
        return {version_id: counts.get(version_id, 0) for version_id in version_ids}

    async def cleanup_old_versions(
        self, deck_id: str, keep_recent_count: int | None = None
    ) -> VersionCleanupResult:
        """
        Delete old versions nobody needs.

        Keeps the newest ``keep_recent_count`` versions, the active version and
        every version referenced by a game. Everything else is deleted in one
        transaction.

        Raises:
            CleanupError: The pass failed and was rolled back
        """
        if keep_recent_count is None:
            keep_recent_count = settings.version_keep_recent_count
        if keep_recent_count < 0:
            raise ValueError(f"keep_recent_count must be >= 0, got {keep_recent_count}")

        try:
            versions = await self.get_versions(deck_id, include_inactive=True)

            logger.info("Found %d versions for deck %s", len(versions), deck_id)

            if len(versions) <= keep_recent_count:
                return VersionCleanupResult(kept=len(versions), deleted=0)

            older = versions[keep_recent_count:]
            to_delete: list[str] = []

            for version in older:
                if version.is_active:
                    logger.info("Keeping version %d (active)", version.version_number)
                    continue

                games = await self.count_games(version.id)
                if games:
                    logger.info(
                        "Keeping version %d (used in %d games)", version.version_number, games
                    )
                    continue

                to_delete.append(version.id)

            if to_delete:
                await self.session.execute(
                    delete(DeckVersionDB).where(DeckVersionDB.id.in_(to_delete))
                )
                await self.session.commit()
                logger.info("Deleted %d unused old versions of deck %s", len(to_delete), deck_id)
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Error cleaning up versions for deck %s: %s", deck_id, e)
            raise CleanupError(f"Failed to cleanup versions: {e}", detail=deck_id) from e

        return VersionCleanupResult(
            kept=len(versions) - len(to_delete),
            deleted=len(to_delete),
        )
