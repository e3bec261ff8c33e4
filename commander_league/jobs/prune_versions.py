"""
Scheduled job to prune old deck versions.

Runs the same retention pass the update flow runs after every new version,
for every deck. Useful after lowering the retention count or when in-request
cleanups have failed.
"""

import asyncio
import logging

from sqlalchemy import select

from commander_league.config import settings
from commander_league.db.database import async_session_factory
from commander_league.models.db import DeckDB
from commander_league.models.failure import CleanupError
from commander_league.services.deck_versioning import DeckVersionStore

logger = logging.getLogger(__name__)


async def prune_deck(deck_id: str, keep_recent_count: int) -> int:
    """
    Prune one deck in its own session.

    Returns:
        Number of versions deleted (0 if the pass failed)
    """
    async with async_session_factory() as session:
        store = DeckVersionStore(session)
        try:
            result = await store.cleanup_old_versions(deck_id, keep_recent_count)
        except CleanupError as e:
            logger.error("Error pruning deck %s: %s", deck_id, e)
            return 0

    return result.deleted


async def run_prune(keep_recent_count: int | None = None) -> dict[str, int]:
    """
    Prune every deck.

    Returns:
        Dict mapping deck id to number of versions deleted
    """
    if keep_recent_count is None:
        keep_recent_count = settings.version_keep_recent_count

    async with async_session_factory() as session:
        result = await session.execute(select(DeckDB.id).order_by(DeckDB.id))
        deck_ids = list(result.scalars().all())

    logger.info("Pruning %d decks, keeping %d recent versions", len(deck_ids), keep_recent_count)

    results: dict[str, int] = {}
    for deck_id in deck_ids:
        results[deck_id] = await prune_deck(deck_id, keep_recent_count)

    total = sum(results.values())
    logger.info("Prune complete. Total versions deleted: %d", total)
    return results


def main() -> None:
    """CLI entry point for running the prune job."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run_prune())


if __name__ == "__main__":
    main()
