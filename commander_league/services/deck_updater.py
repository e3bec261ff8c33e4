"""
Deck update flow.

parse -> validate -> change detection -> price aggregation -> version
creation -> retention cleanup. Every stage is awaited in order; pricing is
finished before anything is written.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from commander_league.config import settings
from commander_league.models.db import DeckDB, DeckVersionDB
from commander_league.models.failure import (
    CleanupError,
    FailureKind,
    NotFoundError,
    ValidationError,
)
from commander_league.models.pricing import PriceEntry
from commander_league.parsers.decklist import (
    extract_deck_name,
    get_commander_name,
    parse_decklist,
    validate_decklist,
)
from commander_league.services.deck_pricing import CardCatalog, calculate_deck_price
from commander_league.services.deck_versioning import DeckVersionStore

logger = logging.getLogger(__name__)

UNKNOWN_COMMANDER = "Unknown Commander"
CURRENCY_SYMBOLS = {"EUR": "€", "USD": "$"}


@dataclass
class DeckUpdateResult:
    """Outcome of an update request."""

    updated: bool
    deck_id: str
    message: str
    version: DeckVersionDB | None = None
    current_version: DeckVersionDB | None = None
    price_difference: Decimal | None = None


def describe_price_change(price_difference: Decimal | None, currency: str) -> str:
    """Human-readable summary of how a new version moved the deck price."""
    if price_difference is None:
        return "New version created"
    if price_difference == 0:
        return "New version created (price unchanged)"

    symbol = CURRENCY_SYMBOLS.get(currency, f"{currency} ")
    direction = "increased" if price_difference > 0 else "decreased"
    return f"Price {direction} by {symbol}{abs(price_difference):.2f}"


async def update_deck(
    store: DeckVersionStore,
    catalog: CardCatalog,
    decklist_text: str | None,
    deck_id: str | None,
    user_id: str,
    deck_name: str | None = None,
    force_update: bool = False,
    notes: str | None = None,
    season_id: str | None = None,
) -> DeckUpdateResult:
    """
    Price a decklist and store it as the deck's new active version.

    An unchanged decklist (byte-identical to the active version) is a no-op
    unless ``force_update`` is set; no catalog lookups are made for it.
    ``season_id`` assigns the deck to a season.

    Raises:
        ValidationError: Missing decklist, unparseable decklist or missing deck id
        NotFoundError: deck_id does not name a deck
        UpstreamRateLimitError: The catalog is throttling us
        PersistenceError: The version could not be stored
    """
    if not decklist_text or not decklist_text.strip():
        raise ValidationError("Decklist text is required", kind=FailureKind.MISSING_REQUIRED)

    parsed = parse_decklist(decklist_text)
    validation = validate_decklist(parsed)
    if not validation.valid:
        raise ValidationError(
            f"Invalid decklist: {validation.error}",
            kind=FailureKind.EMPTY_DECKLIST,
        )

    logger.info("Parsed %d unique cards (%d total)", len(parsed.cards), parsed.total_cards)

    if not deck_id:
        raise ValidationError(
            "deckId is required. Create the deck first, then update prices.",
            kind=FailureKind.MISSING_REQUIRED,
        )

    deck = await store.session.get(DeckDB, deck_id)
    if deck is None:
        raise NotFoundError("Deck", deck_id)

    if season_id and deck.season_id != season_id:
        deck.season_id = season_id

    final_deck_name = deck_name or parsed.deck_name or extract_deck_name(decklist_text)
    commander_name = get_commander_name(parsed) or UNKNOWN_COMMANDER

    current_version = await store.get_active_version(deck_id)

    if (
        not force_update
        and current_version is not None
        and current_version.decklist_text == decklist_text
    ):
        logger.info("Decklist for deck %s has not changed", deck_id)
        return DeckUpdateResult(
            updated=False,
            deck_id=deck_id,
            message="Decklist has not changed",
            current_version=current_version,
        )

    entries = [
        PriceEntry(name=card.name, quantity=card.quantity, is_foil=card.is_foil)
        for card in parsed.cards
    ]
    price_data = await calculate_deck_price(catalog, final_deck_name, decklist_text, entries)

    # A deck shell starts without a commander; fill it from the first decklist
    if deck.commander in (None, "", UNKNOWN_COMMANDER):
        deck.commander = commander_name

    logger.info("Creating new version for deck %s", deck_id)
    new_version = await store.create_version(deck_id, price_data, user_id, notes)

    try:
        await store.cleanup_old_versions(deck_id, settings.version_keep_recent_count)
    except CleanupError as e:
        logger.warning("Cleanup failed for deck %s (non-critical): %s", deck_id, e)

    price_difference = (
        new_version.total_price - current_version.total_price
        if current_version is not None
        else None
    )

    return DeckUpdateResult(
        updated=True,
        deck_id=deck_id,
        message=describe_price_change(price_difference, new_version.currency),
        version=new_version,
        price_difference=price_difference,
    )
