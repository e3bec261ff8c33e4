"""
Commander League services.

Business logic for decklist pricing and deck version management.
"""

from commander_league.services.deck_pricing import (
    CardCatalog,
    calculate_deck_price,
    fetch_card_prices,
    get_card_price,
    round_price,
)
from commander_league.services.deck_updater import (
    DeckUpdateResult,
    describe_price_change,
    update_deck,
)
from commander_league.services.deck_versioning import DeckVersionStore, VersionCleanupResult
from commander_league.services.scryfall import (
    ScryfallClient,
    effective_price,
    parse_price,
    select_printing,
)

__all__ = [
    "CardCatalog",
    "DeckUpdateResult",
    "DeckVersionStore",
    "ScryfallClient",
    "VersionCleanupResult",
    "calculate_deck_price",
    "describe_price_change",
    "effective_price",
    "fetch_card_prices",
    "get_card_price",
    "parse_price",
    "round_price",
    "select_printing",
    "update_deck",
]
