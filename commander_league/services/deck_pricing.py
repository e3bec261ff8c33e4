"""
Deck price aggregation.

Drives the catalog over a whole decklist, one card at a time, and packages
the priced lines into a snapshot payload for the version store.
"""

import asyncio
import logging
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Protocol

from commander_league.config import settings
from commander_league.models.pricing import CardPrice, CatalogCard, DeckPriceData, PriceEntry
from commander_league.services.scryfall import effective_price

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

# Working precision for price arithmetic, wider than the default 28 digits
PRICE_PRECISION = 60
UNKNOWN_SET = "unknown"


class CardCatalog(Protocol):
    """What the aggregator needs from a price lookup client."""

    rate_limit_delay: float

    async def fetch_card_by_name(
        self, card_name: str, prefer_foil: bool = False
    ) -> CatalogCard | None: ...


def round_price(value: Decimal) -> Decimal:
    """Round to the cent, halves away from zero."""
    with localcontext(prec=PRICE_PRECISION):
        return value.quantize(CENT, rounding=ROUND_HALF_UP)


def line_total(unit_price: Decimal, quantity: int) -> Decimal:
    with localcontext(prec=PRICE_PRECISION):
        return round_price(unit_price * quantity)


def get_card_price(card: CatalogCard | None, entry: PriceEntry) -> CardPrice:
    """
    Convert a catalog printing into a priced decklist line.

    Unknown cards and unpriced printings become zero-priced lines.
    """
    if card is None:
        return CardPrice(
            name=entry.name,
            quantity=entry.quantity,
            unit_price=round_price(Decimal(0)),
            line_total=round_price(Decimal(0)),
            set_code=UNKNOWN_SET,
            is_foil=entry.is_foil,
        )

    priced = effective_price(card.get("prices"), entry.is_foil)
    unit_price = round_price(priced[0] if priced else Decimal(0))

    if priced is None:
        logger.warning("No price available for %s", card.get("name", entry.name))
    elif priced[1] != ("eur_foil" if entry.is_foil else "eur"):
        logger.debug("Using %s fallback for %s: %s", priced[1], entry.name, unit_price)

    return CardPrice(
        name=card.get("name") or entry.name,
        quantity=entry.quantity,
        unit_price=unit_price,
        line_total=line_total(unit_price, entry.quantity),
        set_code=card.get("set") or UNKNOWN_SET,
        is_foil=entry.is_foil,
    )


async def fetch_card_prices(catalog: CardCatalog, entries: list[PriceEntry]) -> list[CardPrice]:
    """
    Price every entry, strictly in order.

    Lookups are serialized with a fixed delay between them to stay under the
    catalog's rate limit.
    """
    prices: list[CardPrice] = []

    logger.info("Fetching prices for %d cards...", len(entries))

    for index, entry in enumerate(entries):
        card = await catalog.fetch_card_by_name(entry.name, entry.is_foil)
        prices.append(get_card_price(card, entry))

        if index < len(entries) - 1:
            await asyncio.sleep(catalog.rate_limit_delay)

    return prices


async def calculate_deck_price(
    catalog: CardCatalog,
    deck_name: str,
    decklist_text: str,
    entries: list[PriceEntry],
) -> DeckPriceData:
    """
    Price a full decklist.

    Args:
        catalog: Price lookup client
        deck_name: Display name stored on the snapshot
        decklist_text: Raw decklist, stored verbatim
        entries: Cards to price, in decklist order

    Returns:
        DeckPriceData with rounded per-line and total prices

    Raises:
        UpstreamRateLimitError: The catalog is throttling us
    """
    logger.info("Calculating price for deck: %s", deck_name)

    cards = await fetch_card_prices(catalog, entries)

    with localcontext(prec=PRICE_PRECISION):
        total_price = round_price(sum((card.line_total for card in cards), Decimal(0)))
    card_count = sum(entry.quantity for entry in entries)

    logger.info("Total price: %s %s (%d cards)", total_price, settings.default_currency, card_count)

    return DeckPriceData(
        deck_name=deck_name,
        total_price=total_price,
        currency=settings.default_currency,
        card_count=card_count,
        decklist_text=decklist_text,
        cards=cards,
    )
