"""
Scryfall card price lookup.

Finds every paper printing of a card by exact name and picks the cheapest one
under a deterministic currency/finish preference. Budget decks want the
cheapest legal printing, so the lowest effective price wins.

Search API: https://scryfall.com/docs/api/cards/search
"""

import asyncio
import logging
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from commander_league.config import settings
from commander_league.models.failure import UpstreamRateLimitError
from commander_league.models.pricing import CatalogCard, CatalogPrices

logger = logging.getLogger(__name__)

SEARCH_PATH = "/cards/search"

# Price keys in order of preference
NON_FOIL_PREFERENCE = ("eur", "usd", "eur_foil", "usd_foil")
FOIL_PREFERENCE = ("eur_foil", "usd_foil", "eur", "usd")


def parse_price(value: Any) -> Decimal | None:
    """
    Parse a Scryfall price string.

    Returns None for missing, zero, negative or non-numeric values.
    """
    if value is None or value == "":
        return None
    try:
        price = Decimal(str(value))
    except InvalidOperation:
        return None
    if not price.is_finite() or price <= 0:
        return None
    return price


def price_preference(prefer_foil: bool) -> tuple[str, ...]:
    return FOIL_PREFERENCE if prefer_foil else NON_FOIL_PREFERENCE


def effective_price(prices: CatalogPrices | None, prefer_foil: bool) -> tuple[Decimal, str] | None:
    """
    First usable price under the active preference order.

    Returns:
        (price, source key) or None when no price is usable
    """
    if not prices:
        return None
    for key in price_preference(prefer_foil):
        price = parse_price(prices.get(key))
        if price is not None:
            return price, key
    return None


def select_printing(printings: list[CatalogCard], prefer_foil: bool) -> CatalogCard | None:
    """
    Pick the cheapest priced printing.

    Unpriced printings never win. If nothing is priced, the first printing is
    returned so the card still shows up (at zero) in the deck total.
    """
    if not printings:
        return None

    cheapest: CatalogCard | None = None
    cheapest_price: Decimal | None = None

    for printing in printings:
        priced = effective_price(printing.get("prices"), prefer_foil)
        if priced is None:
            continue
        price, _source = priced
        if cheapest_price is None or price < cheapest_price:
            cheapest = printing
            cheapest_price = price

    if cheapest is not None:
        return cheapest

    return printings[0]


class ScryfallClient:
    """
    Async Scryfall client.

    One instance is created at application start and shared by every request.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        base_url: str | None = None,
        rate_limit_delay: float | None = None,
        timeout: float | None = None,
    ) -> None:
        self.base_url = (base_url or settings.scryfall_api_url).rstrip("/")
        self.rate_limit_delay = (
            settings.scryfall_rate_limit_delay if rate_limit_delay is None else rate_limit_delay
        )
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            headers={
                "User-Agent": settings.scryfall_user_agent,
                "Accept": "application/json",
            },
            timeout=timeout if timeout is not None else settings.scryfall_timeout,
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client if we created it."""
        if self._owns_client:
            await self._client.aclose()

    async def search_printings(self, card_name: str) -> list[CatalogCard]:
        """
        Fetch every paper printing of a card by exact name.

        Returns:
            Printings in catalog order. Empty list if the card is unknown.

        Raises:
            UpstreamRateLimitError: Scryfall answered 429
            httpx.HTTPError: Any other transport or HTTP failure
        """
        url: str | None = f"{self.base_url}{SEARCH_PATH}"
        params: dict[str, str] | None = {
            "q": f'!"{card_name.strip()}" game:paper',
            "unique": "prints",
        }
        printings: list[CatalogCard] = []

        while url:
            response = await self._client.get(url, params=params)

            if response.status_code == httpx.codes.NOT_FOUND:
                return printings
            if response.status_code == httpx.codes.TOO_MANY_REQUESTS:
                raise UpstreamRateLimitError(detail=f"Scryfall throttled lookup of {card_name}")
            response.raise_for_status()

            data = response.json()
            if not isinstance(data, dict):
                raise ValueError(f"expected a JSON object, got {type(data).__name__}")
            printings.extend(data.get("data", []))

            if data.get("has_more") and data.get("next_page"):
                url = data["next_page"]
                params = None  # Next page URL includes params
                await asyncio.sleep(self.rate_limit_delay)
            else:
                url = None

        return printings

    async def fetch_card_by_name(
        self, card_name: str, prefer_foil: bool = False
    ) -> CatalogCard | None:
        """
        Look up a card and return its cheapest paper printing.

        Returns None when the card is unknown or the lookup fails; a single
        bad card must not abort a deck-wide calculation.

        Raises:
            UpstreamRateLimitError: Scryfall answered 429
        """
        logger.debug("Fetching card: %s", card_name)

        try:
            printings = await self.search_printings(card_name)
        except httpx.HTTPStatusError as e:
            logger.error(
                "Scryfall error fetching %s: HTTP %s", card_name, e.response.status_code
            )
            return None
        except httpx.RequestError as e:
            logger.error("Network error fetching %s: %s", card_name, e)
            return None
        except ValueError as e:
            logger.error("Invalid Scryfall response for %s: %s", card_name, e)
            return None

        if not printings:
            logger.warning("Card not found: %s", card_name)
            return None

        card = select_printing(printings, prefer_foil)
        if card is not None and effective_price(card.get("prices"), prefer_foil) is None:
            logger.warning(
                "No priced printing for %s (checked %d), using %s",
                card_name,
                len(printings),
                card.get("set_name", card.get("set", "unknown")),
            )
        return card
