"""Tests for the Scryfall price lookup client."""

from decimal import Decimal

import httpx
import pytest
import respx

from commander_league.models.failure import UpstreamRateLimitError
from commander_league.services.scryfall import (
    ScryfallClient,
    effective_price,
    parse_price,
    select_printing,
)

SEARCH_URL = "https://api.scryfall.com/cards/search"


def printing(set_code: str, **prices: str | None) -> dict:
    return {"name": "Sol Ring", "set": set_code, "set_name": set_code.upper(), "prices": prices}


@pytest.fixture
async def scryfall():
    client = ScryfallClient(rate_limit_delay=0)
    yield client
    await client.aclose()


class TestParsePrice:
    def test_parses_string(self) -> None:
        assert parse_price("1.25") == Decimal("1.25")

    def test_rejects_unusable_values(self) -> None:
        assert parse_price(None) is None
        assert parse_price("") is None
        assert parse_price("0.00") is None
        assert parse_price("-1") is None
        assert parse_price("n/a") is None
        assert parse_price("NaN") is None


class TestEffectivePrice:
    def test_non_foil_prefers_eur(self) -> None:
        prices = {"eur": "2.00", "usd": "1.00"}

        assert effective_price(prices, prefer_foil=False) == (Decimal("2.00"), "eur")

    def test_non_foil_falls_back_to_usd(self) -> None:
        prices = {"eur": None, "usd": "1.00", "eur_foil": "0.50"}

        assert effective_price(prices, prefer_foil=False) == (Decimal("1.00"), "usd")

    def test_foil_prefers_foil_prices(self) -> None:
        prices = {"eur": "1.00", "eur_foil": "4.00"}

        assert effective_price(prices, prefer_foil=True) == (Decimal("4.00"), "eur_foil")

    def test_foil_falls_back_to_non_foil(self) -> None:
        prices = {"eur": "1.00", "eur_foil": None, "usd_foil": None}

        assert effective_price(prices, prefer_foil=True) == (Decimal("1.00"), "eur")

    def test_no_prices(self) -> None:
        assert effective_price({}, prefer_foil=False) is None
        assert effective_price(None, prefer_foil=False) is None


class TestSelectPrinting:
    def test_picks_cheapest(self) -> None:
        printings = [printing("cmm", eur="2.00"), printing("c21", eur="0.80")]

        assert select_printing(printings, prefer_foil=False)["set"] == "c21"

    def test_unpriced_printing_never_wins(self) -> None:
        printings = [printing("lea", eur=None), printing("c21", eur="0.80")]

        assert select_printing(printings, prefer_foil=False)["set"] == "c21"

    def test_nothing_priced_returns_first(self) -> None:
        printings = [printing("lea", eur=None), printing("leb", eur=None)]

        assert select_printing(printings, prefer_foil=False)["set"] == "lea"

    def test_non_foil_picks_eur_over_usd_printing(self) -> None:
        printings = [printing("cmm", eur="2.00"), printing("c21", usd="3.00")]

        assert select_printing(printings, prefer_foil=False)["set"] == "cmm"

    def test_foil_picks_usd_foil_only_printing(self) -> None:
        printings = [printing("cmm", usd_foil="5.00")]

        card = select_printing(printings, prefer_foil=True)

        assert card["set"] == "cmm"
        assert effective_price(card["prices"], prefer_foil=True) == (Decimal("5.00"), "usd_foil")

    def test_empty(self) -> None:
        assert select_printing([], prefer_foil=False) is None


class TestScryfallClient:
    @respx.mock
    async def test_returns_cheapest_printing(self, scryfall: ScryfallClient) -> None:
        route = respx.get(SEARCH_URL).mock(
            return_value=httpx.Response(
                200,
                json={
                    "has_more": False,
                    "data": [printing("cmm", eur="2.00"), printing("c21", eur="0.80")],
                },
            )
        )

        card = await scryfall.fetch_card_by_name("Sol Ring")

        assert card is not None
        assert card["set"] == "c21"
        request = route.calls.last.request
        assert request.url.params["q"] == '!"Sol Ring" game:paper'
        assert request.url.params["unique"] == "prints"

    @respx.mock
    async def test_follows_pagination(self, scryfall: ScryfallClient) -> None:
        respx.get(SEARCH_URL).mock(
            side_effect=[
                httpx.Response(
                    200,
                    json={
                        "has_more": True,
                        "next_page": f"{SEARCH_URL}?page=2",
                        "data": [printing("cmm", eur="2.00")],
                    },
                ),
                httpx.Response(
                    200,
                    json={"has_more": False, "data": [printing("c21", eur="0.80")]},
                ),
            ]
        )

        printings = await scryfall.search_printings("Sol Ring")

        assert [p["set"] for p in printings] == ["cmm", "c21"]

    @respx.mock
    async def test_unknown_card(self, scryfall: ScryfallClient) -> None:
        respx.get(SEARCH_URL).mock(return_value=httpx.Response(404))

        assert await scryfall.fetch_card_by_name("Not A Card") is None

    @respx.mock
    async def test_server_error_is_absorbed(self, scryfall: ScryfallClient) -> None:
        respx.get(SEARCH_URL).mock(return_value=httpx.Response(500))

        assert await scryfall.fetch_card_by_name("Sol Ring") is None

    @respx.mock
    async def test_network_error_is_absorbed(self, scryfall: ScryfallClient) -> None:
        respx.get(SEARCH_URL).mock(side_effect=httpx.ConnectError("boom"))

        assert await scryfall.fetch_card_by_name("Sol Ring") is None

    @respx.mock
    async def test_rate_limit_raises(self, scryfall: ScryfallClient) -> None:
        respx.get(SEARCH_URL).mock(return_value=httpx.Response(429))

        with pytest.raises(UpstreamRateLimitError) as exc_info:
            await scryfall.fetch_card_by_name("Sol Ring")

        assert exc_info.value.status_code == 429

    @respx.mock
    async def test_sends_user_agent(self, scryfall: ScryfallClient) -> None:
        route = respx.get(SEARCH_URL).mock(
            return_value=httpx.Response(200, json={"has_more": False, "data": []})
        )

        await scryfall.fetch_card_by_name("Sol Ring")

        assert route.calls.last.request.headers["User-Agent"] == "CommanderLeague/1.0"

    @respx.mock
    async def test_non_object_body_is_absorbed(self, scryfall: ScryfallClient) -> None:
        respx.get(SEARCH_URL).mock(return_value=httpx.Response(200, json=[printing("cmm")]))

        assert await scryfall.fetch_card_by_name("Sol Ring") is None
