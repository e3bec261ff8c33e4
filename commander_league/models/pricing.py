from dataclasses import asdict, dataclass, field
from decimal import Decimal
from typing import Any, TypedDict


class CatalogPrices(TypedDict, total=False):
    """Per-currency/per-finish prices as returned by Scryfall (strings or null)."""

    eur: str | None
    usd: str | None
    eur_foil: str | None
    usd_foil: str | None
    tix: str | None


class CatalogCard(TypedDict, total=False):
    """The subset of a Scryfall card object we rely on."""

    name: str
    set: str
    set_name: str
    prices: CatalogPrices


@dataclass(frozen=True, slots=True)
class PriceEntry:
    """A card to be priced: one line of the parsed decklist."""

    name: str
    quantity: int
    is_foil: bool = False


@dataclass(frozen=True, slots=True)
class CardPrice:
    """
    Priced decklist line. Immutable once computed.

    Attributes:
        name: Card name (catalog spelling when found)
        quantity: Copies in the deck
        unit_price: Price of one copy, rounded to cents
        line_total: unit_price * quantity, rounded to cents
        set_code: Set code of the chosen printing ("unknown" if not found)
        is_foil: Whether foil pricing was requested
    """

    name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    set_code: str
    is_foil: bool = False

    def to_document(self) -> dict[str, Any]:
        """Serialize for JSON storage. Decimals are kept as strings to stay exact."""
        data = asdict(self)
        data["unit_price"] = str(self.unit_price)
        data["line_total"] = str(self.line_total)
        return data

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> "CardPrice":
        return cls(
            name=data["name"],
            quantity=int(data["quantity"]),
            unit_price=Decimal(str(data["unit_price"])),
            line_total=Decimal(str(data["line_total"])),
            set_code=data.get("set_code", "unknown"),
            is_foil=bool(data.get("is_foil", False)),
        )


@dataclass
class DeckPriceData:
    """Priced snapshot payload handed to the version store."""

    deck_name: str
    total_price: Decimal
    currency: str
    card_count: int
    decklist_text: str
    cards: list[CardPrice] = field(default_factory=list)
