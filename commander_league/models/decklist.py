from dataclasses import dataclass, field
from enum import Enum


class CardSection(str, Enum):
    """Deck section a parsed card belongs to."""

    COMMANDER = "commander"
    MAINBOARD = "mainboard"
    SIDEBOARD = "sideboard"


@dataclass(frozen=True, slots=True)
class ParsedCard:
    """
    A single decklist entry.

    Attributes:
        name: Card name as typed by the user (trimmed)
        quantity: Number of copies, always >= 1
        is_foil: True when the line carried a foil marker
        section: Section the line appeared under
    """

    name: str
    quantity: int
    is_foil: bool = False
    section: CardSection = CardSection.MAINBOARD


@dataclass
class ParsedDecklist:
    """Result of parsing free-text decklist input."""

    cards: list[ParsedCard] = field(default_factory=list)
    total_cards: int = 0
    commanders: list[ParsedCard] = field(default_factory=list)
    mainboard: list[ParsedCard] = field(default_factory=list)
    sideboard: list[ParsedCard] = field(default_factory=list)
    deck_name: str | None = None


@dataclass(frozen=True, slots=True)
class DecklistValidation:
    """Outcome of validating a parsed decklist."""

    valid: bool
    error: str | None = None
    kind: str | None = None
