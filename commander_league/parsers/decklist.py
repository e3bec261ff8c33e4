"""
Parser for free-text decklists.

Accepts the formats players paste from Moxfield, MTGGoldfish, Archidekt and
Arena exports:

    1 Sol Ring
    2x Island
    Forest
    1 Jeweled Lotus *F*

Section changes are signalled by comment lines ("// Commander", "# Sideboard")
or bare Arena headers ("Commander", "Deck", "Sideboard").
"""

import logging
import re

from commander_league.models.decklist import (
    CardSection,
    DecklistValidation,
    ParsedCard,
    ParsedDecklist,
)
from commander_league.models.failure import FailureKind

logger = logging.getLogger(__name__)

# Pattern: "4 Lightning Bolt" or "4x Lightning Bolt"
# Groups: (quantity, card_name)
CARD_LINE_PATTERN = re.compile(r"^(\d+)x?\s+(.+)$")

# Moxfield marks foils with a trailing "*F*"
FOIL_MARKER_PATTERN = re.compile(r"\s*\*F\*\s*$", re.IGNORECASE)

DECK_NAME_PATTERN = re.compile(r"^(?:deck|name):\s*(.+)$", re.IGNORECASE)
COMMENT_PATTERN = re.compile(r"^(?://|#)\s*(.*)$")

COMMENT_PREFIXES = ("//", "#")

# Bare section headers in Arena-style exports
SECTION_HEADERS = frozenset(
    {"commander", "commanders", "deck", "main", "mainboard", "maindeck", "sideboard"}
)

DEFAULT_DECK_NAME = "Imported Deck"
MAX_DECK_NAME_LENGTH = 50
DECK_NAME_SCAN_LINES = 6
MIN_CARD_NAME_LENGTH = 2

# Larger quantities are treated as noise
MAX_CARD_QUANTITY = 999


def _section_from_hint(lower_line: str) -> CardSection | None:
    """Map a header/comment line to the section it announces, if any."""
    if "commander" in lower_line:
        return CardSection.COMMANDER
    if "deck" in lower_line or "main" in lower_line:
        return CardSection.MAINBOARD
    if "sideboard" in lower_line:
        return CardSection.SIDEBOARD
    return None


def _is_header(line: str) -> bool:
    return line.startswith(COMMENT_PREFIXES) or line.lower().rstrip(":") in SECTION_HEADERS


def _parse_quantity(digits: str) -> int | None:
    """Quantity of a card line, or None when it is out of range."""
    if len(digits) > len(str(MAX_CARD_QUANTITY)):
        return None
    quantity = int(digits, 10)
    if quantity > MAX_CARD_QUANTITY:
        return None
    return quantity


def parse_decklist(text: str) -> ParsedDecklist:
    """
    Parse decklist text into structured card entries.

    Args:
        text: Raw multi-line decklist

    Returns:
        ParsedDecklist. Empty if nothing card-like was found; never raises.
    """
    parsed = ParsedDecklist()
    if not text:
        return parsed

    current_section = CardSection.MAINBOARD

    for raw_line in text.splitlines():
        line = raw_line.strip()

        # Skip empty lines
        if not line:
            continue

        if _is_header(line):
            section = _section_from_hint(line.lower())
            if section is not None:
                current_section = section
            continue

        # "Deck: Name" / "Name: ..." is metadata, not a card
        name_match = DECK_NAME_PATTERN.match(line)
        if name_match:
            parsed.deck_name = parsed.deck_name or name_match.group(1).strip()
            continue

        is_foil = bool(FOIL_MARKER_PATTERN.search(line))
        if is_foil:
            line = FOIL_MARKER_PATTERN.sub("", line)

        quantity = 1
        name = line
        match = CARD_LINE_PATTERN.match(line)
        if match:
            quantity = _parse_quantity(match.group(1))
            name = match.group(2).strip()

        # Noise: stray characters, zero or absurd quantities
        if len(name) < MIN_CARD_NAME_LENGTH or quantity is None or quantity < 1:
            logger.debug("Skipping decklist line: %.60s", line)
            continue

        card = ParsedCard(name=name, quantity=quantity, is_foil=is_foil, section=current_section)
        parsed.cards.append(card)

        if current_section is CardSection.COMMANDER:
            parsed.commanders.append(card)
        elif current_section is CardSection.SIDEBOARD:
            parsed.sideboard.append(card)
        else:
            parsed.mainboard.append(card)

    parsed.total_cards = sum(card.quantity for card in parsed.cards)

    logger.debug(
        "Parsed %d entries (%d cards) from decklist", len(parsed.cards), parsed.total_cards
    )
    return parsed


def validate_decklist(parsed: ParsedDecklist) -> DecklistValidation:
    """Check that a parsed decklist contains at least one card."""
    if not parsed.cards:
        return DecklistValidation(
            valid=False,
            error="No cards found in decklist. Please check the format.",
            kind=FailureKind.EMPTY_DECKLIST.value,
        )

    if parsed.total_cards == 0:
        return DecklistValidation(
            valid=False,
            error="No cards found in decklist.",
            kind=FailureKind.EMPTY_DECKLIST.value,
        )

    return DecklistValidation(valid=True)


def extract_deck_name(text: str) -> str:
    """
    Guess a deck name from the first few lines of a decklist.

    Looks for, in order: a "Deck:"/"Name:" prefix, a short comment that is not
    a commander header, or a short line that does not look like a card entry.
    Falls back to "Imported Deck".
    """
    lines = [line.strip() for line in text.splitlines() if line.strip()]

    for line in lines[:DECK_NAME_SCAN_LINES]:
        deck_match = DECK_NAME_PATTERN.match(line)
        if deck_match:
            return deck_match.group(1).strip()

        comment_match = COMMENT_PATTERN.match(line)
        if comment_match:
            comment = comment_match.group(1).strip()
            if (
                comment
                and len(comment) < MAX_DECK_NAME_LENGTH
                and "commander" not in comment.lower()
                and comment.lower().rstrip(":") not in SECTION_HEADERS
            ):
                return comment
            continue

        if line.lower().rstrip(":") in SECTION_HEADERS:
            continue

        if len(line) < MAX_DECK_NAME_LENGTH and not CARD_LINE_PATTERN.match(line):
            return line

    return DEFAULT_DECK_NAME


def get_commander_name(parsed: ParsedDecklist) -> str | None:
    """First commander-section card, else first mainboard card, else None."""
    if parsed.commanders:
        return parsed.commanders[0].name

    # No explicit commander section: Commander exports usually lead with it
    if parsed.mainboard:
        return parsed.mainboard[0].name

    return None


_BASIC_LAND_COLORS = (
    ("plains", "white"),
    ("island", "blue"),
    ("swamp", "black"),
    ("mountain", "red"),
    ("forest", "green"),
)


def detect_colors(card_names: list[str]) -> list[str]:
    """
    Rough color identity from basic land names.

    Heuristic only; accurate colors would need a catalog lookup.
    """
    colors: list[str] = []
    for land, color in _BASIC_LAND_COLORS:
        if any(land in name.lower() for name in card_names):
            colors.append(color)
    return colors
