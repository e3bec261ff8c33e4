from commander_league.parsers.decklist import (
    detect_colors,
    extract_deck_name,
    get_commander_name,
    parse_decklist,
    validate_decklist,
)

__all__ = [
    "detect_colors",
    "extract_deck_name",
    "get_commander_name",
    "parse_decklist",
    "validate_decklist",
]
