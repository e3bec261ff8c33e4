"""
Deck API endpoints.

Deck registration, decklist price updates and the version history of a deck.
"""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from commander_league.api.dependencies import (
    get_catalog,
    get_current_user_id,
    get_version_store,
)
from commander_league.api.schemas import CamelModel
from commander_league.db import get_deck, get_or_create_deck
from commander_league.db.database import get_session
from commander_league.models.db import DeckDB, DeckVersionDB
from commander_league.models.failure import NotFoundError, ValidationError
from commander_league.parsers import (
    detect_colors,
    extract_deck_name,
    get_commander_name,
    parse_decklist,
)
from commander_league.services.deck_pricing import CardCatalog
from commander_league.services.deck_updater import update_deck
from commander_league.services.deck_versioning import DeckVersionStore

router = APIRouter(prefix="/api/decks", tags=["decks"])

DECK_FORMAT = "commander"


class CardPriceResponse(CamelModel):
    """One priced line of a version snapshot."""

    name: str
    quantity: int
    unit_price: float
    line_total: float
    set_code: str
    is_foil: bool = False


class DeckVersionResponse(CamelModel):
    """A priced snapshot of a deck."""

    id: str
    deck_id: str
    version_number: int
    is_active: bool
    deck_name: str
    total_price: float
    currency: str
    card_count: int
    decklist_text: str
    cards: list[CardPriceResponse] = Field(default_factory=list)
    created_at: datetime
    created_by: str
    notes: str | None = None
    games_count: int | None = None


class DeckSummary(CamelModel):
    """The deck a version belongs to."""

    name: str
    decklist_text: str | None = None
    format: str = DECK_FORMAT


class DeckVersionDetailResponse(DeckVersionResponse):
    """A version together with the deck it belongs to."""

    deck: DeckSummary


class DeckVersionListResponse(CamelModel):
    """Version history of a deck."""

    deck_id: str
    versions: list[DeckVersionResponse]
    count: int


class DeckResponse(CamelModel):
    """A registered deck and the cached summary of its active version."""

    id: str
    name: str
    commander: str
    colors: list[str] = Field(default_factory=list)
    owner_id: str
    owner: str | None = None
    decklist_url: str | None = None
    season_id: str | None = None
    wins: int = 0
    games: int = 0
    current_version_id: str | None = None
    current_price: float | None = None
    last_price_update: datetime | None = None
    decklist_text: str | None = None


class CreateDeckRequest(CamelModel):
    """Register a deck shell. Prices come later through /update."""

    name: str | None = None
    decklist_url: str | None = None
    decklist_text: str | None = None
    commander: str | None = None
    colors: list[str] | None = None
    owner: str | None = None
    season_id: str | None = None


class UpdateDeckRequest(CamelModel):
    """Submit a decklist to be priced as the deck's next version."""

    decklist_text: str | None = None
    deck_id: str | None = None
    deck_name: str | None = None
    force_update: bool = False
    notes: str | None = None
    season_id: str | None = None


class UpdateDeckResponse(CamelModel):
    """Outcome of a price update."""

    updated: bool
    deck_id: str
    message: str
    version: DeckVersionResponse | None = None
    current_version: DeckVersionResponse | None = None
    price_difference: float | None = None


def version_to_response(
    version: DeckVersionDB, games_count: int | None = None
) -> DeckVersionResponse:
    return DeckVersionResponse(
        id=version.id,
        deck_id=version.deck_id,
        version_number=version.version_number,
        is_active=version.is_active,
        deck_name=version.deck_name,
        total_price=float(version.total_price),
        currency=version.currency,
        card_count=version.card_count,
        decklist_text=version.decklist_text,
        cards=[
            CardPriceResponse(
                name=card.name,
                quantity=card.quantity,
                unit_price=float(card.unit_price),
                line_total=float(card.line_total),
                set_code=card.set_code,
                is_foil=card.is_foil,
            )
            for card in version.card_prices()
        ],
        created_at=version.created_at,
        created_by=version.created_by,
        notes=version.notes,
        games_count=games_count,
    )


def deck_to_response(deck: DeckDB) -> DeckResponse:
    return DeckResponse(
        id=deck.id,
        name=deck.name,
        commander=deck.commander,
        colors=deck.colors or [],
        owner_id=deck.owner_id,
        owner=deck.owner,
        decklist_url=deck.decklist_url,
        season_id=deck.season_id,
        wins=deck.wins,
        games=deck.games,
        current_version_id=deck.current_version_id,
        current_price=float(deck.current_price) if deck.current_price is not None else None,
        last_price_update=deck.last_price_update,
        decklist_text=deck.decklist_text,
    )


@router.post("", response_model=DeckResponse, status_code=status.HTTP_201_CREATED)
async def create_deck(
    request: CreateDeckRequest,
    response: Response,
    session: Annotated[AsyncSession, Depends(get_session)],
    user_id: Annotated[str, Depends(get_current_user_id)],
) -> DeckResponse:
    """
    Register a deck.

    A deck registered from a decklist URL that is already known is returned
    as-is (200) instead of being duplicated. Name, commander and colors are
    derived from the decklist text when not given.
    """
    name = request.name
    commander = request.commander
    colors = request.colors

    if request.decklist_text:
        parsed = parse_decklist(request.decklist_text)
        name = name or parsed.deck_name or extract_deck_name(request.decklist_text)
        commander = commander or get_commander_name(parsed)
        if colors is None:
            colors = detect_colors([card.name for card in parsed.cards])

    if not name:
        raise ValidationError("Deck name is required")

    deck, created = await get_or_create_deck(
        session,
        owner_id=user_id,
        name=name,
        decklist_url=request.decklist_url,
        commander=commander,
        colors=colors,
        owner=request.owner,
        season_id=request.season_id,
    )
    if not created:
        response.status_code = status.HTTP_200_OK

    return deck_to_response(deck)


@router.post("/update", response_model=UpdateDeckResponse)
async def update_deck_prices(
    request: UpdateDeckRequest,
    store: Annotated[DeckVersionStore, Depends(get_version_store)],
    catalog: Annotated[CardCatalog, Depends(get_catalog)],
    user_id: Annotated[str, Depends(get_current_user_id)],
) -> UpdateDeckResponse:
    """
    Price a decklist and store it as the deck's new active version.

    An unchanged decklist returns ``updated: false`` with the current version
    unless ``forceUpdate`` is set.
    """
    result = await update_deck(
        store,
        catalog,
        decklist_text=request.decklist_text,
        deck_id=request.deck_id,
        user_id=user_id,
        deck_name=request.deck_name,
        force_update=request.force_update,
        notes=request.notes,
        season_id=request.season_id,
    )

    return UpdateDeckResponse(
        updated=result.updated,
        deck_id=result.deck_id,
        message=result.message,
        version=version_to_response(result.version) if result.version else None,
        current_version=(
            version_to_response(result.current_version) if result.current_version else None
        ),
        price_difference=(
            float(result.price_difference) if result.price_difference is not None else None
        ),
    )


@router.get("/{deck_id}", response_model=DeckResponse)
async def get_deck_by_id(
    deck_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> DeckResponse:
    """Get a deck. Returns 404 if not found."""
    deck = await get_deck(session, deck_id)
    if deck is None:
        raise NotFoundError("Deck", deck_id)

    return deck_to_response(deck)


@router.get("/{deck_id}/versions", response_model=DeckVersionListResponse)
async def list_deck_versions(
    deck_id: str,
    store: Annotated[DeckVersionStore, Depends(get_version_store)],
    include_all: Annotated[bool, Query(alias="includeAll")] = False,
) -> DeckVersionListResponse:
    """
    Version history of a deck, newest first.

    By default only the active version is listed; ``includeAll=true`` adds the
    retired ones. Each entry carries the number of games it was played in.
    """
    if await store.session.get(DeckDB, deck_id) is None:
        raise NotFoundError("Deck", deck_id)

    versions = await store.get_versions(deck_id, include_inactive=include_all)
    counts = await store.count_games_by_version([version.id for version in versions])

    return DeckVersionListResponse(
        deck_id=deck_id,
        versions=[version_to_response(version, counts[version.id]) for version in versions],
        count=len(versions),
    )


@router.get("/{deck_id}/versions/{version_id}", response_model=DeckVersionDetailResponse)
async def get_deck_version(
    deck_id: str,
    version_id: str,
    store: Annotated[DeckVersionStore, Depends(get_version_store)],
) -> DeckVersionDetailResponse:
    """
    A single version with its deck summary and game count.

    Returns 404 for an unknown version or deck, 400 if the version belongs to
    a different deck.
    """
    version = await store.get_version(version_id)
    if version is None:
        raise NotFoundError("Version", version_id)

    if version.deck_id != deck_id:
        raise ValidationError("Version does not belong to this deck")

    deck = await store.session.get(DeckDB, deck_id)
    if deck is None:
        raise NotFoundError("Deck", deck_id)

    games_count = await store.count_games(version_id)
    base = version_to_response(version, games_count)

    return DeckVersionDetailResponse(
        **base.model_dump(),
        deck=DeckSummary(name=deck.name, decklist_text=deck.decklist_text),
    )
