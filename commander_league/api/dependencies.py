"""
FastAPI dependencies shared by the routers.

The Scryfall client is created once in the application lifespan and kept on
``app.state``; handlers receive it through ``get_catalog`` rather than
building their own.
"""

from typing import Annotated

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from commander_league.db import is_admin
from commander_league.db.database import get_session
from commander_league.models.failure import ForbiddenError
from commander_league.services.deck_pricing import CardCatalog
from commander_league.services.deck_versioning import DeckVersionStore

# Identity comes from the auth provider in front of this service
SYSTEM_USER_ID = "system"


def get_catalog(request: Request) -> CardCatalog:
    """The process-wide card price lookup client."""
    catalog: CardCatalog = request.app.state.catalog
    return catalog


def get_current_user_id(
    x_user_id: Annotated[str | None, Header()] = None,
) -> str:
    """Caller identity forwarded by the auth provider."""
    return x_user_id or SYSTEM_USER_ID


def get_version_store(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> DeckVersionStore:
    return DeckVersionStore(session)


async def require_admin(
    session: Annotated[AsyncSession, Depends(get_session)],
    user_id: Annotated[str, Depends(get_current_user_id)],
) -> str:
    """Reject callers who are not league admins. Returns the caller's id."""
    if not await is_admin(session, user_id):
        raise ForbiddenError("Admin privileges required")
    return user_id
