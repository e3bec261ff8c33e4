"""
Admin API endpoints.

User management for league admins. The caller is identified by the
``X-User-Id`` header and must already be an admin.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from commander_league.api.dependencies import require_admin
from commander_league.api.schemas import CamelModel
from commander_league.db import get_all_users, set_admin
from commander_league.db.database import get_session
from commander_league.models.db import UserDB
from commander_league.models.failure import ValidationError

router = APIRouter(prefix="/api/admin", tags=["admin"])


class UserResponse(CamelModel):
    id: str
    email: str | None = None
    display_name: str | None = None
    is_admin: bool = False


class UserListResponse(CamelModel):
    users: list[UserResponse]
    count: int


class UpdateUserRequest(CamelModel):
    is_admin: bool


def user_to_response(user: UserDB) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        display_name=user.display_name,
        is_admin=user.is_admin,
    )


@router.get("/users", response_model=UserListResponse)
async def list_users(
    session: Annotated[AsyncSession, Depends(get_session)],
    _admin_id: Annotated[str, Depends(require_admin)],
) -> UserListResponse:
    """All users. Admin only."""
    users = await get_all_users(session)
    return UserListResponse(users=[user_to_response(user) for user in users], count=len(users))


@router.patch("/users/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    request: UpdateUserRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
    admin_id: Annotated[str, Depends(require_admin)],
) -> UserResponse:
    """
    Promote or demote a user. Admin only.

    Admins cannot remove their own admin flag.
    """
    if user_id == admin_id and not request.is_admin:
        raise ValidationError("Admins cannot revoke their own admin privileges")

    user = await set_admin(session, user_id, request.is_admin)
    return user_to_response(user)
