from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter

from chat_gateway.api.deps import CurrentUser, PresenceDep, UoWDep
from chat_gateway.api.v1.schemas.user import OnlineUsersResponse, UserResponse
from chat_gateway.application.exceptions import NotFoundError

router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.get("", response_model=list[UserResponse])
async def list_users(user: CurrentUser, uow: UoWDep) -> list[UserResponse]:
    users = await uow.users.list_except(user.id)
    return [UserResponse.model_validate(u) for u in users]


@router.get("/online", response_model=OnlineUsersResponse)
async def online_users(_user: CurrentUser, presence: PresenceDep) -> OnlineUsersResponse:
    return OnlineUsersResponse(user_ids=sorted(presence.list_online(), key=str))


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: UUID, _user: CurrentUser, uow: UoWDep) -> UserResponse:
    found = await uow.users.get_by_id(user_id)
    if found is None:
        raise NotFoundError("User not found")
    return UserResponse.model_validate(found)
