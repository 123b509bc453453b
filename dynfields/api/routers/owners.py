"""
Owner router.

Registers user types (template owners) and users (personal field owners).
"""

from uuid import UUID

from fastapi import APIRouter, Query, status

from ...models import User, UserCreate, UserRead, UserType, UserTypeCreate, UserTypeRead
from ..dependencies import OwnerServiceDep

router = APIRouter(tags=["owners"])


@router.get("/user-types", response_model=list[UserTypeRead])
async def list_user_types(service: OwnerServiceDep) -> list[UserType]:
    return list(await service.list_user_types())


@router.post("/user-types", response_model=UserTypeRead, status_code=status.HTTP_201_CREATED)
async def create_user_type(
    user_type: UserTypeCreate,
    service: OwnerServiceDep,
) -> UserType:
    """Create a new user type."""
    return await service.create_user_type(user_type)


@router.get("/user-types/{user_type_id}", response_model=UserTypeRead)
async def get_user_type(user_type_id: UUID, service: OwnerServiceDep) -> UserType:
    return await service.get_user_type(user_type_id)


@router.get("/users", response_model=list[UserRead])
async def list_users(
    service: OwnerServiceDep,
    user_type_id: UUID | None = Query(None, alias="userTypeId"),
) -> list[User]:
    """List users, optionally only those of one user type."""
    return list(await service.list_users(user_type_id))


@router.post("/users", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def create_user(
    user: UserCreate,
    service: OwnerServiceDep,
) -> User:
    """Create a new user of an existing user type."""
    return await service.create_user(user)


@router.get("/users/{user_id}", response_model=UserRead)
async def get_user(user_id: UUID, service: OwnerServiceDep) -> User:
    return await service.get_user(user_id)
