"""Repositories for field owners: user types and users."""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions.domain import (
    EntityAlreadyExistsError,
    UserNotFoundError,
    UserTypeAlreadyExistsError,
    UserTypeNotFoundError,
)
from ..models.owner import User, UserType
from .base import BaseRepository


class UserTypeRepository(BaseRepository[UserType]):
    """Repository for UserType model operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, UserType)

    async def get(self, id: Any) -> UserType:
        """Get user type by ID or raise UserTypeNotFoundError.

        Raises:
            UserTypeNotFoundError: If the user type doesn't exist
        """
        entity = await self.session.get(self.model_class, id)
        if not entity:
            raise UserTypeNotFoundError(id)
        return entity

    async def ensure_unique_name(self, name: str) -> None:
        """Ensure no user type with this name exists.

        Raises:
            UserTypeAlreadyExistsError: If the name is taken
        """
        if await self.exists(name=name):
            raise UserTypeAlreadyExistsError(name)


class UserRepository(BaseRepository[User]):
    """Repository for User model operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, User)

    async def get(self, id: Any) -> User:
        """Get user by ID or raise UserNotFoundError.

        Raises:
            UserNotFoundError: If the user doesn't exist
        """
        entity = await self.session.get(self.model_class, id)
        if not entity:
            raise UserNotFoundError(id)
        return entity

    async def ensure_unique_username(self, username: str) -> None:
        """Ensure no user with this username exists.

        Raises:
            EntityAlreadyExistsError: If the username is taken
        """
        if await self.exists(username=username):
            raise EntityAlreadyExistsError(f"User '{username}' already exists")
