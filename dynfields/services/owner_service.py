"""Service layer for field owners: user types and users."""

from collections.abc import Sequence
from uuid import UUID

from ..models.owner import User, UserCreate, UserType, UserTypeCreate
from ..repositories.owner_repository import UserRepository, UserTypeRepository
from ..utils.logger import logger


class OwnerService:
    """Registers the user types and users that own fields."""

    def __init__(self, user_type_repo: UserTypeRepository, user_repo: UserRepository):
        self.user_type_repo = user_type_repo
        self.user_repo = user_repo

    async def list_user_types(self) -> Sequence[UserType]:
        return await self.user_type_repo.list_all()

    async def get_user_type(self, user_type_id: UUID) -> UserType:
        return await self.user_type_repo.get(user_type_id)

    async def create_user_type(self, data: UserTypeCreate) -> UserType:
        """Create a user type.

        Raises:
            UserTypeAlreadyExistsError: If the name is taken
        """
        await self.user_type_repo.ensure_unique_name(data.name)
        user_type = await self.user_type_repo.create(UserType(**data.model_dump()))
        logger.info(f"Created user type '{user_type.name}'")
        return user_type

    async def list_users(self, user_type_id: UUID | None = None) -> Sequence[User]:
        if user_type_id is None:
            return await self.user_repo.list_all()
        return await self.user_repo.list_all(user_type_id=user_type_id)

    async def get_user(self, user_id: UUID) -> User:
        return await self.user_repo.get(user_id)

    async def create_user(self, data: UserCreate) -> User:
        """Create a user of an existing user type.

        Raises:
            UserTypeNotFoundError: If the user type doesn't exist
            EntityAlreadyExistsError: If the username is taken
        """
        await self.user_type_repo.get(data.user_type_id)
        await self.user_repo.ensure_unique_username(data.username)
        user = await self.user_repo.create(User(**data.model_dump()))
        logger.info(f"Created user '{user.username}'")
        return user
