"""Base repository with common CRUD operations."""

from collections.abc import Sequence
from typing import Any
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select

from ..exceptions.domain import EntityNotFoundError

type FilterValueT = str | int | float | UUID


class BaseRepository[ModelT: SQLModel]:
    """Base repository providing common database operations."""

    def __init__(self, session: AsyncSession, model_class: type[ModelT]):
        """Initialize repository with session and model class.

        Args:
            session: Database session
            model_class: SQLModel class this repository operates on
        """
        self.session = session
        self.model_class = model_class

    async def get(self, id: Any) -> ModelT:
        """Get entity by ID or raise EntityNotFoundError.

        Args:
            id: Entity ID

        Returns:
            Found entity

        Raises:
            EntityNotFoundError: If entity doesn't exist
        """
        entity = await self.session.get(self.model_class, id)
        if not entity:
            raise EntityNotFoundError(f"{self.model_class.__name__} with ID {id} not found")
        return entity

    async def exists(self, **filters: FilterValueT) -> bool:
        """Check if entity exists with given filters.

        Args:
            **filters: Field-value pairs to filter by

        Returns:
            True if entity exists
        """
        statement = select(func.count()).select_from(self.model_class)
        for field, value in filters.items():
            if hasattr(self.model_class, field):
                statement = statement.where(getattr(self.model_class, field) == value)

        result = await self.session.execute(statement)
        count = result.scalar()
        return count is not None and count > 0

    async def list_all(self, **filters: FilterValueT) -> Sequence[ModelT]:
        """List all entities matching filters.

        Args:
            **filters: Field-value pairs to filter by

        Returns:
            List of all matching entities
        """
        statement = select(self.model_class)

        for field, value in filters.items():
            if hasattr(self.model_class, field):
                statement = statement.where(getattr(self.model_class, field) == value)

        result = await self.session.execute(statement)
        return result.scalars().all()

    async def create(self, entity: ModelT) -> ModelT:
        """Create new entity.

        Args:
            entity: Entity to create

        Returns:
            Created entity with refreshed data
        """
        self.session.add(entity)
        await self.session.commit()
        await self.session.refresh(entity)
        return entity

    async def update(
        self, entity: ModelT, update_data: dict[str, Any], exclude_unset: bool = True
    ) -> ModelT:
        """Update entity with given data.

        Args:
            entity: Entity to update
            update_data: Dictionary with fields to update
            exclude_unset: Whether to skip None values

        Returns:
            Updated entity
        """
        for field, value in update_data.items():
            if exclude_unset and value is None:
                continue
            if hasattr(entity, field):
                setattr(entity, field, value)

        await self.session.commit()
        await self.session.refresh(entity)
        return entity

    async def delete(self, entity: ModelT) -> None:
        """Delete entity.

        Args:
            entity: Entity to delete
        """
        await self.session.delete(entity)
        await self.session.commit()
