"""Shared repository logic for field definitions scoped to one owner."""

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from ..exceptions.domain import DatabaseError, FieldNameConflictError, FieldNotFoundError
from ..models.field import FieldOrderItem, PersonalField, TemplateField
from ..utils.logger import logger
from .base import BaseRepository


class ScopedFieldRepository[FieldT: (TemplateField, PersonalField)](BaseRepository[FieldT]):
    """Repository for field definitions partitioned by an owner column.

    Subclasses set ``scope_column`` (the owner attribute) and ``scope_label``
    (used in error messages).
    """

    scope_column: str
    scope_label: str

    def __init__(self, session: AsyncSession, model_class: type[FieldT]):
        super().__init__(session, model_class)

    def _scope(self, owner_id: UUID) -> str:
        return f"{self.scope_label} '{owner_id}'"

    def _owner_of(self, entity: FieldT) -> UUID:
        owner: UUID = getattr(entity, self.scope_column)
        return owner

    async def get(self, id: Any) -> FieldT:
        """Get field by ID or raise FieldNotFoundError.

        Raises:
            FieldNotFoundError: If the field doesn't exist
        """
        entity = await self.session.get(self.model_class, id)
        if not entity:
            raise FieldNotFoundError(id)
        return entity

    async def get_in_scope(self, owner_id: UUID, id: UUID) -> FieldT:
        """Get field by ID, requiring it to belong to the given owner.

        Raises:
            FieldNotFoundError: If the field doesn't exist in this scope
        """
        entity = await self.session.get(self.model_class, id)
        if not entity or self._owner_of(entity) != owner_id:
            raise FieldNotFoundError(id, self._scope(owner_id))
        return entity

    async def list_for_owner(
        self, owner_id: UUID, include_inactive: bool = True
    ) -> Sequence[FieldT]:
        """List the owner's fields by ``order``, ties in insertion order.

        Args:
            owner_id: Owner scope identifier
            include_inactive: Whether to include fields with ``is_active = False``

        Returns:
            Ordered field definitions
        """
        model = self.model_class
        statement = select(model).where(col(getattr(model, self.scope_column)) == owner_id)
        if not include_inactive:
            statement = statement.where(col(model.is_active).is_(True))
        statement = statement.order_by(col(model.order), col(model.created_at), col(model.id))

        result = await self.session.execute(statement)
        return result.scalars().all()

    async def names_in_scope(self, owner_id: UUID) -> set[str]:
        """All field names used by the owner."""
        model = self.model_class
        statement = select(model.name).where(col(getattr(model, self.scope_column)) == owner_id)
        result = await self.session.execute(statement)
        return set(result.scalars().all())

    async def get_by_name(self, owner_id: UUID, name: str) -> FieldT | None:
        model = self.model_class
        statement = select(model).where(
            col(getattr(model, self.scope_column)) == owner_id, col(model.name) == name
        )
        result = await self.session.execute(statement)
        return result.scalars().first()

    async def orders_in_scope(self, owner_id: UUID) -> list[int]:
        """All ``order`` values used by the owner."""
        model = self.model_class
        statement = select(model.order).where(col(getattr(model, self.scope_column)) == owner_id)
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def ensure_unique_name(self, owner_id: UUID, name: str) -> None:
        """Ensure no field with this name exists in the owner's scope.

        Raises:
            FieldNameConflictError: If the name is taken
        """
        if name in await self.names_in_scope(owner_id):
            raise FieldNameConflictError(name, self._scope(owner_id))

    async def create(self, entity: FieldT) -> FieldT:
        """Create a field, mapping a unique-constraint race to a name conflict."""
        self.session.add(entity)
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise FieldNameConflictError(
                entity.name, self._scope(self._owner_of(entity))
            ) from e
        await self.session.refresh(entity)
        logger.info(
            f"Created {self.model_class.__name__} '{entity.name}' ({entity.id}) "
            f"in {self._scope(self._owner_of(entity))}"
        )
        return entity

    async def update(
        self, entity: FieldT, update_data: dict[str, Any], exclude_unset: bool = False
    ) -> FieldT:
        """Update a field and stamp ``updated_at``."""
        update_data = {**update_data, "updated_at": datetime.now(UTC)}
        updated = await super().update(entity, update_data, exclude_unset=exclude_unset)
        logger.info(f"Updated {self.model_class.__name__} '{updated.name}' ({updated.id})")
        return updated

    async def delete(self, entity: FieldT) -> None:
        """Delete a field."""
        name, field_id = entity.name, entity.id
        await super().delete(entity)
        logger.info(f"Deleted {self.model_class.__name__} '{name}' ({field_id})")

    async def reorder(self, owner_id: UUID, items: Sequence[FieldOrderItem]) -> Sequence[FieldT]:
        """Apply new orders atomically: all supplied fields change or none do.

        Fields not mentioned keep their order.

        Args:
            owner_id: Owner scope identifier
            items: New positions

        Returns:
            The owner's fields in their new order

        Raises:
            FieldNotFoundError: If any field id is unknown or outside the scope
            DatabaseError: If the batch could not be committed
        """
        fields = {field.id: field for field in await self.list_for_owner(owner_id)}
        for item in items:
            if item.field_id not in fields:
                raise FieldNotFoundError(item.field_id, self._scope(owner_id))

        now = datetime.now(UTC)
        for item in items:
            field = fields[item.field_id]
            field.order = item.order
            field.updated_at = now

        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseError(f"Reorder failed in {self._scope(owner_id)}") from e

        logger.info(f"Reordered {len(items)} field(s) in {self._scope(owner_id)}")
        return await self.list_for_owner(owner_id)
