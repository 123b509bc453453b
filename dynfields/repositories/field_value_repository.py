"""Repository for per-user field values."""

from collections.abc import Mapping
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions.domain import DatabaseError
from ..models.value import FieldValue
from ..types import FieldValueMap, FieldValueT
from ..utils.logger import logger
from .base import BaseRepository


class FieldValueRepository(BaseRepository[FieldValue]):
    """Repository for FieldValue rows keyed by (``owner_user_id``, ``field_name``)."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, FieldValue)

    async def load(self, owner_user_id: UUID) -> FieldValueMap:
        """Load all values of a user, keyed by field name."""
        rows = await self.list_all(owner_user_id=owner_user_id)
        return {row.field_name: row.value for row in rows}

    async def save(self, owner_user_id: UUID, values: Mapping[str, FieldValueT]) -> FieldValueMap:
        """Insert or update the given values; other stored values are untouched.

        Args:
            owner_user_id: Owner of the values
            values: Partial map of field name to value

        Returns:
            All values of the user after the save

        Raises:
            DatabaseError: If the values could not be committed
        """
        now = datetime.now(UTC)
        for field_name, value in values.items():
            row = await self.session.get(FieldValue, (owner_user_id, field_name))
            if row is None:
                self.session.add(
                    FieldValue(
                        owner_user_id=owner_user_id,
                        field_name=field_name,
                        value=value,
                        updated_at=now,
                    )
                )
            else:
                row.value = value
                row.updated_at = now

        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseError(f"Saving values for user '{owner_user_id}' failed") from e
        logger.info(f"Saved {len(values)} value(s) for user '{owner_user_id}'")
        return await self.load(owner_user_id)

    async def delete_value(self, owner_user_id: UUID, field_name: str) -> bool:
        """Delete one stored value.

        Returns:
            True if a value was deleted, False if none was stored
        """
        row = await self.session.get(FieldValue, (owner_user_id, field_name))
        if row is None:
            return False
        await self.delete(row)
        logger.info(f"Deleted value '{field_name}' for user '{owner_user_id}'")
        return True
