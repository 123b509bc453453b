"""Repository for personal (user) field definitions and overrides."""

from collections.abc import Sequence
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from ..models.field import PersonalField
from .field_repository import ScopedFieldRepository


class PersonalFieldRepository(ScopedFieldRepository[PersonalField]):
    """Repository for PersonalField model operations, scoped by ``owner_user_id``."""

    scope_column = "owner_user_id"
    scope_label = "user"

    def __init__(self, session: AsyncSession):
        super().__init__(session, PersonalField)

    async def get_override(
        self, owner_user_id: UUID, template_field_id: UUID
    ) -> PersonalField | None:
        """Get the user's override of a template field, if any."""
        statement = select(PersonalField).where(
            col(PersonalField.owner_user_id) == owner_user_id,
            col(PersonalField.parent_field_id) == template_field_id,
        )
        result = await self.session.execute(statement)
        return result.scalars().first()

    async def list_overrides_of(self, template_field_id: UUID) -> Sequence[PersonalField]:
        """All overrides of a template field, across users."""
        statement = select(PersonalField).where(
            col(PersonalField.parent_field_id) == template_field_id
        )
        result = await self.session.execute(statement)
        return result.scalars().all()

    async def demote_overrides(self, template_field_id: UUID) -> int:
        """Turn every override of a template field into a personal-only field.

        The change is flushed into the current transaction but not committed,
        so it lands together with the template deletion.

        Returns:
            Number of demoted overrides
        """
        overrides = await self.list_overrides_of(template_field_id)
        if not overrides:
            return 0

        statement = (
            update(PersonalField)
            .where(col(PersonalField.parent_field_id) == template_field_id)
            .values(parent_field_id=None, updated_at=datetime.now(UTC))
            .execution_options(synchronize_session="fetch")
        )
        await self.session.execute(statement)
        return len(overrides)
