"""Repository for template (user type) field definitions."""

from sqlalchemy.ext.asyncio import AsyncSession

from ..models.field import TemplateField
from .field_repository import ScopedFieldRepository


class TemplateFieldRepository(ScopedFieldRepository[TemplateField]):
    """Repository for TemplateField model operations, scoped by ``owner_type_id``."""

    scope_column = "owner_type_id"
    scope_label = "user type"

    def __init__(self, session: AsyncSession):
        super().__init__(session, TemplateField)
