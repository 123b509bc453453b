"""Repository layer for data access operations."""

from .base import BaseRepository
from .field_repository import ScopedFieldRepository
from .field_value_repository import FieldValueRepository
from .owner_repository import UserRepository, UserTypeRepository
from .personal_field_repository import PersonalFieldRepository
from .template_field_repository import TemplateFieldRepository

__all__ = [
    "BaseRepository",
    "FieldValueRepository",
    "PersonalFieldRepository",
    "ScopedFieldRepository",
    "TemplateFieldRepository",
    "UserRepository",
    "UserTypeRepository",
]
