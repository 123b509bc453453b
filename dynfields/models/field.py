"""
Field definition models for dynfields.

This module provides the template (user type) and personal (user) field
tables, the typed schemas exchanged over the API, and the computed
``EffectiveField`` produced by the resolution engine.
"""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from pydantic import AliasChoices
from pydantic import Field as PydanticField
from sqlalchemy import JSON, UniqueConstraint
from sqlmodel import Field, SQLModel

from ..types import FieldValueT
from .base import CamelModel, FieldOrigin, FieldType


def _utcnow() -> datetime:
    return datetime.now(UTC)


# Schemas


class FieldOption(CamelModel):
    """One selectable option of a choice field."""

    value: str | int | float
    label: str


class ValidationRule(CamelModel):
    """Value rules attached to every field definition."""

    required: bool = False
    min_length: int | None = PydanticField(default=None, ge=0)
    max_length: int | None = PydanticField(default=None, ge=0)
    min: int | float | None = None
    max: int | float | None = None
    pattern: str | None = None
    custom_message: str | None = None


class FieldDefinition(CamelModel):
    """Attributes shared by template, personal and effective fields."""

    name: str
    label: str = ""
    description: str | None = None
    type: FieldType = FieldType.TEXT
    validation: ValidationRule = PydanticField(default_factory=ValidationRule)
    options: list[FieldOption] = PydanticField(default_factory=list)
    default_value: FieldValueT = None
    placeholder: str | None = None
    is_inheritable: bool = True
    order: int = 0
    meta: dict[str, Any] = PydanticField(
        default_factory=dict,
        validation_alias=AliasChoices("meta", "metadata"),
        serialization_alias="metadata",
    )
    is_active: bool = True

    @property
    def display_label(self) -> str:
        return self.label or self.name

    def to_columns(self) -> dict[str, Any]:
        """Dump the definition attributes in the shape stored in the tables."""
        data = self.model_dump(mode="json", include=set(FieldDefinition.model_fields))
        data["type"] = self.type
        data["validation"] = self.validation.model_dump(mode="json", exclude_none=True)
        return data


class FieldDefinitionCreate(FieldDefinition):
    """Common create payload; ``order`` is assigned when omitted."""

    order: int | None = None  # type: ignore[assignment]


class TemplateFieldCreate(FieldDefinitionCreate):
    """Payload for creating a template field."""

    owner_type_id: UUID


class PersonalFieldCreate(FieldDefinitionCreate):
    """Payload for creating a personal field or an override."""

    parent_field_id: UUID | None = None


class FieldDefinitionUpdate(CamelModel):
    """Partial update of a field definition. ``name`` may only repeat the current name."""

    name: str | None = None
    label: str | None = None
    description: str | None = None
    type: FieldType | None = None
    validation: ValidationRule | None = None
    options: list[FieldOption] | None = None
    default_value: FieldValueT = None
    placeholder: str | None = None
    is_inheritable: bool | None = None
    order: int | None = None
    meta: dict[str, Any] | None = PydanticField(
        default=None,
        validation_alias=AliasChoices("meta", "metadata"),
        serialization_alias="metadata",
    )
    is_active: bool | None = None


class TemplateFieldRead(FieldDefinition):
    """Template field as returned by the API."""

    id: UUID
    owner_type_id: UUID
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PersonalFieldRead(FieldDefinition):
    """Personal field as returned by the API."""

    id: UUID
    owner_user_id: UUID
    parent_field_id: UUID | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_override(self) -> bool:
        return self.parent_field_id is not None


class EffectiveField(FieldDefinition):
    """A resolved field definition tagged with its origin. Never persisted."""

    id: UUID
    origin: FieldOrigin
    parent_field_id: UUID | None = None


class FieldOrderItem(CamelModel):
    """New position of one field."""

    field_id: UUID
    order: int


class ReorderRequest(CamelModel):
    """Batch of new positions applied atomically."""

    owner_type_id: UUID | None = None
    items: list[FieldOrderItem]


class FieldStatusUpdate(CamelModel):
    """Visibility toggle payload."""

    is_active: bool


# Tables


class FieldDefinitionColumns(SQLModel):
    """Columns shared by the template and personal field tables."""

    name: str = Field(max_length=64, index=True)
    label: str = Field(default="", max_length=255)
    description: str | None = Field(default=None, max_length=2000)
    type: FieldType = Field(default=FieldType.TEXT)
    validation: dict[str, Any] = Field(default_factory=dict, sa_type=JSON)
    options: list[dict[str, Any]] = Field(default_factory=list, sa_type=JSON)
    default_value: Any = Field(default=None, sa_type=JSON)
    placeholder: str | None = Field(default=None, max_length=255)
    is_inheritable: bool = True
    order: int = Field(default=0, index=True)
    meta: dict[str, Any] = Field(default_factory=dict, sa_type=JSON)
    is_active: bool = True
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class TemplateField(FieldDefinitionColumns, table=True):
    """Field definition scoped to a user type and inherited by its users."""

    __tablename__ = "template_field"
    __table_args__ = (UniqueConstraint("owner_type_id", "name", name="uq_template_field_name"),)

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    owner_type_id: UUID = Field(foreign_key="user_type.id", index=True)


class PersonalField(FieldDefinitionColumns, table=True):
    """Field definition scoped to a single user: an override or a personal-only field."""

    __tablename__ = "personal_field"
    __table_args__ = (UniqueConstraint("owner_user_id", "name", name="uq_personal_field_name"),)

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    owner_user_id: UUID = Field(foreign_key="app_user.id", index=True)
    parent_field_id: UUID | None = Field(
        default=None, foreign_key="template_field.id", ondelete="SET NULL", index=True
    )
