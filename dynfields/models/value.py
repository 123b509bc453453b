"""
Field value models for dynfields.

Values are keyed by field name per user and live independently of the
field definitions: deleting a definition never deletes its values.
"""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import JSON
from sqlmodel import Field, SQLModel

from ..types import FieldErrors, FieldValueMap
from .base import CamelModel


class FieldValue(SQLModel, table=True):
    """Stored value of one field for one user."""

    __tablename__ = "field_value"

    owner_user_id: UUID = Field(foreign_key="app_user.id", primary_key=True)
    field_name: str = Field(max_length=64, primary_key=True)
    value: Any = Field(default=None, sa_type=JSON)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class FieldValuesValidation(CamelModel):
    """Outcome of validating a set of values against the effective fields."""

    is_valid: bool
    field_errors: FieldErrors = {}


class FieldValuesPayload(CamelModel):
    """Values submitted for validation."""

    values: FieldValueMap
