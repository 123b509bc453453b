"""
Owner models for dynfields.

User types own template fields; users own personal fields and values.
Only the attributes the field engine needs are kept here.
"""

from datetime import UTC, datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from .base import CamelModel


class UserType(SQLModel, table=True):
    """A template owner: every user of this type inherits its fields."""

    __tablename__ = "user_type"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(min_length=1, max_length=100, unique=True, index=True)
    description: str | None = Field(default=None, max_length=1000)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class User(SQLModel, table=True):
    """A record owner: holds personal fields and field values."""

    __tablename__ = "app_user"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    username: str = Field(min_length=1, max_length=100, unique=True, index=True)
    user_type_id: UUID = Field(foreign_key="user_type.id", index=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class UserTypeCreate(CamelModel):
    """Payload for creating a user type."""

    name: str
    description: str | None = None


class UserTypeRead(CamelModel):
    """User type as returned by the API."""

    id: UUID
    name: str
    description: str | None = None
    created_at: datetime


class UserCreate(CamelModel):
    """Payload for creating a user."""

    username: str
    user_type_id: UUID


class UserRead(CamelModel):
    """User as returned by the API."""

    id: UUID
    username: str
    user_type_id: UUID
    created_at: datetime
