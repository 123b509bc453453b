"""
Base models for dynfields.

This module provides the shared schema base class and the enumerations
used throughout the field models.
"""

import enum
from typing import Literal, assert_never

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

type ValueKind = Literal["string", "number", "boolean", "date", "list", "file"]


class CamelModel(BaseModel):
    """Base schema for API payloads: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class FieldType(str, enum.Enum):
    """Enumeration of the supported custom field types."""

    TEXT = "text"
    TEXTAREA = "textarea"
    NUMBER = "number"
    EMAIL = "email"
    PHONE = "phone"
    URL = "url"
    DATE = "date"
    DATETIME = "datetime"
    SELECT = "select"
    MULTISELECT = "multiselect"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    FILE = "file"

    @property
    def needs_options(self) -> bool:
        """Whether definitions of this type must carry at least one option."""
        match self:
            case FieldType.SELECT | FieldType.MULTISELECT | FieldType.RADIO:
                return True
            case (
                FieldType.TEXT
                | FieldType.TEXTAREA
                | FieldType.NUMBER
                | FieldType.EMAIL
                | FieldType.PHONE
                | FieldType.URL
                | FieldType.DATE
                | FieldType.DATETIME
                | FieldType.CHECKBOX
                | FieldType.FILE
            ):
                return False
            case _:
                assert_never(self)

    @property
    def value_kind(self) -> ValueKind:
        """Shape of the values stored for this type."""
        match self:
            case (
                FieldType.TEXT
                | FieldType.TEXTAREA
                | FieldType.EMAIL
                | FieldType.PHONE
                | FieldType.URL
                | FieldType.SELECT
                | FieldType.RADIO
            ):
                return "string"
            case FieldType.NUMBER:
                return "number"
            case FieldType.CHECKBOX:
                return "boolean"
            case FieldType.DATE | FieldType.DATETIME:
                return "date"
            case FieldType.MULTISELECT:
                return "list"
            case FieldType.FILE:
                return "file"
            case _:
                assert_never(self)


class FieldOrigin(str, enum.Enum):
    """Where an effective field definition came from."""

    INHERITED = "inherited"
    OVERRIDE = "override"
    PERSONAL = "personal"
