"""
dynfields data models.

This package contains the SQLModel tables and the pydantic schemas that
define the database layout and the API payloads.
"""

from .base import CamelModel, FieldOrigin, FieldType
from .field import (
    EffectiveField,
    FieldDefinition,
    FieldDefinitionCreate,
    FieldDefinitionUpdate,
    FieldOption,
    FieldOrderItem,
    FieldStatusUpdate,
    PersonalField,
    PersonalFieldCreate,
    PersonalFieldRead,
    ReorderRequest,
    TemplateField,
    TemplateFieldCreate,
    TemplateFieldRead,
    ValidationRule,
)
from .owner import User, UserCreate, UserRead, UserType, UserTypeCreate, UserTypeRead
from .value import FieldValue, FieldValuesPayload, FieldValuesValidation

__all__ = [
    # Base
    "CamelModel",
    "FieldOrigin",
    "FieldType",
    # Fields
    "EffectiveField",
    "FieldDefinition",
    "FieldDefinitionCreate",
    "FieldDefinitionUpdate",
    "FieldOption",
    "FieldOrderItem",
    "FieldStatusUpdate",
    "PersonalField",
    "PersonalFieldCreate",
    "PersonalFieldRead",
    "ReorderRequest",
    "TemplateField",
    "TemplateFieldCreate",
    "TemplateFieldRead",
    "ValidationRule",
    # Owners
    "User",
    "UserCreate",
    "UserRead",
    "UserType",
    "UserTypeCreate",
    "UserTypeRead",
    # Values
    "FieldValue",
    "FieldValuesPayload",
    "FieldValuesValidation",
]
