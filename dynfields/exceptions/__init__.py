"""Exceptions for dynfields.

Domain exceptions live in :mod:`dynfields.exceptions.domain` and are raised by
repositories and services; HTTP exceptions in :mod:`dynfields.exceptions.http`
are reserved for the API routers.
"""

from .domain import (
    DatabaseError,
    DynFieldsError,
    EntityAlreadyExistsError,
    EntityNotFoundError,
    FieldNameConflictError,
    FieldNotFoundError,
    FieldValuesInvalidError,
    ImmutableFieldNameError,
    InvalidFieldDefinitionError,
    InvalidParentFieldError,
    OverrideAlreadyExistsError,
    UserNotFoundError,
    UserTypeAlreadyExistsError,
    UserTypeNotFoundError,
    ValidationError,
)
from .http import NOT_FOUND, CustomHTTPException

__all__ = [
    "NOT_FOUND",
    "CustomHTTPException",
    "DatabaseError",
    "DynFieldsError",
    "EntityAlreadyExistsError",
    "EntityNotFoundError",
    "FieldNameConflictError",
    "FieldNotFoundError",
    "FieldValuesInvalidError",
    "ImmutableFieldNameError",
    "InvalidFieldDefinitionError",
    "InvalidParentFieldError",
    "OverrideAlreadyExistsError",
    "UserNotFoundError",
    "UserTypeAlreadyExistsError",
    "UserTypeNotFoundError",
    "ValidationError",
]
