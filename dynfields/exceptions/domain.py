"""
Domain exceptions for business logic layer.

These exceptions are used in repositories and services to represent
business logic errors without coupling to HTTP status codes.
"""

from typing import Self
from uuid import UUID


class DynFieldsError(Exception):
    """Base exception for all dynfields-specific errors."""

    def with_context(self, detail: str) -> Self:
        """Add context information to the exception.

        Args:
            detail: Additional details about the error

        Returns:
            Self with updated message
        """
        self.args = (detail,)
        return self


# Base domain exceptions
class EntityNotFoundError(DynFieldsError):
    """Raised when an entity is not found in the database."""

    pass


class EntityAlreadyExistsError(DynFieldsError):
    """Raised when trying to create an entity that already exists."""

    pass


class ValidationError(DynFieldsError):
    """Raised when data validation fails.

    ``errors`` maps a field name (or definition attribute) to its message
    when the failure concerns more than one item.
    """

    def __init__(self, message: str = "", errors: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.errors: dict[str, str] = errors or {}


# Owner exceptions
class UserTypeNotFoundError(EntityNotFoundError):
    """Raised when a user type is not found."""

    def __init__(self, user_type_id: UUID | str) -> None:
        super().__init__(f"User type with ID '{user_type_id}' not found")


class UserTypeAlreadyExistsError(EntityAlreadyExistsError):
    """Raised when trying to create a user type whose name is taken."""

    def __init__(self, name: str) -> None:
        super().__init__(f"User type '{name}' already exists")


class UserNotFoundError(EntityNotFoundError):
    """Raised when a user is not found."""

    def __init__(self, user_id: UUID | str | None = None) -> None:
        if user_id:
            super().__init__(f"User with ID '{user_id}' not found")
        else:
            super().__init__("User not found")


# Field definition exceptions
class FieldNotFoundError(EntityNotFoundError):
    """Raised when a field definition is not found in its scope."""

    def __init__(self, field_id: UUID | str, scope: str | None = None) -> None:
        if scope:
            super().__init__(f"Field with ID '{field_id}' not found in {scope}")
        else:
            super().__init__(f"Field with ID '{field_id}' not found")


class FieldNameConflictError(EntityAlreadyExistsError):
    """Raised when a field name is already used within the same scope."""

    def __init__(self, name: str, scope: str) -> None:
        super().__init__(f"Field '{name}' already exists in {scope}")


class OverrideAlreadyExistsError(EntityAlreadyExistsError):
    """Raised when a user already overrides the given template field."""

    def __init__(self, template_field_id: UUID, user_id: UUID) -> None:
        super().__init__(
            f"User '{user_id}' already overrides template field '{template_field_id}'"
        )


class InvalidFieldDefinitionError(ValidationError):
    """Raised when a field definition breaks a definition-time invariant."""

    pass


class ImmutableFieldNameError(InvalidFieldDefinitionError):
    """Raised when an update tries to rename a field."""

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(
            f"Field name is immutable: cannot rename '{current}' to '{requested}'",
            errors={"name": "Field name cannot be changed after creation"},
        )


class InvalidParentFieldError(ValidationError):
    """Raised when an override references a template field it may not override."""

    pass


class FieldValuesInvalidError(ValidationError):
    """Raised when submitted values do not satisfy the effective field rules."""

    def __init__(self, errors: dict[str, str]) -> None:
        super().__init__(f"{len(errors)} field value(s) failed validation", errors=errors)


# Database errors
class DatabaseError(DynFieldsError):
    """Raised when there's a database operation error."""

    pass
