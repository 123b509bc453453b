"""Service layer: field lifecycles, resolution, validation and values."""

from .definitions import (
    check_definition,
    copy_name,
    definition_errors,
    next_order,
    validation_rule_error,
)
from .field_service import PersonalFieldService, TemplateFieldService, merge_update
from .resolution import resolve_fields
from .validation import validate_all, validate_field
from .value_service import FieldValueService

__all__ = [
    "FieldValueService",
    "PersonalFieldService",
    "TemplateFieldService",
    "check_definition",
    "copy_name",
    "definition_errors",
    "merge_update",
    "next_order",
    "resolve_fields",
    "validate_all",
    "validate_field",
    "validation_rule_error",
]
