"""Definition-time checks for field definitions.

Everything here runs before any write (server side) or any request
(client side): name format, option presence, rule ranges. Failures raise
``InvalidFieldDefinitionError`` with one message per offending attribute.
"""

import re
from collections.abc import Collection

from ..exceptions.domain import InvalidFieldDefinitionError
from ..models.field import FieldDefinition, FieldDefinitionCreate, ValidationRule

FIELD_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
FIELD_NAME_MAX_LENGTH = 64


def field_name_error(name: str | None) -> str | None:
    """Return the problem with a machine name, or None if it is valid."""
    if not name or not name.strip():
        return "Field name is required"
    if not FIELD_NAME_PATTERN.match(name):
        return "Field name must be a valid identifier (letters, digits and underscores only)"
    if len(name) > FIELD_NAME_MAX_LENGTH:
        return f"Field name must be at most {FIELD_NAME_MAX_LENGTH} characters"
    return None


def validation_rule_error(rule: ValidationRule) -> str | None:
    """Return the first inconsistency of a rule set, or None."""
    if rule.min is not None and rule.max is not None and rule.min >= rule.max:
        return "Minimum value must be less than maximum value"
    if (
        rule.min_length is not None
        and rule.max_length is not None
        and rule.min_length > rule.max_length
    ):
        return "Minimum length cannot be greater than maximum length"
    if rule.pattern:
        try:
            re.compile(rule.pattern)
        except re.error as e:
            return f"Pattern is not a valid regular expression: {e}"
    return None


def definition_errors(definition: FieldDefinition | FieldDefinitionCreate) -> dict[str, str]:
    """Collect every definition-time invariant violation.

    Args:
        definition: Complete definition (create payload or merged update)

    Returns:
        Messages keyed by the offending attribute; empty when valid
    """
    errors: dict[str, str] = {}

    if (name_error := field_name_error(definition.name)) is not None:
        errors["name"] = name_error

    if definition.type.needs_options and not definition.options:
        errors["options"] = "This field type requires at least one option"
    elif not definition.type.needs_options and definition.options:
        errors["options"] = f"Fields of type '{definition.type.value}' cannot have options"

    if (rule_error := validation_rule_error(definition.validation)) is not None:
        errors["validation"] = rule_error

    has_default = definition.default_value is not None
    if definition.type.needs_options and definition.options and has_default:
        allowed = {option.value for option in definition.options}
        defaults = (
            definition.default_value
            if isinstance(definition.default_value, list)
            else [definition.default_value]
        )
        if any(value not in allowed for value in defaults):
            errors["default_value"] = "Default value must be one of the field options"

    return errors


def check_definition(definition: FieldDefinition | FieldDefinitionCreate) -> None:
    """Raise if the definition breaks an invariant.

    Raises:
        InvalidFieldDefinitionError: With the per-attribute messages
    """
    errors = definition_errors(definition)
    if errors:
        summary = "; ".join(errors.values())
        raise InvalidFieldDefinitionError(f"Invalid field definition: {summary}", errors=errors)


def next_order(existing_orders: Collection[int]) -> int:
    """Order given to a field appended to a scope."""
    return max(existing_orders, default=0) + 1


def copy_name(name: str, taken: Collection[str]) -> str:
    """Derive a unique name for a duplicated field: ``x_copy``, ``x_copy2``, ...

    The source name is cut short when needed so the result never exceeds
    ``FIELD_NAME_MAX_LENGTH``.
    """
    suffix = 1
    while True:
        tail = "_copy" if suffix == 1 else f"_copy{suffix}"
        candidate = name[: FIELD_NAME_MAX_LENGTH - len(tail)] + tail
        if candidate not in taken:
            return candidate
        suffix += 1
