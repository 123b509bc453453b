"""Field validation engine.

Pure, stateless checks of one value against one field definition. The
rules are read from ``field.validation`` only, so a template field, a
personal field and an effective field with the same rule behave the same.
After the rules, a non-empty value must also have the shape of its field
type. Option completeness of choice fields is a definition-time concern
and is not checked here.
"""

import re
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from typing import Any, assert_never

from pydantic import AnyUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ..models.base import FieldType
from ..models.field import FieldDefinition
from ..types import FieldErrors

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{0,15}$")
PHONE_SEPARATORS = re.compile(r"[\s\-()]")

_url_adapter = TypeAdapter(AnyUrl)


def _is_empty(value: Any) -> bool:
    if value is None or value == "":
        return True
    return isinstance(value, list | tuple) and len(value) == 0


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _format_bound(bound: int | float) -> str:
    if isinstance(bound, float) and bound.is_integer():
        return str(int(bound))
    return str(bound)


def _pattern_matches(pattern: str, value: str) -> bool:
    try:
        return re.search(pattern, value) is not None
    except re.error:
        # A broken stored pattern cannot accept anything
        return False


def _is_url(value: str) -> bool:
    try:
        _url_adapter.validate_python(value)
    except PydanticValidationError:
        return False
    return True


def _is_date(value: str, with_time: bool) -> bool:
    parse = datetime.fromisoformat if with_time else date.fromisoformat
    try:
        parse(value)
    except ValueError:
        return False
    return True


def type_error(field: FieldDefinition, value: Any) -> str | None:
    """Check that a non-empty value has the shape its field type expects."""
    label = field.display_label
    allowed = {option.value for option in field.options}

    match field.type:
        case FieldType.TEXT | FieldType.TEXTAREA:
            if not isinstance(value, str):
                return f"{label} must be text"
        case FieldType.NUMBER:
            if not _is_number(value):
                return f"{label} must be a number"
        case FieldType.EMAIL:
            if not isinstance(value, str) or not EMAIL_PATTERN.match(value):
                return f"{label} must be a valid email address"
        case FieldType.PHONE:
            if not isinstance(value, str) or not PHONE_PATTERN.match(
                PHONE_SEPARATORS.sub("", value)
            ):
                return f"{label} must be a valid phone number"
        case FieldType.URL:
            if not isinstance(value, str) or not _is_url(value):
                return f"{label} must be a valid URL"
        case FieldType.DATE | FieldType.DATETIME:
            with_time = field.type is FieldType.DATETIME
            if not isinstance(value, str) or not _is_date(value, with_time):
                return f"{label} must be a valid date"
        case FieldType.SELECT | FieldType.RADIO:
            if allowed and (isinstance(value, list) or value not in allowed):
                return f"{label} must be one of the available options"
        case FieldType.MULTISELECT:
            if not isinstance(value, list):
                return f"{label} must be a list of options"
            invalid = [str(item) for item in value if allowed and item not in allowed]
            if invalid:
                return f"{label} contains invalid options: {', '.join(invalid)}"
        case FieldType.CHECKBOX:
            if not isinstance(value, bool):
                return f"{label} must be true or false"
        case FieldType.FILE:
            pass
        case _:
            assert_never(field.type)
    return None


def validate_field(field: FieldDefinition, value: Any) -> str | None:
    """Validate one value against one field's rules.

    Args:
        field: Field definition carrying the validation rule
        value: Submitted value (scalar, sequence or None)

    Returns:
        The first error message, or None when the value is acceptable
    """
    rule = field.validation
    label = field.display_label

    if _is_empty(value):
        if rule.required:
            return f"{label} is required"
        return None

    if isinstance(value, str):
        if rule.min_length is not None and len(value) < rule.min_length:
            return f"{label} must be at least {rule.min_length} characters"
        if rule.max_length is not None and len(value) > rule.max_length:
            return f"{label} must be at most {rule.max_length} characters"

    if _is_number(value):
        if rule.min is not None and value < rule.min:
            return f"{label} must be at least {_format_bound(rule.min)}"
        if rule.max is not None and value > rule.max:
            return f"{label} must be at most {_format_bound(rule.max)}"

    if isinstance(value, str) and rule.pattern and not _pattern_matches(rule.pattern, value):
        return rule.custom_message or f"{label} has an invalid format"

    return type_error(field, value)


def validate_all(fields: Iterable[FieldDefinition], values: Mapping[str, Any]) -> FieldErrors:
    """Validate a value map against a set of fields.

    Args:
        fields: Effective (or any) field definitions
        values: Values keyed by field name; missing names count as None

    Returns:
        Error messages keyed by field name, only for failing fields
    """
    errors: FieldErrors = {}
    for field in fields:
        message = validate_field(field, values.get(field.name))
        if message is not None:
            errors[field.name] = message
    return errors
