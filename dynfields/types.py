"""Common type definitions for dynfields.

This module provides type aliases for commonly used types across the application,
improving type safety and reducing repetition.
"""

# Field values: a scalar or a sequence of scalars
type ScalarValue = str | int | float | bool
type FieldValueT = ScalarValue | list[ScalarValue] | None
type FieldValueMap = dict[str, FieldValueT]

# Validation results, keyed by field name
type FieldErrors = dict[str, str]
