"""Resolution engine: merge template and personal fields into the effective list.

Precedence, for one user of one user type:

1. A personal field whose ``parent_field_id`` names a template field replaces
   that template field (``override``). A personal-only field whose ``name``
   equals a template field's name replaces it the same way. A template field
   that is not inheritable is never replaced; a personal field matching it
   either way is left out of the result.
2. Every other template field is used as is (``inherited``).
3. Personal fields not consumed above are appended (``personal``) in their
   stored order, including overrides whose parent is not in the template set.
4. The result is stable-sorted by ``order``; equal orders keep emission order.

The function is pure and recomputed on every call.
"""

from collections.abc import Sequence
from uuid import UUID

from ..models.base import FieldOrigin
from ..models.field import EffectiveField, FieldDefinition, PersonalFieldRead, TemplateFieldRead


def _effective(
    source: FieldDefinition,
    field_id: UUID,
    origin: FieldOrigin,
    parent_field_id: UUID | None = None,
) -> EffectiveField:
    data = source.model_dump(include=set(FieldDefinition.model_fields))
    return EffectiveField(**data, id=field_id, origin=origin, parent_field_id=parent_field_id)


def resolve_fields(
    template_fields: Sequence[TemplateFieldRead],
    personal_fields: Sequence[PersonalFieldRead],
    active_only: bool = False,
) -> list[EffectiveField]:
    """Merge the two tiers into one ordered, de-duplicated field list.

    Args:
        template_fields: Fields of the user's type, in stored order
        personal_fields: Fields of the user, in stored order
        active_only: Drop inactive definitions after precedence is applied,
            so an inactive override hides the field instead of exposing the template

    Returns:
        Effective fields sorted by ``order``
    """
    by_parent: dict[UUID, PersonalFieldRead] = {}
    by_name: dict[str, PersonalFieldRead] = {}
    for personal in personal_fields:
        if personal.parent_field_id is not None:
            by_parent.setdefault(personal.parent_field_id, personal)
        else:
            by_name.setdefault(personal.name, personal)

    consumed: set[UUID] = set()
    emitted: list[EffectiveField] = []

    for template in template_fields:
        override = by_parent.pop(template.id, None)
        if override is None:
            candidate = by_name.get(template.name)
            if candidate is not None and candidate.id not in consumed:
                override = by_name.pop(template.name)

        if override is not None and not template.is_inheritable:
            # Locked template: the would-be override is hidden, never shown beside it
            consumed.add(override.id)
            override = None

        if override is not None:
            consumed.add(override.id)
            emitted.append(
                _effective(override, override.id, FieldOrigin.OVERRIDE, parent_field_id=template.id)
            )
        else:
            emitted.append(_effective(template, template.id, FieldOrigin.INHERITED))

    for personal in personal_fields:
        if personal.id in consumed:
            continue
        consumed.add(personal.id)
        emitted.append(
            _effective(
                personal,
                personal.id,
                FieldOrigin.PERSONAL,
                parent_field_id=personal.parent_field_id,
            )
        )

    if active_only:
        emitted = [field for field in emitted if field.is_active]

    return sorted(emitted, key=lambda field: field.order)
