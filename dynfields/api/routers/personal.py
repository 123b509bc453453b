"""
Personal field router.

Endpoints for a user's own fields and overrides, the effective field list
and the user's field values. Value routes are declared before the
``/{field_id}`` routes so that ``values`` is never parsed as a field ID.
"""

from typing import Annotated, Literal
from uuid import UUID

from fastapi import APIRouter, Body, Query, status
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from ...exceptions.http import NOT_FOUND
from ...models import (
    EffectiveField,
    FieldDefinitionUpdate,
    FieldOrderItem,
    FieldStatusUpdate,
    FieldValuesPayload,
    FieldValuesValidation,
    PersonalFieldCreate,
    PersonalFieldRead,
    ReorderRequest,
)
from ...types import FieldValueT
from ..dependencies import (
    ActiveOnlyDep,
    FieldValueServiceDep,
    PersonalFieldServiceDep,
)

ValueMap = dict[str, FieldValueT]

router = APIRouter(tags=["personal"])


# Field lists


@router.get("/{owner_user_id}", response_model=list[PersonalFieldRead])
async def list_personal_fields(
    owner_user_id: UUID,
    service: PersonalFieldServiceDep,
) -> list[PersonalFieldRead]:
    """List the personal fields and overrides of a user."""
    return await service.list_fields(owner_user_id)


@router.get("/{owner_user_id}/effective", response_model=list[EffectiveField])
async def list_effective_fields(
    owner_user_id: UUID,
    service: PersonalFieldServiceDep,
    active_only: ActiveOnlyDep,
) -> list[EffectiveField]:
    """Resolve the fields a user sees, each tagged with its origin."""
    return await service.effective_fields(owner_user_id, active_only=active_only)


@router.post(
    "/{owner_user_id}", response_model=PersonalFieldRead, status_code=status.HTTP_201_CREATED
)
async def create_personal_field(
    owner_user_id: UUID,
    field: PersonalFieldCreate,
    service: PersonalFieldServiceDep,
) -> PersonalFieldRead:
    """Create a personal field, or an override when ``parentFieldId`` is given."""
    return await service.create_field(owner_user_id, field)


@router.post("/{owner_user_id}/reorder", response_model=list[PersonalFieldRead])
async def reorder_personal_fields(
    owner_user_id: UUID,
    request: ReorderRequest | list[FieldOrderItem],
    service: PersonalFieldServiceDep,
) -> list[PersonalFieldRead]:
    """Apply new orders to the user's personal fields in one transaction."""
    items = request.items if isinstance(request, ReorderRequest) else request
    return await service.reorder_fields(owner_user_id, items)


@router.post(
    "/{owner_user_id}/override/{template_field_id}",
    response_model=PersonalFieldRead,
    status_code=status.HTTP_201_CREATED,
)
async def override_template_field(
    owner_user_id: UUID,
    template_field_id: UUID,
    overrides: FieldDefinitionUpdate,
    service: PersonalFieldServiceDep,
) -> PersonalFieldRead:
    """Copy a template field into the user's scope with the given changes."""
    return await service.override_field(owner_user_id, template_field_id, overrides)


# Values


@router.get("/{owner_user_id}/values", response_model=ValueMap)
async def load_field_values(
    owner_user_id: UUID,
    service: FieldValueServiceDep,
) -> ValueMap:
    return await service.load_values(owner_user_id)


@router.put("/{owner_user_id}/values", response_model=ValueMap)
async def save_field_values(
    owner_user_id: UUID,
    values: Annotated[ValueMap, Body()],
    service: FieldValueServiceDep,
    validate: bool = Query(True, description="Validate against the active effective fields"),
) -> ValueMap:
    """Upsert a partial value map and return every stored value."""
    return await service.save_values(owner_user_id, values, validate=validate)


@router.post("/{owner_user_id}/values/validate", response_model=FieldValuesValidation)
async def validate_field_values(
    owner_user_id: UUID,
    payload: FieldValuesPayload,
    service: FieldValueServiceDep,
) -> FieldValuesValidation:
    """Check values against the user's active effective fields without storing them."""
    return await service.validate_values(owner_user_id, payload.values)


@router.get("/{owner_user_id}/values/export")
async def export_field_values(
    owner_user_id: UUID,
    service: FieldValueServiceDep,
    export_format: Literal["json", "csv"] = Query("json", alias="format"),
    include_inherited: bool = Query(True, alias="includeInherited"),
) -> Response:
    """Export the effective fields of a user with their values as JSON or CSV."""
    exported = await service.export_values(owner_user_id, export_format, include_inherited)
    if isinstance(exported, str):
        return PlainTextResponse(
            exported,
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{owner_user_id}.csv"'},
        )
    return JSONResponse(exported)


@router.delete("/{owner_user_id}/values/{field_name}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_field_value(
    owner_user_id: UUID,
    field_name: str,
    service: FieldValueServiceDep,
) -> None:
    """Delete one stored value."""
    if not await service.delete_value(owner_user_id, field_name):
        raise NOT_FOUND.with_context(f"No value stored for field '{field_name}'")


# Single field


@router.put("/{owner_user_id}/{field_id}", response_model=PersonalFieldRead)
async def update_personal_field(
    owner_user_id: UUID,
    field_id: UUID,
    patch: FieldDefinitionUpdate,
    service: PersonalFieldServiceDep,
) -> PersonalFieldRead:
    """Update a personal field. The name can't be changed."""
    return await service.update_field(owner_user_id, field_id, patch)


@router.delete("/{owner_user_id}/{field_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_personal_field(
    owner_user_id: UUID,
    field_id: UUID,
    service: PersonalFieldServiceDep,
) -> None:
    await service.delete_field(owner_user_id, field_id)


@router.post(
    "/{owner_user_id}/{field_id}/duplicate",
    response_model=PersonalFieldRead,
    status_code=status.HTTP_201_CREATED,
)
async def duplicate_personal_field(
    owner_user_id: UUID,
    field_id: UUID,
    service: PersonalFieldServiceDep,
) -> PersonalFieldRead:
    """Copy a personal field or override as a new personal-only field."""
    return await service.duplicate_field(owner_user_id, field_id)


@router.patch("/{owner_user_id}/{field_id}/status", response_model=PersonalFieldRead)
async def toggle_personal_field_status(
    owner_user_id: UUID,
    field_id: UUID,
    update: FieldStatusUpdate,
    service: PersonalFieldServiceDep,
) -> PersonalFieldRead:
    return await service.toggle_status(owner_user_id, field_id, update.is_active)


@router.delete("/{owner_user_id}/{field_id}/reset", status_code=status.HTTP_204_NO_CONTENT)
async def reset_personal_field(
    owner_user_id: UUID,
    field_id: UUID,
    service: PersonalFieldServiceDep,
) -> None:
    """Drop an override so the user inherits the template definition again."""
    await service.reset_to_default(owner_user_id, field_id)
