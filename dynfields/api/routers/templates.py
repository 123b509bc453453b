"""
Template field router.

Endpoints for the fields a user type defines and its users inherit.
"""

from uuid import UUID

from fastapi import APIRouter, Query, status

from ...models import (
    FieldDefinitionUpdate,
    FieldOrderItem,
    FieldStatusUpdate,
    ReorderRequest,
    TemplateFieldCreate,
    TemplateFieldRead,
)
from ..dependencies import TemplateFieldServiceDep

router = APIRouter(tags=["templates"])


@router.post("/reorder", response_model=list[TemplateFieldRead])
async def reorder_template_fields(
    request: ReorderRequest | list[FieldOrderItem],
    service: TemplateFieldServiceDep,
    owner_type_id: UUID | None = Query(None, alias="ownerTypeId"),
) -> list[TemplateFieldRead]:
    """Apply new orders to the fields of a user type in one transaction.

    Accepts either ``{ownerTypeId, items}`` or a bare ``[{fieldId, order}]`` list.
    """
    if isinstance(request, ReorderRequest):
        owner_type_id = request.owner_type_id or owner_type_id
        items = request.items
    else:
        items = request
    return await service.reorder_fields(items, owner_type_id)


@router.get("/{owner_type_id}", response_model=list[TemplateFieldRead])
async def list_template_fields(
    owner_type_id: UUID,
    service: TemplateFieldServiceDep,
) -> list[TemplateFieldRead]:
    """List the fields of a user type in display order."""
    return await service.list_fields(owner_type_id)


@router.post("", response_model=TemplateFieldRead, status_code=status.HTTP_201_CREATED)
async def create_template_field(
    field: TemplateFieldCreate,
    service: TemplateFieldServiceDep,
) -> TemplateFieldRead:
    """Create a template field."""
    return await service.create_field(field)


@router.put("/{field_id}", response_model=TemplateFieldRead)
async def update_template_field(
    field_id: UUID,
    patch: FieldDefinitionUpdate,
    service: TemplateFieldServiceDep,
) -> TemplateFieldRead:
    """Update a template field. The name can't be changed."""
    return await service.update_field(field_id, patch)


@router.delete("/{field_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_template_field(
    field_id: UUID,
    service: TemplateFieldServiceDep,
) -> None:
    """Delete a template field; its overrides become personal fields."""
    await service.delete_field(field_id)


@router.post(
    "/{field_id}/duplicate",
    response_model=TemplateFieldRead,
    status_code=status.HTTP_201_CREATED,
)
async def duplicate_template_field(
    field_id: UUID,
    service: TemplateFieldServiceDep,
) -> TemplateFieldRead:
    return await service.duplicate_field(field_id)


@router.patch("/{field_id}/status", response_model=TemplateFieldRead)
async def toggle_template_field_status(
    field_id: UUID,
    update: FieldStatusUpdate,
    service: TemplateFieldServiceDep,
) -> TemplateFieldRead:
    return await service.toggle_status(field_id, update.is_active)
