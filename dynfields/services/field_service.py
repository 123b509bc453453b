"""Service layer for field definition lifecycles.

``TemplateFieldService`` manages the user type tier, ``PersonalFieldService``
the user tier (personal-only fields and overrides) and the effective field
list of a user.
"""

from collections.abc import Sequence
from uuid import UUID

from ..exceptions.domain import (
    ImmutableFieldNameError,
    InvalidParentFieldError,
    OverrideAlreadyExistsError,
)
from ..models.field import (
    EffectiveField,
    FieldDefinition,
    FieldDefinitionUpdate,
    FieldOrderItem,
    PersonalField,
    PersonalFieldCreate,
    PersonalFieldRead,
    TemplateField,
    TemplateFieldCreate,
    TemplateFieldRead,
)
from ..models.owner import User
from ..repositories.owner_repository import UserRepository, UserTypeRepository
from ..repositories.personal_field_repository import PersonalFieldRepository
from ..repositories.template_field_repository import TemplateFieldRepository
from ..utils.logger import logger
from .definitions import check_definition, copy_name, next_order
from .resolution import resolve_fields

# Attributes an update may explicitly clear
NULLABLE_ATTRIBUTES = frozenset({"description", "placeholder", "default_value"})


def merge_update(current: FieldDefinition, patch: FieldDefinitionUpdate) -> FieldDefinition:
    """Apply a partial update to a definition.

    Args:
        current: Stored definition
        patch: Requested changes; ``name`` may only repeat the current name

    Returns:
        The merged definition, not yet checked

    Raises:
        ImmutableFieldNameError: If the patch renames the field
    """
    changes = patch.model_dump(exclude_unset=True)
    requested_name = changes.pop("name", None)
    if requested_name is not None and requested_name != current.name:
        raise ImmutableFieldNameError(current.name, requested_name)

    changes = {
        key: value
        for key, value in changes.items()
        if value is not None or key in NULLABLE_ATTRIBUTES
    }
    base = current.model_dump(include=set(FieldDefinition.model_fields))
    return FieldDefinition.model_validate({**base, **changes})


class TemplateFieldService:
    """Lifecycle of template fields, scoped by user type."""

    def __init__(
        self,
        template_repo: TemplateFieldRepository,
        personal_repo: PersonalFieldRepository,
        user_type_repo: UserTypeRepository,
    ):
        """Initialize template field service with repositories.

        Args:
            template_repo: Template field repository
            personal_repo: Personal field repository (for override demotion)
            user_type_repo: User type repository (scope existence checks)
        """
        self.template_repo = template_repo
        self.personal_repo = personal_repo
        self.user_type_repo = user_type_repo

    async def list_fields(
        self, owner_type_id: UUID, include_inactive: bool = True
    ) -> list[TemplateFieldRead]:
        """List the fields of a user type in order.

        Raises:
            UserTypeNotFoundError: If the user type doesn't exist
        """
        await self.user_type_repo.get(owner_type_id)
        fields = await self.template_repo.list_for_owner(owner_type_id, include_inactive)
        return [TemplateFieldRead.model_validate(field) for field in fields]

    async def get_field(self, field_id: UUID) -> TemplateFieldRead:
        return TemplateFieldRead.model_validate(await self.template_repo.get(field_id))

    async def create_field(self, data: TemplateFieldCreate) -> TemplateFieldRead:
        """Create a template field.

        Args:
            data: Definition and owning user type

        Returns:
            Created field

        Raises:
            UserTypeNotFoundError: If the user type doesn't exist
            InvalidFieldDefinitionError: If the definition breaks an invariant
            FieldNameConflictError: If the name is taken in the user type
        """
        await self.user_type_repo.get(data.owner_type_id)
        check_definition(data)
        await self.template_repo.ensure_unique_name(data.owner_type_id, data.name)

        columns = data.to_columns()
        if data.order is None:
            orders = await self.template_repo.orders_in_scope(data.owner_type_id)
            columns["order"] = next_order(orders)

        field = TemplateField(**columns, owner_type_id=data.owner_type_id)
        return TemplateFieldRead.model_validate(await self.template_repo.create(field))

    async def update_field(self, field_id: UUID, patch: FieldDefinitionUpdate) -> TemplateFieldRead:
        """Update every attribute of a template field except its name.

        Making the field non-inheritable demotes its existing overrides to
        personal-only fields, as deleting it would.

        Raises:
            FieldNotFoundError: If the field doesn't exist
            ImmutableFieldNameError: If the patch renames the field
            InvalidFieldDefinitionError: If the result breaks an invariant
        """
        field = await self.template_repo.get(field_id)
        merged = merge_update(TemplateFieldRead.model_validate(field), patch)
        check_definition(merged)
        if field.is_inheritable and not merged.is_inheritable:
            demoted = await self.personal_repo.demote_overrides(field.id)
            if demoted:
                logger.info(
                    f"Demoted {demoted} override(s) of template field '{field.name}' "
                    f"now that it is not inheritable"
                )
        updated = await self.template_repo.update(field, merged.to_columns())
        return TemplateFieldRead.model_validate(updated)

    async def delete_field(self, field_id: UUID) -> int:
        """Delete a template field, demoting its overrides to personal-only fields.

        Returns:
            Number of demoted overrides

        Raises:
            FieldNotFoundError: If the field doesn't exist
        """
        field = await self.template_repo.get(field_id)
        demoted = await self.personal_repo.demote_overrides(field.id)
        if demoted:
            logger.info(
                f"Demoted {demoted} override(s) of template field '{field.name}' "
                f"to personal fields"
            )
        await self.template_repo.delete(field)
        return demoted

    async def reorder_fields(
        self, items: Sequence[FieldOrderItem], owner_type_id: UUID | None = None
    ) -> list[TemplateFieldRead]:
        """Apply new orders atomically within a user type.

        Args:
            items: New positions
            owner_type_id: Scope of the fields; taken from the first field when omitted

        Raises:
            UserTypeNotFoundError: If the user type doesn't exist
            FieldNotFoundError: If any field is not in the user type
        """
        if owner_type_id is None:
            if not items:
                return []
            owner_type_id = (await self.template_repo.get(items[0].field_id)).owner_type_id
        await self.user_type_repo.get(owner_type_id)
        fields = await self.template_repo.reorder(owner_type_id, items)
        return [TemplateFieldRead.model_validate(field) for field in fields]

    async def toggle_status(self, field_id: UUID, is_active: bool) -> TemplateFieldRead:
        field = await self.template_repo.get(field_id)
        updated = await self.template_repo.update(field, {"is_active": is_active})
        return TemplateFieldRead.model_validate(updated)

    async def duplicate_field(self, field_id: UUID) -> TemplateFieldRead:
        """Clone a template field under a new unique name at the end of the list.

        Raises:
            FieldNotFoundError: If the field doesn't exist
        """
        source = await self.template_repo.get(field_id)
        owner_type_id = source.owner_type_id

        columns = TemplateFieldRead.model_validate(source).to_columns()
        taken = await self.template_repo.names_in_scope(owner_type_id)
        columns["name"] = copy_name(source.name, taken)
        columns["label"] = f"{source.label or source.name} (copy)"
        columns["order"] = next_order(await self.template_repo.orders_in_scope(owner_type_id))

        clone = TemplateField(**columns, owner_type_id=owner_type_id)
        return TemplateFieldRead.model_validate(await self.template_repo.create(clone))


class PersonalFieldService:
    """Lifecycle of personal fields and overrides, scoped by user."""

    def __init__(
        self,
        personal_repo: PersonalFieldRepository,
        template_repo: TemplateFieldRepository,
        user_repo: UserRepository,
    ):
        """Initialize personal field service with repositories.

        Args:
            personal_repo: Personal field repository
            template_repo: Template field repository (parents and inherited fields)
            user_repo: User repository (scope existence, user type lookup)
        """
        self.personal_repo = personal_repo
        self.template_repo = template_repo
        self.user_repo = user_repo

    async def _check_parent(self, user: User, parent_field_id: UUID, name: str) -> TemplateField:
        """Ensure the user may override the given template field under this name.

        Raises:
            FieldNotFoundError: If the template field doesn't exist
            InvalidParentFieldError: If it belongs to another type, is not
                inheritable, or the override renames it
            OverrideAlreadyExistsError: If the user already overrides it
        """
        parent = await self.template_repo.get(parent_field_id)
        if parent.owner_type_id != user.user_type_id:
            raise InvalidParentFieldError(
                f"Template field '{parent.name}' does not belong to the user's type",
                errors={"parent_field_id": "Parent field belongs to another user type"},
            )
        if not parent.is_inheritable:
            raise InvalidParentFieldError(
                f"Template field '{parent.name}' is not inheritable",
                errors={"parent_field_id": "Parent field cannot be overridden"},
            )
        if name != parent.name:
            raise InvalidParentFieldError(
                f"An override must keep the name '{parent.name}' of the field it overrides",
                errors={"name": "Override name must match the parent field name"},
            )
        if await self.personal_repo.get_override(user.id, parent.id) is not None:
            raise OverrideAlreadyExistsError(parent.id, user.id)
        return parent

    async def _check_shadowing(self, user: User, name: str) -> None:
        """A personal-only field may not take the name of a locked template field.

        Raises:
            InvalidParentFieldError: If the user's type has a non-inheritable field of that name
        """
        template = await self.template_repo.get_by_name(user.user_type_id, name)
        if template is not None and not template.is_inheritable:
            raise InvalidParentFieldError(
                f"Template field '{name}' is not inheritable and cannot be shadowed",
                errors={"name": "Name belongs to a template field that cannot be overridden"},
            )

    async def _append_order(self, user: User) -> int:
        orders = await self.template_repo.orders_in_scope(user.user_type_id)
        orders += await self.personal_repo.orders_in_scope(user.id)
        return next_order(orders)

    async def list_fields(
        self, owner_user_id: UUID, include_inactive: bool = True
    ) -> list[PersonalFieldRead]:
        """List the personal fields of a user in order.

        Raises:
            UserNotFoundError: If the user doesn't exist
        """
        await self.user_repo.get(owner_user_id)
        fields = await self.personal_repo.list_for_owner(owner_user_id, include_inactive)
        return [PersonalFieldRead.model_validate(field) for field in fields]

    async def create_field(
        self, owner_user_id: UUID, data: PersonalFieldCreate
    ) -> PersonalFieldRead:
        """Create a personal-only field, or an override when ``parent_field_id`` is set.

        Without an explicit order, an override takes its parent's position and
        a personal-only field is appended after every field the user sees.

        Raises:
            UserNotFoundError: If the user doesn't exist
            InvalidFieldDefinitionError: If the definition breaks an invariant
            InvalidParentFieldError: If the parent may not be overridden, or the
                name shadows a non-inheritable template field
            FieldNameConflictError: If the name is taken in the user's scope
        """
        user = await self.user_repo.get(owner_user_id)
        check_definition(data)

        parent: TemplateField | None = None
        if data.parent_field_id is not None:
            parent = await self._check_parent(user, data.parent_field_id, data.name)
        else:
            await self._check_shadowing(user, data.name)
        await self.personal_repo.ensure_unique_name(user.id, data.name)

        columns = data.to_columns()
        if data.order is None:
            columns["order"] = parent.order if parent else await self._append_order(user)

        field = PersonalField(
            **columns, owner_user_id=user.id, parent_field_id=data.parent_field_id
        )
        return PersonalFieldRead.model_validate(await self.personal_repo.create(field))

    async def update_field(
        self, owner_user_id: UUID, field_id: UUID, patch: FieldDefinitionUpdate
    ) -> PersonalFieldRead:
        """Update every attribute of a personal field except its name.

        Raises:
            FieldNotFoundError: If the field is not in the user's scope
            ImmutableFieldNameError: If the patch renames the field
            InvalidFieldDefinitionError: If the result breaks an invariant
        """
        field = await self.personal_repo.get_in_scope(owner_user_id, field_id)
        merged = merge_update(PersonalFieldRead.model_validate(field), patch)
        check_definition(merged)
        updated = await self.personal_repo.update(field, merged.to_columns())
        return PersonalFieldRead.model_validate(updated)

    async def delete_field(self, owner_user_id: UUID, field_id: UUID) -> None:
        field = await self.personal_repo.get_in_scope(owner_user_id, field_id)
        await self.personal_repo.delete(field)

    async def reorder_fields(
        self, owner_user_id: UUID, items: Sequence[FieldOrderItem]
    ) -> list[PersonalFieldRead]:
        """Apply new orders atomically within a user's personal fields.

        Raises:
            UserNotFoundError: If the user doesn't exist
            FieldNotFoundError: If any field is not in the user's scope
        """
        await self.user_repo.get(owner_user_id)
        fields = await self.personal_repo.reorder(owner_user_id, items)
        return [PersonalFieldRead.model_validate(field) for field in fields]

    async def toggle_status(
        self, owner_user_id: UUID, field_id: UUID, is_active: bool
    ) -> PersonalFieldRead:
        field = await self.personal_repo.get_in_scope(owner_user_id, field_id)
        updated = await self.personal_repo.update(field, {"is_active": is_active})
        return PersonalFieldRead.model_validate(updated)

    async def duplicate_field(self, owner_user_id: UUID, field_id: UUID) -> PersonalFieldRead:
        """Clone a personal field as a personal-only field with a new unique name.

        The new name avoids the template names of the user's type too, so the
        copy never shadows an inherited field.

        Raises:
            FieldNotFoundError: If the field is not in the user's scope
        """
        user = await self.user_repo.get(owner_user_id)
        source = await self.personal_repo.get_in_scope(owner_user_id, field_id)

        taken = await self.personal_repo.names_in_scope(user.id)
        taken |= await self.template_repo.names_in_scope(user.user_type_id)

        columns = PersonalFieldRead.model_validate(source).to_columns()
        columns["name"] = copy_name(source.name, taken)
        columns["label"] = f"{source.label or source.name} (copy)"
        columns["order"] = await self._append_order(user)

        clone = PersonalField(**columns, owner_user_id=user.id, parent_field_id=None)
        return PersonalFieldRead.model_validate(await self.personal_repo.create(clone))

    async def override_field(
        self, owner_user_id: UUID, template_field_id: UUID, overrides: FieldDefinitionUpdate
    ) -> PersonalFieldRead:
        """Create an override from a template field plus partial changes.

        Raises:
            UserNotFoundError: If the user doesn't exist
            FieldNotFoundError: If the template field doesn't exist
            InvalidParentFieldError: If the template field may not be overridden
            OverrideAlreadyExistsError: If the user already overrides it
            InvalidFieldDefinitionError: If the result breaks an invariant
        """
        user = await self.user_repo.get(owner_user_id)
        template = await self.template_repo.get(template_field_id)
        await self._check_parent(user, template.id, template.name)

        merged = merge_update(TemplateFieldRead.model_validate(template), overrides)
        check_definition(merged)
        await self.personal_repo.ensure_unique_name(user.id, merged.name)

        field = PersonalField(
            **merged.to_columns(), owner_user_id=user.id, parent_field_id=template.id
        )
        return PersonalFieldRead.model_validate(await self.personal_repo.create(field))

    async def reset_to_default(self, owner_user_id: UUID, field_id: UUID) -> None:
        """Drop an override so the template definition is inherited again.

        Raises:
            FieldNotFoundError: If the field is not in the user's scope
            InvalidParentFieldError: If the field is personal-only
        """
        field = await self.personal_repo.get_in_scope(owner_user_id, field_id)
        if field.parent_field_id is None:
            raise InvalidParentFieldError(
                f"Field '{field.name}' is not an override and has no default to reset to"
            )
        await self.personal_repo.delete(field)

    async def effective_fields(
        self, owner_user_id: UUID, active_only: bool = False
    ) -> list[EffectiveField]:
        """Resolve the fields a user sees from both tiers.

        Raises:
            UserNotFoundError: If the user doesn't exist
        """
        user = await self.user_repo.get(owner_user_id)
        templates = await self.template_repo.list_for_owner(user.user_type_id)
        personal = await self.personal_repo.list_for_owner(user.id)
        return resolve_fields(
            [TemplateFieldRead.model_validate(field) for field in templates],
            [PersonalFieldRead.model_validate(field) for field in personal],
            active_only=active_only,
        )
