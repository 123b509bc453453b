"""Integration tests for personal fields, overrides and effective field resolution."""

from uuid import uuid4

import pytest
import pytest_asyncio

from dynfields.exceptions import (
    FieldNameConflictError,
    FieldNotFoundError,
    ImmutableFieldNameError,
    InvalidParentFieldError,
    OverrideAlreadyExistsError,
    UserNotFoundError,
)
from dynfields.models import (
    FieldDefinitionUpdate,
    FieldOrderItem,
    FieldOrigin,
    PersonalFieldCreate,
    TemplateFieldCreate,
    ValidationRule,
)


@pytest_asyncio.fixture
async def phone(template_service, user_type):
    """Optional inheritable template field at order 1."""
    return await template_service.create_field(
        TemplateFieldCreate(owner_type_id=user_type.id, name="phone", label="Phone")
    )


@pytest_asyncio.fixture
async def license_field(template_service, user_type):
    """Template field users may not override, at order 2."""
    return await template_service.create_field(
        TemplateFieldCreate(
            owner_type_id=user_type.id, name="license", label="License", is_inheritable=False
        )
    )


class TestPersonalOnly:
    @pytest.mark.asyncio
    async def test_appended_after_everything_visible(
        self, personal_service, user, phone, license_field
    ):
        first = await personal_service.create_field(user.id, PersonalFieldCreate(name="hobby"))
        second = await personal_service.create_field(user.id, PersonalFieldCreate(name="pet"))

        assert first.order == 3
        assert second.order == 4
        assert first.parent_field_id is None
        assert first.is_override is False

    @pytest.mark.asyncio
    async def test_name_conflict_in_user_scope(self, personal_service, user):
        await personal_service.create_field(user.id, PersonalFieldCreate(name="hobby"))
        with pytest.raises(FieldNameConflictError):
            await personal_service.create_field(user.id, PersonalFieldCreate(name="hobby"))

    @pytest.mark.asyncio
    async def test_fields_are_per_user(self, personal_service, user, colleague):
        mine = await personal_service.create_field(user.id, PersonalFieldCreate(name="hobby"))
        theirs = await personal_service.create_field(
            colleague.id, PersonalFieldCreate(name="hobby")
        )

        assert [field.id for field in await personal_service.list_fields(user.id)] == [mine.id]
        assert [field.id for field in await personal_service.list_fields(colleague.id)] == [
            theirs.id
        ]

    @pytest.mark.asyncio
    async def test_other_users_field_not_reachable(self, personal_service, user, colleague):
        mine = await personal_service.create_field(user.id, PersonalFieldCreate(name="hobby"))
        with pytest.raises(FieldNotFoundError):
            await personal_service.update_field(
                colleague.id, mine.id, FieldDefinitionUpdate(label="Stolen")
            )
        with pytest.raises(FieldNotFoundError):
            await personal_service.delete_field(colleague.id, mine.id)

    @pytest.mark.asyncio
    async def test_update_and_rename(self, personal_service, user):
        field = await personal_service.create_field(user.id, PersonalFieldCreate(name="hobby"))
        updated = await personal_service.update_field(
            user.id, field.id, FieldDefinitionUpdate(label="Hobby", meta={"icon": "star"})
        )
        assert (updated.label, updated.meta) == ("Hobby", {"icon": "star"})

        with pytest.raises(ImmutableFieldNameError):
            await personal_service.update_field(
                user.id, field.id, FieldDefinitionUpdate(name="pastime")
            )

    @pytest.mark.asyncio
    async def test_unknown_user(self, personal_service):
        with pytest.raises(UserNotFoundError):
            await personal_service.create_field(uuid4(), PersonalFieldCreate(name="hobby"))


class TestOverrides:
    @pytest.mark.asyncio
    async def test_override_takes_parent_order(self, personal_service, user, phone):
        override = await personal_service.create_field(
            user.id,
            PersonalFieldCreate(
                name="phone", parent_field_id=phone.id, validation=ValidationRule(required=True)
            ),
        )
        assert override.order == phone.order
        assert override.is_override is True

    @pytest.mark.asyncio
    async def test_override_must_keep_name(self, personal_service, user, phone):
        with pytest.raises(InvalidParentFieldError) as exc_info:
            await personal_service.create_field(
                user.id, PersonalFieldCreate(name="mobile", parent_field_id=phone.id)
            )
        assert "name" in exc_info.value.errors

    @pytest.mark.asyncio
    async def test_parent_of_other_type(
        self, template_service, personal_service, user, other_user_type
    ):
        foreign = await template_service.create_field(
            TemplateFieldCreate(owner_type_id=other_user_type.id, name="ward")
        )
        with pytest.raises(InvalidParentFieldError):
            await personal_service.create_field(
                user.id, PersonalFieldCreate(name="ward", parent_field_id=foreign.id)
            )

    @pytest.mark.asyncio
    async def test_non_inheritable_parent(self, personal_service, user, license_field):
        with pytest.raises(InvalidParentFieldError):
            await personal_service.create_field(
                user.id, PersonalFieldCreate(name="license", parent_field_id=license_field.id)
            )

    @pytest.mark.asyncio
    async def test_cannot_shadow_non_inheritable_by_name(
        self, template_service, personal_service, user_type, user
    ):
        await template_service.create_field(
            TemplateFieldCreate(
                owner_type_id=user_type.id,
                name="license",
                is_inheritable=False,
                validation=ValidationRule(required=True),
            )
        )
        with pytest.raises(InvalidParentFieldError) as exc_info:
            await personal_service.create_field(user.id, PersonalFieldCreate(name="license"))

        assert set(exc_info.value.errors) == {"name"}
        assert await personal_service.list_fields(user.id) == []
        (field,) = await personal_service.effective_fields(user.id)
        assert (field.origin, field.validation.required) == (FieldOrigin.INHERITED, True)

    @pytest.mark.asyncio
    async def test_may_shadow_inheritable_by_name(self, personal_service, user, phone):
        await personal_service.create_field(
            user.id, PersonalFieldCreate(name="phone", label="My phone")
        )
        (field,) = await personal_service.effective_fields(user.id)
        assert (field.origin, field.label) == (FieldOrigin.OVERRIDE, "My phone")

    @pytest.mark.asyncio
    async def test_missing_parent(self, personal_service, user):
        with pytest.raises(FieldNotFoundError):
            await personal_service.create_field(
                user.id, PersonalFieldCreate(name="phone", parent_field_id=uuid4())
            )

    @pytest.mark.asyncio
    async def test_one_override_per_template(self, personal_service, user, phone):
        await personal_service.override_field(user.id, phone.id, FieldDefinitionUpdate())
        with pytest.raises(OverrideAlreadyExistsError):
            await personal_service.override_field(user.id, phone.id, FieldDefinitionUpdate())

    @pytest.mark.asyncio
    async def test_override_field_copies_template(self, personal_service, user, phone):
        override = await personal_service.override_field(
            user.id, phone.id, FieldDefinitionUpdate(label="Mobile", placeholder="+1 ...")
        )

        assert override.parent_field_id == phone.id
        assert override.name == "phone"
        assert override.label == "Mobile"
        assert override.placeholder == "+1 ..."
        assert override.order == phone.order
        assert override.owner_user_id == user.id

    @pytest.mark.asyncio
    async def test_override_field_cannot_rename(self, personal_service, user, phone):
        with pytest.raises(ImmutableFieldNameError):
            await personal_service.override_field(
                user.id, phone.id, FieldDefinitionUpdate(name="mobile")
            )

    @pytest.mark.asyncio
    async def test_reset_to_default(self, personal_service, user, phone):
        override = await personal_service.override_field(
            user.id, phone.id, FieldDefinitionUpdate(label="Mobile")
        )
        await personal_service.reset_to_default(user.id, override.id)

        (field,) = await personal_service.effective_fields(user.id)
        assert (field.id, field.origin, field.label) == (phone.id, FieldOrigin.INHERITED, "Phone")

    @pytest.mark.asyncio
    async def test_reset_personal_only_field(self, personal_service, user):
        field = await personal_service.create_field(user.id, PersonalFieldCreate(name="hobby"))
        with pytest.raises(InvalidParentFieldError):
            await personal_service.reset_to_default(user.id, field.id)


class TestDuplicate:
    @pytest.mark.asyncio
    async def test_duplicate_of_override_is_personal_only(self, personal_service, user, phone):
        override = await personal_service.override_field(
            user.id, phone.id, FieldDefinitionUpdate(label="Mobile")
        )
        clone = await personal_service.duplicate_field(user.id, override.id)

        assert clone.name == "phone_copy"
        assert clone.label == "Mobile (copy)"
        assert clone.parent_field_id is None
        assert clone.order == 2

    @pytest.mark.asyncio
    async def test_copy_name_avoids_template_names(
        self, template_service, personal_service, user, user_type
    ):
        await template_service.create_field(
            TemplateFieldCreate(owner_type_id=user_type.id, name="notes_copy")
        )
        notes = await personal_service.create_field(user.id, PersonalFieldCreate(name="notes"))

        clone = await personal_service.duplicate_field(user.id, notes.id)
        assert clone.name == "notes_copy2"

    @pytest.mark.asyncio
    async def test_duplicate_of_longest_name_can_be_updated(self, personal_service, user):
        field = await personal_service.create_field(user.id, PersonalFieldCreate(name="p" * 64))
        first = await personal_service.duplicate_field(user.id, field.id)
        second = await personal_service.duplicate_field(user.id, field.id)

        assert (len(first.name), len(second.name)) == (64, 64)
        assert second.name.endswith("_copy2")
        updated = await personal_service.update_field(
            user.id, second.id, FieldDefinitionUpdate(label="Spare")
        )
        assert updated.label == "Spare"


class TestReorderAndStatus:
    @pytest.mark.asyncio
    async def test_reorder(self, personal_service, user):
        a = await personal_service.create_field(user.id, PersonalFieldCreate(name="a"))
        b = await personal_service.create_field(user.id, PersonalFieldCreate(name="b"))
        result = await personal_service.reorder_fields(
            user.id,
            [FieldOrderItem(field_id=a.id, order=20), FieldOrderItem(field_id=b.id, order=10)],
        )
        assert [field.name for field in result] == ["b", "a"]

    @pytest.mark.asyncio
    async def test_reorder_rejects_other_users_field(self, personal_service, user, colleague):
        theirs = await personal_service.create_field(colleague.id, PersonalFieldCreate(name="a"))
        with pytest.raises(FieldNotFoundError):
            await personal_service.reorder_fields(
                user.id, [FieldOrderItem(field_id=theirs.id, order=1)]
            )

    @pytest.mark.asyncio
    async def test_toggle_status(self, personal_service, user):
        field = await personal_service.create_field(user.id, PersonalFieldCreate(name="hobby"))
        hidden = await personal_service.toggle_status(user.id, field.id, False)

        assert hidden.is_active is False
        assert await personal_service.list_fields(user.id, include_inactive=False) == []


class TestEffectiveFields:
    @pytest.mark.asyncio
    async def test_combines_both_tiers(self, personal_service, user, phone, license_field):
        await personal_service.override_field(
            user.id, phone.id, FieldDefinitionUpdate(label="Mobile")
        )
        await personal_service.create_field(user.id, PersonalFieldCreate(name="hobby"))

        fields = await personal_service.effective_fields(user.id)
        assert [(field.name, field.origin) for field in fields] == [
            ("phone", FieldOrigin.OVERRIDE),
            ("license", FieldOrigin.INHERITED),
            ("hobby", FieldOrigin.PERSONAL),
        ]

    @pytest.mark.asyncio
    async def test_colleague_sees_template_only(
        self, personal_service, user, colleague, phone
    ):
        await personal_service.override_field(
            user.id, phone.id, FieldDefinitionUpdate(label="Mobile")
        )
        (field,) = await personal_service.effective_fields(colleague.id)
        assert (field.origin, field.label) == (FieldOrigin.INHERITED, "Phone")

    @pytest.mark.asyncio
    async def test_active_only(self, template_service, personal_service, user, phone):
        await template_service.toggle_status(phone.id, False)
        await personal_service.create_field(user.id, PersonalFieldCreate(name="hobby"))

        assert len(await personal_service.effective_fields(user.id)) == 2
        active = await personal_service.effective_fields(user.id, active_only=True)
        assert [field.name for field in active] == ["hobby"]

    @pytest.mark.asyncio
    async def test_unknown_user(self, personal_service):
        with pytest.raises(UserNotFoundError):
            await personal_service.effective_fields(uuid4())
