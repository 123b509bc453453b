"""Unit tests for the resolution engine (template + personal merge)."""

from uuid import UUID, uuid4

import pytest

from dynfields.models import FieldOrigin, PersonalFieldRead, TemplateFieldRead, ValidationRule
from dynfields.services.resolution import resolve_fields
from dynfields.services.validation import validate_field

TYPE_ID = uuid4()
USER_ID = uuid4()


def _template(name: str, order: int, **kw) -> TemplateFieldRead:
    return TemplateFieldRead(
        id=uuid4(),
        owner_type_id=TYPE_ID,
        name=name,
        label=kw.pop("label", name.title()),
        order=order,
        **kw,
    )


def _personal(name: str, order: int, parent: UUID | None = None, **kw) -> PersonalFieldRead:
    return PersonalFieldRead(
        id=uuid4(),
        owner_user_id=USER_ID,
        parent_field_id=parent,
        name=name,
        label=kw.pop("label", name.title()),
        order=order,
        **kw,
    )


def _summary(fields) -> list[tuple[str, FieldOrigin]]:
    return [(field.name, field.origin) for field in fields]


class TestPrecedence:
    def test_templates_only_are_inherited(self) -> None:
        templates = [_template("a", 1), _template("b", 2)]
        result = resolve_fields(templates, [])
        assert _summary(result) == [("a", FieldOrigin.INHERITED), ("b", FieldOrigin.INHERITED)]

    def test_override_by_parent_replaces_template(self) -> None:
        """An override keeps the template's slot and carries its own label."""
        a = _template("a", 1)
        override = _personal("a", 1, parent=a.id, label="Custom A")
        result = resolve_fields([a, _template("b", 2)], [override])

        assert _summary(result) == [("a", FieldOrigin.OVERRIDE), ("b", FieldOrigin.INHERITED)]
        assert result[0].label == "Custom A"
        assert result[0].id == override.id
        assert result[0].parent_field_id == a.id

    def test_personal_only_with_same_name_replaces_template(self) -> None:
        a = _template("a", 1)
        shadow = _personal("a", 1, label="Mine")
        result = resolve_fields([a], [shadow])

        assert _summary(result) == [("a", FieldOrigin.OVERRIDE)]
        assert result[0].label == "Mine"
        assert result[0].parent_field_id == a.id

    def test_parent_match_wins_over_name_match(self) -> None:
        a = _template("a", 1)
        by_parent = _personal("a", 1, parent=a.id, label="By parent")
        by_name = _personal("a_other", 2)
        result = resolve_fields([a], [by_parent, by_name])
        assert [field.label for field in result] == ["By parent", "A_Other"]

    def test_locked_template_ignores_same_name_field(self) -> None:
        locked = _template(
            "license", 1, is_inheritable=False, validation=ValidationRule(required=True)
        )
        shadow = _personal("license", 1, label="Mine")
        result = resolve_fields([locked], [shadow])

        assert _summary(result) == [("license", FieldOrigin.INHERITED)]
        assert result[0].id == locked.id
        assert result[0].validation.required is True

    def test_locked_template_ignores_parent_override(self) -> None:
        locked = _template("license", 1, is_inheritable=False)
        stale = _personal("license", 1, parent=locked.id, label="Stale")
        result = resolve_fields([locked, _template("b", 2)], [stale])

        assert _summary(result) == [
            ("license", FieldOrigin.INHERITED),
            ("b", FieldOrigin.INHERITED),
        ]
        assert result[0].label == "License"

    def test_personal_only_fields_are_appended(self) -> None:
        result = resolve_fields([_template("a", 1)], [_personal("p", 5)])
        assert _summary(result) == [("a", FieldOrigin.INHERITED), ("p", FieldOrigin.PERSONAL)]

    def test_dangling_override_is_personal(self) -> None:
        """An override whose parent is not among the templates is still shown."""
        dangling = _personal("ghost", 1, parent=uuid4())
        result = resolve_fields([_template("a", 2)], [dangling])
        assert _summary(result) == [("ghost", FieldOrigin.PERSONAL), ("a", FieldOrigin.INHERITED)]
        assert result[0].parent_field_id == dangling.parent_field_id


class TestOrdering:
    def test_sorted_by_order(self) -> None:
        templates = [_template("late", 10), _template("early", 1)]
        result = resolve_fields(templates, [_personal("middle", 5)])
        assert [field.name for field in result] == ["early", "middle", "late"]

    def test_ties_keep_emission_order(self) -> None:
        """Templates are emitted before personal-only fields; equal orders keep that."""
        templates = [_template("t1", 1), _template("t2", 1)]
        result = resolve_fields(templates, [_personal("p1", 1)])
        assert [field.name for field in result] == ["t1", "t2", "p1"]

    def test_override_takes_its_own_order(self) -> None:
        a = _template("a", 1)
        result = resolve_fields([a, _template("b", 2)], [_personal("a", 3, parent=a.id)])
        assert [field.name for field in result] == ["b", "a"]


class TestScenarios:
    def test_required_override_of_optional_template(self) -> None:
        """The override's rule is the one validated."""
        phone = _template("phone", 1, label="")
        override = _personal(
            "phone", 1, parent=phone.id, label="", validation=ValidationRule(required=True)
        )
        combined = resolve_fields([phone], [override])

        assert [field.id for field in combined] == [override.id]
        assert validate_field(combined[0], "") == "phone is required"

    def test_personal_only_after_templates(self) -> None:
        t1, t2 = _template("t1", 1), _template("t2", 2)
        combined = resolve_fields([t1, t2], [_personal("extra", 3)])
        assert [field.name for field in combined] == ["t1", "t2", "extra"]

    def test_override_and_personal_only(self) -> None:
        """Template {a:1, b:2}; override of a with label X and personal c at 3."""
        a, b = _template("a", 1), _template("b", 2)
        personal = [_personal("a", 1, parent=a.id, label="X"), _personal("c", 3)]
        result = resolve_fields([a, b], personal)

        assert [(f.name, f.origin, f.label) for f in result] == [
            ("a", FieldOrigin.OVERRIDE, "X"),
            ("b", FieldOrigin.INHERITED, "B"),
            ("c", FieldOrigin.PERSONAL, "C"),
        ]

    def test_shadowing_personal_field(self) -> None:
        """Template {a:1}; personal-only a at 2 shadows it."""
        result = resolve_fields([_template("a", 1)], [_personal("a", 2, label="Y")])
        assert [(f.name, f.origin, f.order, f.label) for f in result] == [
            ("a", FieldOrigin.OVERRIDE, 2, "Y")
        ]


class TestInvariants:
    def test_no_duplicate_names_from_template_side(self) -> None:
        a, b = _template("a", 1), _template("b", 2)
        personal = [_personal("a", 1, parent=a.id), _personal("b", 2), _personal("c", 3)]
        names = [field.name for field in resolve_fields([a, b], personal)]
        assert len(names) == len(set(names))

    def test_idempotent(self) -> None:
        a = _template("a", 1)
        templates = [a, _template("b", 2)]
        personal = [_personal("a", 4, parent=a.id), _personal("c", 3)]
        first = resolve_fields(templates, personal)
        second = resolve_fields(templates, personal)
        assert [f.model_dump() for f in first] == [f.model_dump() for f in second]

    def test_inputs_are_not_modified(self) -> None:
        a = _template("a", 1)
        override = _personal("a", 9, parent=a.id)
        resolve_fields([a], [override])
        assert a.order == 1 and override.order == 9

    def test_empty_inputs(self) -> None:
        assert resolve_fields([], []) == []


class TestActiveOnly:
    def test_inactive_template_dropped(self) -> None:
        templates = [_template("a", 1, is_active=False), _template("b", 2)]
        result = resolve_fields(templates, [], active_only=True)
        assert [field.name for field in result] == ["b"]

    def test_inactive_override_hides_field(self) -> None:
        """Filtering happens after precedence, so the template does not reappear."""
        a = _template("a", 1)
        override = _personal("a", 1, parent=a.id, is_active=False)
        assert resolve_fields([a], [override], active_only=True) == []

    @pytest.mark.parametrize("active_only", [False, True])
    def test_active_fields_kept(self, active_only: bool) -> None:
        result = resolve_fields([_template("a", 1)], [], active_only=active_only)
        assert [field.name for field in result] == ["a"]

    def test_inactive_kept_without_filter(self) -> None:
        result = resolve_fields([_template("a", 1, is_active=False)], [])
        assert result[0].is_active is False
