"""Service layer for per-user field values.

Values are checked against the user's active effective fields before they
are stored and can be exported alongside the definitions they belong to.
"""

import csv
import io
from collections.abc import Mapping
from typing import Any, Literal, assert_never
from uuid import UUID

from ..exceptions.domain import FieldValuesInvalidError
from ..models.base import FieldOrigin, FieldType
from ..models.value import FieldValuesValidation
from ..repositories.field_value_repository import FieldValueRepository
from ..types import FieldValueMap, FieldValueT
from ..utils.logger import logger
from .field_service import PersonalFieldService
from .validation import validate_all

type ExportFormat = Literal["json", "csv"]

EXPORT_COLUMNS = ("field", "label", "origin", "value")


def _scalar_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return ";".join(_scalar_text(item) for item in value)
    return str(value)


def _csv_cell(field_type: FieldType, value: FieldValueT) -> str:
    """Render a stored value for one CSV cell according to its field type."""
    kind = field_type.value_kind
    match kind:
        case "list":
            items = value if isinstance(value, list) else [value]
            return ";".join(_scalar_text(item) for item in items if item is not None)
        case "boolean":
            if value is None:
                return ""
            return "true" if value else "false"
        case "string" | "number" | "date" | "file":
            return _scalar_text(value)
        case _:
            assert_never(kind)


class FieldValueService:
    """Load, save, validate and export the values of a user."""

    def __init__(self, personal_service: PersonalFieldService, value_repo: FieldValueRepository):
        """Initialize value service.

        Args:
            personal_service: Resolves effective fields and checks the user exists
            value_repo: Field value repository
        """
        self.personal_service = personal_service
        self.value_repo = value_repo

    async def load_values(self, owner_user_id: UUID) -> FieldValueMap:
        """Load all stored values of a user.

        Raises:
            UserNotFoundError: If the user doesn't exist
        """
        await self.personal_service.user_repo.get(owner_user_id)
        return await self.value_repo.load(owner_user_id)

    async def save_values(
        self,
        owner_user_id: UUID,
        values: Mapping[str, FieldValueT],
        validate: bool = True,
    ) -> FieldValueMap:
        """Upsert a partial value map.

        With ``validate`` the stored values merged with the incoming ones
        must satisfy every active effective field, otherwise nothing is stored.

        Args:
            owner_user_id: Owner of the values
            values: Field name to value; names without a definition are kept as is
            validate: Check the merged values before persisting

        Returns:
            All values of the user after the save

        Raises:
            UserNotFoundError: If the user doesn't exist
            FieldValuesInvalidError: If the merged values fail validation
        """
        if validate:
            fields = await self.personal_service.effective_fields(owner_user_id, active_only=True)
            stored = await self.value_repo.load(owner_user_id)
            errors = validate_all(fields, {**stored, **values})
            if errors:
                logger.warning(
                    f"Rejected values for user '{owner_user_id}': {', '.join(sorted(errors))}"
                )
                raise FieldValuesInvalidError(errors)
        else:
            await self.personal_service.user_repo.get(owner_user_id)

        return await self.value_repo.save(owner_user_id, values)

    async def delete_value(self, owner_user_id: UUID, field_name: str) -> bool:
        """Delete one stored value.

        Raises:
            UserNotFoundError: If the user doesn't exist
        """
        await self.personal_service.user_repo.get(owner_user_id)
        return await self.value_repo.delete_value(owner_user_id, field_name)

    async def validate_values(
        self, owner_user_id: UUID, values: Mapping[str, FieldValueT]
    ) -> FieldValuesValidation:
        """Validate a complete value map against the active effective fields."""
        fields = await self.personal_service.effective_fields(owner_user_id, active_only=True)
        errors = validate_all(fields, values)
        return FieldValuesValidation(is_valid=not errors, field_errors=errors)

    async def export_rows(
        self, owner_user_id: UUID, include_inherited: bool = True
    ) -> list[dict[str, Any]]:
        """Effective fields of a user paired with their stored values.

        Args:
            owner_user_id: User to export
            include_inherited: Keep fields that come unchanged from the user type

        Returns:
            One row per field in display order
        """
        fields = await self.personal_service.effective_fields(owner_user_id, active_only=True)
        values = await self.value_repo.load(owner_user_id)
        return [
            {
                "field": field.name,
                "label": field.display_label,
                "origin": field.origin.value,
                "type": field.type.value,
                "value": values.get(field.name),
            }
            for field in fields
            if include_inherited or field.origin != FieldOrigin.INHERITED
        ]

    async def export_values(
        self,
        owner_user_id: UUID,
        export_format: ExportFormat = "json",
        include_inherited: bool = True,
    ) -> dict[str, Any] | str:
        """Export the effective fields and values of a user.

        Returns:
            A JSON-ready dict for ``json``, CSV text for ``csv``
        """
        rows = await self.export_rows(owner_user_id, include_inherited)
        if export_format == "json":
            return {"userId": str(owner_user_id), "fields": rows}

        buffer = io.StringIO()
        writer = csv.DictWriter(
            buffer, fieldnames=EXPORT_COLUMNS, lineterminator="\n", extrasaction="ignore"
        )
        writer.writeheader()
        for row in rows:
            writer.writerow({**row, "value": _csv_cell(FieldType(row["type"]), row["value"])})
        return buffer.getvalue()
