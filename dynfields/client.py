"""
dynfields API Client.

This module provides an async Python client for the dynfields REST API.
Definitions are checked locally before any request, so an invalid field
never reaches the network, and HTTP failures are mapped onto a small
exception hierarchy.
"""

from collections.abc import Callable, Mapping, Sequence
from typing import Any, Literal
from uuid import UUID

import httpx

from .exceptions.domain import InvalidFieldDefinitionError
from .models import (
    EffectiveField,
    FieldDefinitionUpdate,
    FieldOrderItem,
    FieldValuesValidation,
    PersonalFieldCreate,
    PersonalFieldRead,
    TemplateFieldCreate,
    TemplateFieldRead,
    UserCreate,
    UserRead,
    UserTypeCreate,
    UserTypeRead,
)
from .services.definitions import check_definition, field_name_error, validation_rule_error
from .settings import settings
from .types import FieldValueMap, FieldValueT
from .utils.logger import logger

type ScopeKind = Literal["template", "personal", "values"]
type Scope = tuple[ScopeKind, UUID | None]


class DynFieldsAPIError(Exception):
    """Base exception for dynfields API errors."""

    def __init__(self, message: str, status_code: int | None = None, detail: Any = None) -> None:
        self.message = message
        self.status_code = status_code
        self.detail = detail
        super().__init__(message)


class NetworkError(DynFieldsAPIError):
    """The request never got a response (connection, timeout, protocol)."""


class ServerError(DynFieldsAPIError):
    """The server answered with a non-2xx status."""


class NotFoundError(ServerError):
    """404: the owner or field doesn't exist."""


class ConflictError(ServerError):
    """409: name conflict or duplicate override."""


class ServerValidationError(ServerError):
    """422: the server rejected a definition or a set of values."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        detail: Any = None,
        errors: dict[str, str] | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code, detail=detail)
        self.errors: dict[str, str] = errors or {}


class RequestCancelledError(DynFieldsAPIError):
    """A read was abandoned because its cancel event was set."""


STATUS_ERRORS: dict[int, type[ServerError]] = {
    404: NotFoundError,
    409: ConflictError,
    422: ServerValidationError,
}


def _check_update(patch: FieldDefinitionUpdate) -> None:
    """Local checks for the attributes a partial update carries."""
    errors: dict[str, str] = {}
    if patch.name is not None and (name_error := field_name_error(patch.name)) is not None:
        errors["name"] = name_error
    if patch.validation is not None and (
        rule_error := validation_rule_error(patch.validation)
    ) is not None:
        errors["validation"] = rule_error
    if errors:
        summary = "; ".join(errors.values())
        raise InvalidFieldDefinitionError(f"Invalid field definition: {summary}", errors=errors)


class DynFieldsClient:
    """Client for interacting with the dynfields API.

    Example:
        ```python
        async with DynFieldsClient("http://localhost:8000") as client:
            user_type = await client.create_user_type({"name": "doctor"})
            await client.create_template_field(
                {"ownerTypeId": str(user_type.id), "name": "clinic", "type": "text"}
            )
            fields = await client.get_effective_fields(user_id)
        ```
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_prefix: str | None = None,
        timeout: float | None = None,
        log_requests: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize dynfields client.

        Args:
            base_url: Server URL, defaults to the configured host and port
            api_prefix: Path the API is mounted under (default from settings)
            timeout: Request timeout in seconds (default from settings)
            log_requests: Enable request/response logging (default: False)
            transport: Custom httpx transport, e.g. ``httpx.ASGITransport`` in tests
        """
        self.base_url = (base_url or f"http://{settings.host}:{settings.port}").rstrip("/")
        prefix = settings.api_prefix if api_prefix is None else api_prefix
        self.api_prefix = prefix.rstrip("/")
        self.log_requests = log_requests
        self._listeners: list[Callable[[Scope], None]] = []

        self.client = httpx.AsyncClient(
            base_url=f"{self.base_url}{self.api_prefix}",
            timeout=settings.client_timeout if timeout is None else timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "DynFieldsClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    def add_change_listener(self, listener: Callable[[Scope], None]) -> None:
        """Register a callback run with the scope touched by every mutating call."""
        self._listeners.append(listener)

    def _changed(self, kind: ScopeKind, owner_id: UUID | None) -> None:
        for listener in self._listeners:
            listener((kind, owner_id))

    def _log_request(self, method: str, url: str, **kwargs: Any) -> None:
        """Log HTTP request if logging is enabled."""
        if self.log_requests:
            logger.debug(f"API Request: {method} {url}", extra={"request_data": kwargs})

    def _log_response(self, response: httpx.Response) -> None:
        """Log HTTP response if logging is enabled."""
        if self.log_requests:
            logger.debug(
                f"API Response: {response.status_code}",
                extra={"response_data": response.text},
            )

    async def _request(self, method: str, endpoint: str, **kwargs: Any) -> httpx.Response:
        """Make HTTP request to API.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: Path below the API prefix (e.g., "/templates")
            **kwargs: Additional arguments passed to httpx request

        Returns:
            HTTP response

        Raises:
            NetworkError: If no response was received
            NotFoundError: On 404
            ConflictError: On 409
            ServerValidationError: On 422
            ServerError: On any other non-2xx status
        """
        self._log_request(method, endpoint, **kwargs)

        try:
            response = await self.client.request(method, endpoint, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"HTTP error during request: {e}")
            raise NetworkError(f"HTTP error: {e!s}") from e

        self._log_response(response)
        if response.status_code < 400:
            return response

        try:
            body = response.json()
        except ValueError:
            body = response.text

        detail = body.get("detail", body) if isinstance(body, dict) else body
        message = f"API error {response.status_code}: {detail}"
        error_class = STATUS_ERRORS.get(response.status_code, ServerError)
        if error_class is ServerValidationError:
            errors = body.get("errors") if isinstance(body, dict) else None
            raise ServerValidationError(
                message,
                status_code=response.status_code,
                detail=detail,
                errors=errors if isinstance(errors, dict) else None,
            )
        raise error_class(message, status_code=response.status_code, detail=detail)

    # ==================== Owners ====================

    async def create_user_type(self, user_type: UserTypeCreate | dict[str, Any]) -> UserTypeRead:
        if isinstance(user_type, dict):
            user_type = UserTypeCreate.model_validate(user_type)
        response = await self._request(
            "POST", "/user-types", json=user_type.model_dump(by_alias=True, mode="json")
        )
        return UserTypeRead.model_validate(response.json())

    async def get_user_type(self, user_type_id: UUID) -> UserTypeRead:
        response = await self._request("GET", f"/user-types/{user_type_id}")
        return UserTypeRead.model_validate(response.json())

    async def list_user_types(self) -> list[UserTypeRead]:
        response = await self._request("GET", "/user-types")
        return [UserTypeRead.model_validate(item) for item in response.json()]

    async def create_user(self, user: UserCreate | dict[str, Any]) -> UserRead:
        if isinstance(user, dict):
            user = UserCreate.model_validate(user)
        response = await self._request(
            "POST", "/users", json=user.model_dump(by_alias=True, mode="json")
        )
        return UserRead.model_validate(response.json())

    async def get_user(self, user_id: UUID) -> UserRead:
        response = await self._request("GET", f"/users/{user_id}")
        return UserRead.model_validate(response.json())

    # ==================== Template fields ====================

    async def list_template_fields(self, owner_type_id: UUID) -> list[TemplateFieldRead]:
        """Get the fields of a user type in display order."""
        response = await self._request("GET", f"/templates/{owner_type_id}")
        return [TemplateFieldRead.model_validate(item) for item in response.json()]

    async def create_template_field(
        self, field: TemplateFieldCreate | dict[str, Any]
    ) -> TemplateFieldRead:
        """Create a template field.

        Args:
            field: Field definition (model or camelCase dict)

        Returns:
            Created field

        Raises:
            InvalidFieldDefinitionError: If the definition fails local checks
        """
        if isinstance(field, dict):
            field = TemplateFieldCreate.model_validate(field)
        check_definition(field)

        response = await self._request(
            "POST", "/templates", json=field.model_dump(by_alias=True, mode="json")
        )
        self._changed("template", field.owner_type_id)
        return TemplateFieldRead.model_validate(response.json())

    async def update_template_field(
        self, field_id: UUID, patch: FieldDefinitionUpdate | dict[str, Any]
    ) -> TemplateFieldRead:
        if isinstance(patch, dict):
            patch = FieldDefinitionUpdate.model_validate(patch)
        _check_update(patch)

        response = await self._request(
            "PUT",
            f"/templates/{field_id}",
            json=patch.model_dump(by_alias=True, mode="json", exclude_unset=True),
        )
        updated = TemplateFieldRead.model_validate(response.json())
        self._changed("template", updated.owner_type_id)
        return updated

    async def delete_template_field(self, field_id: UUID) -> None:
        """Delete a template field; overrides of it become personal fields."""
        await self._request("DELETE", f"/templates/{field_id}")
        self._changed("template", None)
        self._changed("personal", None)

    async def duplicate_template_field(self, field_id: UUID) -> TemplateFieldRead:
        response = await self._request("POST", f"/templates/{field_id}/duplicate")
        clone = TemplateFieldRead.model_validate(response.json())
        self._changed("template", clone.owner_type_id)
        return clone

    async def set_template_field_status(self, field_id: UUID, is_active: bool) -> TemplateFieldRead:
        response = await self._request(
            "PATCH", f"/templates/{field_id}/status", json={"isActive": is_active}
        )
        updated = TemplateFieldRead.model_validate(response.json())
        self._changed("template", updated.owner_type_id)
        return updated

    async def reorder_template_fields(
        self, owner_type_id: UUID, items: Sequence[FieldOrderItem | dict[str, Any]]
    ) -> list[TemplateFieldRead]:
        """Apply new orders to the fields of a user type atomically."""
        payload = {
            "ownerTypeId": str(owner_type_id),
            "items": [_order_item(item) for item in items],
        }
        response = await self._request("POST", "/templates/reorder", json=payload)
        self._changed("template", owner_type_id)
        return [TemplateFieldRead.model_validate(item) for item in response.json()]

    # ==================== Personal fields ====================

    async def list_personal_fields(self, owner_user_id: UUID) -> list[PersonalFieldRead]:
        response = await self._request("GET", f"/personal/{owner_user_id}")
        return [PersonalFieldRead.model_validate(item) for item in response.json()]

    async def get_effective_fields(
        self, owner_user_id: UUID, active_only: bool = False
    ) -> list[EffectiveField]:
        """Get the fields a user sees, resolved by the server."""
        response = await self._request(
            "GET",
            f"/personal/{owner_user_id}/effective",
            params={"activeOnly": str(active_only).lower()},
        )
        return [EffectiveField.model_validate(item) for item in response.json()]

    async def create_personal_field(
        self, owner_user_id: UUID, field: PersonalFieldCreate | dict[str, Any]
    ) -> PersonalFieldRead:
        """Create a personal field, or an override when ``parentFieldId`` is set.

        Raises:
            InvalidFieldDefinitionError: If the definition fails local checks
        """
        if isinstance(field, dict):
            field = PersonalFieldCreate.model_validate(field)
        check_definition(field)

        response = await self._request(
            "POST",
            f"/personal/{owner_user_id}",
            json=field.model_dump(by_alias=True, mode="json"),
        )
        self._changed("personal", owner_user_id)
        return PersonalFieldRead.model_validate(response.json())

    async def update_personal_field(
        self,
        owner_user_id: UUID,
        field_id: UUID,
        patch: FieldDefinitionUpdate | dict[str, Any],
    ) -> PersonalFieldRead:
        if isinstance(patch, dict):
            patch = FieldDefinitionUpdate.model_validate(patch)
        _check_update(patch)

        response = await self._request(
            "PUT",
            f"/personal/{owner_user_id}/{field_id}",
            json=patch.model_dump(by_alias=True, mode="json", exclude_unset=True),
        )
        self._changed("personal", owner_user_id)
        return PersonalFieldRead.model_validate(response.json())

    async def delete_personal_field(self, owner_user_id: UUID, field_id: UUID) -> None:
        await self._request("DELETE", f"/personal/{owner_user_id}/{field_id}")
        self._changed("personal", owner_user_id)

    async def duplicate_personal_field(
        self, owner_user_id: UUID, field_id: UUID
    ) -> PersonalFieldRead:
        response = await self._request("POST", f"/personal/{owner_user_id}/{field_id}/duplicate")
        self._changed("personal", owner_user_id)
        return PersonalFieldRead.model_validate(response.json())

    async def set_personal_field_status(
        self, owner_user_id: UUID, field_id: UUID, is_active: bool
    ) -> PersonalFieldRead:
        response = await self._request(
            "PATCH",
            f"/personal/{owner_user_id}/{field_id}/status",
            json={"isActive": is_active},
        )
        self._changed("personal", owner_user_id)
        return PersonalFieldRead.model_validate(response.json())

    async def reorder_personal_fields(
        self, owner_user_id: UUID, items: Sequence[FieldOrderItem | dict[str, Any]]
    ) -> list[PersonalFieldRead]:
        response = await self._request(
            "POST",
            f"/personal/{owner_user_id}/reorder",
            json={"items": [_order_item(item) for item in items]},
        )
        self._changed("personal", owner_user_id)
        return [PersonalFieldRead.model_validate(item) for item in response.json()]

    async def override_template_field(
        self,
        owner_user_id: UUID,
        template_field_id: UUID,
        overrides: FieldDefinitionUpdate | dict[str, Any] | None = None,
    ) -> PersonalFieldRead:
        """Copy a template field into the user's scope with the given changes."""
        if overrides is None:
            overrides = FieldDefinitionUpdate()
        elif isinstance(overrides, dict):
            overrides = FieldDefinitionUpdate.model_validate(overrides)
        _check_update(overrides)

        response = await self._request(
            "POST",
            f"/personal/{owner_user_id}/override/{template_field_id}",
            json=overrides.model_dump(by_alias=True, mode="json", exclude_unset=True),
        )
        self._changed("personal", owner_user_id)
        return PersonalFieldRead.model_validate(response.json())

    async def reset_personal_field(self, owner_user_id: UUID, field_id: UUID) -> None:
        """Drop an override so the template definition is inherited again."""
        await self._request("DELETE", f"/personal/{owner_user_id}/{field_id}/reset")
        self._changed("personal", owner_user_id)

    # ==================== Values ====================

    async def load_values(self, owner_user_id: UUID) -> FieldValueMap:
        response = await self._request("GET", f"/personal/{owner_user_id}/values")
        values: FieldValueMap = response.json()
        return values

    async def save_values(
        self,
        owner_user_id: UUID,
        values: Mapping[str, FieldValueT],
        validate: bool = True,
    ) -> FieldValueMap:
        """Upsert a partial value map.

        Returns:
            Every stored value of the user after the save

        Raises:
            ServerValidationError: If the values fail validation; ``errors``
                holds the message of each failing field
        """
        response = await self._request(
            "PUT",
            f"/personal/{owner_user_id}/values",
            json=dict(values),
            params={"validate": str(validate).lower()},
        )
        self._changed("values", owner_user_id)
        saved: FieldValueMap = response.json()
        return saved

    async def save_value(
        self, owner_user_id: UUID, field_name: str, value: FieldValueT
    ) -> FieldValueMap:
        return await self.save_values(owner_user_id, {field_name: value})

    async def delete_value(self, owner_user_id: UUID, field_name: str) -> None:
        await self._request("DELETE", f"/personal/{owner_user_id}/values/{field_name}")
        self._changed("values", owner_user_id)

    async def validate_values(
        self, owner_user_id: UUID, values: Mapping[str, FieldValueT]
    ) -> FieldValuesValidation:
        response = await self._request(
            "POST", f"/personal/{owner_user_id}/values/validate", json={"values": dict(values)}
        )
        return FieldValuesValidation.model_validate(response.json())

    async def export_values(
        self,
        owner_user_id: UUID,
        export_format: Literal["json", "csv"] = "json",
        include_inherited: bool = True,
    ) -> dict[str, Any] | str:
        """Export the effective fields of a user with their values.

        Returns:
            Parsed JSON for ``json``, raw CSV text for ``csv``
        """
        response = await self._request(
            "GET",
            f"/personal/{owner_user_id}/values/export",
            params={"format": export_format, "includeInherited": str(include_inherited).lower()},
        )
        if export_format == "csv":
            return response.text
        exported: dict[str, Any] = response.json()
        return exported

    async def health(self) -> dict[str, str]:
        response = await self._request("GET", "/health")
        status: dict[str, str] = response.json()
        return status


def _order_item(item: FieldOrderItem | dict[str, Any]) -> dict[str, Any]:
    if isinstance(item, dict):
        item = FieldOrderItem.model_validate(item)
    return item.model_dump(by_alias=True, mode="json")
