"""
Tests for the dynfields API client.

Most tests run the client against the real FastAPI app and database
in-process; transport failures are simulated with ``httpx.MockTransport``.
"""

from uuid import uuid4

import httpx
import pytest

from dynfields.client import (
    ConflictError,
    DynFieldsClient,
    NetworkError,
    NotFoundError,
    ServerError,
    ServerValidationError,
)
from dynfields.exceptions import InvalidFieldDefinitionError
from dynfields.models import FieldOrigin, User, UserType


def _mock_client(handler) -> DynFieldsClient:
    return DynFieldsClient("http://test", transport=httpx.MockTransport(handler))


class TestOwners:
    """Owner registry through the client."""

    @pytest.mark.asyncio
    async def test_create_and_get(self, api_client: DynFieldsClient) -> None:
        user_type = await api_client.create_user_type({"name": "nurse"})
        user = await api_client.create_user({"username": "carla", "userTypeId": user_type.id})

        assert (await api_client.get_user(user.id)).user_type_id == user_type.id
        assert [item.name for item in await api_client.list_user_types()] == ["nurse"]

    @pytest.mark.asyncio
    async def test_unknown_user(self, api_client: DynFieldsClient) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            await api_client.get_user(uuid4())
        assert exc_info.value.status_code == 404


class TestFieldDefinitions:
    @pytest.mark.asyncio
    async def test_template_and_override(
        self, api_client: DynFieldsClient, user_type: UserType, user: User
    ) -> None:
        phone = await api_client.create_template_field(
            {"ownerTypeId": str(user_type.id), "name": "phone", "label": "Phone"}
        )
        await api_client.override_template_field(user.id, phone.id, {"label": "Mobile"})
        await api_client.create_personal_field(user.id, {"name": "hobby"})

        fields = await api_client.get_effective_fields(user.id)
        assert [(field.name, field.origin, field.label) for field in fields] == [
            ("phone", FieldOrigin.OVERRIDE, "Mobile"),
            ("hobby", FieldOrigin.PERSONAL, ""),
        ]

    @pytest.mark.asyncio
    async def test_invalid_definition_never_sent(self) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(201, json={})

        async with _mock_client(handler) as client:
            with pytest.raises(InvalidFieldDefinitionError) as exc_info:
                await client.create_template_field(
                    {"ownerTypeId": str(uuid4()), "name": "my field", "type": "select"}
                )
            with pytest.raises(InvalidFieldDefinitionError):
                await client.update_template_field(uuid4(), {"validation": {"min": 5, "max": 1}})

        assert set(exc_info.value.errors) == {"name", "options"}
        assert requests == []

    @pytest.mark.asyncio
    async def test_name_conflict(self, api_client: DynFieldsClient, user_type: UserType) -> None:
        payload = {"ownerTypeId": str(user_type.id), "name": "phone"}
        await api_client.create_template_field(payload)
        with pytest.raises(ConflictError):
            await api_client.create_template_field(payload)

    @pytest.mark.asyncio
    async def test_reorder_and_duplicate(
        self, api_client: DynFieldsClient, user_type: UserType
    ) -> None:
        a = await api_client.create_template_field({"ownerTypeId": str(user_type.id), "name": "a"})
        b = await api_client.create_template_field({"ownerTypeId": str(user_type.id), "name": "b"})
        reordered = await api_client.reorder_template_fields(
            user_type.id, [{"fieldId": a.id, "order": 2}, {"fieldId": b.id, "order": 1}]
        )
        assert [field.name for field in reordered] == ["b", "a"]

        clone = await api_client.duplicate_template_field(a.id)
        assert (clone.name, clone.order) == ("a_copy", 3)


class TestValues:
    @pytest.mark.asyncio
    async def test_server_validation_errors(
        self, api_client: DynFieldsClient, user_type: UserType, user: User
    ) -> None:
        await api_client.create_template_field(
            {
                "ownerTypeId": str(user_type.id),
                "name": "age",
                "label": "Age",
                "type": "number",
                "validation": {"required": True, "min": 18},
            }
        )
        with pytest.raises(ServerValidationError) as exc_info:
            await api_client.save_values(user.id, {"age": 4})
        assert exc_info.value.errors == {"age": "Age must be at least 18"}

        assert await api_client.save_value(user.id, "age", 30) == {"age": 30}
        assert await api_client.load_values(user.id) == {"age": 30}

    @pytest.mark.asyncio
    async def test_validate_and_export(self, api_client: DynFieldsClient, user: User) -> None:
        await api_client.create_personal_field(
            user.id, {"name": "motto", "label": "Motto", "validation": {"maxLength": 5}}
        )
        result = await api_client.validate_values(user.id, {"motto": "too long"})
        assert result.field_errors == {"motto": "Motto must be at most 5 characters"}

        await api_client.save_values(user.id, {"motto": "carpe"})
        text = await api_client.export_values(user.id, "csv")
        assert text.splitlines()[1] == "motto,Motto,personal,carpe"

    @pytest.mark.asyncio
    async def test_delete_missing_value(self, api_client: DynFieldsClient, user: User) -> None:
        with pytest.raises(NotFoundError):
            await api_client.delete_value(user.id, "nothing")


class TestTransport:
    @pytest.mark.asyncio
    async def test_connection_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _mock_client(handler) as client:
            with pytest.raises(NetworkError):
                await client.health()

    @pytest.mark.asyncio
    async def test_unexpected_status(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, json={"detail": "Database operation failed"})

        async with _mock_client(handler) as client:
            with pytest.raises(ServerError) as exc_info:
                await client.list_user_types()

        assert exc_info.value.status_code == 500
        assert exc_info.value.detail == "Database operation failed"

    @pytest.mark.asyncio
    async def test_prefix_applied(self) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.path)
            return httpx.Response(200, json={"status": "ok", "version": "0.1.0"})

        async with _mock_client(handler) as client:
            await client.health()
        assert seen == ["/api/health"]

    @pytest.mark.asyncio
    async def test_change_listeners(self) -> None:
        type_id = uuid4()

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                201,
                json={"id": str(uuid4()), "ownerTypeId": str(type_id), "name": "a", "order": 1},
            )

        scopes = []
        async with _mock_client(handler) as client:
            client.add_change_listener(scopes.append)
            await client.create_template_field({"ownerTypeId": str(type_id), "name": "a"})
        assert scopes == [("template", type_id)]
