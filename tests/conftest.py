"""Global test configuration: in-memory database, API client and owners."""

from collections.abc import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from dynfields.api.app import app
from dynfields.client import DynFieldsClient

# Import all models to ensure metadata is populated
from dynfields.models import *  # noqa: F403
from dynfields.models import User, UserType
from dynfields.repositories import (
    FieldValueRepository,
    PersonalFieldRepository,
    TemplateFieldRepository,
    UserRepository,
    UserTypeRepository,
)
from dynfields.services import FieldValueService, PersonalFieldService, TemplateFieldService
from dynfields.settings import settings
from dynfields.utils.database import get_async_session

API = settings.api_prefix.rstrip("/")


@pytest_asyncio.fixture
async def test_engine():
    """Create test database engine on a single shared in-memory connection."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def test_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async_session = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def client(test_session) -> AsyncGenerator[AsyncClient, None]:
    """Create test API client bound to the test session."""

    async def override_get_session():
        yield test_session

    app.dependency_overrides[get_async_session] = override_get_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def api_client(test_session) -> AsyncGenerator[DynFieldsClient, None]:
    """DynFieldsClient talking to the app in-process."""

    async def override_get_session():
        yield test_session

    app.dependency_overrides[get_async_session] = override_get_session

    async with DynFieldsClient("http://test", transport=ASGITransport(app=app)) as dynfields_client:
        yield dynfields_client

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Owners
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def user_type(test_session) -> UserType:
    """The user type whose template fields the tests define."""
    user_type = UserType(name="doctor", description="Medical staff")
    test_session.add(user_type)
    await test_session.commit()
    await test_session.refresh(user_type)
    return user_type


@pytest_asyncio.fixture
async def other_user_type(test_session) -> UserType:
    user_type = UserType(name="patient")
    test_session.add(user_type)
    await test_session.commit()
    await test_session.refresh(user_type)
    return user_type


@pytest_asyncio.fixture
async def user(test_session, user_type) -> User:
    """A user of ``user_type``."""
    user = User(username="dr_house", user_type_id=user_type.id)
    test_session.add(user)
    await test_session.commit()
    await test_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def colleague(test_session, user_type) -> User:
    """A second user of the same type, to check per-user isolation."""
    user = User(username="dr_wilson", user_type_id=user_type.id)
    test_session.add(user)
    await test_session.commit()
    await test_session.refresh(user)
    return user


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def template_service(test_session) -> TemplateFieldService:
    return TemplateFieldService(
        TemplateFieldRepository(test_session),
        PersonalFieldRepository(test_session),
        UserTypeRepository(test_session),
    )


@pytest_asyncio.fixture
async def personal_service(test_session) -> PersonalFieldService:
    return PersonalFieldService(
        PersonalFieldRepository(test_session),
        TemplateFieldRepository(test_session),
        UserRepository(test_session),
    )


@pytest_asyncio.fixture
async def value_service(test_session, personal_service) -> FieldValueService:
    return FieldValueService(personal_service, FieldValueRepository(test_session))
