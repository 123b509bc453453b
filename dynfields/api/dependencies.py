"""
Common dependencies for dynfields API endpoints.

Repositories and services are built per request on top of the request's
database session, so every operation of one request shares a transaction.
"""

from typing import Annotated

from fastapi import Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..repositories import (
    FieldValueRepository,
    PersonalFieldRepository,
    TemplateFieldRepository,
    UserRepository,
    UserTypeRepository,
)
from ..services import FieldValueService, PersonalFieldService, TemplateFieldService
from ..services.owner_service import OwnerService
from ..utils.database import get_async_session

SessionDep = Annotated[AsyncSession, Depends(get_async_session)]


# Repositories


async def get_template_field_repository(session: SessionDep) -> TemplateFieldRepository:
    return TemplateFieldRepository(session)


async def get_personal_field_repository(session: SessionDep) -> PersonalFieldRepository:
    return PersonalFieldRepository(session)


async def get_field_value_repository(session: SessionDep) -> FieldValueRepository:
    return FieldValueRepository(session)


async def get_user_type_repository(session: SessionDep) -> UserTypeRepository:
    return UserTypeRepository(session)


async def get_user_repository(session: SessionDep) -> UserRepository:
    return UserRepository(session)


TemplateFieldRepositoryDep = Annotated[
    TemplateFieldRepository, Depends(get_template_field_repository)
]
PersonalFieldRepositoryDep = Annotated[
    PersonalFieldRepository, Depends(get_personal_field_repository)
]
FieldValueRepositoryDep = Annotated[FieldValueRepository, Depends(get_field_value_repository)]
UserTypeRepositoryDep = Annotated[UserTypeRepository, Depends(get_user_type_repository)]
UserRepositoryDep = Annotated[UserRepository, Depends(get_user_repository)]


# Services


async def get_template_field_service(
    template_repo: TemplateFieldRepositoryDep,
    personal_repo: PersonalFieldRepositoryDep,
    user_type_repo: UserTypeRepositoryDep,
) -> TemplateFieldService:
    """
    Get template field service instance.

    Args:
        template_repo: Template field repository
        personal_repo: Personal field repository
        user_type_repo: User type repository

    Returns:
        TemplateFieldService instance
    """
    return TemplateFieldService(template_repo, personal_repo, user_type_repo)


async def get_personal_field_service(
    personal_repo: PersonalFieldRepositoryDep,
    template_repo: TemplateFieldRepositoryDep,
    user_repo: UserRepositoryDep,
) -> PersonalFieldService:
    """
    Get personal field service instance.

    Args:
        personal_repo: Personal field repository
        template_repo: Template field repository
        user_repo: User repository

    Returns:
        PersonalFieldService instance
    """
    return PersonalFieldService(personal_repo, template_repo, user_repo)


PersonalFieldServiceDep = Annotated[PersonalFieldService, Depends(get_personal_field_service)]
TemplateFieldServiceDep = Annotated[TemplateFieldService, Depends(get_template_field_service)]


async def get_field_value_service(
    personal_service: PersonalFieldServiceDep,
    value_repo: FieldValueRepositoryDep,
) -> FieldValueService:
    return FieldValueService(personal_service, value_repo)


async def get_owner_service(
    user_type_repo: UserTypeRepositoryDep,
    user_repo: UserRepositoryDep,
) -> OwnerService:
    return OwnerService(user_type_repo, user_repo)


FieldValueServiceDep = Annotated[FieldValueService, Depends(get_field_value_service)]
OwnerServiceDep = Annotated[OwnerService, Depends(get_owner_service)]


# Query parameters


async def active_only_parameter(
    active_only: bool = Query(
        False, alias="activeOnly", description="Only return fields marked active"
    ),
) -> bool:
    return active_only


ActiveOnlyDep = Annotated[bool, Depends(active_only_parameter)]
