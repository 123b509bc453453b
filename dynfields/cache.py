"""Client-side cache of field definitions and values, keyed by scope.

A scope is ``(kind, owner_id)``: ``("template", owner_type_id)``,
``("personal", owner_user_id)`` or ``("values", owner_user_id)``. Entries
expire after a TTL and are dropped whenever the wrapped client mutates
their scope. Effective fields are resolved locally from the two cached
definition scopes.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any
from uuid import UUID

from cachetools import TTLCache

from .client import DynFieldsClient, RequestCancelledError, Scope, ScopeKind
from .models import EffectiveField, PersonalFieldRead, TemplateFieldRead
from .services.resolution import resolve_fields
from .settings import settings
from .types import FieldValueMap
from .utils.logger import logger


async def run_cancellable[T](
    operation: Awaitable[T], cancel_event: asyncio.Event | None = None
) -> T:
    """Await an operation unless ``cancel_event`` is set first.

    Args:
        operation: Awaitable to run
        cancel_event: Event that abandons the operation when set

    Returns:
        The operation's result

    Raises:
        RequestCancelledError: If the event was set before the operation finished
    """
    task = asyncio.ensure_future(operation)
    if cancel_event is None:
        return await task
    if cancel_event.is_set():
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        raise RequestCancelledError("Request cancelled before it was sent")

    waiter = asyncio.ensure_future(cancel_event.wait())
    done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    if task in done:
        waiter.cancel()
        await asyncio.gather(waiter, return_exceptions=True)
        return task.result()

    task.cancel()
    await asyncio.gather(task, return_exceptions=True)
    raise RequestCancelledError("Request cancelled")


class FieldCache:
    """Per-scope TTL cache in front of a ``DynFieldsClient``.

    Reads go through the cache; mutating calls made on the same client
    invalidate the scope they touched, so the next read fetches fresh data.
    """

    def __init__(
        self,
        client: DynFieldsClient,
        ttl_seconds: float | None = None,
        max_entries: int | None = None,
    ):
        """Initialize the cache.

        Args:
            client: API client used for cache misses
            ttl_seconds: Lifetime of an entry (default from settings)
            max_entries: Maximum number of cached scopes (default from settings)
        """
        self.client = client
        self._cache: TTLCache[Scope, Any] = TTLCache(
            maxsize=max_entries or settings.client_cache_size,
            ttl=settings.client_cache_ttl if ttl_seconds is None else ttl_seconds,
        )
        client.add_change_listener(self.invalidate)

    def __contains__(self, scope: Scope) -> bool:
        return scope in self._cache

    def __len__(self) -> int:
        return len(self._cache)

    def invalidate(self, scope: Scope) -> None:
        """Drop a cached scope. An owner ID of None drops every scope of that kind."""
        kind, owner_id = scope
        if owner_id is not None:
            self._cache.pop(scope, None)
            return
        for key in [key for key in self._cache if key[0] == kind]:
            self._cache.pop(key, None)

    def clear(self) -> None:
        self._cache.clear()

    async def _read[T](
        self,
        scope: Scope,
        loader: Callable[[], Awaitable[T]],
        cancel_event: asyncio.Event | None,
    ) -> T:
        cached: T | None = self._cache.get(scope)
        if cached is not None:
            return cached

        result = await run_cancellable(loader(), cancel_event)
        self._cache[scope] = result
        logger.debug(f"Cached {scope[0]} scope {scope[1]}")
        return result

    async def template_fields(
        self, owner_type_id: UUID, cancel_event: asyncio.Event | None = None
    ) -> list[TemplateFieldRead]:
        return await self._read(
            ("template", owner_type_id),
            lambda: self.client.list_template_fields(owner_type_id),
            cancel_event,
        )

    async def personal_fields(
        self, owner_user_id: UUID, cancel_event: asyncio.Event | None = None
    ) -> list[PersonalFieldRead]:
        return await self._read(
            ("personal", owner_user_id),
            lambda: self.client.list_personal_fields(owner_user_id),
            cancel_event,
        )

    async def values(
        self, owner_user_id: UUID, cancel_event: asyncio.Event | None = None
    ) -> FieldValueMap:
        return await self._read(
            ("values", owner_user_id),
            lambda: self.client.load_values(owner_user_id),
            cancel_event,
        )

    async def effective_fields(
        self,
        owner_type_id: UUID,
        owner_user_id: UUID,
        active_only: bool = False,
        cancel_event: asyncio.Event | None = None,
    ) -> list[EffectiveField]:
        """Resolve a user's effective fields from both cached tiers.

        The template and personal reads run concurrently; resolution starts
        once both are complete.

        Raises:
            RequestCancelledError: If ``cancel_event`` is set before both reads finish
        """
        templates, personal = await asyncio.gather(
            self.template_fields(owner_type_id, cancel_event),
            self.personal_fields(owner_user_id, cancel_event),
        )
        return resolve_fields(templates, personal, active_only=active_only)

    async def refresh(
        self, scope: Scope, cancel_event: asyncio.Event | None = None
    ) -> Any:
        """Drop a scope and load it again.

        Returns:
            The freshly loaded scope content
        """
        kind, owner_id = scope
        if owner_id is None:
            raise ValueError("refresh needs a concrete owner ID")
        self.invalidate(scope)

        loaders: dict[ScopeKind, Callable[[UUID, asyncio.Event | None], Awaitable[Any]]] = {
            "template": self.template_fields,
            "personal": self.personal_fields,
            "values": self.values,
        }
        return await loaders[kind](owner_id, cancel_event)
