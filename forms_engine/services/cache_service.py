"""Session state cache.

Each user journey keeps three records per form: the answers, a confirmation
flag set after submission and a one-shot flash of validation errors. Records
are keyed by session id, form state and slug so several forms on one server
never share answers.
"""

from __future__ import annotations

import asyncio
import copy
import inspect
import json
import logging
import time
from typing import Any, Awaitable, Callable, Mapping, Optional, Protocol, Union

from sqlalchemy import delete, select
from sqlalchemy.engine import Engine

from forms_engine.config import AppConfig
from forms_engine.db.base import SessionCacheEntry, create_tables, get_engine, session_scope
from forms_engine.errors import StateError
from forms_engine.logic.state import merge
from forms_engine.models.submission import FormSubmissionError

logger = logging.getLogger(__name__)

CONFIRMATION_SUFFIX = ":confirmation"
FLASH_SUFFIX = ":flash"

KeyGenerator = Callable[[Any], str]
SessionHydrator = Callable[[Any], Union[Optional[dict], Awaitable[Optional[dict]]]]


class CacheBackend(Protocol):
    async def get(self, key: str) -> Optional[Any]: ...

    async def set(self, key: str, value: Any, ttl_ms: int) -> None: ...

    async def drop(self, key: str) -> None: ...


class MemoryCacheBackend:
    """Process-local backend; values are deep-copied in and out."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._items: dict[str, tuple[float, Any]] = {}
        self._clock = clock

    async def get(self, key: str) -> Optional[Any]:
        entry = self._items.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if expires_at <= self._clock():
            self._items.pop(key, None)
            return None
        return copy.deepcopy(value)

    async def set(self, key: str, value: Any, ttl_ms: int) -> None:
        self._items[key] = (self._clock() + ttl_ms / 1000, copy.deepcopy(value))

    async def drop(self, key: str) -> None:
        self._items.pop(key, None)


class SqlCacheBackend:
    """Backend storing JSON documents in the ``form_session_cache`` table."""

    def __init__(self, engine: Optional[Engine] = None, clock: Callable[[], float] = time.time) -> None:
        self.engine = engine or get_engine()
        self._clock = clock
        create_tables(self.engine)

    def _get(self, key: str) -> Optional[Any]:
        with session_scope(self.engine) as session:
            entry = session.execute(
                select(SessionCacheEntry).where(SessionCacheEntry.key == key)
            ).scalar_one_or_none()
            if entry is None:
                return None
            if entry.expires_at <= self._clock():
                session.delete(entry)
                return None
            return json.loads(entry.value)

    def _set(self, key: str, value: Any, ttl_ms: int) -> None:
        with session_scope(self.engine) as session:
            entry = session.get(SessionCacheEntry, key)
            document = json.dumps(value, default=str)
            expires_at = self._clock() + ttl_ms / 1000
            if entry is None:
                session.add(SessionCacheEntry(key=key, value=document, expires_at=expires_at))
            else:
                entry.value = document
                entry.expires_at = expires_at

    def _drop(self, key: str) -> None:
        with session_scope(self.engine) as session:
            session.execute(delete(SessionCacheEntry).where(SessionCacheEntry.key == key))

    async def get(self, key: str) -> Optional[Any]:
        return await asyncio.to_thread(self._get, key)

    async def set(self, key: str, value: Any, ttl_ms: int) -> None:
        await asyncio.to_thread(self._set, key, value, ttl_ms)

    async def drop(self, key: str) -> None:
        await asyncio.to_thread(self._drop, key)


def create_backend(config: AppConfig) -> CacheBackend:
    if config.cache_backend == "sql":
        return SqlCacheBackend(get_engine(config.database_url))
    return MemoryCacheBackend()


class CacheService:
    def __init__(
        self,
        backend: Optional[CacheBackend] = None,
        config: Optional[AppConfig] = None,
        key_generator: Optional[KeyGenerator] = None,
        session_hydrator: Optional[SessionHydrator] = None,
    ) -> None:
        self.backend = backend or MemoryCacheBackend()
        self.config = config or AppConfig()
        self.generate_key = key_generator or self.default_key_generator
        self.session_hydrator = session_hydrator

    @staticmethod
    def default_key_generator(request: Any) -> str:
        if not request.session_id:
            raise StateError("No session ID found")
        state = request.params.get("state") or ""
        slug = request.params.get("slug") or ""
        return f"{request.session_id}:{state}:{slug}:"

    def key(self, request: Any, suffix: str = "") -> str:
        return f"{self.generate_key(request)}{suffix}"

    async def get_state(self, request: Any) -> dict[str, Any]:
        key = self.key(request)
        cached = await self.backend.get(key)
        if cached is None and self.session_hydrator is not None:
            rehydrated = self.session_hydrator(request)
            if inspect.isawaitable(rehydrated):
                rehydrated = await rehydrated
            if rehydrated is not None:
                logger.info("session_rehydrated key=%s", key)
                await self.backend.set(key, rehydrated, self.config.session_timeout)
                cached = await self.backend.get(key)
        return cached or {}

    async def set_state(self, request: Any, state: Mapping[str, Any]) -> dict[str, Any]:
        await self.backend.set(self.key(request), dict(state), self.config.session_timeout)
        return await self.get_state(request)

    async def merge_state(self, request: Any, update: Mapping[str, Any]) -> dict[str, Any]:
        state = await self.get_state(request)
        return await self.set_state(request, merge(state, update))

    async def clear_state(self, request: Any) -> None:
        if request.session_id:
            await self.backend.drop(self.key(request))
            logger.info("session_state_cleared slug=%s", request.params.get("slug"))

    async def get_confirmation_state(self, request: Any) -> dict[str, Any]:
        return await self.backend.get(self.key(request, CONFIRMATION_SUFFIX)) or {}

    async def set_confirmation_state(self, request: Any, confirmation_state: Mapping[str, Any]) -> None:
        await self.backend.set(
            self.key(request, CONFIRMATION_SUFFIX),
            dict(confirmation_state),
            self.config.confirmation_session_timeout,
        )

    async def get_flash(self, request: Any) -> Optional[dict[str, Any]]:
        """Return and forget the flashed message, if any."""
        key = self.key(request, FLASH_SUFFIX)
        message = await self.backend.get(key)
        if message is None:
            return None
        await self.backend.drop(key)
        errors = [FormSubmissionError.model_validate(error) for error in message.get("errors", [])]
        return {**message, "errors": errors}

    async def set_flash(self, request: Any, errors: list[FormSubmissionError]) -> None:
        message = {"errors": [error.model_dump() for error in errors]}
        await self.backend.set(self.key(request, FLASH_SUFFIX), message, self.config.session_timeout)


__all__ = [
    "CONFIRMATION_SUFFIX",
    "CacheBackend",
    "CacheService",
    "FLASH_SUFFIX",
    "MemoryCacheBackend",
    "SqlCacheBackend",
    "create_backend",
]
