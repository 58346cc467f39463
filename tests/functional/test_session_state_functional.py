"""Functional tests for session state: merge semantics, backends and keys."""

from __future__ import annotations

import asyncio
import re
from typing import Any, Dict

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from forms_engine.config import AppConfig
from forms_engine.errors import StateError
from forms_engine.logic.form_context import FormRequest
from forms_engine.logic.pages.base import page_error
from forms_engine.logic.reference_numbers import generate_unique_reference
from forms_engine.logic.state import merge
from forms_engine.services.cache_service import CacheService, MemoryCacheBackend, SqlCacheBackend


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _request(session_id: str = "sid", slug: str = "register-pets", state: str = "") -> FormRequest:
    params: Dict[str, Any] = {"slug": slug}
    if state:
        params["state"] = state
    return FormRequest(params=params, session_id=session_id)


def test_merge_replaces_lists_wholesale() -> None:
    assert merge({"a": [1, 2]}, {"a": [3]}) == {"a": [3]}


def test_merge_deep_merges_mappings_without_mutating_input() -> None:
    state = {"address": {"town": "Leeds", "postcode": "LS1"}, "pets": [{"name": "Rex"}]}
    merged = merge(state, {"address": {"postcode": "LS2"}})
    assert merged == {"address": {"town": "Leeds", "postcode": "LS2"}, "pets": [{"name": "Rex"}]}
    assert state["address"]["postcode"] == "LS1"


def test_keys_are_scoped_by_session_state_and_slug() -> None:
    cache = CacheService()
    assert cache.key(_request()) == "sid::register-pets:"
    assert cache.key(_request(state="draft"), ":flash") == "sid:draft:register-pets::flash"
    with pytest.raises(StateError, match="No session ID found"):
        cache.key(_request(session_id=""))


def test_memory_backend_expires_entries() -> None:
    clock = FakeClock()
    backend = MemoryCacheBackend(clock=clock)
    config = AppConfig(session_timeout=1000)
    cache = CacheService(backend, config=config)
    request = _request()

    asyncio.run(cache.set_state(request, {"fullName": "Ada"}))
    assert asyncio.run(cache.get_state(request)) == {"fullName": "Ada"}
    clock.now += 2
    assert asyncio.run(cache.get_state(request)) == {}


def test_state_records_are_isolated_per_form() -> None:
    cache = CacheService()
    asyncio.run(cache.set_state(_request(slug="one"), {"x": 1}))
    assert asyncio.run(cache.get_state(_request(slug="two"))) == {}
    assert asyncio.run(cache.get_state(_request(slug="one", state="draft"))) == {}


def test_flash_is_read_once() -> None:
    cache = CacheService()
    request = _request()
    asyncio.run(cache.set_flash(request, [page_error("fullName", "Enter full name", "required")]))

    flash = asyncio.run(cache.get_flash(request))
    assert [e.text for e in flash["errors"]] == ["Enter full name"]
    assert asyncio.run(cache.get_flash(request)) is None


def test_confirmation_state_survives_clear_state() -> None:
    cache = CacheService()
    request = _request()
    asyncio.run(cache.set_state(request, {"x": 1}))
    asyncio.run(cache.set_confirmation_state(request, {"confirmed": True}))
    asyncio.run(cache.clear_state(request))
    assert asyncio.run(cache.get_state(request)) == {}
    assert asyncio.run(cache.get_confirmation_state(request)) == {"confirmed": True}


def test_session_hydrator_fills_a_cache_miss() -> None:
    calls = []

    async def hydrate(request: FormRequest) -> Dict[str, Any]:
        calls.append(request.session_id)
        return {"fullName": "Restored"}

    cache = CacheService(session_hydrator=hydrate)
    assert asyncio.run(cache.get_state(_request())) == {"fullName": "Restored"}
    assert asyncio.run(cache.get_state(_request())) == {"fullName": "Restored"}
    assert calls == ["sid"]


def test_sql_backend_round_trip_and_expiry() -> None:
    engine = create_engine("sqlite+pysqlite:///:memory:", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    clock = FakeClock()
    cache = CacheService(SqlCacheBackend(engine, clock=clock), config=AppConfig(session_timeout=1000))
    request = _request()

    asyncio.run(cache.set_state(request, {"pets": [{"petName": "Rex"}]}))
    asyncio.run(cache.merge_state(request, {"pets": [{"petName": "Tom"}]}))
    assert asyncio.run(cache.get_state(request)) == {"pets": [{"petName": "Tom"}]}

    clock.now += 5
    assert asyncio.run(cache.get_state(request)) == {}


REFERENCE = re.compile(r"^[0-9A-F]{3}-[0-9A-F]{3}-[0-9A-F]{3}$")
PREFIXED = re.compile(r"^PET-[0-9A-F]{3}-[0-9A-F]{3}$")


def test_reference_numbers_are_uppercase_hex_segments() -> None:
    assert REFERENCE.match(generate_unique_reference())
    assert PREFIXED.match(generate_unique_reference("PET"))


def test_successive_reference_numbers_differ() -> None:
    references = {generate_unique_reference() for _ in range(50)}
    assert len(references) > 1
