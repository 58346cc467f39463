"""Functional tests for before/after satellite rendering order."""

from __future__ import annotations

from typing import Any, Dict, List

import pytest

from forms_engine.logic.components import ComposableComponentCollection
from forms_engine.models.definition import ComponentDef


def _html(name: str, **satellites: Any) -> Dict[str, Any]:
    return {"type": "Html", "name": name, "content": f"<p>{name}</p>", **satellites}


def _names(collection: ComposableComponentCollection) -> List[str]:
    return [c["model"]["name"] for c in collection.get_view_model({})]


def test_satellites_render_before_and_after_in_declaration_order() -> None:
    definition = ComponentDef.model_validate({
        "type": "TextField",
        "name": "main",
        "title": "Main",
        "before": [_html("b1"), _html("b2")],
        "after": [_html("a1"), _html("a2")],
    })
    collection = ComposableComponentCollection([definition])
    assert _names(collection) == ["b1", "b2", "main", "a1", "a2"]


def test_satellites_nest_recursively() -> None:
    definition = ComponentDef.model_validate({
        "type": "TextField",
        "name": "main",
        "title": "Main",
        "before": _html("b1", before=_html("b1-before"), after=_html("b1-after")),
        "after": _html("a1", after=[_html("a1-after")]),
    })
    collection = ComposableComponentCollection([definition])
    assert _names(collection) == ["b1-before", "b1", "b1-after", "main", "a1", "a1-after"]


def test_only_primary_components_are_validated() -> None:
    definition = ComponentDef.model_validate({
        "type": "TextField",
        "name": "main",
        "title": "Main",
        "after": {"type": "TextField", "name": "extra", "title": "Extra"},
    })
    collection = ComposableComponentCollection([definition])
    assert collection.keys == ["main"]
    _, errors = collection.validate({"main": "value"})
    assert errors == []


def test_broken_satellite_is_skipped() -> None:
    definition = ComponentDef.model_validate({
        "type": "TextField",
        "name": "main",
        "title": "Main",
        "before": [{"type": "NotAComponent", "name": "broken"}, _html("ok")],
    })
    collection = ComposableComponentCollection([definition])
    assert _names(collection) == ["ok", "main"]


def _fail_rendering(*args: Any, **kwargs: Any) -> Dict[str, Any]:
    raise ValueError("bad content")


def test_satellite_that_fails_to_render_is_skipped() -> None:
    definition = ComponentDef.model_validate({
        "type": "TextField",
        "name": "main",
        "title": "Main",
        "after": [_html("broken"), _html("ok")],
    })
    collection = ComposableComponentCollection([definition])
    collection.nodes[0].after[0].component.get_view_model = _fail_rendering
    assert _names(collection) == ["main", "ok"]


def test_primary_that_fails_to_render_raises() -> None:
    definition = ComponentDef.model_validate({
        "type": "TextField",
        "name": "main",
        "title": "Main",
        "after": _html("a1"),
    })
    collection = ComposableComponentCollection([definition])
    collection.nodes[0].component.get_view_model = _fail_rendering
    with pytest.raises(ValueError):
        collection.get_view_model({})
