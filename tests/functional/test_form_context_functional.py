"""Functional tests for the per-request form context walk."""

from __future__ import annotations

from typing import Any, Dict

import pytest

from forms_engine.errors import StateError
from forms_engine.logic.form_context import CHANGED_OPTIONS_MESSAGE, FormRequest
from forms_engine.logic.form_model import FormModel
from forms_engine.logic.helpers import REFERENCE_NUMBER_KEY

REF = {REFERENCE_NUMBER_KEY: "PET-ABC-123"}
DETAILS = {"fullName": "Ada Lovelace", "email": "ada@example.com"}


def _get(path: str, **query: str) -> FormRequest:
    return FormRequest(params={"slug": "register-pets", "path": path}, query=dict(query), session_id="sid")


def test_walk_stops_at_the_first_incomplete_page(pets_model: FormModel) -> None:
    context = pets_model.get_form_context(_get("has-pets"), {**REF, **DETAILS})
    assert context.paths == ["/your-details", "/has-pets"]
    assert context.relevant_state["fullName"] == "Ada Lovelace"
    assert context.reference_number == "PET-ABC-123"


def test_hidden_conditional_page_is_skipped(pets_model: FormModel) -> None:
    state = {**REF, **DETAILS, "hasPets": False, "pets": [{"itemId": "x", "petName": "Rex", "petType": "dog"}]}
    context = pets_model.get_form_context(_get("summary"), state)
    assert context.paths == ["/your-details", "/has-pets", "/summary"]
    assert "pets" not in context.relevant_state
    assert context.evaluation_state["pets"] == state["pets"]


def test_missing_reference_number_is_a_state_error(pets_model: FormModel) -> None:
    with pytest.raises(StateError, match="Reference number"):
        pets_model.get_form_context(_get("your-details"), dict(DETAILS))


def test_valid_post_payload_is_folded_into_the_walk(pets_model: FormModel) -> None:
    request = FormRequest(
        method="post",
        params={"slug": "register-pets", "path": "your-details"},
        payload={**DETAILS, "crumb": "ignored"},
        session_id="sid",
    )
    context = pets_model.get_form_context(request, dict(REF))
    assert context.errors == []
    assert context.paths == ["/your-details", "/has-pets"]
    assert "crumb" not in context.payload


def test_invalid_post_payload_is_not_merged(pets_model: FormModel) -> None:
    request = FormRequest(
        method="post",
        params={"slug": "register-pets", "path": "your-details"},
        payload={"fullName": "", "email": "not-an-email"},
        session_id="sid",
    )
    context = pets_model.get_form_context(request, dict(REF))
    assert {error.name for error in context.errors} == {"fullName", "email"}
    assert "fullName" not in context.evaluation_state
    assert context.paths == ["/your-details"]


def test_get_payload_is_rebuilt_from_state(pets_model: FormModel) -> None:
    context = pets_model.get_form_context(_get("your-details"), {**REF, **DETAILS})
    assert context.payload["fullName"] == "Ada Lovelace"


def test_force_access_only_applies_to_preview_models(pets_definition: Dict[str, Any]) -> None:
    preview = FormModel(pets_definition, base_path="preview/draft/register-pets", is_preview=True)
    live = FormModel(pets_definition, base_path="register-pets")

    assert preview.get_form_context(_get("summary", force=""), dict(REF)).is_force_access is True
    assert live.get_form_context(_get("summary", force=""), dict(REF)).is_force_access is False


def test_answers_to_hidden_list_items_are_dropped() -> None:
    definition = {
        "name": "Animals",
        "pages": [
            {
                "path": "/likes",
                "title": "Likes",
                "components": [{"id": "likes-id", "type": "YesNoField", "name": "likesCats", "title": "Likes cats?"}],
            },
            {
                "path": "/pick",
                "title": "Pick",
                "components": [{"id": "pet-id", "type": "RadiosField", "name": "pet", "title": "Pet", "list": "animals"}],
            },
            {"path": "/summary", "title": "Summary", "controller": "SummaryPageController"},
        ],
        "lists": [
            {
                "id": "animals-id",
                "name": "animals",
                "title": "Animals",
                "items": [
                    {"text": "Dog", "value": "dog"},
                    {"text": "Cat", "value": "cat", "condition": "likes-cats"},
                ],
            }
        ],
        "conditions": [
            {
                "id": "likes-cats",
                "items": [
                    {"id": "c1", "componentId": "likes-id", "operator": "is", "type": "BooleanValue", "value": True}
                ],
            }
        ],
    }
    model = FormModel(definition, base_path="animals")
    request = FormRequest(params={"slug": "animals", "path": "pick"}, session_id="sid")

    context = model.get_form_context(request, {**REF, "likesCats": False, "pet": "cat"})

    assert "pet" not in context.relevant_state
    assert context.paths == ["/likes", "/pick"]
    assert [error.text for error in context.submission_errors] == [CHANGED_OPTIONS_MESSAGE]

    kept = model.get_form_context(request, {**REF, "likesCats": True, "pet": "cat"})
    assert kept.relevant_state["pet"] == "cat"
    assert kept.submission_errors == []
