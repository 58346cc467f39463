"""Functional tests for submission output formatters."""

from __future__ import annotations

import json
import pathlib
from datetime import datetime, timezone
from typing import Any, Dict

import jsonschema
import pytest

from forms_engine.logic.form_context import FormContext, FormRequest
from forms_engine.logic.form_model import FormModel
from forms_engine.logic.helpers import REFERENCE_NUMBER_KEY, escape_markdown
from forms_engine.logic.output_formatters import get_formatter
from forms_engine.logic.summary import get_details, get_form_submission_data
from forms_engine.models.submission import SubmitResponsePayload

SCHEMA_PATH = pathlib.Path(__file__).resolve().parents[2] / "docs" / "schemas" / "adapter_submission_v1.schema.json"
NOW = datetime(2026, 3, 4, 9, 30, tzinfo=timezone.utc)

STATE: Dict[str, Any] = {
    REFERENCE_NUMBER_KEY: "PET-ABC-123",
    "fullName": "Ada Lovelace",
    "email": "ada@example.com",
    "hasPets": True,
    "pets": [
        {"itemId": "11111111-1111-4111-8111-111111111111", "petName": "Rex", "petType": "dog"},
        {"itemId": "22222222-2222-4222-8222-222222222222", "petName": "Tom", "petType": "cat"},
    ],
}


@pytest.fixture()
def summary_context(pets_model: FormModel) -> FormContext:
    request = FormRequest(params={"slug": "register-pets", "path": "summary"}, session_id="sid")
    return pets_model.get_form_context(request, STATE)


@pytest.fixture()
def items(summary_context: FormContext):
    return get_form_submission_data(summary_context, get_details(summary_context, "/summary"))


@pytest.mark.parametrize("audience, version, message", [("robot", "1", "Unknown audience"), ("human", "9", "Unknown version")])
def test_get_formatter_rejects_unknown_combinations(audience: str, version: str, message: str) -> None:
    with pytest.raises(ValueError, match=message):
        get_formatter(audience, version)


def test_machine_v1_groups_answers_by_page(summary_context, items, pets_model: FormModel) -> None:
    output = json.loads(get_formatter("machine", "1")(summary_context, items, pets_model))
    assert output["name"] == "Register your pets"
    questions = output["questions"]
    assert [q["question"] for q in questions] == ["Your details", "Do you have any pets, {{ fullName }}?", "Pet", "Pet"]
    assert [f["key"] for f in questions[0]["fields"]] == ["fullName", "email"]
    assert [q["index"] for q in questions[2:]] == [0, 1]
    assert questions[3]["fields"][0]["answer"] == "Tom"


def test_machine_v2_splits_main_and_repeaters(summary_context, items, pets_model: FormModel) -> None:
    output = json.loads(get_formatter("machine", "2")(summary_context, items, pets_model, now=NOW))
    assert output["meta"]["schemaVersion"] == "2"
    assert output["meta"]["referenceNumber"] == "PET-ABC-123"
    assert output["data"]["main"] == {"fullName": "Ada Lovelace", "email": "ada@example.com", "hasPets": True}
    assert output["data"]["repeaters"]["pets"][1] == {"petName": "Tom", "petType": "cat"}


def test_adapter_v1_matches_published_schema(summary_context, items, pets_model: FormModel) -> None:
    schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
    output = get_formatter("adapter", "1")(
        summary_context, items, pets_model, SubmitResponsePayload(), (False, None), now=NOW
    )
    document = json.loads(output)
    jsonschema.validate(document, schema)
    assert document["meta"]["status"] == "live"
    assert document["data"]["repeaters"]["pets"][0]["state"]["petName"] == "Rex"


def test_adapter_v1_marks_preview_submissions_as_draft(summary_context, items, pets_model: FormModel) -> None:
    output = get_formatter("adapter", "1")(
        summary_context, items, pets_model, SubmitResponsePayload(), (True, None), now=NOW
    )
    meta = json.loads(output)["meta"]
    assert meta["status"] == "draft"
    assert meta["isPreview"] is True


def test_human_v1_is_markdown_with_reference(summary_context, items, pets_model: FormModel) -> None:
    body = get_formatter("human", "1")(summary_context, items, pets_model, SubmitResponsePayload(), (False, None), now=NOW)
    assert body.startswith("Register your pets form received at 09:30 on 4 March 2026")
    assert "Reference number: PET\\-ABC\\-123" in body
    assert "## Full name" in body
    assert "### Pet 2" in body


@pytest.mark.parametrize(
    "answer, escaped",
    [
        ("\\*", "\\\\\\*"),
        ("C:\\pets", "C:\\\\pets"),
        ("**bold**", "\\*\\*bold\\*\\*"),
    ],
)
def test_escape_markdown_escapes_backslashes_once(answer: str, escaped: str) -> None:
    assert escape_markdown(answer) == escaped
