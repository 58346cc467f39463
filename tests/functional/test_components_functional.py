"""Functional tests for form components and their validation rules.

Components are built straight from component definitions (no form model) to
exercise payload validation, state conversion and the error preview
templates every collecting component publishes.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Optional

import pytest

from forms_engine.errors import DefinitionError
from forms_engine.logic.components import (
    COMPONENT_TYPES,
    ComponentCollection,
    DatePartsField,
    FormComponent,
    NumberField,
    TextField,
    UkAddressField,
    YesNoField,
    create_component,
)
from forms_engine.logic.components.kinds import ComponentKind
from forms_engine.logic.components.location import LocationFieldBase, ValidationConfig
from forms_engine.models.definition import ComponentDef

# Schema and option values that switch on every optional rule
RICH_SCHEMA: Dict[str, Any] = {
    "min": 1,
    "max": 5,
    "length": 3,
    "regex": "^[a-z]+$",
    "precision": 2,
    "minPrecision": 1,
    "minLength": 1,
    "maxLength": 9,
}
RICH_OPTIONS: Dict[str, Any] = {"maxWords": 10, "maxDaysInPast": 30, "maxDaysInFuture": 30}
# Whole-number precision swaps the decimal places rule for the integer rule
SCHEMA_VARIANTS = (RICH_SCHEMA, {**RICH_SCHEMA, "precision": 0})


def component(type_: str, name: str = "field", title: str = "Field", **extra: Any) -> FormComponent:
    return create_component(ComponentDef(type=type_, name=name, title=title, **extra))


def test_text_field_required_and_length_messages() -> None:
    field = component("TextField", title="Full name", schema={"max": 5})
    collection = ComponentCollection([field.definition])

    _, errors = collection.validate({"field": ""})
    assert [e.text for e in errors] == ["Enter full name"]

    _, errors = collection.validate({"field": "abcdefgh"})
    assert errors[0].text == "Full name must be 5 characters or less"
    assert errors[0].context["type"] == "max"

    value, errors = collection.validate({"field": "  abc  "})
    assert errors == []
    assert value == {"field": "abc"}


def test_optional_field_accepts_missing_value() -> None:
    field = component("TextField", options={"required": False})
    value, errors = ComponentCollection([field.definition]).validate({})
    assert errors == []
    assert value["field"] is None


def test_custom_validation_message_overrides_every_rule() -> None:
    field = component("TextField", schema={"max": 2}, options={"customValidationMessage": "Try again"})
    collection = ComponentCollection([field.definition])
    assert collection.validate({"field": ""})[1][0].text == "Try again"
    assert collection.validate({"field": "abc"})[1][0].text == "Try again"


def test_number_field_converts_and_bounds() -> None:
    field = component("NumberField", title="Age", schema={"min": 18, "max": 65})
    collection = ComponentCollection([field.definition])

    value, errors = collection.validate({"field": "42"})
    assert errors == []
    assert value["field"] == 42

    _, errors = collection.validate({"field": "ten"})
    assert errors[0].context["type"] == "number"

    _, errors = collection.validate({"field": "12"})
    assert errors[0].text == "Age must be 18 or higher"


def test_date_parts_state_round_trip() -> None:
    field = component("DatePartsField", name="dob", title="Date of birth")
    assert isinstance(field, DatePartsField)
    collection = ComponentCollection([field.definition])

    value, errors = collection.validate({"dob__day": "3", "dob__month": "4", "dob__year": "2001"})
    assert errors == []
    state = collection.get_state_from_valid_form(value)
    assert state == {"dob": {"day": 3, "month": 4, "year": 2001}}
    assert collection.get_form_data_from_state(state) == {"dob__day": "3", "dob__month": "4", "dob__year": "2001"}


def test_date_parts_incomplete_and_invalid() -> None:
    collection = ComponentCollection([ComponentDef(type="DatePartsField", name="dob", title="Date of birth")])

    _, errors = collection.validate({"dob__day": "3", "dob__month": "", "dob__year": "2001"})
    assert [e.context["type"] for e in errors] == ["dateIncomplete"]

    _, errors = collection.validate({"dob__day": "31", "dob__month": "2", "dob__year": "2001"})
    assert [e.context["type"] for e in errors] == ["dateFormat"]


def test_uk_address_requires_core_parts_and_uppercases_postcode() -> None:
    field = component("UkAddressField", name="address", title="Address")
    assert isinstance(field, UkAddressField)
    collection = ComponentCollection([field.definition])

    _, errors = collection.validate({"address__addressLine1": "1 High St", "address__town": "", "address__postcode": ""})
    assert {e.name for e in errors} == {"address__town", "address__postcode"}

    value, errors = collection.validate(
        {"address__addressLine1": "1 High St", "address__town": "Leeds", "address__postcode": "ls1 4ap"}
    )
    assert errors == []
    state = collection.get_state_from_valid_form(value)
    assert state["address"]["postcode"] == "LS1 4AP"


def test_yes_no_field_coerces_string_payloads() -> None:
    field = component("YesNoField", name="agree", title="Agree")
    assert isinstance(field, YesNoField)
    collection = ComponentCollection([field.definition])

    value, errors = collection.validate({"agree": "false"})
    assert errors == []
    assert value["agree"] is False

    _, errors = collection.validate({"agree": "maybe"})
    assert errors[0].text == "Select yes or no"


def test_unknown_component_type_is_a_definition_error() -> None:
    with pytest.raises(DefinitionError):
        create_component(ComponentDef(type="HoverboardField", name="x"))


@pytest.mark.parametrize(
    "kind",
    [kind for kind, cls in COMPONENT_TYPES.items() if issubclass(cls, FormComponent)],
    ids=lambda kind: kind.value,
)
def test_every_rule_type_has_an_error_template(kind: ComponentKind) -> None:
    registered: list[str] = []
    templates: list[str] = []
    for schema in SCHEMA_VARIANTS:
        field = component(kind.value, schema=dict(schema), options=dict(RICH_OPTIONS))
        registered.extend(field.form_schema.error_types())
        possible = field.get_all_possible_errors()
        templates = [e["type"] for e in possible["baseErrors"] + possible["advancedSettingsErrors"]]

    assert len(templates) == len(set(templates)), f"duplicate templates for {kind.value}: {templates}"
    assert set(registered) == set(templates)


def test_text_field_view_model_marks_optional_and_errors() -> None:
    field = component("TextField", title="Nickname", hint="If you have one", options={"required": False})
    assert isinstance(field, TextField)
    view_model = field.get_view_model({"field": "Bob"})
    assert view_model["label"] == {"text": "Nickname (optional)"}
    assert view_model["hint"] == {"text": "If you have one"}
    assert view_model["value"] == "Bob"


def test_number_field_state_is_numeric() -> None:
    field = component("NumberField")
    assert isinstance(field, NumberField)
    assert field.get_form_data_from_state({"field": 7}) == {"field": "7"}
    assert field.get_form_data_from_state({"field": "7"}) == {"field": None}


class PlotReferenceField(LocationFieldBase):
    """Pattern plus a range check on the digits, registered nowhere."""

    kind = ComponentKind.OS_GRID_REF_FIELD
    PATTERN = re.compile(r"^[A-Z]{2}(\d{2})$")

    @staticmethod
    def check_plot_number(value: str) -> Optional[str]:
        return "outOfRange" if int(value[2:]) > 50 else None

    def get_validation_config(self) -> ValidationConfig:
        return ValidationConfig(
            pattern=self.PATTERN,
            pattern_error_message="Enter a plot reference like AB12",
            custom_validation=self.check_plot_number,
            additional_messages={"outOfRange": "{label} must end in a number from 00 to 50"},
        )

    @classmethod
    def get_error_templates(cls) -> list[dict[str, str]]:
        return [
            {"type": "pattern", "template": "Enter a plot reference like AB12"},
            {"type": "outOfRange", "template": "{label} must end in a number from 00 to 50"},
        ]


def test_location_field_custom_validation_messages() -> None:
    field = PlotReferenceField(ComponentDef(type="OsGridRefField", name="plot", title="Plot reference"))

    _, errors = field.form_schema.validate({"plot": "AB99"})
    assert [e.text for e in errors] == ["Plot reference must end in a number from 00 to 50"]

    _, errors = field.form_schema.validate({"plot": "A-99"})
    assert [e.text for e in errors] == ["Enter a plot reference like AB12"]

    value, errors = field.form_schema.validate({"plot": "AB42"})
    assert errors == []
    assert value == {"plot": "AB42"}

    possible = field.get_all_possible_errors()
    templates = {e["type"] for e in possible["baseErrors"] + possible["advancedSettingsErrors"]}
    assert "outOfRange" in templates
    assert set(field.form_schema.error_types()) == templates
