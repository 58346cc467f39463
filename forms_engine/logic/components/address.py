"""UK address component."""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional

from forms_engine.logic.components.base import matches, max_length
from forms_engine.logic.components.composite import CompositeField
from forms_engine.logic.components.kinds import ComponentKind
from forms_engine.logic.validation import FieldSchema

POSTCODE_PATTERN = re.compile(r"^[a-zA-Z]{1,2}\d[a-zA-Z\d]?\s?\d[a-zA-Z]{2}$")
LINE_MAX = 100

_REQUIRED_MESSAGES = {
    "addressLine1": "Enter address line 1",
    "town": "Enter town or city",
    "postcode": "Enter postcode",
}


class UkAddressField(CompositeField):
    kind = ComponentKind.UK_ADDRESS_FIELD
    PARTS = ("addressLine1", "addressLine2", "town", "county", "postcode")
    REQUIRED_PARTS = ("addressLine1", "town", "postcode")
    PART_LABELS = {
        "addressLine1": "Address line 1",
        "addressLine2": "Address line 2",
        "town": "Town or city",
        "county": "County",
        "postcode": "Postcode",
    }
    BASE_ERRORS = (
        ("required", "Enter address line 1, town or city and postcode"),
        ("postcodeFormat", "Enter a valid postcode"),
    )
    ADVANCED_ERRORS = (("lineMax", "{label} must be 100 characters or less"),)

    def build_part_schema(self, part: str) -> FieldSchema:
        required = self.is_required and part in self.REQUIRED_PARTS
        field_schema = FieldSchema(
            self.part_label(part),
            required=required,
            required_message=_REQUIRED_MESSAGES.get(part, "Enter {label_lower}"),
        )
        if part == "postcode":
            field_schema.rule("postcodeFormat", matches(POSTCODE_PATTERN), "Enter a valid postcode")
        else:
            field_schema.rule("lineMax", max_length(LINE_MAX), "{label} must be 100 characters or less")
        return field_schema

    def is_part_value(self, part: str, value: Any) -> bool:
        return isinstance(value, str) and value != ""

    def get_state_from_valid_form(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        state = super().get_state_from_valid_form(payload)
        address = state[self.name]
        if address and address.get("postcode"):
            address["postcode"] = address["postcode"].upper()
        return state

    def lines(self, state: Mapping[str, Any]) -> list[str]:
        value = self.get_form_value_from_state(state)
        if not value:
            return []
        return [value[part] for part in self.PARTS if value.get(part)]

    def get_display_string_from_state(self, state: Mapping[str, Any]) -> str:
        return ", ".join(self.lines(state))

    def get_context_value_from_state(self, state: Mapping[str, Any]) -> Optional[list[str]]:
        return self.lines(state) or None

    def get_view_model(self, payload, errors=None, evaluation_state=None) -> dict[str, Any]:
        view_model = super().get_view_model(payload, errors, evaluation_state)
        autocomplete = {
            "addressLine1": "address-line1",
            "addressLine2": "address-line2",
            "town": "address-level2",
            "postcode": "postal-code",
        }
        for item in view_model["items"]:
            part = item["name"].rsplit("__", 1)[1]
            if part in autocomplete:
                item["autocomplete"] = autocomplete[part]
        return view_model


__all__ = ["POSTCODE_PATTERN", "UkAddressField"]
