"""Single-key input components: text, number and declaration fields."""

from __future__ import annotations

import math
import re
from typing import Any, ClassVar, Mapping, Optional

from forms_engine.logic.components.base import (
    FormComponent,
    exact_length,
    matches,
    max_length,
    min_length,
)
from forms_engine.logic.components.kinds import ComponentKind
from forms_engine.logic.validation import MESSAGE_TEMPLATES, FieldSchema, RuleFailure

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
TELEPHONE_PATTERN = re.compile(r"^[0-9\s+()\-]*$")


def _templates(*types: str) -> tuple[tuple[str, str], ...]:
    return tuple((t, MESSAGE_TEMPLATES[t]) for t in types)


class TextField(FormComponent):
    kind = ComponentKind.TEXT_FIELD
    BASE_ERRORS = _templates("required")
    ADVANCED_ERRORS = _templates("min", "max", "length", "format")

    def build_field_schema(self) -> FieldSchema:
        field_schema = FieldSchema(self.label, required=self.is_required)
        self.add_length_rules(field_schema)
        regex = self.schema.get("regex")
        if regex:
            field_schema.rule("format", matches(regex))
        return field_schema

    def add_length_rules(self, field_schema: FieldSchema) -> None:
        if isinstance(self.schema.get("min"), int):
            field_schema.rule("min", min_length(self.schema["min"]), limit=self.schema["min"])
        if isinstance(self.schema.get("max"), int):
            field_schema.rule("max", max_length(self.schema["max"]), limit=self.schema["max"])
        if isinstance(self.schema.get("length"), int):
            field_schema.rule("length", exact_length(self.schema["length"]), limit=self.schema["length"])

    def get_view_model(self, payload, errors=None, evaluation_state=None) -> dict[str, Any]:
        view_model = super().get_view_model(payload, errors, evaluation_state)
        for option in ("autocomplete", "prefix", "suffix"):
            if self.options.get(option):
                view_model[option] = self.options[option]
        return view_model


class EmailAddressField(TextField):
    kind = ComponentKind.EMAIL_ADDRESS_FIELD
    FORMAT_MESSAGE = "Enter an email address in the correct format"
    BASE_ERRORS = (("required", MESSAGE_TEMPLATES["required"]), ("format", FORMAT_MESSAGE))
    ADVANCED_ERRORS = ()

    def build_field_schema(self) -> FieldSchema:
        return FieldSchema(self.label, required=self.is_required).rule(
            "format", matches(EMAIL_PATTERN), self.FORMAT_MESSAGE
        )


class TelephoneNumberField(TextField):
    kind = ComponentKind.TELEPHONE_NUMBER_FIELD
    BASE_ERRORS = _templates("required", "format")
    ADVANCED_ERRORS = _templates("min", "max", "length")

    def build_field_schema(self) -> FieldSchema:
        field_schema = FieldSchema(self.label, required=self.is_required)
        field_schema.rule("format", matches(TELEPHONE_PATTERN))
        self.add_length_rules(field_schema)
        return field_schema


def _count_words(value: str) -> int:
    return len(value.split())


class MultilineTextField(TextField):
    kind = ComponentKind.MULTILINE_TEXT_FIELD
    BASE_ERRORS = _templates("required")
    ADVANCED_ERRORS = _templates("min", "max", "length", "format", "maxWords")

    def build_field_schema(self) -> FieldSchema:
        field_schema = super().build_field_schema()
        max_words = self.options.get("maxWords")
        if isinstance(max_words, int):
            def check(value: str) -> str:
                if _count_words(value) > max_words:
                    raise RuleFailure()
                return value
            field_schema.rule("maxWords", check, limit=max_words)
        return field_schema

    def get_view_model(self, payload, errors=None, evaluation_state=None) -> dict[str, Any]:
        view_model = super().get_view_model(payload, errors, evaluation_state)
        view_model["rows"] = self.options.get("rows", 5)
        max_words = self.options.get("maxWords")
        if max_words:
            view_model["maxwords"] = max_words
        elif self.schema.get("max"):
            view_model["maxlength"] = self.schema["max"]
        return view_model


def parse_number(value: Any) -> int | float:
    """Parse payload text to a number; integral values become ``int``."""
    if isinstance(value, bool):
        raise RuleFailure()
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(str(value).strip())
        except ValueError:
            raise RuleFailure() from None
    if math.isnan(number) or math.isinf(number):
        raise RuleFailure()
    return int(number) if number.is_integer() else number


def decimal_places(number: int | float) -> int:
    text = repr(number)
    if "e" in text or "E" in text or "." not in text:
        return 0
    return len(text.split(".", 1)[1])


def add_number_rules(
    field_schema: FieldSchema,
    schema: Mapping[str, Any],
    types: Mapping[str, str],
    messages: Optional[Mapping[str, str]] = None,
) -> FieldSchema:
    """Register the numeric rule chain; ``types`` maps rule roles to error types."""
    messages = messages or {}
    field_schema.rule(types["number"], parse_number, messages.get(types["number"]))

    precision = schema.get("precision")
    if isinstance(precision, int) and precision <= 0:
        def integer(value):
            if not isinstance(value, int):
                raise RuleFailure()
            return value
        field_schema.rule(types["integer"], integer, messages.get(types["integer"]))
    elif isinstance(precision, int):
        def max_places(value):
            if decimal_places(value) > precision:
                raise RuleFailure()
            return value
        field_schema.rule(types["precision"], max_places, messages.get(types["precision"]), limit=precision)

    min_precision = schema.get("minPrecision")
    if isinstance(min_precision, int) and min_precision > 0:
        def min_places(value):
            if decimal_places(value) < min_precision:
                raise RuleFailure()
            return value
        field_schema.rule(types["minPrecision"], min_places, messages.get(types["minPrecision"]), limit=min_precision)

    if isinstance(schema.get("minLength"), int):
        limit_min = schema["minLength"]

        def min_chars(value):
            if len(str(value)) < limit_min:
                raise RuleFailure()
            return value
        field_schema.rule(types["minLength"], min_chars, messages.get(types["minLength"]), limit=limit_min)

    if isinstance(schema.get("maxLength"), int):
        limit_max = schema["maxLength"]

        def max_chars(value):
            if len(str(value)) > limit_max:
                raise RuleFailure()
            return value
        field_schema.rule(types["maxLength"], max_chars, messages.get(types["maxLength"]), limit=limit_max)

    if isinstance(schema.get("min"), (int, float)):
        lower = schema["min"]

        def at_least(value):
            if value < lower:
                raise RuleFailure()
            return value
        field_schema.rule(types["min"], at_least, messages.get(types["min"]), limit=lower)

    if isinstance(schema.get("max"), (int, float)):
        upper = schema["max"]

        def at_most(value):
            if value > upper:
                raise RuleFailure()
            return value
        field_schema.rule(types["max"], at_most, messages.get(types["max"]), limit=upper)

    return field_schema


NUMBER_RULE_TYPES = {
    "number": "number",
    "integer": "numberInteger",
    "precision": "numberPrecision",
    "minPrecision": "numberMinPrecision",
    "minLength": "numberMinLength",
    "maxLength": "numberMaxLength",
    "min": "numberMin",
    "max": "numberMax",
}


class NumberField(FormComponent):
    kind = ComponentKind.NUMBER_FIELD
    BASE_ERRORS = _templates("required", "number", "numberInteger")
    ADVANCED_ERRORS = _templates(
        "numberMin", "numberMax", "numberPrecision", "numberMinPrecision", "numberMinLength", "numberMaxLength"
    )

    def build_field_schema(self) -> FieldSchema:
        field_schema = FieldSchema(self.label, required=self.is_required)
        return add_number_rules(field_schema, self.schema, NUMBER_RULE_TYPES)

    @staticmethod
    def is_number(value: Any) -> bool:
        return isinstance(value, (int, float)) and not isinstance(value, bool)

    def is_value(self, value: Any) -> bool:
        return self.is_number(value)

    def get_form_data_from_state(self, state: Mapping[str, Any]) -> dict[str, Any]:
        value = self.get_form_value_from_state(state)
        return {self.name: None if value is None else str(value)}

    def get_display_string_from_state(self, state: Mapping[str, Any]) -> str:
        value = self.get_form_value_from_state(state)
        if value is None:
            return ""
        prefix = self.options.get("prefix") or ""
        suffix = self.options.get("suffix") or ""
        return f"{prefix}{value}{suffix}"

    def get_view_model(self, payload, errors=None, evaluation_state=None) -> dict[str, Any]:
        view_model = super().get_view_model(payload, errors, evaluation_state)
        view_model["attributes"]["inputmode"] = "numeric"
        for option in ("prefix", "suffix"):
            if self.options.get(option):
                view_model[option] = {"text": self.options[option]}
        return view_model


def _is_checked(value: Any) -> Any:
    return True if str(value).strip().lower() == "true" else None


class DeclarationField(FormComponent):
    kind = ComponentKind.DECLARATION_FIELD
    BASE_ERRORS = (("required", MESSAGE_TEMPLATES["declarationRequired"]),)
    DECLARATION_TEXT: ClassVar[str] = "I understand and agree"

    def build_field_schema(self) -> FieldSchema:
        return FieldSchema(
            self.label,
            required=self.is_required,
            required_message=MESSAGE_TEMPLATES["declarationRequired"],
            coerce=_is_checked,
        )

    def is_value(self, value: Any) -> bool:
        return isinstance(value, bool)

    def get_form_data_from_state(self, state: Mapping[str, Any]) -> dict[str, Any]:
        return {self.name: "true" if state.get(self.name) is True else None}

    def get_state_from_valid_form(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        return {self.name: payload.get(self.name) is True}

    def get_display_string_from_state(self, state: Mapping[str, Any]) -> str:
        value = self.get_form_value_from_state(state)
        if value is None:
            return ""
        return self.DECLARATION_TEXT if value else "Not provided"

    def get_view_model(self, payload, errors=None, evaluation_state=None) -> dict[str, Any]:
        view_model = super().get_view_model(payload, errors, evaluation_state)
        checked = _is_checked(payload.get(self.name)) is True
        view_model["fieldset"] = {"legend": {"text": self.title}}
        view_model["content"] = self.definition.content or ""
        view_model["items"] = [{"text": self.DECLARATION_TEXT, "value": "true", "checked": checked}]
        return view_model


__all__ = [
    "DeclarationField",
    "EmailAddressField",
    "MultilineTextField",
    "NUMBER_RULE_TYPES",
    "NumberField",
    "TelephoneNumberField",
    "TextField",
    "add_number_rules",
    "decimal_places",
    "parse_number",
]
