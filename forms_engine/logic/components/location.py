"""Location fields.

``LocationFieldBase`` is a template method for single-string location
references: it owns trimming, the required check, the pattern rule and an
optional custom validator. Subclasses only supply a ``ValidationConfig`` and
their error templates.

Easting/northing and latitude/longitude are composite numeric fields whose
parts are validated individually and then together by a peer rule.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Mapping, Optional

from forms_engine.logic.components.base import SHORT_DESCRIPTION, FormComponent, matches
from forms_engine.logic.components.composite import CompositeField
from forms_engine.logic.components.inputs import add_number_rules
from forms_engine.logic.components.kinds import ComponentKind
from forms_engine.logic.markdown_render import render_markdown
from forms_engine.logic.validation import MESSAGE_TEMPLATES, FieldSchema, ObjectRule, ObjectSchema

GRID_LETTERS = r"((([sS]|[nN])[a-hA-Hj-zJ-Z])|(([tT]|[oO])[abfglmqrvwABFGLMQRVW])|([hH][l-zL-Z])|([jJ][lmqrvwLMQRVW]))"


@dataclass(frozen=True)
class ValidationConfig:
    pattern: re.Pattern[str]
    pattern_error_message: str
    # Returns an error tag from ``additional_messages`` or None when valid
    custom_validation: Optional[Callable[[str], Optional[str]]] = None
    additional_messages: Mapping[str, str] = field(default_factory=dict)


class LocationFieldBase(FormComponent):
    def get_validation_config(self) -> ValidationConfig:
        raise NotImplementedError

    @classmethod
    def get_error_templates(cls) -> list[dict[str, str]]:
        raise NotImplementedError

    @property
    def instruction_text(self) -> Optional[str]:
        return self.options.get("instructionText")

    def build_form_schema(self) -> ObjectSchema:
        config = self.get_validation_config()
        field_schema = FieldSchema(self.label, required=self.is_required)
        field_schema.rule("pattern", matches(config.pattern), config.pattern_error_message)
        if config.custom_validation is not None:
            field_schema.custom(config.custom_validation, config.additional_messages)
        self.apply_custom_messages(field_schema)
        return ObjectSchema({self.name: field_schema})

    def is_value(self, value: Any) -> bool:
        return isinstance(value, str) and value != ""

    def get_view_model(self, payload, errors=None, evaluation_state=None) -> dict[str, Any]:
        view_model = super().get_view_model(payload, errors, evaluation_state)
        if self.instruction_text:
            view_model["instructionText"] = render_markdown(self.instruction_text)
        return view_model

    @classmethod
    def get_all_possible_errors(cls) -> dict[str, list[dict[str, str]]]:
        return {
            "baseErrors": [{"type": "required", "template": MESSAGE_TEMPLATES["required"]}, *cls.get_error_templates()],
            "advancedSettingsErrors": [],
        }


class OsGridRefField(LocationFieldBase):
    kind = ComponentKind.OS_GRID_REF_FIELD
    # Two grid letters then 6 digits, e.g. SD865005 or SD 865 005
    PATTERN = re.compile(rf"^{GRID_LETTERS}\s?(([0-9]{{3}})\s?([0-9]{{3}}))$")

    def get_validation_config(self) -> ValidationConfig:
        return ValidationConfig(
            pattern=self.PATTERN,
            pattern_error_message=f"Enter a valid OS grid reference for {self.title} like TQ123456",
        )

    @classmethod
    def get_error_templates(cls) -> list[dict[str, str]]:
        return [
            {
                "type": "pattern",
                "template": f"Enter a valid OS grid reference for {SHORT_DESCRIPTION} like TQ123456",
            }
        ]


class NationalGridFieldNumberField(LocationFieldBase):
    kind = ComponentKind.NATIONAL_GRID_FIELD_NUMBER_FIELD
    # Parcel ids (2 blocks of 4 digits) or grid references (2 blocks of 5)
    PATTERN = re.compile(rf"^{GRID_LETTERS}\s?(([0-9]{{4}})\s?([0-9]{{4}})|([0-9]{{5}})\s?([0-9]{{5}}))$")

    def get_validation_config(self) -> ValidationConfig:
        return ValidationConfig(
            pattern=self.PATTERN,
            pattern_error_message=f"Enter a valid National Grid field number for {self.title} like NG 1234 5678",
        )

    @classmethod
    def get_error_templates(cls) -> list[dict[str, str]]:
        return [
            {
                "type": "pattern",
                "template": f"Enter a valid National Grid field number for {SHORT_DESCRIPTION} like NG 1234 5678",
            }
        ]


@dataclass(frozen=True)
class CoordinatePart:
    name: str
    label: str
    minimum: float
    maximum: float
    format_message: str
    number_schema: Mapping[str, Any]


class CoordinateField(CompositeField):
    """Two numeric parts that are only meaningful together."""

    COORDINATES: ClassVar[tuple[CoordinatePart, ...]] = ()

    def coordinate(self, part: str) -> CoordinatePart:
        defaults = next(c for c in self.COORDINATES if c.name == part)
        override = self.schema.get(part) or {}
        return CoordinatePart(
            name=defaults.name,
            label=defaults.label,
            minimum=override.get("min", defaults.minimum),
            maximum=override.get("max", defaults.maximum),
            format_message=defaults.format_message,
            number_schema=defaults.number_schema,
        )

    def part_label(self, part: str) -> str:
        return self.coordinate(part).label

    def build_part_schema(self, part: str) -> FieldSchema:
        coordinate = self.coordinate(part)
        range_message = f"{coordinate.label} for {self.title} must be between {coordinate.minimum} and {coordinate.maximum}"
        format_type = f"{part}Format"
        types = {
            "number": format_type,
            "integer": format_type,
            "precision": format_type,
            "minPrecision": format_type,
            "minLength": format_type,
            "maxLength": format_type,
            "min": f"{part}Min",
            "max": f"{part}Max",
        }
        messages = {
            format_type: coordinate.format_message.format(title=self.title),
            f"{part}Min": range_message,
            f"{part}Max": range_message,
        }
        field_schema = FieldSchema(
            f"{coordinate.label} for {self.title}",
            required=self.is_required,
            required_message=f"Enter {coordinate.label.lower()} for {self.title}",
        )
        number_schema = {**coordinate.number_schema, "min": coordinate.minimum, "max": coordinate.maximum}
        return add_number_rules(field_schema, number_schema, types, messages)

    def build_peer_rule(self) -> ObjectRule:
        keys = tuple(self.part_key(part) for part in self.PARTS)

        def check(values: Mapping[str, Any]):
            present = [key for key in keys if values.get(key) is not None]
            if present and len(present) != len(keys):
                return [(self.name, "required", {})]
            return []

        return ObjectRule(check=check, messages={"required": MESSAGE_TEMPLATES["required"]}, peers=keys, label=self.label)

    def is_part_value(self, part: str, value: Any) -> bool:
        return isinstance(value, (int, float)) and not isinstance(value, bool)

    @classmethod
    def get_all_possible_errors(cls) -> dict[str, list[dict[str, str]]]:
        base = [{"type": "required", "template": MESSAGE_TEMPLATES["required"]}]
        advanced = []
        for coordinate in cls.COORDINATES:
            base.append({
                "type": f"{coordinate.name}Format",
                "template": coordinate.format_message.format(title=SHORT_DESCRIPTION),
            })
            bounds = f"{coordinate.label} for {SHORT_DESCRIPTION} must be between {coordinate.minimum} and {coordinate.maximum}"
            advanced.append({"type": f"{coordinate.name}Min", "template": bounds})
            advanced.append({"type": f"{coordinate.name}Max", "template": bounds})
        return {"baseErrors": base, "advancedSettingsErrors": advanced}


class EastingNorthingField(CoordinateField):
    kind = ComponentKind.EASTING_NORTHING_FIELD
    PARTS = ("easting", "northing")
    COORDINATES = (
        CoordinatePart(
            "easting", "Easting", 0, 70000,
            "Easting for {title} must be between 1 and 5 digits",
            {"precision": 0},
        ),
        CoordinatePart(
            "northing", "Northing", 0, 1300000,
            "Northing for {title} must be between 1 and 7 digits",
            {"precision": 0},
        ),
    )

    def get_display_string_from_state(self, state: Mapping[str, Any]) -> str:
        value = self.get_form_value_from_state(state)
        return f"{value['easting']}, {value['northing']}" if value else ""

    def get_context_value_from_state(self, state: Mapping[str, Any]) -> Optional[str]:
        value = self.get_form_value_from_state(state)
        return f"Easting: {value['easting']}\nNorthing: {value['northing']}" if value else None


class LatLongField(CoordinateField):
    kind = ComponentKind.LAT_LONG_FIELD
    PARTS = ("latitude", "longitude")
    COORDINATES = (
        CoordinatePart(
            "latitude", "Latitude", 49, 60,
            "Enter a valid latitude for {title} like 51.519450",
            {"precision": 7, "minPrecision": 1, "minLength": 3, "maxLength": 10},
        ),
        CoordinatePart(
            "longitude", "Longitude", -9, 2,
            "Enter a valid longitude for {title} like -0.127758",
            {"precision": 7, "minPrecision": 1, "minLength": 2, "maxLength": 10},
        ),
    )

    def get_display_string_from_state(self, state: Mapping[str, Any]) -> str:
        value = self.get_form_value_from_state(state)
        return f"{value['latitude']}, {value['longitude']}" if value else ""

    def get_context_value_from_state(self, state: Mapping[str, Any]) -> Optional[str]:
        value = self.get_form_value_from_state(state)
        return f"Lat: {value['latitude']}\nLong: {value['longitude']}" if value else None


__all__ = [
    "CoordinateField",
    "EastingNorthingField",
    "LatLongField",
    "LocationFieldBase",
    "NationalGridFieldNumberField",
    "OsGridRefField",
    "ValidationConfig",
]
