"""Components that submit several ``<name>__<part>`` payload keys.

State is stored as one mapping under the component name, e.g.
``{"day": 5, "month": 1, "year": 2024}``.
"""

from __future__ import annotations

from typing import Any, ClassVar, Mapping, Optional

from forms_engine.logic.components.base import FormComponent
from forms_engine.logic.markdown_render import render_markdown
from forms_engine.logic.validation import FieldSchema, ObjectRule, ObjectSchema


class CompositeField(FormComponent):
    PARTS: ClassVar[tuple[str, ...]] = ()
    PART_LABELS: ClassVar[Mapping[str, str]] = {}
    # Parts that must hold a value for the stored mapping to count as an answer
    REQUIRED_PARTS: ClassVar[Optional[tuple[str, ...]]] = None

    def part_key(self, part: str) -> str:
        return f"{self.name}__{part}"

    def part_label(self, part: str) -> str:
        return self.PART_LABELS.get(part, part.capitalize())

    def build_form_schema(self) -> ObjectSchema:
        schema = ObjectSchema()
        for part in self.PARTS:
            field_schema = self.build_part_schema(part)
            self.apply_custom_messages(field_schema)
            schema.add(self.part_key(part), field_schema)
        rule = self.build_peer_rule()
        if rule is not None:
            schema.custom(rule)
        return schema

    def build_part_schema(self, part: str) -> FieldSchema:
        raise NotImplementedError

    def build_peer_rule(self) -> Optional[ObjectRule]:
        return None

    def is_part_value(self, part: str, value: Any) -> bool:
        return value is not None and value != ""

    def is_value(self, value: Any) -> bool:
        if not isinstance(value, Mapping):
            return False
        required = self.REQUIRED_PARTS if self.REQUIRED_PARTS is not None else self.PARTS
        return all(self.is_part_value(part, value.get(part)) for part in required)

    def part_to_payload(self, part: str, value: Any) -> Any:
        return None if value is None else str(value)

    def get_form_data_from_state(self, state: Mapping[str, Any]) -> dict[str, Any]:
        value = self.get_form_value_from_state(state) or {}
        return {self.part_key(part): self.part_to_payload(part, value.get(part)) for part in self.PARTS}

    def get_state_from_valid_form(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        parts = {part: payload.get(self.part_key(part)) for part in self.PARTS}
        if all(value is None or value == "" for value in parts.values()):
            return {self.name: None}
        return {self.name: parts}

    def get_view_model(self, payload, errors=None, evaluation_state=None) -> dict[str, Any]:
        view_model = super().get_view_model(payload, errors, evaluation_state)
        has_error = "errorMessage" in view_model
        view_model.pop("value", None)
        view_model["fieldset"] = {"legend": {"text": view_model["label"]["text"]}}
        items = []
        for part in self.PARTS:
            key = self.part_key(part)
            item: dict[str, Any] = {
                "label": {"text": self.part_label(part)},
                "id": key,
                "name": key,
                "value": payload.get(key),
            }
            if has_error:
                item["classes"] = "govuk-input--error"
            items.append(item)
        view_model["items"] = items
        instruction = self.options.get("instructionText")
        if instruction:
            view_model["instructionText"] = render_markdown(instruction)
        return view_model


__all__ = ["CompositeField"]
