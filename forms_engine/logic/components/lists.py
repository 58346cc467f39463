"""Choice components backed by the form's lists.

Payload values are strings; stored state uses the list item's typed value
(string, number or boolean). Items may carry a condition, in which case they
are only offered while the condition holds for the evaluation state.
"""

from __future__ import annotations

from typing import Any, ClassVar, Mapping, Optional

from forms_engine.errors import DefinitionError
from forms_engine.logic.components.base import FormComponent
from forms_engine.logic.components.kinds import ComponentKind
from forms_engine.logic.validation import MESSAGE_TEMPLATES, FieldSchema, RuleFailure
from forms_engine.models.definition import ListDef, ListItemDef

YES_NO_LIST = ListDef(
    name="__yesNo",
    title="Yes/No",
    type="boolean",
    items=[ListItemDef(text="Yes", value=True), ListItemDef(text="No", value=False)],
)


def item_key(value: Any) -> str:
    """Comparable string form of a list item value or payload value."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class ListFormComponent(FormComponent):
    multiple: ClassVar[bool] = False
    selected_attribute: ClassVar[str] = "checked"
    REQUIRED_MESSAGE: ClassVar[str] = MESSAGE_TEMPLATES["selectRequired"]
    BASE_ERRORS = (
        ("required", MESSAGE_TEMPLATES["selectRequired"]),
        ("invalidOption", MESSAGE_TEMPLATES["invalidOption"]),
    )

    @property
    def list_def(self) -> ListDef:
        if self.model is None:
            raise DefinitionError(f"Component {self.name} needs a form model to resolve its list")
        list_def = self.model.get_list(self.definition.list_ or "")
        if list_def is None:
            raise DefinitionError(f"List {self.definition.list_!r} not found for component {self.name}")
        return list_def

    @property
    def items(self) -> list[ListItemDef]:
        return list(self.list_def.items)

    def visible_items(self, evaluation_state: Optional[Mapping[str, Any]] = None) -> list[ListItemDef]:
        if evaluation_state is None or self.model is None:
            return self.items
        return [
            item for item in self.items
            if not item.condition or self.model.evaluate_condition(item.condition, evaluation_state)
        ]

    def build_field_schema(self) -> FieldSchema:
        field_schema = FieldSchema(
            self.label,
            required=self.is_required,
            multiple=self.multiple,
            required_message=self.REQUIRED_MESSAGE,
        )
        field_schema.rule("invalidOption", self.to_item_value)
        return field_schema

    def to_item_value(self, value: Any) -> Any:
        by_key = {item_key(item.value): item.value for item in self.items}
        if self.multiple:
            try:
                return [by_key[item_key(v)] for v in value]
            except KeyError:
                raise RuleFailure() from None
        if item_key(value) not in by_key:
            raise RuleFailure()
        return by_key[item_key(value)]

    def is_value(self, value: Any) -> bool:
        keys = {item_key(item.value) for item in self.items}
        if self.multiple:
            return isinstance(value, list) and bool(value) and all(item_key(v) in keys for v in value)
        return value is not None and not isinstance(value, (list, dict)) and item_key(value) in keys

    def get_form_data_from_state(self, state: Mapping[str, Any]) -> dict[str, Any]:
        value = self.get_form_value_from_state(state)
        if value is None:
            return {self.name: [] if self.multiple else None}
        if self.multiple:
            return {self.name: [item_key(v) for v in value]}
        return {self.name: item_key(value)}

    def selected_items(self, state: Mapping[str, Any]) -> list[ListItemDef]:
        value = self.get_form_value_from_state(state)
        if value is None:
            return []
        values = {item_key(v) for v in (value if isinstance(value, list) else [value])}
        return [item for item in self.items if item_key(item.value) in values]

    def get_display_string_from_state(self, state: Mapping[str, Any]) -> str:
        return ", ".join(item.text for item in self.selected_items(state))

    def get_view_model(self, payload, errors=None, evaluation_state=None) -> dict[str, Any]:
        view_model = super().get_view_model(payload, errors, evaluation_state)
        raw = payload.get(self.name)
        selected = {item_key(v) for v in (raw if isinstance(raw, list) else [raw]) if v not in (None, "")}
        view_model["fieldset"] = {"legend": {"text": view_model["label"]["text"]}}
        items = []
        for item in self.visible_items(evaluation_state):
            entry: dict[str, Any] = {"text": item.text, "value": item_key(item.value)}
            if item.hint:
                entry["hint"] = {"text": item.hint}
            entry[self.selected_attribute] = item_key(item.value) in selected
            items.append(entry)
        view_model["items"] = items
        return view_model


class RadiosField(ListFormComponent):
    kind = ComponentKind.RADIOS_FIELD


class SelectField(ListFormComponent):
    kind = ComponentKind.SELECT_FIELD
    selected_attribute = "selected"

    def get_view_model(self, payload, errors=None, evaluation_state=None) -> dict[str, Any]:
        view_model = super().get_view_model(payload, errors, evaluation_state)
        view_model["items"] = [{"text": "", "value": ""}, *view_model["items"]]
        return view_model


class AutocompleteField(SelectField):
    kind = ComponentKind.AUTOCOMPLETE_FIELD


class CheckboxesField(ListFormComponent):
    kind = ComponentKind.CHECKBOXES_FIELD
    multiple = True
    ADVANCED_ERRORS = (
        ("arrayMin", MESSAGE_TEMPLATES["arrayMin"]),
        ("arrayMax", MESSAGE_TEMPLATES["arrayMax"]),
    )

    def build_field_schema(self) -> FieldSchema:
        field_schema = super().build_field_schema()
        lower = self.schema.get("min")
        upper = self.schema.get("max")
        if isinstance(lower, int):
            def at_least(values):
                if len(values) < lower:
                    raise RuleFailure()
                return values
            field_schema.rule("arrayMin", at_least, limit=lower)
        if isinstance(upper, int):
            def at_most(values):
                if len(values) > upper:
                    raise RuleFailure()
                return values
            field_schema.rule("arrayMax", at_most, limit=upper)
        return field_schema

    def get_context_value_from_state(self, state: Mapping[str, Any]) -> list[Any]:
        return self.get_form_value_from_state(state) or []


class YesNoField(ListFormComponent):
    kind = ComponentKind.YES_NO_FIELD
    REQUIRED_MESSAGE = MESSAGE_TEMPLATES["selectYesNoRequired"]
    BASE_ERRORS = (
        ("required", MESSAGE_TEMPLATES["selectYesNoRequired"]),
        ("invalidOption", MESSAGE_TEMPLATES["selectYesNoRequired"]),
    )

    @property
    def list_def(self) -> ListDef:
        return YES_NO_LIST

    def build_field_schema(self) -> FieldSchema:
        field_schema = super().build_field_schema()
        return field_schema.messages({"invalidOption": MESSAGE_TEMPLATES["selectYesNoRequired"]})


__all__ = [
    "AutocompleteField",
    "CheckboxesField",
    "ListFormComponent",
    "RadiosField",
    "SelectField",
    "YES_NO_LIST",
    "YesNoField",
    "item_key",
]
