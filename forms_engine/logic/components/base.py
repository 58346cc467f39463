"""Component base classes.

``ComponentBase`` holds what every component reads from its definition.
``FormComponent`` adds the answer contract: payload keys, a validation schema,
and the conversions between payload, persisted state and display values.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, ClassVar, Iterable, Mapping, Optional

from forms_engine.logic.components.kinds import ComponentKind
from forms_engine.logic.validation import FieldSchema, ObjectSchema, RuleFailure
from forms_engine.models.definition import ComponentDef
from forms_engine.models.submission import FormSubmissionError

if TYPE_CHECKING:
    from forms_engine.logic.form_model import FormModel

SHORT_DESCRIPTION = "[short description]"

ErrorTemplate = tuple[str, str]


class ComponentBase:
    kind: ClassVar[ComponentKind]
    is_form_component: ClassVar[bool] = False

    def __init__(
        self,
        definition: ComponentDef,
        model: Optional[FormModel] = None,
        page: Any = None,
        parent: Optional[ComponentBase] = None,
    ) -> None:
        self.definition = definition
        self.type = definition.type
        self.name = definition.name
        self.title = definition.title
        self.hint = definition.hint
        self.options: dict[str, Any] = dict(definition.options)
        self.schema: dict[str, Any] = dict(definition.schema_)
        self.model = model
        self.page = page
        self.parent = parent
        self.condition: Optional[str] = self.options.get("condition")

    def get_view_model(
        self,
        payload: Mapping[str, Any],
        errors: Optional[list[FormSubmissionError]] = None,
        evaluation_state: Optional[Mapping[str, Any]] = None,
    ) -> dict[str, Any]:
        view_model: dict[str, Any] = {"id": self.name, "name": self.name, "attributes": {}}
        if self.options.get("classes"):
            view_model["classes"] = self.options["classes"]
        return view_model

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r}>"


def min_length(limit: int):
    def check(value: str) -> str:
        if len(value) < limit:
            raise RuleFailure()
        return value
    return check


def max_length(limit: int):
    def check(value: str) -> str:
        if len(value) > limit:
            raise RuleFailure()
        return value
    return check


def exact_length(limit: int):
    def check(value: str) -> str:
        if len(value) != limit:
            raise RuleFailure()
        return value
    return check


def matches(pattern: str | re.Pattern[str]):
    compiled = re.compile(pattern) if isinstance(pattern, str) else pattern

    def check(value: str) -> str:
        if not compiled.search(value):
            raise RuleFailure()
        return value
    return check


class FormComponent(ComponentBase):
    """A component that collects an answer."""

    is_form_component: ClassVar[bool] = True
    BASE_ERRORS: ClassVar[tuple[ErrorTemplate, ...]] = ()
    ADVANCED_ERRORS: ClassVar[tuple[ErrorTemplate, ...]] = ()

    def __init__(
        self,
        definition: ComponentDef,
        model: Optional[FormModel] = None,
        page: Any = None,
        parent: Optional[ComponentBase] = None,
    ) -> None:
        super().__init__(definition, model=model, page=page, parent=parent)
        self.short_description = definition.short_description
        self.label = definition.short_description or self.title
        self.is_required = self.options.get("required", True) is not False
        self.form_schema = self.build_form_schema()
        # State is validated by projecting it back to payload shape first
        self.state_schema = self.form_schema

    def build_form_schema(self) -> ObjectSchema:
        field_schema = self.build_field_schema()
        self.apply_custom_messages(field_schema)
        return ObjectSchema({self.name: field_schema})

    def build_field_schema(self) -> FieldSchema:
        return FieldSchema(self.label, required=self.is_required)

    def apply_custom_messages(self, field_schema: FieldSchema) -> None:
        message = self.options.get("customValidationMessage")
        if message:
            field_schema.override_all_messages(message)
            return
        messages = self.options.get("customValidationMessages")
        if isinstance(messages, Mapping):
            field_schema.messages({k: v for k, v in messages.items() if k in field_schema.error_types()})

    @property
    def keys(self) -> list[str]:
        return self.form_schema.keys()

    def is_value(self, value: Any) -> bool:
        return value is not None and value != "" and value != []

    def is_state(self, value: Any) -> bool:
        return self.is_value(value)

    def get_form_value(self, value: Any) -> Any:
        return value if self.is_value(value) else None

    def get_form_value_from_state(self, state: Mapping[str, Any]) -> Any:
        return self.get_form_value(state.get(self.name))

    def get_form_data_from_state(self, state: Mapping[str, Any]) -> dict[str, Any]:
        return {self.name: self.get_form_value_from_state(state)}

    def get_state_from_valid_form(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        return {self.name: self.get_form_value(payload.get(self.name))}

    def get_display_string_from_state(self, state: Mapping[str, Any]) -> str:
        value = self.get_form_value_from_state(state)
        return "" if value is None else str(value)

    def get_context_value_from_state(self, state: Mapping[str, Any]) -> Any:
        return self.get_form_value_from_state(state)

    def get_errors(self, errors: Optional[Iterable[FormSubmissionError]]) -> list[FormSubmissionError]:
        names = {self.name, *self.keys}
        return [error for error in errors or () if error.name in names]

    def get_view_model(
        self,
        payload: Mapping[str, Any],
        errors: Optional[list[FormSubmissionError]] = None,
        evaluation_state: Optional[Mapping[str, Any]] = None,
    ) -> dict[str, Any]:
        view_model = super().get_view_model(payload, errors, evaluation_state)
        label = self.title
        if not self.is_required and self.options.get("optionalText", True) is not False:
            label = f"{label} (optional)"
        view_model["label"] = {"text": label}
        if self.hint:
            view_model["hint"] = {"text": self.hint}
        value = payload.get(self.name)
        view_model["value"] = value
        own_errors = self.get_errors(errors)
        if own_errors:
            view_model["errorMessage"] = {"text": own_errors[0].text}
        return view_model

    @classmethod
    def get_all_possible_errors(cls) -> dict[str, list[dict[str, str]]]:
        """Templates for every error this kind can render (error preview)."""
        return {
            "baseErrors": [{"type": t, "template": m} for t, m in cls.BASE_ERRORS],
            "advancedSettingsErrors": [{"type": t, "template": m} for t, m in cls.ADVANCED_ERRORS],
        }


__all__ = [
    "ComponentBase",
    "ErrorTemplate",
    "FormComponent",
    "SHORT_DESCRIPTION",
    "exact_length",
    "matches",
    "max_length",
    "min_length",
]
