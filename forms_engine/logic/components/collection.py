"""Component collections: the unit a page validates and renders."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional

from forms_engine.logic.components.base import ComponentBase, FormComponent
from forms_engine.logic.components.factory import create_component
from forms_engine.logic.validation import ObjectRule, ObjectSchema
from forms_engine.models.definition import ComponentDef
from forms_engine.models.submission import FormSubmissionError

if TYPE_CHECKING:
    from forms_engine.logic.form_model import FormModel

logger = logging.getLogger(__name__)


class ComponentCollection:
    def __init__(
        self,
        definitions: Iterable[ComponentDef],
        model: Optional[FormModel] = None,
        page: Any = None,
        parent: Optional[ComponentBase] = None,
        custom: Optional[ObjectRule] = None,
    ) -> None:
        self.definitions = list(definitions)
        self.model = model
        self.page = page
        self.components: list[ComponentBase] = [
            create_component(definition, model=model, page=page, parent=parent) for definition in self.definitions
        ]
        self.fields: list[FormComponent] = [c for c in self.components if isinstance(c, FormComponent)]
        self.custom = custom
        self.form_schema = self._build_schema(self.fields)
        self.state_schema = self.form_schema

    def _build_schema(self, fields: Iterable[FormComponent], hidden_keys: frozenset[str] = frozenset()) -> ObjectSchema:
        schema = ObjectSchema()
        for component in fields:
            schema.extend(component.form_schema)
        if self.custom is not None and not hidden_keys.intersection(self.custom.peers):
            schema.custom(self.custom)
        return schema

    @property
    def keys(self) -> list[str]:
        return self.form_schema.keys()

    def is_visible(self, component: ComponentBase, evaluation_state: Optional[Mapping[str, Any]]) -> bool:
        if not component.condition or evaluation_state is None or self.model is None:
            return True
        return self.model.evaluate_condition(component.condition, evaluation_state)

    def visible_fields(self, evaluation_state: Optional[Mapping[str, Any]] = None) -> list[FormComponent]:
        return [c for c in self.fields if self.is_visible(c, evaluation_state)]

    def validate(
        self,
        payload: Mapping[str, Any],
        evaluation_state: Optional[Mapping[str, Any]] = None,
    ) -> tuple[dict[str, Any], list[FormSubmissionError]]:
        """Validate a payload; fields hidden by their condition are skipped."""
        visible = self.visible_fields(evaluation_state)
        if len(visible) == len(self.fields):
            return self.form_schema.validate(payload)
        hidden_keys = frozenset(k for c in self.fields if c not in visible for k in c.keys)
        return self._build_schema(visible, hidden_keys).validate(payload)

    def validate_state(
        self,
        state: Mapping[str, Any],
        evaluation_state: Optional[Mapping[str, Any]] = None,
    ) -> list[FormSubmissionError]:
        _, errors = self.validate(self.get_form_data_from_state(state), evaluation_state)
        return errors

    def get_form_data_from_state(self, state: Mapping[str, Any]) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        for component in self.fields:
            payload.update(component.get_form_data_from_state(state))
        return payload

    def get_state_from_valid_form(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        state: dict[str, Any] = {}
        for component in self.fields:
            state.update(component.get_state_from_valid_form(payload))
        return state

    def get_errors(self, errors: Optional[Iterable[FormSubmissionError]]) -> list[FormSubmissionError]:
        keys = set(self.keys) | {c.name for c in self.fields}
        return [error for error in errors or () if error.name in keys]

    def render(
        self,
        component: ComponentBase,
        payload: Mapping[str, Any],
        errors: Optional[list[FormSubmissionError]],
        evaluation_state: Optional[Mapping[str, Any]],
    ) -> dict[str, Any]:
        return {
            "type": component.type,
            "isFormComponent": component.is_form_component,
            "model": component.get_view_model(payload, errors, evaluation_state),
        }

    def get_view_model(
        self,
        payload: Mapping[str, Any],
        errors: Optional[list[FormSubmissionError]] = None,
        evaluation_state: Optional[Mapping[str, Any]] = None,
    ) -> list[dict[str, Any]]:
        return [
            self.render(component, payload, errors, evaluation_state)
            for component in self.components
            if self.is_visible(component, evaluation_state)
        ]


__all__ = ["ComponentCollection"]
