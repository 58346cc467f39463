"""Per-request form context.

``build_form_context`` walks the journey from the start page with the current
answers and works out which pages are relevant, which answers still count and
where the user is allowed to be. On POST the submitted page payload is
validated first and, when valid, folded into the evaluation state so the walk
sees the answers being submitted.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Mapping, Optional

from forms_engine.errors import StateError
from forms_engine.logic.components.base import ComponentBase, FormComponent
from forms_engine.logic.components.lists import ListFormComponent, item_key
from forms_engine.logic.form_model import STATUS_PATH
from forms_engine.logic.helpers import REFERENCE_NUMBER_KEY, normalise_path, strip_reserved_keys
from forms_engine.logic.state import merge
from forms_engine.models.definition import ComponentDef, ListDef, PageDef
from forms_engine.models.submission import FormSubmissionError

if TYPE_CHECKING:
    from forms_engine.logic.form_model import FormModel
    from forms_engine.logic.pages.base import PageController

logger = logging.getLogger(__name__)

CHANGED_OPTIONS_MESSAGE = "Options are different because you changed a previous answer"


@dataclass
class FormRequest:
    """Framework-neutral view of an incoming page request."""

    method: str = "get"
    params: dict[str, Any] = field(default_factory=dict)
    query: dict[str, Any] = field(default_factory=dict)
    payload: dict[str, Any] = field(default_factory=dict)
    session_id: Optional[str] = None

    @property
    def slug(self) -> str:
        return self.params.get("slug", "")

    @property
    def path(self) -> Optional[str]:
        path = normalise_path(self.params.get("path"))
        return f"/{path}" if path else None

    @property
    def item_id(self) -> Optional[str]:
        return self.params.get("itemId")

    @property
    def is_post(self) -> bool:
        return self.method.lower() == "post"


@dataclass
class FormContext:
    evaluation_state: dict[str, Any]
    relevant_state: dict[str, Any]
    relevant_pages: list[PageController]
    payload: dict[str, Any]
    state: dict[str, Any]
    paths: list[str]
    is_force_access: bool
    data: dict[str, Any]
    page_def_map: dict[str, PageDef]
    list_def_map: dict[str, ListDef]
    component_def_map: dict[str, ComponentDef]
    page_map: dict[str, PageController]
    component_map: dict[str, ComponentBase]
    reference_number: str
    errors: list[FormSubmissionError] = field(default_factory=list)
    submission_errors: list[FormSubmissionError] = field(default_factory=list)


def _first_page(model: FormModel, state: Mapping[str, Any]) -> Optional[PageController]:
    page = model.get_page(model.start_path)
    if page is None:
        return None
    if page.condition is None or model.evaluate_condition(page.condition, state):
        return page
    return model.next_page(page, state)


def _prune_hidden_items(
    model: FormModel,
    page: PageController,
    relevant_state: dict[str, Any],
    submission_errors: list[FormSubmissionError],
) -> None:
    """Drop list answers that select items hidden by a list item condition."""
    for component in page.collection.fields:
        if not isinstance(component, ListFormComponent):
            continue
        value = relevant_state.get(component.name)
        if value is None or not any(item.condition for item in component.items):
            continue
        visible = {item_key(item.value) for item in component.visible_items(relevant_state)}
        selected = value if isinstance(value, list) else [value]
        if all(item_key(v) in visible for v in selected):
            continue
        relevant_state.pop(component.name)
        submission_errors.append(
            FormSubmissionError(
                path=[component.name],
                href=f"#{component.name}",
                name=component.name,
                text=CHANGED_OPTIONS_MESSAGE,
                context={"key": component.name, "label": component.label, "type": "invalidOption"},
            )
        )
        logger.info("list_answer_pruned name=%s page=%s", component.name, page.path)


def _merge_payload(
    page: PageController, request: FormRequest, evaluation_state: dict[str, Any]
) -> tuple[dict[str, Any], list[FormSubmissionError], dict[str, Any]]:
    payload = strip_reserved_keys(request.payload)
    for component in page.collection.fields:
        # Unticked checkboxes are absent from a form post
        if isinstance(component, ListFormComponent) and component.multiple:
            payload.setdefault(component.name, [])
    value, errors = page.collection.validate(payload, evaluation_state)
    if not errors:
        evaluation_state = merge(evaluation_state, page.collection.get_state_from_valid_form(value))
    return payload, errors, evaluation_state


def build_form_context(
    model: FormModel,
    request: FormRequest,
    state: Mapping[str, Any],
    errors: Optional[list[FormSubmissionError]] = None,
) -> FormContext:
    reference_number = state.get(REFERENCE_NUMBER_KEY)
    if not isinstance(reference_number, str):
        raise StateError("Reference number not found in form state")

    page = model.get_page(request.path) if request.path else None
    evaluation_state: dict[str, Any] = copy.deepcopy(dict(state))
    context_errors = list(errors or [])
    payload: dict[str, Any] = {}

    if request.is_post and page is not None and page.accepts_page_payload:
        payload, page_errors, evaluation_state = _merge_payload(page, request, evaluation_state)
        context_errors.extend(page_errors)

    relevant_state: dict[str, Any] = {REFERENCE_NUMBER_KEY: reference_number}
    relevant_pages: list[PageController] = []
    paths: list[str] = []
    submission_errors: list[FormSubmissionError] = []

    current = _first_page(model, relevant_state)
    while current is not None and current.path not in paths:
        relevant_pages.append(current)
        paths.append(current.path)
        for key in current.state_keys:
            if key in evaluation_state:
                relevant_state[key] = copy.deepcopy(evaluation_state[key])
        _prune_hidden_items(model, current, relevant_state, submission_errors)
        if not current.is_complete(relevant_state) or current.is_terminal:
            break
        current = model.next_page(current, relevant_state)

    if page is not None and not payload:
        payload = page.get_payload_from_state(relevant_state, request)

    is_force_access = bool(
        model.is_preview
        and "force" in request.query
        and request.path is not None
        and request.path not in paths
    )

    context = FormContext(
        evaluation_state=evaluation_state,
        relevant_state=relevant_state,
        relevant_pages=relevant_pages,
        payload=payload,
        state=dict(state),
        paths=paths,
        is_force_access=is_force_access,
        data={},
        page_def_map=dict(model.page_defs_by_path),
        list_def_map=dict(model.lists_by_name),
        component_def_map=dict(model.component_defs_by_name),
        page_map=dict(model.page_map),
        component_map=dict(model.component_map),
        reference_number=reference_number,
        errors=context_errors,
        submission_errors=submission_errors,
    )
    logger.info(
        "form_context_built name=%s path=%s relevant=%s errors=%s",
        model.name, request.path, len(paths), len(context_errors),
    )
    return context


def relevant_fields(context: FormContext) -> list[FormComponent]:
    fields: list[FormComponent] = []
    for page in context.relevant_pages:
        if page.path != STATUS_PATH:
            fields.extend(page.collection.visible_fields(context.relevant_state))
    return fields


__all__ = [
    "CHANGED_OPTIONS_MESSAGE",
    "FormContext",
    "FormRequest",
    "build_form_context",
    "relevant_fields",
]
