"""The form model: a parsed definition plus everything derived from it.

A model is built once per form version and shared between requests. It owns
the page controllers, the component and list lookups and the compiled
conditions; per-request data lives on the ``FormContext`` instead.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional, Union
from urllib.parse import urlencode

from pydantic import ValidationError

from forms_engine.errors import DefinitionError
from forms_engine.logic.components.base import ComponentBase
from forms_engine.logic.components.lists import YES_NO_LIST
from forms_engine.logic.conditions import ExecutableCondition, compile_conditions
from forms_engine.logic.helpers import normalise_path
from forms_engine.models.definition import (
    ComponentDef,
    ControllerType,
    Engine,
    FormDefinition,
    ListDef,
    OutputEmail,
    PageDef,
    SectionDef,
)
from forms_engine.models.metadata import FormMetadata, FormState

if TYPE_CHECKING:
    from forms_engine.logic.form_context import FormContext, FormRequest
    from forms_engine.logic.pages.base import PageController

logger = logging.getLogger(__name__)

STATUS_PATH = "/status"
SUMMARY_PATH = "/summary"
YES_NO_LIST_NAMES = ("__yesNo", "yesNo")

_STATUS_PAGE = PageDef(title="Form submitted", path=STATUS_PATH, controller=ControllerType.STATUS)


def _default_titles(pages: Iterable[PageDef]) -> list[PageDef]:
    """Untitled pages take the title of their first titled component."""
    titled = []
    for page in pages:
        if not page.title:
            first = next((c for c in page.components if c.title), None)
            if first is not None:
                page = page.model_copy(update={"title": first.title})
        titled.append(page)
    return titled


class FormModel:
    def __init__(
        self,
        definition: Union[FormDefinition, Mapping[str, Any]],
        base_path: str = "",
        services: Any = None,
        controllers: Optional[Mapping[str, type]] = None,
        metadata: Optional[FormMetadata] = None,
        form_state: FormState = FormState.LIVE,
        is_preview: bool = False,
        designer_url: str = "",
    ) -> None:
        if isinstance(definition, FormDefinition):
            parsed = definition
        else:
            try:
                parsed = FormDefinition.model_validate(definition)
            except ValidationError as exc:
                logger.error("form_definition_invalid errors=%s", exc.error_count())
                raise DefinitionError(f"Invalid form definition: {exc}") from exc

        self.base_path = normalise_path(base_path)
        self.services = services
        self.metadata = metadata
        self.form_state = form_state
        self.is_preview = is_preview
        self.designer_url = designer_url.rstrip("/")

        pages = _default_titles(parsed.pages)
        if not any(page.path == STATUS_PATH for page in pages):
            pages.append(_STATUS_PAGE)
        self.definition = parsed.model_copy(update={"pages": pages})
        self.engine = parsed.engine
        self.name = parsed.name or (metadata.title if metadata else "")

        self.lists: list[ListDef] = list(parsed.lists)
        if not any(list_def.name in YES_NO_LIST_NAMES for list_def in self.lists):
            self.lists.append(YES_NO_LIST)
        self.lists_by_name = {list_def.name: list_def for list_def in self.lists}
        self.lists_by_id = {list_def.id: list_def for list_def in self.lists if list_def.id}
        self.sections_by_name: dict[str, SectionDef] = {s.name: s for s in parsed.sections}

        self.component_defs_by_name: dict[str, ComponentDef] = {}
        self.component_defs_by_id: dict[str, ComponentDef] = {}
        for page in pages:
            for component in page.components:
                if component.name:
                    self.component_defs_by_name[component.name] = component
                if component.id:
                    self.component_defs_by_id[component.id] = component
        self.page_defs_by_path = {page.path: page for page in pages}
        self.page_defs_by_id = {page.id: page for page in pages if page.id}

        self.conditions: dict[str, ExecutableCondition] = compile_conditions(
            parsed.conditions, self.component_defs_by_id, self.lists_by_id
        )
        self._check_condition_references(pages)

        # Imported here: controllers need the model class only for typing
        from forms_engine.logic.pages import create_page_controller

        self.pages: list[PageController] = [
            create_page_controller(self, page, controllers) for page in pages
        ]
        self.page_map: dict[str, PageController] = {page.path: page for page in self.pages}
        self.component_map: dict[str, ComponentBase] = {}
        for page in self.pages:
            for component in page.collection.components:
                self.component_map.setdefault(component.name, component)
        logger.info(
            "form_model_built name=%s base_path=%s pages=%s", self.name, self.base_path, len(self.pages)
        )

    def _check_condition_references(self, pages: list[PageDef]) -> None:
        referenced: list[tuple[str, str]] = []
        for page in pages:
            if page.condition:
                referenced.append((page.path, page.condition))
            referenced.extend((page.path, link.condition) for link in page.next if link.condition)
            referenced.extend(
                (page.path, c.options["condition"]) for c in page.components if c.options.get("condition")
            )
        for list_def in self.lists:
            referenced.extend((list_def.name, item.condition) for item in list_def.items if item.condition)
        for owner, condition in referenced:
            if condition not in self.conditions:
                raise DefinitionError(f"{owner} references unknown condition {condition}")

    @property
    def output(self) -> OutputEmail:
        return self.definition.output or OutputEmail()

    @property
    def start_path(self) -> str:
        if self.engine is Engine.V1 and self.definition.start_page:
            return self.definition.start_page
        journey = [page for page in self.definition.pages if page.path != STATUS_PATH]
        return journey[0].path if journey else STATUS_PATH

    def get_page(self, path: Optional[str]) -> Optional[PageController]:
        return self.page_map.get(f"/{normalise_path(path)}")

    def get_page_def(self, path: str) -> Optional[PageDef]:
        return self.page_defs_by_path.get(path)

    def get_section(self, name: Optional[str]) -> Optional[SectionDef]:
        return self.sections_by_name.get(name) if name else None

    def get_component(self, name: str) -> Optional[ComponentDef]:
        return self.component_defs_by_name.get(name)

    def get_component_by_id(self, component_id: str) -> Optional[ComponentDef]:
        return self.component_defs_by_id.get(component_id)

    def get_list(self, name: str) -> Optional[ListDef]:
        """Look a list up by name, falling back to its id."""
        if name in YES_NO_LIST_NAMES and name not in self.lists_by_name:
            return YES_NO_LIST
        return self.lists_by_name.get(name) or self.lists_by_id.get(name)

    def get_list_by_id(self, list_id: str) -> Optional[ListDef]:
        return self.lists_by_id.get(list_id)

    def get_condition_by_id(self, condition_id: str) -> Optional[ExecutableCondition]:
        return self.conditions.get(condition_id)

    def evaluate_condition(self, condition_id: str, state: Mapping[str, Any]) -> bool:
        condition = self.conditions.get(condition_id)
        if condition is None:
            raise DefinitionError(f"Condition {condition_id} not found")
        return condition(state)

    def get_href(self, path: str, query: Optional[Mapping[str, Any]] = None) -> str:
        href = f"/{self.base_path}{path}" if self.base_path else path
        params = {k: v for k, v in (query or {}).items() if isinstance(v, str)}
        return f"{href}?{urlencode(params)}" if params else href

    def next_page(self, page: PageController, state: Mapping[str, Any]) -> Optional[PageController]:
        """The page that follows ``page`` for the given answers."""
        if self.engine is Engine.V1:
            for link in page.page_def.next:
                if link.condition is None or self.evaluate_condition(link.condition, state):
                    return self.get_page(link.path)
            return None
        index = self.pages.index(page)
        for candidate in self.pages[index + 1:]:
            if candidate.path == STATUS_PATH:
                continue
            if candidate.condition is None or self.evaluate_condition(candidate.condition, state):
                return candidate
        return None

    def get_form_context(
        self,
        request: FormRequest,
        state: Mapping[str, Any],
        errors: Optional[list] = None,
    ) -> FormContext:
        from forms_engine.logic.form_context import build_form_context

        return build_form_context(self, request, state, errors)


__all__ = ["FormModel", "STATUS_PATH", "SUMMARY_PATH"]
