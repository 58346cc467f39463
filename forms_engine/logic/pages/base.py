"""Page controller base class and handler results.

Controllers are framework neutral: handlers receive a ``FormRequest`` and a
``FormContext`` and return a ``View`` to render or a ``Redirect``. The HTTP
layer turns those into responses.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional, Union

from forms_engine.errors import ConfigurationError
from forms_engine.logic.components.composable import ComposableComponentCollection
from forms_engine.logic.events import SESSION_SAVED_AND_EXITED, publish
from forms_engine.logic.form_model import STATUS_PATH, SUMMARY_PATH
from forms_engine.logic.helpers import FormAction, is_path_relative
from forms_engine.logic.state import merge
from forms_engine.logic.templates import evaluate_template
from forms_engine.models.definition import ComponentDef, PageDef
from forms_engine.models.submission import FormSubmissionError

if TYPE_CHECKING:
    from forms_engine.logic.form_context import FormContext, FormRequest
    from forms_engine.logic.form_model import FormModel

logger = logging.getLogger(__name__)

EXIT_PATH = "/exit"


@dataclass
class View:
    name: str
    model: dict[str, Any] = field(default_factory=dict)
    status_code: int = 200


@dataclass
class Redirect:
    url: str
    status_code: int = 303


PageResult = Union[View, Redirect]


def page_error(name: str, text: str, error_type: str = "custom") -> FormSubmissionError:
    return FormSubmissionError(
        path=[name], href=f"#{name}", name=name, text=text, context={"key": name, "type": error_type}
    )


def _evaluate_component_model(view_model: dict[str, Any], context: FormContext) -> None:
    for key in ("label", "hint"):
        text = (view_model.get(key) or {}).get("text")
        if isinstance(text, str):
            view_model[key]["text"] = evaluate_template(text, context)
    legend = (view_model.get("fieldset") or {}).get("legend")
    if legend and isinstance(legend.get("text"), str):
        legend["text"] = evaluate_template(legend["text"], context)
    for key in ("content", "html", "summaryHtml", "instructionText"):
        if isinstance(view_model.get(key), str):
            view_model[key] = evaluate_template(view_model[key], context)


class PageController:
    view_name = "index"
    allow_save_and_exit = False
    is_terminal = False

    def __init__(self, model: FormModel, page_def: PageDef) -> None:
        self.model = model
        self.page_def = page_def
        self.path = page_def.path
        self.title = page_def.title
        self.condition = page_def.condition
        self.section = model.get_section(page_def.section)
        self.repeat = page_def.repeat
        self.events = page_def.events
        self.collection = ComposableComponentCollection(
            self.component_definitions(page_def), model=model, page=self
        )

    def component_definitions(self, page_def: PageDef) -> list[ComponentDef]:
        return list(page_def.components)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} path={self.path!r}>"

    @property
    def href(self) -> str:
        return self.get_href(self.path)

    @property
    def services(self) -> Any:
        if self.model.services is None:
            raise ConfigurationError("Form model has no services configured")
        return self.model.services

    def get_href(self, path: str, query: Optional[Mapping[str, Any]] = None) -> str:
        return self.model.get_href(path, query)

    def get_start_path(self) -> str:
        return self.model.start_path

    def get_summary_path(self) -> str:
        return SUMMARY_PATH

    def get_status_path(self) -> str:
        return STATUS_PATH

    @property
    def accepts_page_payload(self) -> bool:
        return bool(self.collection.fields)

    @property
    def state_keys(self) -> list[str]:
        return [component.name for component in self.collection.fields]

    def is_complete(self, state: Mapping[str, Any]) -> bool:
        """True when the page's answers are present and valid."""
        if not self.collection.fields:
            return True
        if not any(key in state for key in self.state_keys):
            return False
        return not self.collection.validate_state(state, state)

    def get_state_errors(self, state: Mapping[str, Any]) -> list[FormSubmissionError]:
        return self.collection.validate_state(state, state)

    def get_payload_from_state(self, state: Mapping[str, Any], request: FormRequest) -> dict[str, Any]:
        return self.collection.get_form_data_from_state(state)

    def get_relevant_path(self, context: FormContext) -> str:
        if self.path in context.paths:
            return self.path
        return context.paths[-1] if context.paths else self.get_start_path()

    def get_next_path(self, context: FormContext) -> str:
        next_page = self.model.next_page(self, context.relevant_state)
        if next_page is not None:
            return next_page.path
        if self.get_summary_path() in self.model.page_map:
            return self.get_summary_path()
        return self.get_start_path()

    def get_back_link(self, context: FormContext) -> Optional[str]:
        if self.path in context.paths:
            index = context.paths.index(self.path)
            if index > 0:
                return self.get_href(context.paths[index - 1])
        return None

    def proceed(self, request: FormRequest, next_path: str) -> Redirect:
        """Redirect to ``returnUrl`` when given, otherwise to ``next_path``."""
        return_url = request.query.get("returnUrl")
        if isinstance(return_url, str) and is_path_relative(return_url) and not return_url.startswith("//"):
            return Redirect(return_url)
        return Redirect(self.get_href(next_path))

    async def get_state(self, request: FormRequest) -> dict[str, Any]:
        return await self.services.cache_service.get_state(request)

    async def merge_state(
        self, request: FormRequest, state: Mapping[str, Any], update: Mapping[str, Any]
    ) -> dict[str, Any]:
        return await self.services.cache_service.set_state(request, merge(state, update))

    def get_submission_errors(self, context: FormContext) -> list[FormSubmissionError]:
        """Errors raised while walking the journey that belong on this page."""
        return self.collection.get_errors(context.submission_errors)

    def get_view_model(
        self,
        request: FormRequest,
        context: FormContext,
        payload: Optional[Mapping[str, Any]] = None,
        errors: Optional[Iterable[FormSubmissionError]] = None,
    ) -> dict[str, Any]:
        if errors is None:
            errors = [*context.errors, *self.get_submission_errors(context)]
        errors = list(errors)
        components = self.collection.get_view_model(
            context.payload if payload is None else payload, errors, context.relevant_state
        )
        for component in components:
            _evaluate_component_model(component["model"], context)
        section_title = self.section.title if self.section and not self.section.hide_title else None
        phase_banner = self.model.definition.phase_banner
        return {
            "name": self.model.name,
            "page": {"path": self.path, "href": self.href},
            "pageTitle": evaluate_template(self.title, context),
            "sectionTitle": section_title,
            "showTitle": True,
            "isStartPage": False,
            "components": components,
            "errors": [error.model_dump() for error in errors] or None,
            "backLink": self.get_back_link(context),
            "allowSaveAndExit": self.allow_save_and_exit,
            "phaseTag": phase_banner.phase if phase_banner else None,
            "serviceUrl": self.get_href("/"),
            "data": context.data,
        }

    async def handle_get(self, request: FormRequest, context: FormContext) -> PageResult:
        return View(self.view_name, self.get_view_model(request, context))

    async def handle_post(self, request: FormRequest, context: FormContext) -> PageResult:
        return self.proceed(request, self.get_next_path(context))

    async def save_and_exit(self, request: FormRequest, context: FormContext) -> Redirect:
        persister = self.services.session_persister
        if persister is None:
            raise ConfigurationError("Server misconfigured for save and exit")
        result = persister(context.state, request)
        if inspect.isawaitable(result):
            await result
        await self.services.cache_service.clear_state(request)
        publish(SESSION_SAVED_AND_EXITED, {"form": self.model.name, "reference": context.reference_number})
        return Redirect(self.get_href(EXIT_PATH))


class QuestionPageController(PageController):
    allow_save_and_exit = True

    async def handle_post(self, request: FormRequest, context: FormContext) -> PageResult:
        if request.payload.get("action") == FormAction.SAVE_AND_EXIT.value and self.allow_save_and_exit:
            return await self.save_and_exit(request, context)
        if context.errors:
            logger.info("page_invalid path=%s errors=%s", self.path, len(context.errors))
            return View(self.view_name, self.get_view_model(request, context), status_code=400)
        update = {key: context.evaluation_state.get(key) for key in self.state_keys}
        await self.merge_state(request, context.state, update)
        return self.proceed(request, self.get_next_path(context))


__all__ = [
    "EXIT_PATH",
    "PageController",
    "PageResult",
    "QuestionPageController",
    "Redirect",
    "View",
    "page_error",
]
