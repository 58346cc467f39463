"""Templated titles, hints and content.

Expressions are rendered with a sandboxed, autoescaping jinja2 environment
against the relevant state. Extra filters give templates access to the form:

- ``evaluate``: render a nested template string
- ``page``: the page definition for a path
- ``href``: the URL of a page
- ``field``: the component definition for a name
- ``answer``: the summary answer for a component
- ``markdown``: render text as markdown, escaping any HTML in it
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Mapping, Optional

from jinja2 import TemplateError, pass_context
from jinja2.runtime import Context
from jinja2.sandbox import SandboxedEnvironment

from forms_engine.errors import DefinitionError
from forms_engine.logic.answers import get_answer
from forms_engine.logic.markdown_render import markdown_filter

if TYPE_CHECKING:
    from forms_engine.logic.form_context import FormContext

logger = logging.getLogger(__name__)

CONTEXT_GLOBAL = "__form_context"

environment = SandboxedEnvironment(autoescape=True)


def _form_context(ctx: Context) -> FormContext:
    return ctx[CONTEXT_GLOBAL]


@pass_context
def _evaluate(ctx: Context, template: Any) -> Any:
    if not isinstance(template, str):
        return template
    return evaluate_template(template, _form_context(ctx))


@pass_context
def _page(ctx: Context, path: Any) -> Any:
    if not isinstance(path, str):
        return None
    return _form_context(ctx).page_def_map.get(path)


@pass_context
def _href(ctx: Context, path: Any, query: Optional[Mapping[str, Any]] = None) -> Optional[str]:
    if not isinstance(path, str):
        return None
    page = _form_context(ctx).page_map.get(path)
    if page is None:
        return None
    return page.get_href(page.path, query)


@pass_context
def _field(ctx: Context, name: Any) -> Any:
    if not isinstance(name, str):
        return None
    return _form_context(ctx).component_def_map.get(name)


@pass_context
def _answer(ctx: Context, name: Any) -> Optional[str]:
    if not isinstance(name, str):
        return None
    context = _form_context(ctx)
    component = context.component_map.get(name)
    if component is None or not component.is_form_component:
        return None
    return get_answer(component, context.relevant_state)


environment.filters.update({
    "evaluate": _evaluate,
    "page": _page,
    "href": _href,
    "field": _field,
    "answer": _answer,
    "markdown": markdown_filter,
})


def has_expression(text: Optional[str]) -> bool:
    return bool(text) and ("{{" in text or "{%" in text)


def evaluate_template(template: str, context: FormContext) -> str:
    if not has_expression(template):
        return template
    try:
        compiled = environment.from_string(template, globals={CONTEXT_GLOBAL: context})
        return compiled.render(context.relevant_state)
    except TemplateError as exc:
        logger.error("template_render_failed template=%r", template, exc_info=True)
        raise DefinitionError(f"Invalid template: {exc}") from exc


__all__ = ["environment", "evaluate_template", "has_expression"]
