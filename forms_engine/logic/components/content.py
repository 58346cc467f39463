"""Guidance components: they render but never hold an answer."""

from __future__ import annotations

from typing import Any

from forms_engine.errors import DefinitionError
from forms_engine.logic.components.base import ComponentBase
from forms_engine.logic.components.kinds import ComponentKind
from forms_engine.logic.markdown_render import render_markdown


class ContentComponent(ComponentBase):
    def get_view_model(self, payload, errors=None, evaluation_state=None) -> dict[str, Any]:
        view_model = super().get_view_model(payload, errors, evaluation_state)
        view_model["content"] = self.definition.content or ""
        return view_model


class Html(ContentComponent):
    kind = ComponentKind.HTML


class Markdown(ContentComponent):
    kind = ComponentKind.MARKDOWN

    def get_view_model(self, payload, errors=None, evaluation_state=None) -> dict[str, Any]:
        view_model = super().get_view_model(payload, errors, evaluation_state)
        view_model["content"] = render_markdown(view_model["content"])
        return view_model


class InsetText(ContentComponent):
    kind = ComponentKind.INSET_TEXT


class Details(ContentComponent):
    kind = ComponentKind.DETAILS

    def get_view_model(self, payload, errors=None, evaluation_state=None) -> dict[str, Any]:
        view_model = super().get_view_model(payload, errors, evaluation_state)
        view_model["summaryHtml"] = self.title
        view_model["html"] = view_model.pop("content")
        return view_model


class List(ContentComponent):
    kind = ComponentKind.LIST

    def get_view_model(self, payload, errors=None, evaluation_state=None) -> dict[str, Any]:
        view_model = super().get_view_model(payload, errors, evaluation_state)
        list_def = self.model.get_list(self.definition.list_ or "") if self.model else None
        if list_def is None:
            raise DefinitionError(f"List {self.definition.list_!r} not found for component {self.name}")
        view_model["items"] = [{"text": item.text, "value": item.value} for item in list_def.items]
        view_model["type"] = self.options.get("type")
        view_model["title"] = self.title
        return view_model


__all__ = ["ContentComponent", "Details", "Html", "InsetText", "List", "Markdown"]
