"""Composable rendering of ``before``/``after`` satellite components.

Any component definition may carry satellites that render immediately before
or after it. Satellites nest arbitrarily; only primary definitions take part
in validation. Rendering order for one primary is: its ``before`` satellites
(each expanded recursively), the primary, then its ``after`` satellites.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Union

from forms_engine.errors import DefinitionError
from forms_engine.logic.components.base import ComponentBase
from forms_engine.logic.components.collection import ComponentCollection
from forms_engine.logic.components.factory import create_component
from forms_engine.models.definition import ComponentDef
from forms_engine.models.submission import FormSubmissionError

logger = logging.getLogger(__name__)

MAX_COMPOSITION_DEPTH = 8

Satellites = Optional[Union[ComponentDef, list[ComponentDef]]]


@dataclass
class RenderNode:
    component: ComponentBase
    before: list[RenderNode] = field(default_factory=list)
    after: list[RenderNode] = field(default_factory=list)


class ComposableComponentCollection(ComponentCollection):
    def __init__(self, definitions, model=None, page=None, parent=None, custom=None) -> None:
        super().__init__(definitions, model=model, page=page, parent=parent, custom=custom)
        self.nodes = [
            self._node(component, definition, depth=0)
            for component, definition in zip(self.components, self.definitions)
        ]

    def _node(self, component: ComponentBase, definition: ComponentDef, depth: int) -> RenderNode:
        return RenderNode(
            component,
            before=self._satellites(definition.before, definition, depth + 1),
            after=self._satellites(definition.after, definition, depth + 1),
        )

    def _satellites(self, value: Satellites, owner: ComponentDef, depth: int) -> list[RenderNode]:
        if value is None:
            return []
        definitions = value if isinstance(value, list) else [value]
        if not definitions:
            return []
        if depth > MAX_COMPOSITION_DEPTH:
            logger.warning(
                "composition_depth_exceeded component=%s depth=%s max=%s",
                owner.name, depth, MAX_COMPOSITION_DEPTH,
            )
            return []
        nodes = []
        for definition in definitions:
            try:
                component = create_component(definition, model=self.model, page=self.page)
            except (DefinitionError, ValueError, KeyError, TypeError):
                logger.error(
                    "composable_component_failed owner=%s type=%s name=%s",
                    owner.name, definition.type, definition.name, exc_info=True,
                )
                continue
            nodes.append(self._node(component, definition, depth))
        return nodes

    def _render_node(
        self,
        node: RenderNode,
        payload: Mapping[str, Any],
        errors: Optional[list[FormSubmissionError]],
        evaluation_state: Optional[Mapping[str, Any]],
        output: list[dict[str, Any]],
    ) -> None:
        if not self.is_visible(node.component, evaluation_state):
            return
        for satellite in node.before:
            self._render_node(satellite, payload, errors, evaluation_state, output)
        try:
            output.append(self.render(node.component, payload, errors, evaluation_state))
        except (DefinitionError, ValueError, KeyError, TypeError):
            if node.component in self.components:
                raise
            logger.error("composable_render_failed name=%s", node.component.name, exc_info=True)
        for satellite in node.after:
            self._render_node(satellite, payload, errors, evaluation_state, output)

    def get_view_model(
        self,
        payload: Mapping[str, Any],
        errors: Optional[list[FormSubmissionError]] = None,
        evaluation_state: Optional[Mapping[str, Any]] = None,
    ) -> list[dict[str, Any]]:
        output: list[dict[str, Any]] = []
        for node in self.nodes:
            self._render_node(node, payload, errors, evaluation_state, output)
        return output


__all__ = ["ComposableComponentCollection", "MAX_COMPOSITION_DEPTH", "RenderNode"]
