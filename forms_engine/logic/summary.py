"""Check-answers details and the submission data derived from them."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional, Union

from forms_engine.logic.answers import get_answer
from forms_engine.logic.components.base import FormComponent
from forms_engine.logic.form_model import STATUS_PATH

if TYPE_CHECKING:
    from forms_engine.logic.form_context import FormContext
    from forms_engine.logic.pages.base import PageController

logger = logging.getLogger(__name__)


@dataclass
class DetailItemField:
    name: str
    label: str
    title: str
    value: str
    href: str
    state: dict[str, Any]
    page: PageController
    field: FormComponent


@dataclass
class DetailItemRepeat:
    name: str
    label: str
    title: str
    value: str
    href: str
    state: dict[str, Any]
    page: PageController
    sub_items: list[list[DetailItemField]] = field(default_factory=list)


DetailItem = Union[DetailItemField, DetailItemRepeat]


@dataclass
class Detail:
    name: Optional[str]
    title: Optional[str]
    items: list[DetailItem] = field(default_factory=list)


def _field_item(page: PageController, component: FormComponent, state: dict[str, Any], href: str) -> DetailItemField:
    return DetailItemField(
        name=component.name,
        label=component.label,
        title=component.title,
        value=get_answer(component, state),
        href=href,
        state=state,
        page=page,
        field=component,
    )


def get_details(context: FormContext, summary_path: str) -> list[Detail]:
    """Group the answers of every relevant page by section."""
    details: list[Detail] = []
    by_section: dict[Optional[str], Detail] = {}
    state = context.relevant_state

    for page in context.relevant_pages:
        if page.path in (summary_path, STATUS_PATH):
            continue
        return_query = {"returnUrl": page.get_href(summary_path)}
        items: list[DetailItem] = []
        if page.repeat is not None:
            entries = state.get(page.repeat.options.name) or []
            sub_items = [
                [
                    _field_item(page, component, entry, page.get_href(f"{page.path}/{entry.get('itemId')}", return_query))
                    for component in page.collection.visible_fields(state)
                ]
                for entry in entries
            ]
            unit = page.repeat.options.title if len(entries) == 1 else f"{page.repeat.options.title}s"
            items.append(
                DetailItemRepeat(
                    name=page.repeat.options.name,
                    label=page.repeat.options.title,
                    title=page.title,
                    value=f"You added {len(entries)} {unit}",
                    href=page.get_href(f"{page.path}/summary", return_query),
                    state=state,
                    page=page,
                    sub_items=sub_items,
                )
            )
        else:
            href = page.get_href(page.path, return_query)
            items.extend(_field_item(page, c, state, href) for c in page.collection.visible_fields(state))
        if not items:
            continue

        section = page.section
        key = section.name if section else None
        if key not in by_section:
            title = section.title if section and not section.hide_title else None
            by_section[key] = Detail(name=key, title=title)
            details.append(by_section[key])
        by_section[key].items.extend(items)
    return details


def get_form_submission_data(context: FormContext, details: list[Detail]) -> list[DetailItem]:
    """Flatten the check-answers details into submission items."""
    items = [item for detail in details for item in detail.items]
    logger.info("submission_data_collected reference=%s items=%s", context.reference_number, len(items))
    return items


def detail_rows(detail: Detail) -> list[dict[str, Any]]:
    return [
        {
            "key": {"text": item.label},
            "value": {"text": item.value},
            "actions": {"items": [{"href": item.href, "text": "Change", "visuallyHiddenText": item.label}]},
            "name": item.name,
        }
        for item in detail.items
    ]


__all__ = [
    "Detail",
    "DetailItem",
    "DetailItemField",
    "DetailItemRepeat",
    "detail_rows",
    "get_details",
    "get_form_submission_data",
]
