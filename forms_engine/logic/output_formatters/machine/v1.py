"""Version 1 machine output: answers grouped into page-level questions."""

from __future__ import annotations

import json
from typing import Any

from forms_engine.logic.answers import DATA, get_answer
from forms_engine.logic.summary import DetailItemField, DetailItemRepeat


def _field(item: DetailItemField) -> dict[str, Any]:
    return {
        "key": item.name,
        "title": item.label,
        "type": item.field.type,
        "answer": get_answer(item.field, item.state, DATA),
    }


def _category(item) -> Any:
    section = item.page.section
    return section.name if section else None


def format(context, items, model, submit_response=None, form_status=None, form_metadata=None) -> str:
    questions: list[dict[str, Any]] = []
    current_page = None
    for item in items:
        if isinstance(item, DetailItemRepeat):
            current_page = None
            for index, sub_items in enumerate(item.sub_items):
                questions.append({
                    "category": _category(item),
                    "question": item.label,
                    "fields": [_field(sub_item) for sub_item in sub_items],
                    "index": index,
                })
            continue
        if item.page is not current_page:
            current_page = item.page
            questions.append({
                "category": _category(item),
                "question": item.page.title,
                "fields": [],
                "index": 0,
            })
        questions[-1]["fields"].append(_field(item))
    return json.dumps({"name": model.name, "questions": questions}, default=str)


__all__ = ["format"]
