"""Repeater pages.

A repeat page collects a list of items under ``repeat.options.name``. Each
item is edited at ``{path}/{itemId}``; ``{path}/summary`` lists the items and
``{path}/{itemId}/confirm-delete`` removes one. ``repeat.schema.min`` and
``max`` bound the number of items.
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING, Any, Mapping, Optional

from forms_engine.errors import DefinitionError, PageNotFound
from forms_engine.logic.answers import get_answer
from forms_engine.logic.components.lists import ListFormComponent
from forms_engine.logic.helpers import FormAction, strip_reserved_keys
from forms_engine.logic.pages.base import PageResult, QuestionPageController, Redirect, View, page_error

if TYPE_CHECKING:
    from forms_engine.logic.form_context import FormContext, FormRequest
    from forms_engine.logic.form_model import FormModel
    from forms_engine.models.definition import PageDef

logger = logging.getLogger(__name__)

SUMMARY_SUBPAGE = "summary"
CONFIRM_DELETE_SUBPAGE = "confirm-delete"
ITEM_ID_KEY = "itemId"


class RepeatPageController(QuestionPageController):
    list_summary_view_name = "repeaters/summary"
    delete_view_name = "item-delete"

    def __init__(self, model: FormModel, page_def: PageDef) -> None:
        if page_def.repeat is None:
            raise DefinitionError(f"Repeat page {page_def.path} has no repeat options")
        super().__init__(model, page_def)
        self.repeat_name = page_def.repeat.options.name
        self.repeat_title = page_def.repeat.options.title
        self.minimum = page_def.repeat.schema_.min
        self.maximum = page_def.repeat.schema_.max

    @property
    def accepts_page_payload(self) -> bool:
        return False

    @property
    def state_keys(self) -> list[str]:
        return [self.repeat_name]

    def entries(self, state: Mapping[str, Any]) -> list[dict[str, Any]]:
        value = state.get(self.repeat_name)
        return list(value) if isinstance(value, list) else []

    def find_entry(self, state: Mapping[str, Any], item_id: Optional[str]) -> Optional[dict[str, Any]]:
        return next((entry for entry in self.entries(state) if entry.get(ITEM_ID_KEY) == item_id), None)

    def is_complete(self, state: Mapping[str, Any]) -> bool:
        if not isinstance(state.get(self.repeat_name), list):
            return False
        entries = self.entries(state)
        if len(entries) < self.minimum:
            return False
        return all(not self.collection.validate_state(entry, state) for entry in entries)

    def get_state_errors(self, state: Mapping[str, Any]) -> list:
        if len(self.entries(state)) < self.minimum:
            return [page_error(self.repeat_name, self.minimum_message, "arrayMin")]
        errors = []
        for entry in self.entries(state):
            errors.extend(self.collection.validate_state(entry, state))
        return errors

    @property
    def minimum_message(self) -> str:
        return f"You must add at least {self.minimum} {self.repeat_title.lower()}"

    @property
    def maximum_message(self) -> str:
        return f"You can only add up to {self.maximum} {self.repeat_title.lower()}"

    def get_payload_from_state(self, state: Mapping[str, Any], request: FormRequest) -> dict[str, Any]:
        entry = self.find_entry(state, request.item_id)
        return self.collection.get_form_data_from_state(entry or {})

    def summary_href(self, request: FormRequest) -> str:
        query = {"returnUrl": request.query["returnUrl"]} if "returnUrl" in request.query else None
        return self.get_href(f"{self.path}/{SUMMARY_SUBPAGE}", query)

    def item_title(self, context: FormContext, item_id: Optional[str]) -> str:
        ids = [entry.get(ITEM_ID_KEY) for entry in self.entries(context.state)]
        position = ids.index(item_id) + 1 if item_id in ids else len(ids) + 1
        return f"{self.repeat_title} {position}"

    def entry_summary(self, entry: Mapping[str, Any]) -> str:
        fields = self.collection.fields
        return get_answer(fields[0], entry) if fields else ""

    def list_summary_view_model(self, request, context, errors=None) -> dict[str, Any]:
        view_model = self.get_view_model(request, context, payload={}, errors=errors or [])
        entries = self.entries(context.state)
        view_model["components"] = []
        view_model["pageTitle"] = f"You have added {len(entries)} {self.repeat_title.lower()}"
        view_model["showAddAnother"] = len(entries) < self.maximum
        view_model["repeatTitle"] = self.repeat_title
        view_model["summaryList"] = {
            "rows": [
                {
                    "key": {"text": f"{self.repeat_title} {index}"},
                    "value": {"text": self.entry_summary(entry)},
                    "actions": {
                        "items": [
                            {"href": self.get_href(f"{self.path}/{entry[ITEM_ID_KEY]}"), "text": "Change"},
                            {
                                "href": self.get_href(f"{self.path}/{entry[ITEM_ID_KEY]}/{CONFIRM_DELETE_SUBPAGE}"),
                                "text": "Remove",
                            },
                        ]
                    },
                }
                for index, entry in enumerate(entries, start=1)
            ]
        }
        return view_model

    async def handle_get(self, request: FormRequest, context: FormContext) -> PageResult:
        subpage = request.params.get("subpage")
        if subpage == SUMMARY_SUBPAGE:
            return View(self.list_summary_view_name, self.list_summary_view_model(request, context))
        if subpage == CONFIRM_DELETE_SUBPAGE:
            entry = self.find_entry(context.state, request.item_id)
            if entry is None:
                raise PageNotFound(f"No {self.repeat_title} item {request.item_id}")
            view_model = self.get_view_model(request, context, payload={}, errors=[])
            view_model["components"] = []
            view_model["pageTitle"] = f"Are you sure you want to remove {self.item_title(context, request.item_id)}?"
            view_model["itemTitle"] = self.entry_summary(entry)
            view_model["confirmation"] = {"text": "Yes, remove it"}
            return View(self.delete_view_name, view_model)
        if not request.item_id:
            return Redirect(self.get_href(f"{self.path}/{uuid.uuid4()}", request.query))
        view_model = self.get_view_model(request, context)
        view_model["pageTitle"] = self.item_title(context, request.item_id)
        view_model["repeatTitle"] = self.repeat_title
        return View(self.view_name, view_model)

    async def handle_post(self, request: FormRequest, context: FormContext) -> PageResult:
        subpage = request.params.get("subpage")
        if subpage == SUMMARY_SUBPAGE:
            return await self.handle_list_summary_post(request, context)
        if subpage == CONFIRM_DELETE_SUBPAGE:
            return await self.handle_delete_post(request, context)
        if not request.item_id:
            raise PageNotFound(f"Repeat page {self.path} needs an item id")
        if request.payload.get("action") == FormAction.SAVE_AND_EXIT.value:
            return await self.save_and_exit(request, context)

        payload = strip_reserved_keys(request.payload)
        for component in self.collection.fields:
            if isinstance(component, ListFormComponent) and component.multiple:
                payload.setdefault(component.name, [])
        value, errors = self.collection.validate(payload, context.relevant_state)
        entries = self.entries(context.state)
        existing = self.find_entry(context.state, request.item_id)
        if not errors and existing is None and len(entries) >= self.maximum:
            errors = [page_error(self.repeat_name, self.maximum_message, "arrayMax")]
        if errors:
            view_model = self.get_view_model(request, context, payload=payload, errors=errors)
            view_model["pageTitle"] = self.item_title(context, request.item_id)
            return View(self.view_name, view_model, status_code=400)

        entry = {ITEM_ID_KEY: request.item_id, **self.collection.get_state_from_valid_form(value)}
        if existing is None:
            entries.append(entry)
        else:
            entries = [entry if e.get(ITEM_ID_KEY) == request.item_id else e for e in entries]
        await self.merge_state(request, context.state, {self.repeat_name: entries})
        logger.info("repeat_item_saved name=%s item=%s count=%s", self.repeat_name, request.item_id, len(entries))
        return Redirect(self.summary_href(request))

    async def handle_list_summary_post(self, request: FormRequest, context: FormContext) -> PageResult:
        entries = self.entries(context.state)
        action = request.payload.get("action")
        if action == FormAction.ADD_ANOTHER.value:
            if len(entries) >= self.maximum:
                errors = [page_error(self.repeat_name, self.maximum_message, "arrayMax")]
                return View(self.list_summary_view_name, self.list_summary_view_model(request, context, errors), 400)
            return Redirect(self.get_href(f"{self.path}/{uuid.uuid4()}", request.query))
        if len(entries) < self.minimum:
            errors = [page_error(self.repeat_name, self.minimum_message, "arrayMin")]
            return View(self.list_summary_view_name, self.list_summary_view_model(request, context, errors), 400)
        # Record an explicit (possibly empty) list so the page counts as answered
        state = await self.merge_state(request, context.state, {self.repeat_name: entries})
        relevant_state = {**context.relevant_state, self.repeat_name: state.get(self.repeat_name, entries)}
        next_page = self.model.next_page(self, relevant_state)
        return self.proceed(request, next_page.path if next_page else self.get_next_path(context))

    async def handle_delete_post(self, request: FormRequest, context: FormContext) -> PageResult:
        entries = self.entries(context.state)
        if self.find_entry(context.state, request.item_id) is None:
            raise PageNotFound(f"No {self.repeat_title} item {request.item_id}")
        if str(request.payload.get("confirm", "")).lower() == "true":
            entries = [e for e in entries if e.get(ITEM_ID_KEY) != request.item_id]
            await self.merge_state(request, context.state, {self.repeat_name: entries})
            logger.info("repeat_item_removed name=%s item=%s", self.repeat_name, request.item_id)
        return Redirect(self.summary_href(request))


__all__ = ["CONFIRM_DELETE_SUBPAGE", "ITEM_ID_KEY", "RepeatPageController", "SUMMARY_SUBPAGE"]
