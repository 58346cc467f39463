"""Framework-neutral request dispatch for form pages.

``dispatch`` loads session state, makes sure it carries a reference number,
builds the form context and either hands the request to the page controller
or redirects back to the furthest page the user may reach.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Optional

import httpx

from forms_engine.errors import DefinitionError, PageNotFound
from forms_engine.logic.form_context import FormContext, FormRequest
from forms_engine.logic.helpers import REFERENCE_NUMBER_KEY, redirect_path
from forms_engine.logic.output_formatters.machine import v1 as machine_v1
from forms_engine.logic.pages.base import PageController, PageResult, Redirect
from forms_engine.logic.reference_numbers import generate_unique_reference
from forms_engine.logic.state import merge
from forms_engine.logic.summary import get_details, get_form_submission_data
from forms_engine.services.http_service import post_json

if TYPE_CHECKING:
    from forms_engine.logic.form_model import FormModel

logger = logging.getLogger(__name__)


def reference_prefix(model: FormModel) -> Optional[str]:
    prefix = model.definition.metadata.get("referenceNumberPrefix")
    if prefix is not None and not isinstance(prefix, str):
        raise DefinitionError("Reference number prefix must be a string or undefined")
    return prefix or None


async def ensure_reference_number(model: FormModel, request: FormRequest, state: dict[str, Any]) -> dict[str, Any]:
    if isinstance(state.get(REFERENCE_NUMBER_KEY), str):
        return state
    reference = generate_unique_reference(reference_prefix(model))
    logger.info("reference_number_assigned name=%s reference=%s", model.name, reference)
    return await model.services.cache_service.set_state(request, merge(state, {REFERENCE_NUMBER_KEY: reference}))


async def load_event_data(page: PageController, context: FormContext) -> None:
    """Call an ``onLoad`` http event and merge its response into ``context.data``."""
    on_load = (page.events or {}).get("onLoad") or {}
    if on_load.get("type") != "http":
        return
    url = (on_load.get("options") or {}).get("url")
    if not url:
        return
    items = get_form_submission_data(context, get_details(context, page.get_summary_path()))
    payload = json.loads(machine_v1.format(context, items, page.model))
    try:
        response = await post_json(url, payload)
    except (httpx.HTTPError, ValueError):
        logger.error("page_event_failed path=%s url=%s", page.path, url, exc_info=True)
        return
    if isinstance(response, dict):
        context.data.update(response)


def is_handled_by(page: PageController, relevant_path: str) -> bool:
    return relevant_path == page.path or relevant_path.startswith(f"{page.path}/")


async def dispatch(model: FormModel, request: FormRequest) -> PageResult:
    if request.path is None:
        return Redirect(model.get_href(model.start_path), status_code=302)

    page = model.get_page(request.path)
    if page is None:
        raise PageNotFound(f"No page found for {request.path}")

    cache = model.services.cache_service
    state = await ensure_reference_number(model, request, await cache.get_state(request))
    flash = None if request.is_post else await cache.get_flash(request)
    context = model.get_form_context(request, state, flash["errors"] if flash else None)

    relevant_path = page.get_relevant_path(context)
    if is_handled_by(page, relevant_path) or context.is_force_access:
        if request.is_post:
            if context.is_force_access and not page.collection.fields:
                return Redirect(redirect_path(page.href, request.query))
            return await page.handle_post(request, context)
        await load_event_data(page, context)
        return await page.handle_get(request, context)

    target = model.get_page(relevant_path)
    query = {}
    if target is not None and target.page_def.next:
        query["returnUrl"] = page.get_href(page.get_summary_path())
    logger.info("journey_redirect requested=%s relevant=%s", request.path, relevant_path)
    return Redirect(page.get_href(relevant_path, query))


__all__ = ["dispatch", "ensure_reference_number", "load_event_data", "reference_prefix"]
