"""Form journey routes.

Every page route exists twice: for live forms at ``/{slug}/...`` and for
previews at ``/preview/{state}/{slug}/...``. Handlers translate the HTTP
request into a ``FormRequest``, resolve the form model through the registry
and turn the controller's ``PageResult`` into a response. Views are returned
as JSON ``{"view", "model"}`` for a renderer to consume.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse

from forms_engine.errors import NotFound
from forms_engine.logic.dispatch import dispatch
from forms_engine.logic.form_context import FormRequest
from forms_engine.logic.pages.base import PageResult, View
from forms_engine.logic.pages.repeat import CONFIRM_DELETE_SUBPAGE, SUMMARY_SUBPAGE
from forms_engine.models.metadata import FormState
from forms_engine.services.registry import FormModelRegistry

router = APIRouter()
logger = logging.getLogger(__name__)

PREVIEW_PREFIX = "/preview/{state}"


def _registry(request: Request) -> FormModelRegistry:
    return request.app.state.registry


def preview_state(request: Request) -> Optional[FormState]:
    """The form state named by a preview route, None for live routes."""
    value = request.path_params.get("state")
    if value is None:
        return None
    try:
        return FormState(value)
    except ValueError as exc:
        raise NotFound(f"Unknown form state {value}") from exc


async def read_payload(request: Request) -> dict[str, Any]:
    """Decode a JSON or form-encoded body; repeated form keys become lists."""
    if request.method.upper() != "POST":
        return {}
    content_type = request.headers.get("content-type", "").split(";", 1)[0].strip().lower()
    if content_type == "application/json":
        body = await request.json()
        return body if isinstance(body, dict) else {}
    form = await request.form()
    payload: dict[str, Any] = {}
    for key in form.keys():
        values = form.getlist(key)
        payload[key] = values if len(values) > 1 else values[0]
    return payload


def to_response(result: PageResult) -> Response:
    if isinstance(result, View):
        return JSONResponse({"view": result.name, "model": result.model}, status_code=result.status_code)
    return RedirectResponse(result.url, status_code=result.status_code)


async def handle(
    request: Request,
    slug: str,
    path: Optional[str] = None,
    item_id: Optional[str] = None,
    subpage: Optional[str] = None,
) -> Response:
    state = preview_state(request)
    params: dict[str, Any] = {"slug": slug, "path": path, "state": state.value if state else None}
    if item_id is not None:
        params["itemId"] = item_id
    if subpage is not None:
        params["subpage"] = subpage
    form_request = FormRequest(
        method=request.method.lower(),
        params=params,
        query=dict(request.query_params),
        payload=await read_payload(request),
        session_id=getattr(request.state, "session_id", None),
    )
    model, _ = await _registry(request).get_model(slug, state or FormState.LIVE, state is not None)
    result = await dispatch(model, form_request)
    logger.info(
        "page_handled slug=%s path=%s method=%s result=%s",
        slug,
        form_request.path,
        form_request.method,
        type(result).__name__,
    )
    return to_response(result)


async def exit_page(request: Request, slug: str) -> Response:
    state = preview_state(request)
    model, _ = await _registry(request).get_model(slug, state or FormState.LIVE, state is not None)
    view = View(
        "exit",
        {
            "name": model.name,
            "pageTitle": "Your progress has been saved",
            "serviceUrl": model.get_href("/"),
        },
    )
    return to_response(view)


def _register(prefix: str) -> None:
    page_methods = ["GET", "POST"]

    @router.get(prefix + "/{slug}")
    async def start(request: Request, slug: str) -> Response:
        return await handle(request, slug)

    @router.get(prefix + "/{slug}/exit")
    async def exit_(request: Request, slug: str) -> Response:
        return await exit_page(request, slug)

    @router.api_route(prefix + "/{slug}/{path}/" + SUMMARY_SUBPAGE, methods=page_methods)
    async def repeater_summary(request: Request, slug: str, path: str) -> Response:
        return await handle(request, slug, path, subpage=SUMMARY_SUBPAGE)

    @router.api_route(prefix + "/{slug}/{path}/{item_id}/" + CONFIRM_DELETE_SUBPAGE, methods=page_methods)
    async def confirm_delete(request: Request, slug: str, path: str, item_id: str) -> Response:
        return await handle(request, slug, path, item_id, CONFIRM_DELETE_SUBPAGE)

    @router.api_route(prefix + "/{slug}/{path}/{item_id}", methods=page_methods)
    async def item(request: Request, slug: str, path: str, item_id: str) -> Response:
        return await handle(request, slug, path, item_id)

    @router.api_route(prefix + "/{slug}/{path}", methods=page_methods)
    async def page(request: Request, slug: str, path: str) -> Response:
        return await handle(request, slug, path)


# Preview routes go first so "/preview/..." is never read as a slug.
_register(PREVIEW_PREFIX)
_register("")


__all__ = ["handle", "preview_state", "read_payload", "router", "to_response"]
