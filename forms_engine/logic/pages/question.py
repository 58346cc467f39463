"""Question-style controllers: start, terminal and status pages."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from forms_engine.errors import MethodNotAllowed
from forms_engine.logic.pages.base import PageResult, QuestionPageController, Redirect, View

if TYPE_CHECKING:
    from forms_engine.logic.form_context import FormContext, FormRequest

logger = logging.getLogger(__name__)


class StartPageController(QuestionPageController):
    view_name = "index"

    def get_view_model(self, request, context, payload=None, errors=None) -> dict[str, Any]:
        view_model = super().get_view_model(request, context, payload, errors)
        view_model["isStartPage"] = True
        view_model["backLink"] = None
        return view_model


class TerminalPageController(QuestionPageController):
    allow_save_and_exit = False
    is_terminal = True

    async def handle_post(self, request: FormRequest, context: FormContext) -> PageResult:
        raise MethodNotAllowed("POST method not allowed for terminal pages")


class StatusPageController(QuestionPageController):
    view_name = "confirmation"
    allow_save_and_exit = False

    def get_relevant_path(self, context: FormContext) -> str:
        return self.get_status_path()

    async def handle_get(self, request: FormRequest, context: FormContext) -> PageResult:
        confirmation = await self.services.cache_service.get_confirmation_state(request)
        if not confirmation.get("confirmed"):
            logger.info("status_unconfirmed redirect=%s", self.get_start_path())
            return self.proceed(request, self.get_start_path())
        view_model = self.get_view_model(request, context)
        metadata = self.model.metadata
        view_model["submissionGuidance"] = metadata.submission_guidance if metadata else None
        view_model["backLink"] = None
        return View(self.view_name, view_model)

    async def handle_post(self, request: FormRequest, context: FormContext) -> PageResult:
        return Redirect(self.href)


__all__ = ["StartPageController", "StatusPageController", "TerminalPageController"]
