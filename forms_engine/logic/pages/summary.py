"""Check-answers pages and the submission flow."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from forms_engine.logic.components.kinds import ComponentKind
from forms_engine.logic.events import FORM_SUBMITTED, publish
from forms_engine.logic.helpers import check_email_address_for_live_form_submission
from forms_engine.logic.output_formatters.machine.v2 import categorise_data
from forms_engine.logic.pages.base import PageController, PageResult, Redirect, View
from forms_engine.logic.summary import detail_rows, get_details, get_form_submission_data
from forms_engine.models.definition import ComponentDef, PageDef
from forms_engine.models.submission import FormSubmissionError

if TYPE_CHECKING:
    from forms_engine.logic.form_context import FormContext, FormRequest

logger = logging.getLogger(__name__)

CONFIRMATION_EMAIL_FIELD = "confirmationEmailAddress"


class SummaryPageController(PageController):
    view_name = "summary"

    def is_complete(self, state) -> bool:
        return True

    def get_submission_errors(self, context: FormContext) -> list[FormSubmissionError]:
        return list(context.submission_errors)

    def get_view_model(self, request, context, payload=None, errors=None) -> dict[str, Any]:
        view_model = super().get_view_model(request, context, payload, errors)
        details = get_details(context, self.path)
        view_model["checkAnswers"] = [
            {"title": {"text": detail.title} if detail.title else None, "summaryList": {"rows": detail_rows(detail)}}
            for detail in details
        ]
        view_model["declaration"] = self.model.definition.declaration
        view_model["referenceNumber"] = context.reference_number
        return view_model

    async def handle_post(self, request: FormRequest, context: FormContext) -> PageResult:
        if context.errors:
            return View(self.view_name, self.get_view_model(request, context), status_code=400)

        cache = self.services.cache_service
        for page in context.relevant_pages:
            if page is self:
                break
            if not page.is_complete(context.relevant_state):
                await cache.set_flash(request, page.get_state_errors(context.relevant_state))
                logger.info("summary_incomplete_page path=%s", page.path)
                return Redirect(page.href)

        metadata = self.model.metadata
        email_address = (metadata.notification_email if metadata else None) or self.model.definition.output_email
        check_email_address_for_live_form_submission(email_address, self.model.is_preview)

        details = get_details(context, self.path)
        items = get_form_submission_data(context, details)
        submission = {
            "referenceNumber": context.reference_number,
            **categorise_data(items, self.model.designer_url),
        }
        submit_response = await self.services.submission_service.submit(submission)
        await self.services.output_service.submit(
            context, self.model, email_address, items, submit_response, metadata
        )

        await cache.set_confirmation_state(request, {"confirmed": True})
        await cache.clear_state(request)
        publish(FORM_SUBMITTED, {
            "form": self.model.name,
            "reference": context.reference_number,
            "confirmationEmail": context.evaluation_state.get(CONFIRMATION_EMAIL_FIELD),
        })
        return Redirect(self.get_href(self.get_status_path()))


class SummaryPageWithConfirmationEmailController(SummaryPageController):
    def component_definitions(self, page_def: PageDef) -> list[ComponentDef]:
        components = list(page_def.components)
        field = ComponentDef(
            id=CONFIRMATION_EMAIL_FIELD,
            name=CONFIRMATION_EMAIL_FIELD,
            type=ComponentKind.EMAIL_ADDRESS_FIELD.value,
            title="Confirmation email",
            shortDescription="Email address",
            hint="Enter your email address to get an email confirming your form has been submitted",
            options={"required": False},
        )
        # Before the last Markdown block, usually the declaration
        markdown = [i for i, c in enumerate(components) if c.type == ComponentKind.MARKDOWN.value]
        if markdown:
            components.insert(markdown[-1], field)
        else:
            components.append(field)
        return components


__all__ = ["CONFIRMATION_EMAIL_FIELD", "SummaryPageController", "SummaryPageWithConfirmationEmailController"]
