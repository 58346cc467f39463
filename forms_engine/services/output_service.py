"""Delivery of formatted submissions.

The formatted body is handed to an ``EmailSender``. The default sender keeps
messages in an in-process outbox; ``HttpEmailSender`` posts them to a notify
endpoint with httpx.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

import httpx

from forms_engine.errors import ExternalServiceError, SubmissionError
from forms_engine.logic.helpers import check_form_status
from forms_engine.logic.output_formatters import get_formatter
from forms_engine.models.metadata import FormMetadata
from forms_engine.models.submission import SubmitResponsePayload

logger = logging.getLogger(__name__)


@dataclass
class EmailMessage:
    email_address: str
    subject: str
    body: str
    audience: str
    version: str


class EmailSender(Protocol):
    async def send(self, message: EmailMessage) -> None: ...


class OutboxEmailSender:
    def __init__(self) -> None:
        self.outbox: list[EmailMessage] = []

    async def send(self, message: EmailMessage) -> None:
        self.outbox.append(message)
        logger.info("email_queued audience=%s version=%s", message.audience, message.version)


class HttpEmailSender:
    def __init__(self, url: str, client: Optional[httpx.AsyncClient] = None) -> None:
        self.url = url
        self.client = client or httpx.AsyncClient(timeout=10.0)

    async def send(self, message: EmailMessage) -> None:
        try:
            response = await self.client.post(
                self.url,
                json={"emailAddress": message.email_address, "subject": message.subject, "body": message.body},
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise ExternalServiceError("Email delivery failed") from exc


class OutputService:
    def __init__(self, sender: Optional[EmailSender] = None) -> None:
        self.sender = sender or OutboxEmailSender()

    async def submit(
        self,
        context: Any,
        model: Any,
        email_address: Optional[str],
        items: list,
        submit_response: SubmitResponsePayload,
        form_metadata: Optional[FormMetadata] = None,
    ) -> Optional[EmailMessage]:
        form_status = check_form_status({"state": model.form_state.value} if model.is_preview else {})
        output = model.output
        formatter = get_formatter(output.audience, output.version)
        body = formatter(context, items, model, submit_response, form_status, form_metadata)
        if not email_address:
            logger.info("submission_email_skipped reference=%s", context.reference_number)
            return None

        prefix = "TEST FORM SUBMISSION: " if form_status[0] else ""
        message = EmailMessage(
            email_address=email_address,
            subject=f"{prefix}{model.name}",
            body=body,
            audience=output.audience,
            version=output.version,
        )
        try:
            await self.sender.send(message)
        except Exception as exc:
            logger.error("submission_delivery_failed reference=%s", context.reference_number, exc_info=True)
            raise SubmissionError(f"Failed to send submission {context.reference_number}") from exc
        logger.info("submission_delivered reference=%s", context.reference_number)
        return message


__all__ = ["EmailMessage", "EmailSender", "HttpEmailSender", "OutboxEmailSender", "OutputService"]
