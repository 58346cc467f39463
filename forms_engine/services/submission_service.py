"""Submission persistence contract."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Protocol

from forms_engine.models.submission import SubmitResponsePayload

logger = logging.getLogger(__name__)


class FormSubmissionService(Protocol):
    async def submit(self, payload: Mapping[str, Any]) -> SubmitResponsePayload: ...


class LocalSubmissionService:
    """Keeps submissions in memory and reports no generated files."""

    def __init__(self) -> None:
        self.submissions: list[dict[str, Any]] = []

    async def submit(self, payload: Mapping[str, Any]) -> SubmitResponsePayload:
        self.submissions.append(dict(payload))
        logger.info("submission_stored reference=%s", payload.get("referenceNumber"))
        return SubmitResponsePayload()


__all__ = ["FormSubmissionService", "LocalSubmissionService"]
