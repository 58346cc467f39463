"""Exception taxonomy for the forms engine.

Every engine error carries an HTTP status and a short title so the problem+json
handlers in ``forms_engine.http.problem`` can map it without special cases.
Field-level validation failures are not exceptions: they travel as
``FormSubmissionError`` records on the form context and render inline.
"""

from __future__ import annotations

from typing import Any


class FormsEngineError(Exception):
    """Base class for errors raised by the engine."""

    status_code = 500
    title = "Internal Server Error"

    def __init__(self, message: str = "", **extra: Any) -> None:
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_problem(self) -> dict[str, Any]:
        problem: dict[str, Any] = {"title": self.title, "status": self.status_code}
        if self.message:
            problem["detail"] = self.message
        problem.update(self.extra)
        return problem


class ConfigurationError(FormsEngineError):
    """Missing or invalid engine options; fatal at startup."""

    title = "Configuration Error"


class DefinitionError(FormsEngineError):
    """The form definition cannot be turned into a working model."""

    title = "Invalid Form Definition"


class StateError(FormsEngineError):
    """Session state is missing something the journey needs."""

    title = "Invalid Form State"


class NotFound(FormsEngineError):
    status_code = 404
    title = "Not Found"


class PageNotFound(NotFound):
    title = "Page Not Found"


class MethodNotAllowed(FormsEngineError):
    status_code = 405
    title = "Method Not Allowed"


class SubmissionError(FormsEngineError):
    """Delivery of a completed submission failed."""

    title = "Submission Failed"


class ExternalServiceError(FormsEngineError):
    """A collaborator (forms manager, upload service) returned an error."""

    status_code = 502
    title = "Bad Gateway"


__all__ = [
    "FormsEngineError",
    "ConfigurationError",
    "DefinitionError",
    "StateError",
    "NotFound",
    "PageNotFound",
    "MethodNotAllowed",
    "SubmissionError",
    "ExternalServiceError",
]
