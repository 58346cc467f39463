"""Path, redirect and status helpers shared by controllers and routes."""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, Optional
from urllib.parse import urlencode, urlsplit, urlunsplit, parse_qsl

from forms_engine.errors import SubmissionError
from forms_engine.models.metadata import FormState

PREVIEW_PATH_PREFIX = "preview"
REFERENCE_NUMBER_KEY = "$$__referenceNumber"
UPLOAD_KEY = "upload"

# Backslash must be escaped before the characters it escapes
_MARKDOWN_PUNCTUATION = ("\\", "`", "'", "*", "_", "{", "}", "[", "]", "(", ")", "#", "+", "-", ".", "!")


class FormAction(str, Enum):
    CONTINUE = "continue"
    VALIDATE = "validate"
    DELETE = "delete"
    ADD_ANOTHER = "add-another"
    SEND = "send"
    SAVE_AND_EXIT = "save-and-exit"


RESERVED_PAYLOAD_KEYS = ("crumb", "action")


def is_path_relative(path: Optional[str]) -> bool:
    return (path or "").startswith("/")


def normalise_path(path: Optional[str] = "") -> str:
    return (path or "").strip().removeprefix("/").removesuffix("/")


def redirect_path(next_url: str, query: Optional[Mapping[str, Any]] = None) -> str:
    """Append string query params to ``next_url`` keeping relative paths relative."""
    params = {k: v for k, v in (query or {}).items() if isinstance(v, str)}
    parts = urlsplit(next_url)
    merged = dict(parse_qsl(parts.query))
    merged.update(params)
    search = urlencode(merged)
    if is_path_relative(next_url):
        return f"{parts.path}?{search}" if search else parts.path
    return urlunsplit((parts.scheme, parts.netloc, parts.path, search, parts.fragment))


def check_form_status(params: Optional[Mapping[str, Any]] = None) -> tuple[bool, FormState]:
    """Return ``(is_preview, state)`` for the route params."""
    preview_state = (params or {}).get("state")
    is_preview = bool(preview_state)
    state = FormState.DRAFT if preview_state == FormState.DRAFT.value else FormState.LIVE
    return is_preview, state


def check_email_address_for_live_form_submission(email_address: Optional[str], is_preview: bool) -> None:
    if not email_address and not is_preview:
        raise SubmissionError("An email address is required to complete the form submission")


def escape_markdown(answer: Any) -> str:
    text = str(answer)
    for character in _MARKDOWN_PUNCTUATION:
        text = text.replace(character, f"\\{character}")
    return text


def strip_reserved_keys(payload: Optional[Mapping[str, Any]]) -> dict[str, Any]:
    return {k: v for k, v in (payload or {}).items() if k not in RESERVED_PAYLOAD_KEYS}


__all__ = [
    "FormAction",
    "PREVIEW_PATH_PREFIX",
    "REFERENCE_NUMBER_KEY",
    "UPLOAD_KEY",
    "check_email_address_for_live_form_submission",
    "check_form_status",
    "escape_markdown",
    "is_path_relative",
    "normalise_path",
    "redirect_path",
    "strip_reserved_keys",
]
