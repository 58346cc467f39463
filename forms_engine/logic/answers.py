"""Answer formatting for check-answers pages, emails and data payloads."""

from __future__ import annotations

from typing import Any, Mapping

from forms_engine.logic.components.address import UkAddressField
from forms_engine.logic.components.base import FormComponent
from forms_engine.logic.components.file_upload import FileUploadField, file_details
from forms_engine.logic.components.inputs import MultilineTextField
from forms_engine.logic.components.lists import ListFormComponent
from forms_engine.logic.helpers import escape_markdown

SUMMARY = "summary"
EMAIL = "email"
DATA = "data"


def file_download_link(designer_url: str, file_id: str) -> str:
    return f"{designer_url}/file-download/{file_id}"


def _email_answer(field: FormComponent, state: Mapping[str, Any], designer_url: str) -> str:
    if isinstance(field, FileUploadField):
        files = field.get_form_value_from_state(state) or []
        lines = [escape_markdown(field.get_display_string_from_state(state)) + ":", ""]
        for upload in files:
            details = file_details(upload)
            name = escape_markdown(details.get("filename", ""))
            lines.append(f"* [{name}]({file_download_link(designer_url, details.get('fileId', ''))})")
        return "\n".join(lines) + "\n"
    if isinstance(field, ListFormComponent) and field.multiple:
        return "".join(f"* {escape_markdown(item.text)}\n" for item in field.selected_items(state))
    if isinstance(field, UkAddressField):
        return "".join(f"{escape_markdown(line)}\n" for line in field.lines(state))
    if isinstance(field, MultilineTextField):
        value = field.get_form_value_from_state(state) or ""
        # Markdown hard line breaks
        return "".join(f"{escape_markdown(line)}  \n" for line in value.splitlines()) or "\n"
    return f"{escape_markdown(field.get_display_string_from_state(state))}\n"


def get_answer(
    field: FormComponent,
    state: Mapping[str, Any],
    format: str = SUMMARY,
    designer_url: str = "",
) -> Any:
    """Render the stored answer for ``field`` in the requested format.

    ``summary`` is the plain display string, ``email`` is escaped Markdown and
    ``data`` is the structured value used by machine-readable outputs.
    """
    if format == EMAIL:
        return _email_answer(field, state, designer_url)
    if format == DATA:
        return field.get_context_value_from_state(state)
    return field.get_display_string_from_state(state)


__all__ = ["DATA", "EMAIL", "SUMMARY", "file_download_link", "get_answer"]
