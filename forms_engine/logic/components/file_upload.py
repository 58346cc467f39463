"""File upload component.

The upload itself happens out of band; state holds one entry per uploaded
file as reported by the upload service::

    {"uploadId": "...", "status": {"form": {"file": {"fileId": "...",
     "filename": "...", "contentLength": 123, "fileStatus": "complete"}}}}
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from forms_engine.logic.components.base import FormComponent
from forms_engine.logic.components.kinds import ComponentKind
from forms_engine.logic.validation import MESSAGE_TEMPLATES, FieldSchema, RuleFailure
from forms_engine.models.submission import FileState


def file_details(upload: Mapping[str, Any]) -> Mapping[str, Any]:
    return ((upload.get("status") or {}).get("form") or {}).get("file") or {}


class FileUploadField(FormComponent):
    kind = ComponentKind.FILE_UPLOAD_FIELD
    BASE_ERRORS = (
        ("required", "Select {label_lower}"),
        ("filesPending", MESSAGE_TEMPLATES["filesPending"]),
        ("filesRejected", MESSAGE_TEMPLATES["filesRejected"]),
    )
    ADVANCED_ERRORS = (
        ("filesMin", MESSAGE_TEMPLATES["filesMin"]),
        ("filesMax", MESSAGE_TEMPLATES["filesMax"]),
        ("filesExact", MESSAGE_TEMPLATES["filesExact"]),
    )

    def build_field_schema(self) -> FieldSchema:
        field_schema = FieldSchema(
            self.label,
            required=self.is_required,
            multiple=True,
            trim=False,
            required_message="Select {label_lower}",
        )

        def not_pending(files):
            if any(file_details(f).get("fileStatus") == FileState.PENDING.value for f in files):
                raise RuleFailure()
            return files

        def not_rejected(files):
            if any(file_details(f).get("fileStatus") == FileState.REJECTED.value for f in files):
                raise RuleFailure()
            return files

        field_schema.rule("filesPending", not_pending)
        field_schema.rule("filesRejected", not_rejected)
        for key, error_type, compare in (
            ("min", "filesMin", lambda n, limit: n < limit),
            ("max", "filesMax", lambda n, limit: n > limit),
            ("length", "filesExact", lambda n, limit: n != limit),
        ):
            limit = self.schema.get(key)
            if isinstance(limit, int):
                field_schema.rule(error_type, _count_check(compare, limit), limit=limit)
        return field_schema

    def is_value(self, value: Any) -> bool:
        return isinstance(value, list) and all(isinstance(v, Mapping) and file_details(v) for v in value)

    def get_form_data_from_state(self, state: Mapping[str, Any]) -> dict[str, Any]:
        return {self.name: self.get_form_value_from_state(state) or []}

    def get_display_string_from_state(self, state: Mapping[str, Any]) -> str:
        files = self.get_form_value_from_state(state) or []
        count = len(files)
        if not count:
            return ""
        return f"Uploaded {count} file" if count == 1 else f"Uploaded {count} files"

    def get_context_value_from_state(self, state: Mapping[str, Any]) -> Optional[list[str]]:
        files = self.get_form_value_from_state(state)
        if not files:
            return None
        return [file_details(f).get("fileId") for f in files]

    def get_view_model(self, payload, errors=None, evaluation_state=None) -> dict[str, Any]:
        view_model = super().get_view_model(payload, errors, evaluation_state)
        files = payload.get(self.name) or []
        view_model["value"] = None
        view_model["upload"] = {
            "count": len(files),
            "summaryList": {
                "rows": [
                    {
                        "key": {"text": file_details(f).get("filename", "")},
                        "value": {"text": file_details(f).get("fileStatus", FileState.COMPLETE.value)},
                        "uploadId": f.get("uploadId"),
                    }
                    for f in files
                ]
            },
        }
        if self.options.get("accept"):
            view_model["attributes"]["accept"] = self.options["accept"]
        return view_model


def _count_check(compare, limit: int):
    def check(files):
        if compare(len(files), limit):
            raise RuleFailure()
        return files
    return check


__all__ = ["FileUploadField", "file_details"]
