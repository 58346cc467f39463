"""Version 2 machine output: main answers, repeaters and files."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Optional

from forms_engine.logic.answers import file_download_link
from forms_engine.logic.components.file_upload import FileUploadField, file_details
from forms_engine.logic.summary import DetailItemRepeat


def categorise_data(items, designer_url: str) -> dict[str, Any]:
    output: dict[str, Any] = {"main": {}, "repeaters": {}, "files": {}}
    for item in items:
        if isinstance(item, DetailItemRepeat):
            output["repeaters"][item.name] = [
                {sub_item.name: sub_item.field.get_form_value_from_state(sub_item.state) for sub_item in sub_items}
                for sub_items in item.sub_items
            ]
        elif isinstance(item.field, FileUploadField):
            uploads = item.field.get_form_value_from_state(item.state) or []
            output["files"][item.name] = [
                {
                    "fileId": file_details(upload).get("fileId"),
                    "fileName": file_details(upload).get("filename"),
                    "userDownloadLink": file_download_link(designer_url, file_details(upload).get("fileId", "")),
                }
                for upload in uploads
            ]
        else:
            output["main"][item.name] = item.field.get_form_value_from_state(item.state)
    return output


def format(
    context, items, model, submit_response=None, form_status=None, form_metadata=None, now: Optional[datetime] = None
) -> str:
    now = now or datetime.now(timezone.utc)
    meta: dict[str, Any] = {
        "schemaVersion": "2",
        "timestamp": now.isoformat(),
        "definition": model.definition.model_dump(mode="json", by_alias=True, exclude_none=True),
        "referenceNumber": context.reference_number,
    }
    if model.definition.version_metadata:
        meta["versionMetadata"] = model.definition.version_metadata
    return json.dumps({"meta": meta, "data": categorise_data(items, model.designer_url)}, default=str)


__all__ = ["categorise_data", "format"]
