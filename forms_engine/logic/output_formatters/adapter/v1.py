"""Adapter payload: machine v2 data plus routing metadata and result files."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Optional

from forms_engine.logic.output_formatters.machine.v2 import categorise_data
from forms_engine.models.metadata import FormState

SCHEMA_VERSION = 1


def format(
    context, items, model, submit_response, form_status, form_metadata=None, now: Optional[datetime] = None
) -> str:
    now = now or datetime.now(timezone.utc)
    is_preview, _ = form_status
    data = categorise_data(items, model.designer_url)
    data["repeaters"] = {name: [{"state": entry} for entry in entries] for name, entries in data["repeaters"].items()}
    files: dict[str, Any] = (submit_response.result or {}).get("files") or {}

    payload = {
        "meta": {
            "schemaVersion": SCHEMA_VERSION,
            "timestamp": now.isoformat(),
            "referenceNumber": context.reference_number,
            "formName": model.name,
            "formId": form_metadata.id if form_metadata else "",
            "formSlug": form_metadata.slug if form_metadata else "",
            "status": (FormState.DRAFT if is_preview else FormState.LIVE).value,
            "isPreview": is_preview,
            "notificationEmail": (form_metadata.notification_email if form_metadata else None) or "",
        },
        "data": data,
        "result": {"files": {"main": files.get("main"), "repeaters": files.get("repeaters") or {}}},
    }
    return json.dumps(payload, default=str)


__all__ = ["SCHEMA_VERSION", "format"]
