"""Markdown email body for the team that processes submissions."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from forms_engine.logic.answers import EMAIL, file_download_link, get_answer
from forms_engine.logic.helpers import escape_markdown
from forms_engine.logic.summary import DetailItemRepeat


def format(context, items, model, submit_response, form_status, form_metadata=None, now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    files: dict[str, Any] = (submit_response.result or {}).get("files") or {}
    repeater_files: dict[str, str] = files.get("repeaters") or {}
    form_name = escape_markdown(model.name)
    received = f"{now:%H:%M} on {now.day} {now:%B %Y}"

    lines = [
        f"{form_name} form received at {escape_markdown(received)}.\n",
        f"Reference number: {escape_markdown(context.reference_number)}\n",
        "---\n",
    ]
    for item in items:
        label = escape_markdown(item.label)
        lines.append(f"## {label}\n")
        if isinstance(item, DetailItemRepeat):
            if item.name in repeater_files:
                link = file_download_link(model.designer_url, repeater_files[item.name])
                lines.append(f"[Download {label} (CSV)]({link})\n")
            else:
                for index, sub_items in enumerate(item.sub_items, start=1):
                    lines.append(f"### {label} {index}\n")
                    for sub_item in sub_items:
                        lines.append(f"**{escape_markdown(sub_item.label)}**\n")
                        lines.append(get_answer(sub_item.field, sub_item.state, EMAIL, model.designer_url))
        else:
            lines.append(get_answer(item.field, item.state, EMAIL, model.designer_url))
        lines.append("---\n")

    if files.get("main"):
        lines.append(f"[Download main form (CSV)]({file_download_link(model.designer_url, files['main'])})\n")
    return "\n".join(lines)


__all__ = ["format"]
