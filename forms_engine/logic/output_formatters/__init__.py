"""Submission output formatters keyed by audience and version.

Every formatter has the signature
``(context, items, model, submit_response, form_status, form_metadata=None) -> str``.
"""

from __future__ import annotations

from typing import Callable

from forms_engine.logic.output_formatters.adapter import v1 as adapter_v1
from forms_engine.logic.output_formatters.human import v1 as human_v1
from forms_engine.logic.output_formatters.machine import v1 as machine_v1
from forms_engine.logic.output_formatters.machine import v2 as machine_v2

Formatter = Callable[..., str]

FORMATTERS: dict[str, dict[str, Formatter]] = {
    "human": {"1": human_v1.format},
    "machine": {"1": machine_v1.format, "2": machine_v2.format},
    "adapter": {"1": adapter_v1.format},
}


def get_formatter(audience: str, version: str) -> Formatter:
    versions = FORMATTERS.get(audience)
    if versions is None:
        raise ValueError("Unknown audience")
    formatter = versions.get(str(version))
    if formatter is None:
        raise ValueError("Unknown version")
    return formatter


__all__ = ["FORMATTERS", "Formatter", "get_formatter"]
