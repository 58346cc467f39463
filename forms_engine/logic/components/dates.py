"""Date input components (day/month/year and month/year)."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Mapping, Optional

from forms_engine.logic import conditions
from forms_engine.logic.components.composite import CompositeField
from forms_engine.logic.components.kinds import ComponentKind
from forms_engine.logic.validation import MESSAGE_TEMPLATES, FieldSchema, ObjectRule, RuleFailure


def format_date(value: date) -> str:
    return f"{value.day} {value.strftime('%B %Y')}"


def _positive_int(value: Any) -> int:
    text = str(value).strip()
    if not text.isdigit():
        raise RuleFailure()
    return int(text)


class DatePartsField(CompositeField):
    kind = ComponentKind.DATE_PARTS_FIELD
    PARTS = ("day", "month", "year")
    BASE_ERRORS = (
        ("required", MESSAGE_TEMPLATES["required"]),
        ("dateFormat", MESSAGE_TEMPLATES["dateFormat"]),
        ("dateIncomplete", MESSAGE_TEMPLATES["dateIncomplete"]),
    )
    ADVANCED_ERRORS = (
        ("dateMin", MESSAGE_TEMPLATES["dateMin"]),
        ("dateMax", MESSAGE_TEMPLATES["dateMax"]),
    )

    def build_part_schema(self, part: str) -> FieldSchema:
        # Presence is checked across parts by the peer rule
        return FieldSchema(self.part_label(part), required=False).rule(
            "dateFormat", _positive_int, f"{self.label} must be a real date"
        )

    def build_peer_rule(self) -> ObjectRule:
        messages = {
            "required": MESSAGE_TEMPLATES["required"],
            "dateIncomplete": MESSAGE_TEMPLATES["dateIncomplete"],
            "dateFormat": MESSAGE_TEMPLATES["dateFormat"],
        }
        if self.options.get("maxDaysInPast") is not None:
            messages["dateMin"] = MESSAGE_TEMPLATES["dateMin"]
        if self.options.get("maxDaysInFuture") is not None:
            messages["dateMax"] = MESSAGE_TEMPLATES["dateMax"]
        return ObjectRule(
            check=self.check_parts,
            messages=messages,
            peers=tuple(self.keys_for_parts()),
            label=self.label,
        )

    def keys_for_parts(self) -> list[str]:
        return [self.part_key(part) for part in self.PARTS]

    def to_date(self, parts: Mapping[str, Any]) -> date:
        return date(int(parts["year"]), int(parts["month"]), int(parts.get("day") or 1))

    def check_parts(self, values: Mapping[str, Any]):
        parts = {part: values.get(self.part_key(part)) for part in self.PARTS}
        present = [part for part, value in parts.items() if value is not None]
        if not present:
            return [(self.name, "required", {})] if self.is_required else []
        missing = [part for part, value in parts.items() if value is None]
        if missing:
            return [(self.name, "dateIncomplete", {"missing": missing[0]})]
        try:
            value = self.to_date(parts)
        except (ValueError, OverflowError):
            return [(self.name, "dateFormat", {})]
        if value.year < 1000:
            return [(self.name, "dateFormat", {})]
        return self.check_range(value)

    def check_range(self, value: date):
        today = conditions.today()
        max_past = self.options.get("maxDaysInPast")
        if max_past is not None:
            earliest = today - timedelta(days=int(max_past))
            if value < earliest:
                return [(self.name, "dateMin", {"limit": format_date(earliest)})]
        max_future = self.options.get("maxDaysInFuture")
        if max_future is not None:
            latest = today + timedelta(days=int(max_future))
            if value > latest:
                return [(self.name, "dateMax", {"limit": format_date(latest)})]
        return []

    def is_part_value(self, part: str, value: Any) -> bool:
        return isinstance(value, int) and not isinstance(value, bool)

    def as_date(self, state: Mapping[str, Any]) -> Optional[date]:
        value = self.get_form_value_from_state(state)
        if value is None:
            return None
        try:
            return self.to_date(value)
        except ValueError:
            return None

    def get_display_string_from_state(self, state: Mapping[str, Any]) -> str:
        value = self.as_date(state)
        return format_date(value) if value else ""

    def get_context_value_from_state(self, state: Mapping[str, Any]) -> Optional[str]:
        value = self.as_date(state)
        return value.isoformat() if value else None

    def get_view_model(self, payload, errors=None, evaluation_state=None) -> dict[str, Any]:
        view_model = super().get_view_model(payload, errors, evaluation_state)
        widths = {"day": 2, "month": 2, "year": 4}
        for item in view_model["items"]:
            part = item["name"].rsplit("__", 1)[1]
            width = widths[part]
            item["classes"] = f"govuk-input--width-{width} {item.get('classes', '')}".strip()
            item["attributes"] = {"inputmode": "numeric", "maxlength": width}
        return view_model


class MonthYearField(DatePartsField):
    kind = ComponentKind.MONTH_YEAR_FIELD
    PARTS = ("month", "year")
    ADVANCED_ERRORS = ()

    def to_date(self, parts: Mapping[str, Any]) -> date:
        return date(int(parts["year"]), int(parts["month"]), 1)

    def check_range(self, value: date):
        return []

    def build_peer_rule(self) -> ObjectRule:
        rule = super().build_peer_rule()
        rule.messages.pop("dateMin", None)
        rule.messages.pop("dateMax", None)
        return rule

    def get_display_string_from_state(self, state: Mapping[str, Any]) -> str:
        value = self.as_date(state)
        return value.strftime("%B %Y") if value else ""

    def get_context_value_from_state(self, state: Mapping[str, Any]) -> Optional[str]:
        value = self.as_date(state)
        return f"{value.year:04d}-{value.month:02d}" if value else None


__all__ = ["DatePartsField", "MonthYearField", "format_date"]
