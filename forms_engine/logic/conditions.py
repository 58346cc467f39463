"""Executable conditions compiled from condition definitions.

Conditions gate pages (``page.condition``), list items (``item.condition``)
and V1 ``next`` links. Each definition is compiled once per form model into a
callable over the evaluation state (component name -> stored value).
Referenced conditions are compiled recursively; a reference cycle is a
definition error rather than a runtime recursion.
"""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Any, Callable, Mapping, Optional

from forms_engine.errors import DefinitionError
from forms_engine.models.definition import ComponentDef, ConditionDef, ConditionItemDef, ListDef

logger = logging.getLogger(__name__)


class Operator(str, Enum):
    IS = "is"
    IS_NOT = "is not"
    IS_LONGER_THAN = "is longer than"
    IS_SHORTER_THAN = "is shorter than"
    HAS_LENGTH = "has length"
    CONTAINS = "contains"
    DOES_NOT_CONTAIN = "does not contain"
    IS_LESS_THAN = "is less than"
    IS_MORE_THAN = "is more than"
    IS_AT_MOST = "is at most"
    IS_AT_LEAST = "is at least"
    IS_BEFORE = "is before"
    IS_AFTER = "is after"


class ConditionValueType(str, Enum):
    STRING = "StringValue"
    BOOLEAN = "BooleanValue"
    NUMBER = "NumberValue"
    DATE = "DateValue"
    LIST_ITEM_REF = "ListItemRef"
    RELATIVE_DATE = "RelativeDate"


NEGATED_OPERATORS = {Operator.IS_NOT, Operator.DOES_NOT_CONTAIN}


def today() -> date:
    return date.today()


def add_months(value: date, months: int) -> date:
    index = value.month - 1 + months
    year = value.year + index // 12
    month = index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def relative_date(period: int, unit: str, direction: str) -> date:
    sign = -1 if direction == "past" else 1
    base = today()
    if unit == "days":
        return base + timedelta(days=sign * period)
    if unit == "weeks":
        return base + timedelta(weeks=sign * period)
    if unit == "months":
        return add_months(base, sign * period)
    if unit == "years":
        return add_months(base, sign * period * 12)
    raise DefinitionError(f"Unknown relative date unit {unit!r}")


def to_date(value: Any) -> Optional[date]:
    """Coerce a stored date (parts dict or ISO string) to a ``date``."""
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    if isinstance(value, Mapping):
        try:
            return date(int(value["year"]), int(value["month"]), int(value.get("day") or 1))
        except (KeyError, TypeError, ValueError):
            return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def _is_missing(value: Any) -> bool:
    return value is None or value == "" or value == []


def _to_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_bool(value: Any) -> Any:
    if isinstance(value, str) and value.lower() in {"true", "false"}:
        return value.lower() == "true"
    return value


def _compare(actual: Any, expected: Any, value_type: ConditionValueType) -> Optional[tuple[Any, Any]]:
    """Coerce both sides for ordering operators; None when not comparable."""
    if value_type in (ConditionValueType.DATE, ConditionValueType.RELATIVE_DATE):
        left, right = to_date(actual), to_date(expected)
    else:
        left, right = _to_number(actual), _to_number(expected)
    if left is None or right is None:
        return None
    return left, right


def _equals(actual: Any, expected: Any, value_type: ConditionValueType) -> bool:
    if isinstance(actual, list):
        return any(_equals(item, expected, value_type) for item in actual)
    if value_type in (ConditionValueType.DATE, ConditionValueType.RELATIVE_DATE):
        return to_date(actual) == to_date(expected)
    if value_type == ConditionValueType.NUMBER:
        return _to_number(actual) == _to_number(expected)
    if value_type == ConditionValueType.BOOLEAN or isinstance(expected, bool):
        return _to_bool(actual) == _to_bool(expected)
    return str(actual) == str(expected)


def evaluate_operator(operator: Operator, actual: Any, expected: Any, value_type: ConditionValueType) -> bool:
    if _is_missing(actual):
        return operator in NEGATED_OPERATORS

    if operator == Operator.IS:
        return _equals(actual, expected, value_type)
    if operator == Operator.IS_NOT:
        return not _equals(actual, expected, value_type)
    if operator == Operator.CONTAINS:
        if isinstance(actual, list):
            return _equals(actual, expected, value_type)
        return str(expected) in str(actual)
    if operator == Operator.DOES_NOT_CONTAIN:
        return not evaluate_operator(Operator.CONTAINS, actual, expected, value_type)

    if operator in (Operator.IS_LONGER_THAN, Operator.IS_SHORTER_THAN, Operator.HAS_LENGTH):
        length = len(actual) if isinstance(actual, list) else len(str(actual))
        limit = int(expected)
        if operator == Operator.IS_LONGER_THAN:
            return length > limit
        if operator == Operator.IS_SHORTER_THAN:
            return length < limit
        return length == limit

    pair = _compare(actual, expected, value_type)
    if pair is None:
        return False
    left, right = pair
    if operator in (Operator.IS_LESS_THAN, Operator.IS_BEFORE):
        return left < right
    if operator in (Operator.IS_MORE_THAN, Operator.IS_AFTER):
        return left > right
    if operator == Operator.IS_AT_MOST:
        return left <= right
    if operator == Operator.IS_AT_LEAST:
        return left >= right
    raise DefinitionError(f"Unsupported operator {operator.value!r}")


@dataclass
class ExecutableCondition:
    id: str
    display_name: str
    fn: Callable[[Mapping[str, Any]], bool]

    def __call__(self, state: Mapping[str, Any]) -> bool:
        return self.fn(state)


class ConditionCompiler:
    """Compile condition definitions against a form's components and lists."""

    def __init__(
        self,
        conditions: list[ConditionDef],
        components_by_id: Mapping[str, ComponentDef],
        lists_by_id: Mapping[str, ListDef],
    ) -> None:
        self.definitions = {c.id: c for c in conditions}
        self.components_by_id = components_by_id
        self.lists_by_id = lists_by_id
        self.compiled: dict[str, ExecutableCondition] = {}

    def compile_all(self) -> dict[str, ExecutableCondition]:
        for condition_id in self.definitions:
            self.compile(condition_id, ())
        return self.compiled

    def compile(self, condition_id: str, stack: tuple[str, ...]) -> ExecutableCondition:
        if condition_id in stack:
            cycle = " -> ".join([*stack, condition_id])
            raise DefinitionError(f"Condition reference cycle: {cycle}")
        if condition_id in self.compiled:
            return self.compiled[condition_id]
        definition = self.definitions.get(condition_id)
        if definition is None:
            raise DefinitionError(f"Condition {condition_id} not found")

        parts = [self._compile_item(item, (*stack, condition_id)) for item in definition.items]
        if not parts:
            raise DefinitionError(f"Condition {condition_id} has no items")
        if len(parts) > 1 and definition.coordinator is None:
            raise DefinitionError(f"Condition {condition_id} needs a coordinator to join its items")

        if definition.coordinator == "or":
            def fn(state: Mapping[str, Any]) -> bool:
                return any(part(state) for part in parts)
        else:
            def fn(state: Mapping[str, Any]) -> bool:
                return all(part(state) for part in parts)

        executable = ExecutableCondition(condition_id, definition.display_name, fn)
        self.compiled[condition_id] = executable
        return executable

    def _compile_item(self, item: ConditionItemDef, stack: tuple[str, ...]) -> Callable[[Mapping[str, Any]], bool]:
        if item.is_reference:
            return self.compile(item.condition_id, stack)

        component = self.components_by_id.get(item.component_id or "")
        if component is None:
            raise DefinitionError(f"Condition item {item.id} references unknown component {item.component_id}")
        try:
            operator = Operator(item.operator)
            value_type = ConditionValueType(item.type)
        except ValueError as exc:
            raise DefinitionError(f"Condition item {item.id}: {exc}") from exc

        name = component.name
        resolve = self._expected_value(item, value_type)

        def atomic(state: Mapping[str, Any]) -> bool:
            return evaluate_operator(operator, state.get(name), resolve(), value_type)

        return atomic

    def _expected_value(self, item: ConditionItemDef, value_type: ConditionValueType) -> Callable[[], Any]:
        value = item.value
        if isinstance(value, Mapping) and "value" in value and value_type != ConditionValueType.LIST_ITEM_REF:
            value = value["value"]

        if value_type == ConditionValueType.LIST_ITEM_REF:
            ref = value or {}
            list_def = self.lists_by_id.get(ref.get("listId", ""))
            match = next((i for i in list_def.items if i.id == ref.get("itemId")), None) if list_def else None
            if match is None:
                raise DefinitionError(f"Condition item {item.id} references unknown list item {ref}")
            return lambda: match.value
        if value_type == ConditionValueType.RELATIVE_DATE:
            relative = value or {}
            period = int(relative.get("period", 0))
            unit = relative.get("unit", "days")
            direction = relative.get("direction", "past")
            # Evaluated per call so long-lived models follow the calendar
            return lambda: relative_date(period, unit, direction)
        if value_type == ConditionValueType.BOOLEAN:
            coerced = _to_bool(value)
            return lambda: coerced
        return lambda: value


def compile_conditions(
    conditions: list[ConditionDef],
    components_by_id: Mapping[str, ComponentDef],
    lists_by_id: Mapping[str, ListDef],
) -> dict[str, ExecutableCondition]:
    compiled = ConditionCompiler(conditions, components_by_id, lists_by_id).compile_all()
    logger.info("conditions_compiled count=%s", len(compiled))
    return compiled


__all__ = [
    "ConditionCompiler",
    "ConditionValueType",
    "ExecutableCondition",
    "Operator",
    "add_months",
    "compile_conditions",
    "evaluate_operator",
    "relative_date",
    "to_date",
    "today",
]
