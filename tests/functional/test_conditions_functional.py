"""Functional tests for condition compilation and evaluation."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import pytest

from forms_engine.errors import DefinitionError
from forms_engine.logic.conditions import Operator, ConditionValueType, evaluate_operator
from forms_engine.logic.form_model import FormModel


def _definition(conditions: List[Dict[str, Any]], page_condition: Optional[str] = None) -> Dict[str, Any]:
    return {
        "name": "Conditions",
        "pages": [
            {
                "path": "/first",
                "title": "First",
                "components": [
                    {"id": "age-id", "type": "NumberField", "name": "age", "title": "Age"},
                    {"id": "town-id", "type": "TextField", "name": "town", "title": "Town"},
                ],
            },
            {"path": "/second", "title": "Second", "condition": page_condition, "components": []},
            {"path": "/summary", "title": "Summary"},
        ],
        "conditions": conditions,
    }


def _atomic(item_id: str, component_id: str, operator: str, type_: str, value: Any) -> Dict[str, Any]:
    return {"id": item_id, "componentId": component_id, "operator": operator, "type": type_, "value": value}


ADULT = {"id": "adult", "items": [_atomic("a1", "age-id", "is at least", "NumberValue", 18)]}
IN_LEEDS = {"id": "in-leeds", "items": [_atomic("l1", "town-id", "is", "StringValue", "Leeds")]}


@pytest.mark.parametrize(
    "state, expected",
    [
        ({"age": 30, "town": "Leeds"}, True),
        ({"age": 30, "town": "York"}, False),
        ({"age": 12, "town": "Leeds"}, False),
        ({}, False),
    ],
)
def test_and_condition_holds_only_when_both_parts_hold(state: Dict[str, Any], expected: bool) -> None:
    both = {
        "id": "both",
        "coordinator": "and",
        "items": [{"id": "r1", "conditionId": "adult"}, {"id": "r2", "conditionId": "in-leeds"}],
    }
    model = FormModel(_definition([ADULT, IN_LEEDS, both]))
    assert model.evaluate_condition("both", state) is expected
    assert model.evaluate_condition("both", state) is (
        model.evaluate_condition("adult", state) and model.evaluate_condition("in-leeds", state)
    )


def test_or_condition() -> None:
    either = {
        "id": "either",
        "coordinator": "or",
        "items": [{"id": "r1", "conditionId": "adult"}, {"id": "r2", "conditionId": "in-leeds"}],
    }
    model = FormModel(_definition([ADULT, IN_LEEDS, either]))
    assert model.evaluate_condition("either", {"age": 12, "town": "Leeds"}) is True
    assert model.evaluate_condition("either", {"age": 12, "town": "York"}) is False


def test_reference_cycle_is_rejected() -> None:
    first = {"id": "first", "items": [{"id": "r1", "conditionId": "second"}]}
    second = {"id": "second", "items": [{"id": "r2", "conditionId": "first"}]}
    with pytest.raises(DefinitionError, match="cycle"):
        FormModel(_definition([first, second]))


def test_multiple_items_need_a_coordinator() -> None:
    loose = {
        "id": "loose",
        "items": [_atomic("a1", "age-id", "is", "NumberValue", 1), _atomic("a2", "age-id", "is", "NumberValue", 2)],
    }
    with pytest.raises(DefinitionError):
        FormModel(_definition([loose]))


def test_unknown_page_condition_is_rejected() -> None:
    with pytest.raises(DefinitionError, match="unknown condition"):
        FormModel(_definition([ADULT], page_condition="missing"))


def test_page_condition_controls_next_page() -> None:
    model = FormModel(_definition([ADULT], page_condition="adult"))
    first = model.get_page("/first")
    assert model.next_page(first, {"age": 40}).path == "/second"
    assert model.next_page(first, {"age": 4}).path == "/summary"


def test_negated_operators_hold_for_missing_answers() -> None:
    assert evaluate_operator(Operator.IS_NOT, None, "x", ConditionValueType.STRING) is True
    assert evaluate_operator(Operator.IS, None, "x", ConditionValueType.STRING) is False
