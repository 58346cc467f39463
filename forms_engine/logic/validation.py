"""Rule-chain validation for form payloads.

A ``FieldSchema`` validates one payload key through an ordered chain of rules.
Every rule carries an error ``type``; the set of types a schema can emit is
introspectable through ``error_types()`` so components can prove that each
rule has a message template. ``ObjectSchema`` combines field schemas for a
page and runs collection-level (peer) validators once the fields they depend on
are individually valid.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping, Optional

from forms_engine.models.submission import FormSubmissionError


MESSAGE_TEMPLATES: dict[str, str] = {
    "required": "Enter {label_lower}",
    "selectRequired": "Select {label_lower}",
    "selectYesNoRequired": "Select yes or no",
    "declarationRequired": "You must confirm you understand the {label_lower}",
    "max": "{label} must be {limit} characters or less",
    "min": "{label} must be {limit} characters or more",
    "length": "{label} must be {limit} characters",
    "format": "Enter a valid {label_lower}",
    "number": "{label} must be a number",
    "numberPrecision": "{label} must have {limit} or fewer decimal places",
    "numberMinPrecision": "{label} must have at least {limit} decimal place",
    "numberInteger": "{label} must be a whole number",
    "numberMin": "{label} must be {limit} or higher",
    "numberMax": "{label} must be {limit} or lower",
    "numberMinLength": "{label} must be at least {limit} characters",
    "numberMaxLength": "{label} must be no longer than {limit} characters",
    "maxWords": "{label} must be {limit} words or fewer",
    "dateFormat": "{label} must be a real date",
    "dateIncomplete": "{label} must include a {missing}",
    "dateMin": "{label} must be the same as or after {limit}",
    "dateMax": "{label} must be the same as or before {limit}",
    "invalidOption": "Select {label_lower}",
    "arrayMin": "Select at least {limit} options",
    "arrayMax": "Select {limit} options or fewer",
    "filesMin": "You must upload {limit} files or more",
    "filesMax": "You can only upload {limit} files or less",
    "filesExact": "You must upload exactly {limit} files",
    "filesPending": "Wait for all files to finish uploading",
    "filesRejected": "Remove files that could not be uploaded",
}


def lower_first(text: str) -> str:
    if not text:
        return text
    # Keep acronyms such as "UK" intact
    if len(text) > 1 and text[1].isupper():
        return text
    return text[0].lower() + text[1:]


class _SafeDict(dict):
    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


def format_message(template: str, label: str, **context: Any) -> str:
    values = _SafeDict(context)
    values.setdefault("label", label)
    values.setdefault("label_lower", lower_first(label))
    return template.format_map(values)


class RuleFailure(ValueError):
    """Raised by a rule check; ``error_type`` overrides the rule's own type."""

    def __init__(self, error_type: Optional[str] = None, **context: Any) -> None:
        super().__init__(error_type or "rule failed")
        self.error_type = error_type
        self.context = context


@dataclass
class Rule:
    type: str
    check: Callable[[Any], Any]
    emits: tuple[str, ...] = ()

    def types(self) -> tuple[str, ...]:
        return self.emits or (self.type,)


@dataclass
class FieldError:
    type: str
    text: str
    context: dict[str, Any] = field(default_factory=dict)


class FieldSchema:
    """Ordered validation chain for a single payload key."""

    def __init__(
        self,
        label: str,
        *,
        required: bool = True,
        trim: bool = True,
        multiple: bool = False,
        required_message: str = MESSAGE_TEMPLATES["required"],
        coerce: Optional[Callable[[Any], Any]] = None,
    ) -> None:
        self.label = label
        self.required = required
        self.trim = trim
        self.multiple = multiple
        self.coerce = coerce
        self.rules: list[Rule] = []
        self._messages: dict[str, str] = {"required": required_message}
        self._contexts: dict[str, dict[str, Any]] = {}

    def rule(self, type_: str, check: Callable[[Any], Any], message: Optional[str] = None, **context: Any) -> FieldSchema:
        """Append a rule; ``check`` returns the (possibly converted) value or raises RuleFailure."""
        self.rules.append(Rule(type_, check))
        if message is not None:
            self._messages.setdefault(type_, message)
        elif type_ not in self._messages:
            self._messages[type_] = MESSAGE_TEMPLATES[type_]
        if context:
            self._contexts[type_] = context
        return self

    def custom(self, check: Callable[[Any], Optional[str]], messages: Mapping[str, str]) -> FieldSchema:
        """Append a custom validator returning an error tag (or None when valid)."""

        def run(value: Any) -> Any:
            tag = check(value)
            if tag:
                raise RuleFailure(tag)
            return value

        tags = tuple(messages)
        self.rules.append(Rule(tags[0], run, emits=tags))
        for tag, message in messages.items():
            self._messages.setdefault(tag, message)
        return self

    def messages(self, overrides: Mapping[str, str]) -> FieldSchema:
        """Override message templates for selected error types."""
        self._messages.update(overrides)
        return self

    def override_all_messages(self, message: str) -> FieldSchema:
        for error_type in self.error_types():
            self._messages[error_type] = message
        return self

    def message_for(self, error_type: str) -> str:
        return self._messages[error_type]

    def error_types(self) -> list[str]:
        types = ["required"]
        for rule in self.rules:
            for error_type in rule.types():
                if error_type not in types:
                    types.append(error_type)
        return types

    def _normalise(self, value: Any) -> Any:
        if self.multiple:
            if value is None:
                return []
            items = value if isinstance(value, (list, tuple)) else [value]
            if self.trim:
                items = [v.strip() if isinstance(v, str) else v for v in items]
            return [v for v in items if v not in (None, "")]
        if isinstance(value, (list, tuple)):
            value = value[-1] if value else None
        if self.trim and isinstance(value, str):
            value = value.strip()
        return value

    def is_empty(self, value: Any) -> bool:
        return value is None or value == "" or value == []

    def validate(self, value: Any) -> tuple[Any, Optional[FieldError]]:
        value = self._normalise(value)
        if self.coerce is not None and not self.is_empty(value):
            value = self.coerce(value)
        if self.is_empty(value):
            if self.required:
                return value, self._error("required", {})
            return ([] if self.multiple else None), None
        for rule in self.rules:
            try:
                value = rule.check(value)
            except RuleFailure as failure:
                error_type = failure.error_type or rule.type
                context = {**self._contexts.get(error_type, {}), **failure.context}
                return value, self._error(error_type, context)
        return value, None

    def _error(self, error_type: str, context: dict[str, Any]) -> FieldError:
        text = format_message(self._messages[error_type], self.label, **context)
        return FieldError(error_type, text, context)


@dataclass
class ObjectRule:
    """Collection-level validator over several keys.

    ``check`` receives the validated values and yields ``(key, error_type,
    context)`` tuples. It only runs when every key in ``peers`` validated.
    """

    check: Callable[[dict[str, Any]], Iterable[tuple[str, str, dict[str, Any]]]]
    messages: dict[str, str]
    peers: tuple[str, ...] = ()
    label: str = ""


class ObjectSchema:
    def __init__(self, fields: Optional[Mapping[str, FieldSchema]] = None) -> None:
        self.fields: dict[str, FieldSchema] = dict(fields or {})
        self.validators: list[ObjectRule] = []

    def add(self, key: str, schema: FieldSchema) -> ObjectSchema:
        self.fields[key] = schema
        return self

    def custom(self, rule: ObjectRule) -> ObjectSchema:
        self.validators.append(rule)
        return self

    def extend(self, other: ObjectSchema) -> ObjectSchema:
        self.fields.update(other.fields)
        self.validators.extend(other.validators)
        return self

    def keys(self) -> list[str]:
        return list(self.fields)

    def error_types(self) -> list[str]:
        types: list[str] = []
        for schema in self.fields.values():
            for error_type in schema.error_types():
                if error_type not in types:
                    types.append(error_type)
        for rule in self.validators:
            for error_type in rule.messages:
                if error_type not in types:
                    types.append(error_type)
        return types

    def validate(
        self, payload: Mapping[str, Any], *, abort_early: bool = False
    ) -> tuple[dict[str, Any], list[FormSubmissionError]]:
        value: dict[str, Any] = {}
        errors: list[FormSubmissionError] = []
        failed: set[str] = set()
        for key, schema in self.fields.items():
            converted, error = schema.validate(payload.get(key))
            value[key] = converted
            if error is not None:
                failed.add(key)
                errors.append(_submission_error(key, schema.label, error))
                if abort_early:
                    return value, errors
        for rule in self.validators:
            if failed.intersection(rule.peers):
                continue
            for key, error_type, context in rule.check(value):
                label = self.fields[key].label if key in self.fields else rule.label
                text = format_message(rule.messages[error_type], label, **context)
                errors.append(_submission_error(key, label, FieldError(error_type, text, context)))
        return value, errors


def _submission_error(key: str, label: str, error: FieldError) -> FormSubmissionError:
    return FormSubmissionError(
        path=[key],
        href=f"#{key}",
        name=key,
        text=error.text,
        context={"key": key, "label": label, "type": error.type, **error.context},
    )


__all__ = [
    "FieldError",
    "FieldSchema",
    "MESSAGE_TEMPLATES",
    "ObjectRule",
    "ObjectSchema",
    "Rule",
    "RuleFailure",
    "format_message",
    "lower_first",
]
