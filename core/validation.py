"""Step validation for the vendor intake document."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from core.schema import FieldKind, FieldSpec, get_path_value, iter_field_specs


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one step against the document."""

    is_valid: bool
    errors: dict[str, str] = field(default_factory=dict)


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    return str(value).strip()


def _raw_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def has_text(value: Any) -> bool:
    """Return ``True`` when ``value`` holds non-whitespace text."""

    return bool(_text(value))


def has_selection(value: Any) -> bool:
    """Return ``True`` for a non-empty list or a map with any non-empty list/text."""

    if isinstance(value, Mapping):
        return any(has_selection(item) for item in value.values())
    if isinstance(value, (list, tuple)):
        return len(value) > 0
    return has_text(value)


def _condition_applies(spec: FieldSpec, document: Mapping[str, Any]) -> bool:
    condition = spec.required_when
    if condition is None:
        return spec.required
    return get_path_value(document, condition.path) == condition.equals


def _check_scalar(spec: FieldSpec, value: Any, path: str, errors: dict[str, str]) -> None:
    text = _text(value)
    if not text:
        errors[path] = spec.required_message or "This field is required"
        return
    if spec.min_length is not None and len(text) < spec.min_length:
        errors[path] = spec.min_length_message or f"Must be at least {spec.min_length} characters"
        return
    candidate = _raw_text(value) if spec.match_untrimmed else text
    if spec.pattern is not None and not spec.pattern.search(candidate):
        errors[path] = spec.invalid_message or "Please enter a valid value"


def _check_record_list(spec: FieldSpec, value: Any, errors: dict[str, str]) -> None:
    items = value if isinstance(value, list) else []
    if not items:
        errors[spec.reported_path] = spec.required_message or "At least one entry is required"
        return
    for index, item in enumerate(items):
        for item_spec in spec.item_fields:
            if not item_spec.required:
                continue
            item_value = item.get(item_spec.key) if isinstance(item, Mapping) else None
            _check_scalar(item_spec, item_value, f"{spec.path}.{index}.{item_spec.key}", errors)


def _check_selection(spec: FieldSpec, value: Any, document: Mapping[str, Any], errors: dict[str, str]) -> None:
    if has_selection(value):
        return
    if spec.companion is not None and has_selection(get_path_value(document, spec.companion)):
        return
    errors[spec.reported_path] = spec.required_message or "Please make a selection"


def validate_fields(step_index: int, document: Mapping[str, Any]) -> dict[str, str]:
    """Return the error map for the fields declared on ``step_index``."""

    errors: dict[str, str] = {}
    for spec in iter_field_specs(step_index):
        if not _condition_applies(spec, document):
            continue
        value = get_path_value(document, spec.path)
        if spec.kind is FieldKind.SCALAR:
            _check_scalar(spec, value, spec.reported_path, errors)
        elif spec.kind is FieldKind.RECORD_LIST:
            _check_record_list(spec, value, errors)
        elif spec.kind in (FieldKind.LIST, FieldKind.LIST_MAP, FieldKind.TEXT_MAP):
            _check_selection(spec, value, document, errors)
    return errors


def validate_step(step_index: int, document: Mapping[str, Any]) -> ValidationResult:
    """Validate ``document`` for the wizard step at ``step_index``.

    Steps without required fields (the URL step, the optional compliance step,
    the summary and any index outside the wizard) always validate. The error
    map is rebuilt from scratch on every call.
    """

    errors = validate_fields(step_index, document)
    return ValidationResult(is_valid=not errors, errors=errors)


__all__ = [
    "ValidationResult",
    "has_selection",
    "has_text",
    "validate_fields",
    "validate_step",
]
