"""Helpers for computing wizard step completion status."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from core.schema import get_path_value, iter_field_specs
from core.validation import has_selection, validate_step
from wizard.step_registry import STEPS, SUMMARY_STEP_INDEX, get_step, required_step_indices


def has_supplied_values(step_index: int, document: Mapping[str, Any]) -> bool:
    """Return ``True`` when any field of ``step_index`` holds a value."""

    return any(has_selection(get_path_value(document, spec.path)) for spec in iter_field_specs(step_index))


def all_required_steps_valid(document: Mapping[str, Any]) -> bool:
    """Return ``True`` when every required step validates on ``document``."""

    return all(validate_step(index, document).is_valid for index in required_step_indices())


def is_step_completed(step_index: int, document: Mapping[str, Any], step0_entered: bool) -> bool:
    """Return whether ``step_index`` shows as done in the progress indicator.

    Completion is not validity: the URL step is done once it was passed,
    an optional step is done only when something was actually supplied, and
    the summary is done only when every required step validates at once.
    Nothing is cached; call again after every document change.
    """

    step = get_step(step_index)
    if step is None:
        return False
    if step.is_optional:
        return bool(step0_entered)
    if step.index == SUMMARY_STEP_INDEX:
        return bool(step0_entered) and all_required_steps_valid(document)
    if not step.blocks_navigation:
        return has_supplied_values(step.index, document)
    return validate_step(step.index, document).is_valid


def completion_map(document: Mapping[str, Any], step0_entered: bool) -> dict[int, bool]:
    """Return the completion flag of every step, keyed by step index."""

    return {step.index: is_step_completed(step.index, document, step0_entered) for step in STEPS}


__all__ = [
    "all_required_steps_valid",
    "completion_map",
    "has_supplied_values",
    "is_step_completed",
]
