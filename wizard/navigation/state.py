"""State container owned by a single :class:`WizardController`."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from core.schema import empty_document


class WizardPhase(StrEnum):
    EDITING = "editing"
    SUBMITTING = "submitting"
    CLOSED = "closed"


@dataclass
class WizardState:
    """Mutable wizard state.

    ``document`` is replaced, never edited in place; the merge engine hands
    back a new mapping for every real change. ``errors`` is likewise replaced
    wholesale on each validation pass.
    """

    document: Mapping[str, Any] = field(default_factory=empty_document)
    step_index: int = 0
    phase: WizardPhase = WizardPhase.EDITING
    errors: dict[str, str] = field(default_factory=dict)
    touched: set[str] = field(default_factory=set)
    step0_entered: bool = False
    is_parsing: bool = False
    parse_error: str | None = None
    parse_status: str | None = None

    @property
    def is_submitting(self) -> bool:
        return self.phase is WizardPhase.SUBMITTING

    @property
    def is_closed(self) -> bool:
        return self.phase is WizardPhase.CLOSED


__all__ = ["WizardPhase", "WizardState"]
