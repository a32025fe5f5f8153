"""Navigation state machine for the vendor intake wizard."""

from __future__ import annotations

from wizard.navigation.router import WizardController
from wizard.navigation.state import WizardPhase, WizardState

__all__ = [
    "WizardController",
    "WizardPhase",
    "WizardState",
]
