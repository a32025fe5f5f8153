"""Bind wizard controllers to Streamlit session state.

A session holds at most one open wizard. Opening a new one closes the
previous controller first so a stream still running for it stops delivering
merges.
"""

from __future__ import annotations

import logging
from collections.abc import MutableMapping
from typing import Any

import streamlit as st

from constants.keys import StateKeys
from utils.logging_context import set_session_id
from wizard.navigation import WizardController
from wizard.navigation.router import StreamOpener, SubmitHandler

logger = logging.getLogger(__name__)


def _session(session_state: MutableMapping[str, Any] | None) -> MutableMapping[str, Any]:
    return st.session_state if session_state is None else session_state


def get_wizard(session_state: MutableMapping[str, Any] | None = None) -> WizardController | None:
    """Return the open wizard of the session, if any."""

    controller = _session(session_state).get(StateKeys.VENDOR_WIZARD)
    if isinstance(controller, WizardController) and controller.is_active:
        return controller
    return None


def open_wizard(
    submit_handler: SubmitHandler | None = None,
    session_state: MutableMapping[str, Any] | None = None,
    *,
    stream_opener: StreamOpener | None = None,
) -> WizardController:
    """Close any open wizard and store a fresh controller in the session."""

    state = _session(session_state)
    close_wizard(state)
    controller = WizardController(submit_handler, stream_opener=stream_opener)
    state[StateKeys.VENDOR_WIZARD] = controller
    state[StateKeys.VENDOR_WIZARD_SESSION_ID] = controller.session_id
    set_session_id(controller.session_id)
    logger.info("Opened vendor intake wizard")
    return controller


def close_wizard(session_state: MutableMapping[str, Any] | None = None) -> bool:
    """Close and forget the session's wizard. Returns ``True`` if one was open."""

    state = _session(session_state)
    controller = state.pop(StateKeys.VENDOR_WIZARD, None)
    state.pop(StateKeys.VENDOR_WIZARD_SESSION_ID, None)
    if not isinstance(controller, WizardController):
        return False
    was_active = controller.is_active
    controller.close()
    return was_active


__all__ = ["close_wizard", "get_wizard", "open_wizard"]
