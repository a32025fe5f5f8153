from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Iterable, Mapping
from threading import RLock
from typing import Any
from urllib.parse import urlparse
from uuid import uuid4

import requests

from constants.keys import VendorPaths
from core.errors import EXTRACTION_UNAVAILABLE_MESSAGE, SUBMIT_FAILED_MESSAGE, ExtractionStreamError
from core.merge import build_partial, merge_document
from core.schema import (
    COMPANY_TYPES,
    COMPLIANCE_OPTIONS,
    FIELD_SPECS,
    INTEGRATION_CATEGORIES,
    empty_document,
    conditional_dependents,
    empty_item,
    get_field_spec,
    get_path_value,
)
from core.validation import ValidationResult, validate_step
from ingest.stream import ExtractionStreamConsumer, StreamOutcome, open_extraction_stream
from utils.logging_context import log_context, set_wizard_step
from wizard.navigation.state import WizardPhase, WizardState
from wizard.step_registry import (
    LAST_STEP_INDEX,
    STEPS,
    StepDefinition,
    get_step,
    required_step_indices,
)
from wizard.step_status import completion_map, is_step_completed

logger = logging.getLogger(__name__)

SubmitHandler = Callable[[Mapping[str, Any]], object]
StreamOpener = Callable[[str], Iterable[str | bytes]]

INVALID_URL_MESSAGE = "Please enter a valid URL"

_STREAM_FAILURES: tuple[type[Exception], ...] = (
    ExtractionStreamError,
    requests.RequestException,
    OSError,
)


def _is_valid_url(candidate: str) -> bool:
    parsed = urlparse(candidate)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def _error_keys_for(path: str) -> set[str]:
    """Return every error key an edit of ``path`` resolves."""

    keys = {path}
    for spec in FIELD_SPECS:
        related = [spec.path]
        if spec.companion:
            related.append(spec.companion)
        if any(path == target or path.startswith(f"{target}.") for target in related):
            keys.add(spec.reported_path)
    return keys


class WizardController:
    """Drive the vendor intake wizard outside the UI layer.

    The controller owns one :class:`WizardState`. Every document change, be
    it a keystroke or an extracted section, goes through
    :func:`core.merge.merge_document` under a single lock, so the last merge
    processed wins for any path. Validation errors are collected for the
    whole step but only paths in ``touched_fields`` are meant to be shown.
    """

    def __init__(
        self,
        submit_handler: SubmitHandler | None = None,
        *,
        stream_opener: StreamOpener | None = None,
        session_id: str | None = None,
    ) -> None:
        self._submit_handler = submit_handler
        self._stream_opener: StreamOpener = stream_opener or open_extraction_stream
        self._session_id = session_id or uuid4().hex[:12]
        self._lock = RLock()
        self._state = WizardState()
        self._last_outcome: StreamOutcome | None = None
        self._bind_step()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def state(self) -> WizardState:
        return self._state

    @property
    def document(self) -> Mapping[str, Any]:
        return self._state.document

    @property
    def step_index(self) -> int:
        return self._state.step_index

    @property
    def current_step(self) -> StepDefinition:
        return STEPS[self._state.step_index]

    @property
    def phase(self) -> WizardPhase:
        return self._state.phase

    @property
    def is_active(self) -> bool:
        return not self._state.is_closed

    @property
    def errors(self) -> dict[str, str]:
        return dict(self._state.errors)

    @property
    def visible_errors(self) -> dict[str, str]:
        """Errors restricted to touched paths, ready for display."""

        touched = self._state.touched
        return {path: message for path, message in self._state.errors.items() if path in touched}

    @property
    def touched_fields(self) -> frozenset[str]:
        return frozenset(self._state.touched)

    @property
    def step0_entered(self) -> bool:
        return self._state.step0_entered

    @property
    def is_parsing(self) -> bool:
        return self._state.is_parsing

    @property
    def parse_error(self) -> str | None:
        return self._state.parse_error

    @property
    def parse_status(self) -> str | None:
        return self._state.parse_status

    @property
    def last_stream_outcome(self) -> StreamOutcome | None:
        return self._last_outcome

    @property
    def is_submitting(self) -> bool:
        return self._state.is_submitting

    @property
    def is_step_valid(self) -> bool:
        return validate_step(self._state.step_index, self._state.document).is_valid

    @property
    def can_submit(self) -> bool:
        """Whether ``submit()`` would pass validation right now."""

        with self._lock:
            return self._state.phase is WizardPhase.EDITING and self._validate_current().is_valid

    def is_step_completed(self, index: int) -> bool:
        return is_step_completed(index, self._state.document, self._state.step0_entered)

    @property
    def completion(self) -> dict[int, bool]:
        return completion_map(self._state.document, self._state.step0_entered)

    def review(self) -> list[dict[str, Any]]:
        """Return the read-only sections shown on the summary step."""

        sections: list[dict[str, Any]] = []
        for step in STEPS:
            if not step.summary_fields:
                continue
            sections.append(
                {
                    "step": step.index,
                    "name": step.name,
                    "completed": self.is_step_completed(step.index),
                    "fields": {
                        path: copy.deepcopy(get_path_value(self._state.document, path))
                        for path in step.summary_fields
                    },
                }
            )
        return sections

    def snapshot(self) -> dict[str, Any]:
        """Return everything a presentation layer needs to render the wizard."""

        with self._lock:
            state = self._state
            return {
                "session_id": self._session_id,
                "phase": state.phase.value,
                "step_index": state.step_index,
                "step_key": self.current_step.key,
                "document": copy.deepcopy(dict(state.document)),
                "errors": self.visible_errors,
                "touched_fields": sorted(state.touched),
                "is_step_valid": self.is_step_valid,
                "completion": self.completion,
                "step0_entered": state.step0_entered,
                "is_parsing": state.is_parsing,
                "parse_error": state.parse_error,
                "parse_status": state.parse_status,
                "is_submitting": state.is_submitting,
                "can_submit": self.can_submit,
                "options": {
                    VendorPaths.COMPANY_TYPE: list(COMPANY_TYPES),
                    VendorPaths.INTEGRATION_CATEGORIES: list(INTEGRATION_CATEGORIES),
                    VendorPaths.COMPLIANCE_CERTIFICATIONS: list(COMPLIANCE_OPTIONS),
                },
            }

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _bind_step(self) -> None:
        set_wizard_step(self.current_step.key)

    def _accepts(self, action: str) -> bool:
        if self._state.phase is not WizardPhase.EDITING:
            logger.info("Ignoring %s while wizard is %s", action, self._state.phase.value)
            return False
        return True

    def _validate_current(self) -> ValidationResult:
        step = self.current_step
        document = self._state.document
        if step.cross_step_dependency is None:
            return validate_step(step.index, document)
        errors: dict[str, str] = {}
        for index in required_step_indices():
            errors.update(validate_step(index, document).errors)
        return ValidationResult(is_valid=not errors, errors=errors)

    def _move_to(self, index: int) -> None:
        previous = self._state.step_index
        self._state.step_index = index
        self._state.touched = set()
        self._state.errors = {}
        self._bind_step()
        with log_context(session_id=self._session_id):
            logger.info("Wizard moved from step %s to step %s", previous, index)

    def _reject(self, errors: Mapping[str, str]) -> None:
        self._state.errors = dict(errors)
        self._state.touched |= set(errors)
        with log_context(session_id=self._session_id):
            logger.info(
                "Step %s failed validation: %s",
                self._state.step_index,
                ", ".join(sorted(errors)),
            )

    def _refresh_errors(self) -> None:
        """Rebuild the error map after a document change.

        Only paths that already carried an error are re-checked, so fixed
        fields drop out and nothing new surfaces before the next validation
        attempt.
        """

        if not self._state.errors:
            return
        current = self._validate_current().errors
        refreshed: dict[str, str] = {}
        for path, message in self._state.errors.items():
            if path == VendorPaths.SUBMIT:
                refreshed[path] = message
            elif path in current:
                refreshed[path] = current[path]
        self._state.errors = refreshed

    def _commit(self, *partials: Mapping[str, Any]) -> bool:
        updated = self._state.document
        for partial in partials:
            updated = merge_document(updated, partial)
        if updated is self._state.document:
            return False
        self._state.document = updated
        self._refresh_errors()
        return True

    def _edit(self, path: str, *partials: Mapping[str, Any]) -> bool:
        if not self._accepts(f"edit of {path}"):
            return False
        changed = self._commit(*partials)
        cleared = _error_keys_for(path)
        self._state.errors = {key: message for key, message in self._state.errors.items() if key not in cleared}
        self._state.touched.add(path)
        return changed

    # ------------------------------------------------------------------
    # Document mutations
    # ------------------------------------------------------------------
    def apply_partial(self, partial: Mapping[str, Any]) -> bool:
        """Merge an extracted partial update; ignored once the wizard is closed."""

        with self._lock:
            if not self.is_active:
                logger.debug("Dropping partial update for closed wizard %s", self._session_id)
                return False
            return self._commit(partial)

    def update_field(self, path: str, value: Any) -> bool:
        """Apply a user edit of ``path`` and mark the field as touched.

        Raises:
            KeyError: If ``path`` is not part of the document.
        """

        with self._lock:
            partial = build_partial(path, value, self._state.document)
            # Leaving the "Other" choice empties the free-text detail it unlocked.
            cleared = [
                build_partial(dependent.path, "")
                for dependent in conditional_dependents(path)
                if value != dependent.required_when.equals
            ]
            return self._edit(path, partial, *cleared)

    def update_nested_field(self, container_path: str, key: str, value: Any) -> bool:
        """Edit ``key`` inside a record, a category map or a list item."""

        return self.update_field(f"{container_path}.{key}", value)

    def toggle_list_value(self, path: str, value: str, checked: bool) -> bool:
        """Add or remove ``value`` in the list stored at ``path``."""

        with self._lock:
            current = get_path_value(self._state.document, path)
            items = list(current) if isinstance(current, list) else []
            if checked and value not in items:
                items.append(value)
            elif not checked:
                items = [item for item in items if item != value]
            return self.update_field(path, items)

    def add_product(self) -> bool:
        """Append an empty product entry."""

        with self._lock:
            spec = get_field_spec(VendorPaths.PRODUCTS)
            products = [dict(item) for item in self._state.document.get(VendorPaths.PRODUCTS, [])]
            products.append(empty_item(spec))
            return self._edit(VendorPaths.PRODUCTS, {VendorPaths.PRODUCTS: products})

    def remove_product(self, index: int) -> bool:
        """Remove the product at ``index``; item errors are dropped since indices shift."""

        with self._lock:
            products = [dict(item) for item in self._state.document.get(VendorPaths.PRODUCTS, [])]
            if not 0 <= index < len(products):
                return False
            del products[index]
            prefix = f"{VendorPaths.PRODUCTS}."
            self._state.errors = {
                key: message for key, message in self._state.errors.items() if not key.startswith(prefix)
            }
            self._state.touched = {path for path in self._state.touched if not path.startswith(prefix)}
            return self._edit(VendorPaths.PRODUCTS, {VendorPaths.PRODUCTS: products})

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------
    def next(self) -> bool:
        """Advance one step when the current step validates."""

        with self._lock:
            if not self._accepts("next"):
                return False
            index = self._state.step_index
            if index == 0:
                self._state.step0_entered = True
                self._move_to(1)
                return True
            result = validate_step(index, self._state.document)
            if not result.is_valid:
                self._reject(result.errors)
                return False
            self._move_to(min(index + 1, LAST_STEP_INDEX))
            return True

    def previous(self) -> bool:
        """Go back one step; never validated."""

        with self._lock:
            if not self._accepts("previous"):
                return False
            index = self._state.step_index
            self._move_to(max(index - 1, 0))
            return index > 0

    def skip(self) -> bool:
        """Leave the optional URL step without extracting anything."""

        with self._lock:
            if not self._accepts("skip"):
                return False
            step = self.current_step
            if not step.is_optional:
                logger.info("Step %s cannot be skipped", step.key)
                return False
            self._state.step0_entered = True
            self._move_to(step.index + 1)
            return True

    def go_to(self, index: int) -> bool:
        """Jump back to an earlier step (e.g. an "edit" link on the summary)."""

        with self._lock:
            if not self._accepts("go_to"):
                return False
            if get_step(index) is None or index > self._state.step_index:
                return False
            self._move_to(index)
            return True

    # ------------------------------------------------------------------
    # Extraction
    # ------------------------------------------------------------------
    def parse_url(self, url: str) -> bool:
        """Stream extracted data for ``url`` into the document.

        On a natural end of the stream the URL step counts as entered and the
        wizard moves on to the first form step. A transport failure leaves the
        document as merged so far and only sets ``parse_error``.
        """

        candidate = (url or "").strip()
        with self._lock:
            if not self._accepts("parse") or self._state.is_parsing:
                return False
            if not _is_valid_url(candidate):
                self._state.parse_error = INVALID_URL_MESSAGE
                return False
            self._state.is_parsing = True
            self._state.parse_error = None
            self._state.parse_status = None

        consumer = ExtractionStreamConsumer(
            self.apply_partial,
            is_active=lambda: self.is_active,
            on_status=self._record_parse_status,
        )
        try:
            with log_context(session_id=self._session_id):
                outcome = consumer.consume(self._stream_opener(candidate))
        except _STREAM_FAILURES as exc:
            logger.warning("Parsing %s failed: %s", candidate, exc)
            self._fail_parse(str(exc) or EXTRACTION_UNAVAILABLE_MESSAGE)
            return False
        except Exception:
            logger.exception("Unexpected error while parsing %s", candidate)
            self._fail_parse(EXTRACTION_UNAVAILABLE_MESSAGE)
            return False
        finally:
            with self._lock:
                self._state.is_parsing = False

        with self._lock:
            self._last_outcome = outcome
            if outcome.cancelled or not self.is_active:
                return False
            self._state.step0_entered = True
            if self._state.step_index == 0:
                self._move_to(1)
        return True

    def _fail_parse(self, message: str) -> None:
        with self._lock:
            if self.is_active:
                self._state.parse_error = message

    def _record_parse_status(self, message: str) -> None:
        with self._lock:
            if self.is_active:
                self._state.parse_status = message

    # ------------------------------------------------------------------
    # Submit / close
    # ------------------------------------------------------------------
    def submit(self) -> bool:
        """Validate and hand the document to the submit collaborator.

        On the summary step every required step is re-validated. A rejected
        submit keeps the document and the step so the user can retry.
        """

        with self._lock:
            if not self._accepts("submit"):
                return False
            result = self._validate_current()
            if not result.is_valid:
                self._reject(result.errors)
                return False
            self._state.phase = WizardPhase.SUBMITTING
            self._state.errors = {}
            document = copy.deepcopy(dict(self._state.document))

        try:
            if self._submit_handler is not None:
                self._submit_handler(document)
        except Exception as exc:  # collaborator errors are reported, not raised
            logger.warning("Submit failed for wizard %s: %s", self._session_id, exc)
            with self._lock:
                if self._state.phase is WizardPhase.SUBMITTING:
                    self._state.phase = WizardPhase.EDITING
                self._state.errors = {VendorPaths.SUBMIT: str(exc) or SUBMIT_FAILED_MESSAGE}
                self._state.touched.add(VendorPaths.SUBMIT)
            return False

        with self._lock:
            with log_context(session_id=self._session_id):
                logger.info("Wizard submitted")
            self._close()
        return True

    def close(self) -> None:
        """Discard all state; further merges and transitions are ignored."""

        with self._lock:
            self._close()

    def _close(self) -> None:
        if self._state.is_closed:
            return
        self._state.phase = WizardPhase.CLOSED
        self._state.document = empty_document()
        self._state.errors = {}
        self._state.touched = set()
        self._state.is_parsing = False
        with log_context(session_id=self._session_id):
            logger.info("Wizard closed")


__all__ = [
    "INVALID_URL_MESSAGE",
    "StreamOpener",
    "SubmitHandler",
    "WizardController",
]
