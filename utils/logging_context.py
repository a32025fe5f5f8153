"""Contextual log fields for the intake controller.

Records carry the wizard session, the step the controller is on and the
extraction stream section being applied. Unbound fields render as ``-``.
"""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from typing import Iterator

_UNSET = "-"

LOG_FORMAT = (
    "%(asctime)s %(levelname)s [session=%(session_id)s step=%(wizard_step)s "
    "section=%(stream_section)s] %(name)s: %(message)s"
)

_CONTEXT_FIELDS: dict[str, contextvars.ContextVar[str]] = {
    name: contextvars.ContextVar(name, default=_UNSET)
    for name in ("session_id", "wizard_step", "stream_section")
}
_base_record_factory = logging.getLogRecordFactory()
_factory_installed = False


def _stamp(record: logging.LogRecord) -> logging.LogRecord:
    for name, var in _CONTEXT_FIELDS.items():
        setattr(record, name, var.get())
    return record


def _normalise(value: object | None) -> str:
    text = "" if value is None else str(value).strip()
    return text or _UNSET


class ContextFilter(logging.Filter):
    """Stamp context fields on records created before the factory was installed."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "session_id"):
            _stamp(record)
        return True


def _install_record_factory() -> None:
    global _factory_installed
    if _factory_installed:
        return

    def factory(*args: object, **kwargs: object) -> logging.LogRecord:
        return _stamp(_base_record_factory(*args, **kwargs))

    logging.setLogRecordFactory(factory)
    _factory_installed = True


def configure_logging(*, level: int | str = logging.INFO) -> None:
    """Attach the context fields to every record and a matching format to the root logger.

    Safe to call repeatedly; handlers that already carry a formatter keep it.
    """

    _install_record_factory()
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    else:
        for handler in root.handlers:
            if handler.formatter is None:
                handler.setFormatter(logging.Formatter(LOG_FORMAT))
    if not any(isinstance(existing, ContextFilter) for existing in root.filters):
        root.addFilter(ContextFilter())


def set_session_id(session_id: str | None) -> None:
    """Bind the wizard session for subsequent records in this context."""

    configure_logging()
    _CONTEXT_FIELDS["session_id"].set(_normalise(session_id))


def set_wizard_step(step: str | None) -> None:
    _CONTEXT_FIELDS["wizard_step"].set(_normalise(step))


def get_wizard_step() -> str:
    return _CONTEXT_FIELDS["wizard_step"].get()


@contextmanager
def log_context(
    *,
    session_id: str | None = None,
    wizard_step: str | None = None,
    stream_section: str | None = None,
) -> Iterator[None]:
    """Bind the given fields for the duration of the block."""

    overrides = {
        "session_id": session_id,
        "wizard_step": wizard_step,
        "stream_section": stream_section,
    }
    tokens = [
        (_CONTEXT_FIELDS[name], _CONTEXT_FIELDS[name].set(_normalise(value)))
        for name, value in overrides.items()
        if value is not None
    ]
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)


__all__ = [
    "LOG_FORMAT",
    "configure_logging",
    "get_wizard_step",
    "log_context",
    "set_session_id",
    "set_wizard_step",
]
