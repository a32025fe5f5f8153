"""Central configuration for the vendor intake controller.

Values are read once at import time from the process environment (optionally
seeded from a local ``.env`` file). The extraction endpoint can additionally
be provided through Streamlit secrets so hosted deployments do not need to
export environment variables.

``EXTRACTION_STREAM_ENDPOINT`` points at the server-sent-event endpoint that
streams partial vendor profiles for a website URL. ``EXTRACTION_STREAM_TIMEOUT``
is handed to ``requests`` as the read timeout of that stream; the controller
itself never times out a parse.
"""

import logging
import os
import warnings
from collections.abc import Mapping

import streamlit as st

from dotenv import load_dotenv

load_dotenv()


logger = logging.getLogger(__name__)


_TRUTHY_ENV_VALUES: tuple[str, ...] = ("1", "true", "yes", "on")
_LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

DEFAULT_EXTRACTION_STREAM_ENDPOINT = "http://localhost:3000/api/automation/vendor/parse-website-stream"


def _is_truthy_flag(value: str | None) -> bool:
    """Return ``True`` when ``value`` matches a truthy environment token."""

    if value is None:
        return False
    return value.strip().lower() in _TRUTHY_ENV_VALUES


def _parse_positive_float_env(value: object | None, *, env_var: str, default: float) -> float:
    """Return a positive float parsed from ``value`` or ``default``."""

    if value is None:
        return default
    candidate = value
    if isinstance(candidate, str):
        stripped = candidate.strip()
        if not stripped:
            return default
        try:
            candidate = float(stripped)
        except ValueError:
            warnings.warn(
                "Unsupported %s '%s'; falling back to %.1f." % (env_var, stripped, default),
                RuntimeWarning,
            )
            return default
    if isinstance(candidate, (int, float)) and candidate > 0:
        return float(candidate)
    warnings.warn(
        "%s must be a positive number; falling back to %.1f." % (env_var, default),
        RuntimeWarning,
    )
    return default


def _parse_positive_int_env(value: object | None, *, env_var: str, default: int) -> int:
    """Return a positive integer parsed from ``value`` or ``default``."""

    parsed = _parse_positive_float_env(value, env_var=env_var, default=float(default))
    return int(parsed)


def _normalise_log_level(value: str | None, *, default: str = "INFO") -> str:
    """Return a logging level name understood by :mod:`logging`."""

    if not value:
        return default
    candidate = value.strip().upper()
    if candidate in _LOG_LEVELS:
        return candidate
    warnings.warn(
        "Unsupported LOG_LEVEL '%s'; falling back to '%s'." % (value, default),
        RuntimeWarning,
    )
    return default


def _coerce_secret_value(value: object) -> str:
    """Return ``value`` as a trimmed string without raising on unexpected types."""

    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    return str(value).strip()


def get_extraction_stream_endpoint() -> str:
    """Return the extraction endpoint from secrets, environment or the default."""

    # 1. Streamlit secrets (top-level key)
    try:
        direct_secret = st.secrets["EXTRACTION_STREAM_ENDPOINT"]
    except Exception:
        direct_secret = None
    endpoint = _coerce_secret_value(direct_secret)
    if endpoint:
        return endpoint

    # 2. Streamlit secrets (``extraction`` section)
    try:
        extraction_section = st.secrets["extraction"]
    except Exception:
        extraction_section = None
    if isinstance(extraction_section, Mapping):
        section_endpoint = _coerce_secret_value(extraction_section.get("STREAM_ENDPOINT"))
        if section_endpoint:
            return section_endpoint

    # 3. Environment variable fallback
    env_endpoint = _coerce_secret_value(os.getenv("EXTRACTION_STREAM_ENDPOINT"))
    if env_endpoint:
        return env_endpoint
    return DEFAULT_EXTRACTION_STREAM_ENDPOINT


EXTRACTION_STREAM_TIMEOUT = _parse_positive_float_env(
    os.getenv("EXTRACTION_STREAM_TIMEOUT"),
    env_var="EXTRACTION_STREAM_TIMEOUT",
    default=120.0,
)
PRODUCT_OVERVIEW_MIN_LENGTH = _parse_positive_int_env(
    os.getenv("PRODUCT_OVERVIEW_MIN_LENGTH"),
    env_var="PRODUCT_OVERVIEW_MIN_LENGTH",
    default=50,
)
LOG_LEVEL = _normalise_log_level(os.getenv("LOG_LEVEL"))
VENDOR_INTAKE_DEBUG = _is_truthy_flag(os.getenv("VENDOR_INTAKE_DEBUG"))


__all__ = [
    "DEFAULT_EXTRACTION_STREAM_ENDPOINT",
    "EXTRACTION_STREAM_TIMEOUT",
    "LOG_LEVEL",
    "PRODUCT_OVERVIEW_MIN_LENGTH",
    "VENDOR_INTAKE_DEBUG",
    "get_extraction_stream_endpoint",
]
