from pathlib import Path
import sys
from typing import Any

import streamlit as st

import pytest


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from core.merge import merge_document  # noqa: E402
from core.schema import empty_document  # noqa: E402


class _SessionDict(dict[str, object]):
    """Lightweight replacement for ``st.session_state`` during tests."""


@pytest.fixture(autouse=True)
def _stub_streamlit_session_state(monkeypatch: pytest.MonkeyPatch) -> None:
    """Replace Streamlit's runtime-bound session state with a plain dictionary."""

    session_state = _SessionDict()
    monkeypatch.setattr(st, "session_state", session_state, raising=False)
    yield


LONG_OVERVIEW = (
    "Acme Scheduler books patient appointments across every clinic location in real time."
)


def complete_partial() -> dict[str, Any]:
    """Return a partial update that satisfies every required step."""

    return {
        "companyName": "Acme Health",
        "companyType": "Startup",
        "location": {"state": "CA", "country": "United States"},
        "website": "acme.example",
        "products": [{"name": "Acme Scheduler", "overview": LONG_OVERVIEW, "url": ""}],
        "integrationCategories": {"EHRs": ["Epic"]},
        "primaryContact": {
            "name": "Dana Lee",
            "title": "CTO",
            "email": "dana@acme.example",
            "phone": "555-0100",
        },
    }


@pytest.fixture
def complete_document() -> dict[str, Any]:
    return dict(merge_document(empty_document(), complete_partial()))


def sse(*payloads: str) -> list[str]:
    """Render raw JSON payloads as ``text/event-stream`` lines."""

    lines: list[str] = []
    for payload in payloads:
        lines.append(f"data: {payload}")
        lines.append("")
    return lines
