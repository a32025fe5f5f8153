from __future__ import annotations

import json
from collections.abc import Iterator, Mapping
from typing import Any

import pytest

from conftest import LONG_OVERVIEW, complete_partial, sse
from core.errors import SUBMIT_FAILED_MESSAGE, ExtractionStreamError, SubmitError
from wizard.navigation import WizardController, WizardPhase
from wizard.navigation.router import INVALID_URL_MESSAGE


def _frame(**message: Any) -> str:
    return json.dumps(message)


def _opener(lines: list[str]):
    def opener(_url: str) -> list[str]:
        return lines

    return opener


def _advance_to(controller: WizardController, index: int) -> None:
    while controller.step_index < index:
        assert controller.next(), controller.errors


@pytest.fixture
def controller() -> WizardController:
    return WizardController(session_id="test-session")


@pytest.fixture
def filled(controller: WizardController) -> WizardController:
    controller.apply_partial(complete_partial())
    return controller


def test_starts_on_url_step_with_empty_document(controller: WizardController) -> None:
    assert controller.step_index == 0
    assert controller.phase is WizardPhase.EDITING
    assert controller.document["companyName"] == ""
    assert controller.errors == {}
    assert not controller.step0_entered


def test_failed_next_marks_errors_touched(controller: WizardController) -> None:
    assert controller.next()
    assert controller.step0_entered
    assert controller.step_index == 1

    assert not controller.next()

    assert controller.step_index == 1
    assert controller.errors["companyName"] == "Company name is required"
    assert "companyName" in controller.touched_fields
    assert controller.visible_errors == controller.errors


def test_editing_a_field_clears_its_error(controller: WizardController) -> None:
    controller.next()
    controller.next()

    controller.update_field("companyName", "Acme")

    assert "companyName" not in controller.errors
    assert "companyType" in controller.errors
    assert "companyName" in controller.touched_fields


def test_edit_before_any_attempt_shows_no_errors(controller: WizardController) -> None:
    controller.next()

    controller.update_field("website", "nodot")

    assert controller.errors == {}
    assert controller.visible_errors == {}
    assert not controller.is_step_valid


def test_merges_refresh_only_existing_errors(controller: WizardController) -> None:
    controller.next()
    controller.next()

    controller.apply_partial({"companyName": "Acme", "website": "nodot"})

    assert "companyName" not in controller.errors
    assert controller.errors["website"] == "Please enter a valid website URL"


def test_products_step_requires_a_product(filled: WizardController) -> None:
    _advance_to(filled, 2)
    filled.remove_product(0)

    assert not filled.next()

    assert filled.errors == {"products": "At least one product is required"}
    assert filled.step_index == 2


def test_product_item_errors_and_removal(filled: WizardController) -> None:
    _advance_to(filled, 2)
    filled.add_product()

    assert not filled.next()
    assert set(filled.errors) == {"products.1.name", "products.1.overview"}

    filled.update_field("products.1.name", "Acme Billing")
    assert set(filled.errors) == {"products.1.overview"}

    filled.remove_product(1)
    assert filled.errors == {}
    assert not any(path.startswith("products.") for path in filled.touched_fields)
    assert filled.next()


def test_user_edit_survives_later_section(controller: WizardController) -> None:
    controller.next()
    controller.update_field("website", "https://acme.example")

    controller.apply_partial({"companyName": "Acme"})

    assert controller.document["website"] == "https://acme.example"
    assert controller.document["companyName"] == "Acme"


def test_previous_clears_touched_and_errors(filled: WizardController) -> None:
    _advance_to(filled, 2)
    filled.update_field("products.0.overview", "short")
    assert not filled.next()

    assert filled.previous()

    assert filled.step_index == 1
    assert filled.errors == {}
    assert filled.touched_fields == frozenset()


def test_previous_on_first_step_stays(controller: WizardController) -> None:
    assert not controller.previous()
    assert controller.step_index == 0


def test_skip_only_applies_to_url_step(controller: WizardController) -> None:
    assert controller.skip()
    assert controller.step0_entered
    assert controller.step_index == 1

    assert not controller.skip()
    assert controller.step_index == 1


def test_toggle_list_value(filled: WizardController) -> None:
    filled.toggle_list_value("complianceCertifications", "HIPAA", True)
    filled.toggle_list_value("complianceCertifications", "SOC 2", True)
    filled.toggle_list_value("complianceCertifications", "HIPAA", False)

    assert filled.document["complianceCertifications"] == ["SOC 2"]
    assert filled.is_step_completed(5)


def test_integration_error_cleared_by_other_text(filled: WizardController) -> None:
    filled.update_field("integrationCategories.EHRs", [])
    _advance_to(filled, 3)
    assert not filled.next()
    assert "integrations" in filled.visible_errors

    filled.update_nested_field("otherIntegrationsByCategory", "Forms", "In-house forms")

    assert filled.errors == {}
    assert filled.next()


def test_update_field_rejects_unknown_path(controller: WizardController) -> None:
    with pytest.raises(KeyError):
        controller.update_field("notAField", "x")


def test_parse_url_applies_stream_and_advances() -> None:
    lines = sse(
        _frame(type="status", message="Fetching website"),
        _frame(type="section", section="company-overview", data={"companyName": "Acme"}),
        _frame(type="section", section="product-information", data={"products": [{"name": "Scheduler"}]}),
        _frame(type="complete", data={"companyName": "Acme Corp"}),
    )
    controller = WizardController(stream_opener=_opener(lines))

    assert controller.parse_url("https://acme.example")

    assert controller.document["companyName"] == "Acme Corp"
    assert controller.document["products"] == [{"name": "Scheduler", "overview": "", "url": ""}]
    assert controller.step0_entered
    assert controller.step_index == 1
    assert not controller.is_parsing
    assert controller.parse_status == "Fetching website"
    assert controller.last_stream_outcome is not None
    assert controller.last_stream_outcome.completed


def test_parse_url_rejects_invalid_url() -> None:
    controller = WizardController(stream_opener=_opener([]))

    assert not controller.parse_url("not a url")

    assert controller.parse_error == INVALID_URL_MESSAGE
    assert controller.step_index == 0
    assert not controller.is_parsing


def test_parse_url_transport_error_keeps_merged_sections() -> None:
    def opener(_url: str) -> Iterator[str]:
        yield from sse(_frame(type="section", data={"companyName": "Acme"}))
        raise ExtractionStreamError()

    controller = WizardController(stream_opener=opener)

    assert not controller.parse_url("https://acme.example")

    assert controller.parse_error == "Failed to parse website. Please try again."
    assert not controller.is_parsing
    assert controller.step_index == 0
    assert not controller.step0_entered
    assert controller.document["companyName"] == "Acme"


def test_closing_mid_stream_drops_remaining_messages() -> None:
    controller: WizardController

    def opener(_url: str) -> Iterator[str]:
        yield from sse(_frame(type="section", data={"companyName": "Acme"}))
        controller.close()
        yield from sse(_frame(type="complete", data={"companyName": "Late Corp"}))

    controller = WizardController(stream_opener=opener)

    assert not controller.parse_url("https://acme.example")

    assert controller.phase is WizardPhase.CLOSED
    assert controller.document["companyName"] == ""
    assert controller.last_stream_outcome is not None
    assert controller.last_stream_outcome.cancelled


def test_closed_controller_ignores_everything(filled: WizardController) -> None:
    filled.close()

    assert not filled.is_active
    assert not filled.apply_partial({"companyName": "Acme"})
    assert not filled.next()
    assert not filled.update_field("companyName", "Acme")
    assert not filled.submit()
    assert filled.document["companyName"] == ""


def test_submit_on_summary_revalidates_every_step(filled: WizardController) -> None:
    _advance_to(filled, 6)
    filled.apply_partial({"primaryContact": {"email": "dana"}})

    assert not filled.can_submit
    assert not filled.submit()

    assert filled.phase is WizardPhase.EDITING
    assert filled.visible_errors == {"primaryContact.email": "Please enter a valid email address"}


def test_submit_hands_over_document_and_closes() -> None:
    received: list[Mapping[str, Any]] = []
    filled = WizardController(received.append)
    filled.apply_partial(complete_partial())
    _advance_to(filled, 6)

    assert filled.can_submit
    assert filled.submit()

    assert len(received) == 1
    assert received[0]["companyName"] == "Acme Health"
    assert received[0]["products"][0]["overview"] == LONG_OVERVIEW
    assert filled.phase is WizardPhase.CLOSED
    assert filled.document["companyName"] == ""


def test_rejected_submit_keeps_document_and_step() -> None:
    def reject(_document: Mapping[str, Any]) -> None:
        raise SubmitError("Vendor already registered")

    controller = WizardController(reject)
    controller.apply_partial(complete_partial())
    _advance_to(controller, 6)

    assert not controller.submit()

    assert controller.phase is WizardPhase.EDITING
    assert controller.step_index == 6
    assert controller.visible_errors == {"submit": "Vendor already registered"}
    assert controller.document["companyName"] == "Acme Health"


def test_rejected_submit_without_message_uses_default() -> None:
    def reject(_document: Mapping[str, Any]) -> None:
        raise RuntimeError()

    controller = WizardController(reject)
    controller.apply_partial(complete_partial())
    _advance_to(controller, 6)

    assert not controller.submit()
    assert controller.errors == {"submit": SUBMIT_FAILED_MESSAGE}


def test_completion_tracks_document(filled: WizardController) -> None:
    assert filled.completion == {0: False, 1: True, 2: True, 3: True, 4: True, 5: False, 6: False}

    filled.skip()

    assert filled.completion[6]


def test_review_lists_summary_sections(filled: WizardController) -> None:
    sections = filled.review()

    assert [section["step"] for section in sections] == [1, 2, 3, 4, 5]
    assert sections[0]["fields"]["companyName"] == "Acme Health"
    assert sections[3]["fields"]["primaryContact"]["email"] == "dana@acme.example"


def test_go_to_only_moves_backwards(filled: WizardController) -> None:
    _advance_to(filled, 4)

    assert not filled.go_to(5)
    assert filled.go_to(2)
    assert filled.step_index == 2


def test_snapshot_exposes_render_state(controller: WizardController) -> None:
    controller.next()
    controller.next()

    snapshot = controller.snapshot()

    assert snapshot["session_id"] == "test-session"
    assert snapshot["step_key"] == "company_overview"
    assert snapshot["phase"] == "editing"
    assert "companyName" in snapshot["errors"]
    assert snapshot["can_submit"] is False
    assert snapshot["completion"][0] is True


def test_snapshot_lists_choice_options(controller: WizardController) -> None:
    options = controller.snapshot()["options"]

    assert "Other" in options["companyType"]
    assert options["integrationCategories"] == ["EHRs", "Payments", "Forms", "Communication", "Analytics"]
    assert options["complianceCertifications"]


def test_leaving_other_clears_dependent_detail(controller: WizardController) -> None:
    controller.update_field("companyType", "Other")
    controller.update_field("companyTypeOther", "Cooperative")
    controller.update_nested_field("location", "country", "Other")
    controller.update_field("location.countryOther", "Atlantis")

    controller.update_field("companyType", "SME")
    controller.update_field("location.country", "United States")

    assert controller.document["companyType"] == "SME"
    assert controller.document["companyTypeOther"] == ""
    assert controller.document["location"]["country"] == "United States"
    assert controller.document["location"]["countryOther"] == ""


def test_reselecting_other_keeps_detail(controller: WizardController) -> None:
    controller.update_field("companyType", "Other")
    controller.update_field("companyTypeOther", "Cooperative")

    controller.update_field("companyType", "Other")

    assert controller.document["companyTypeOther"] == "Cooperative"


def test_unexpected_stream_failure_allows_retry() -> None:
    attempts = {"count": 0}

    def opener(_url: str) -> Iterator[str]:
        attempts["count"] += 1
        yield from sse(_frame(type="section", data={"companyName": "Acme"}))
        if attempts["count"] == 1:
            raise RuntimeError("decoder crashed")

    controller = WizardController(stream_opener=opener)

    assert not controller.parse_url("https://acme.example")
    assert not controller.is_parsing
    assert controller.parse_error == "Failed to parse website. Please try again."
    assert controller.step_index == 0

    assert controller.parse_url("https://acme.example")
    assert attempts["count"] == 2
    assert controller.parse_error is None
    assert controller.step_index == 1


def test_successful_next_clears_touched_and_errors(filled: WizardController) -> None:
    filled.next()
    filled.update_field("companyName", "")
    assert not filled.next()
    assert filled.touched_fields

    filled.update_field("companyName", "Acme Health")
    assert filled.next()

    assert filled.step_index == 2
    assert filled.touched_fields == frozenset()
    assert filled.errors == {}
