from __future__ import annotations

from typing import Any

from core.merge import merge_document
from core.schema import empty_document
from wizard.step_registry import STEPS, SUMMARY_STEP_INDEX, get_step, required_step_indices
from wizard.step_status import completion_map, is_step_completed


def test_registry_order_and_flags() -> None:
    assert [step.key for step in STEPS] == [
        "website_import",
        "company_overview",
        "product_information",
        "integrations",
        "contact_information",
        "compliance",
        "summary",
    ]
    assert STEPS[0].is_optional
    assert not STEPS[5].blocks_navigation
    assert SUMMARY_STEP_INDEX == 6
    assert required_step_indices() == (1, 2, 3, 4)
    assert get_step(7) is None


def test_url_step_completion_follows_flag() -> None:
    assert not is_step_completed(0, empty_document(), step0_entered=False)
    assert is_step_completed(0, empty_document(), step0_entered=True)


def test_required_step_completion_is_validity(complete_document: dict[str, Any]) -> None:
    assert is_step_completed(1, complete_document, step0_entered=False)
    broken = merge_document(complete_document, {"website": "nodot"})
    assert not is_step_completed(1, broken, step0_entered=False)


def test_optional_compliance_step_needs_a_value() -> None:
    document = empty_document()

    assert not is_step_completed(5, document, step0_entered=True)
    assert is_step_completed(5, merge_document(document, {"complianceCertifications": ["HIPAA"]}), True)
    assert is_step_completed(5, merge_document(document, {"complianceCertificationsOther": "ISO 9001"}), True)


def test_summary_needs_every_required_step_and_url_step(complete_document: dict[str, Any]) -> None:
    assert not is_step_completed(6, complete_document, step0_entered=False)
    assert is_step_completed(6, complete_document, step0_entered=True)

    missing_contact = merge_document(complete_document, {"primaryContact": {"phone": ""}})
    assert not is_step_completed(6, missing_contact, step0_entered=True)


def test_completion_map_covers_every_step(complete_document: dict[str, Any]) -> None:
    completion = completion_map(complete_document, step0_entered=True)

    assert completion == {0: True, 1: True, 2: True, 3: True, 4: True, 5: False, 6: True}


def test_out_of_range_step_is_never_complete() -> None:
    assert not is_step_completed(9, empty_document(), step0_entered=True)


def test_required_fields_belong_to_their_step() -> None:
    for step in STEPS:
        assert set(step.required_fields) <= set(step.field_paths), step.key
