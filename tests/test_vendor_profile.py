from __future__ import annotations

import pytest
from pydantic import ValidationError

from conftest import complete_partial
from core.merge import merge_document
from core.schema import empty_document
from models import VendorProfile


def test_profile_round_trips_controller_document() -> None:
    document = merge_document(empty_document(), complete_partial())

    profile = VendorProfile.from_document(document)

    assert profile.company_name == "Acme Health"
    assert profile.location.state == "CA"
    assert profile.products[0].name == "Acme Scheduler"
    assert profile.primary_contact.email == "dana@acme.example"
    assert profile.to_document() == document


def test_selected_integrations_follow_category_order() -> None:
    profile = VendorProfile.model_validate(
        {"integrationCategories": {"Analytics": ["Looker"], "EHRs": ["Epic", "Cerner"]}}
    )

    assert profile.selected_integrations() == ["Epic", "Cerner", "Looker"]


def test_unknown_keys_are_rejected() -> None:
    with pytest.raises(ValidationError):
        VendorProfile.model_validate({"companyName": "Acme", "revenue": "1M"})


def test_product_text_fields_accept_missing_values() -> None:
    profile = VendorProfile.model_validate({"products": [{"name": "Alpha", "overview": None, "url": None}]})

    assert profile.products[0].overview == ""
    assert profile.products[0].url == ""
