"""Pydantic models for the finished vendor intake document."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.schema import INTEGRATION_CATEGORIES


def _blank_to_empty(value: object) -> str:
    """Return ``value`` as a string, mapping ``None`` to ``""``."""

    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


class _CamelModel(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class Location(_CamelModel):
    """Where the vendor is headquartered."""

    state: str = ""
    country: str = ""
    country_other: str = Field(default="", alias="countryOther")


class PrimaryContact(_CamelModel):
    """Person the marketplace should reach out to."""

    name: str = ""
    title: str = ""
    email: str = ""
    phone: str = ""


class Product(_CamelModel):
    """A single product entry of the vendor."""

    name: str = ""
    overview: str = ""
    url: str = ""

    @field_validator("name", "overview", "url", mode="before")
    @classmethod
    def _coerce_text(cls, value: object) -> str:
        return _blank_to_empty(value)


def _empty_category_lists() -> Dict[str, List[str]]:
    return {category: [] for category in INTEGRATION_CATEGORIES}


def _empty_category_texts() -> Dict[str, str]:
    return {category: "" for category in INTEGRATION_CATEGORIES}


class VendorProfile(_CamelModel):
    """Typed view over the intake document handed to submit collaborators.

    The controller itself works on plain dictionaries so the merge engine can
    return new values cheaply; this model is the boundary type for consumers
    that want attribute access and validation of the final payload.
    """

    company_name: str = Field(default="", alias="companyName")
    company_type: str = Field(default="", alias="companyType")
    company_type_other: str = Field(default="", alias="companyTypeOther")
    location: Location = Field(default_factory=Location)
    website: str = ""
    address: str = ""
    products: List[Product] = Field(default_factory=list)
    integration_categories: Dict[str, List[str]] = Field(
        default_factory=_empty_category_lists, alias="integrationCategories"
    )
    other_integrations_by_category: Dict[str, str] = Field(
        default_factory=_empty_category_texts, alias="otherIntegrationsByCategory"
    )
    other_integrations: str = Field(default="", alias="otherIntegrations")
    primary_contact: PrimaryContact = Field(default_factory=PrimaryContact, alias="primaryContact")
    compliance_certifications: List[str] = Field(default_factory=list, alias="complianceCertifications")
    compliance_certifications_other: str = Field(default="", alias="complianceCertificationsOther")

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "VendorProfile":
        """Build a profile from a controller document."""

        return cls.model_validate(dict(document))

    def to_document(self) -> dict[str, Any]:
        """Return the camelCase document representation."""

        return self.model_dump(by_alias=True)

    def selected_integrations(self) -> list[str]:
        """Return every selected integration across categories, in category order."""

        selected: list[str] = []
        for category in INTEGRATION_CATEGORIES:
            selected.extend(self.integration_categories.get(category, []))
        return selected


__all__ = [
    "Location",
    "PrimaryContact",
    "Product",
    "VendorProfile",
]
