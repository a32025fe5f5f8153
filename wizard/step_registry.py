"""Registry for wizard steps, metadata, and canonical order."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from constants.keys import VendorPaths
from core.schema import iter_field_specs

ALL_REQUIRED_STEPS_VALID: Final[str] = "all required steps valid"


@dataclass(frozen=True)
class StepDefinition:
    """Static metadata for an individual wizard step.

    ``is_optional`` marks the URL step, which only records that the user
    passed it. ``blocks_navigation`` is ``False`` for steps that never hold
    up forward navigation (optional and read-only steps).
    """

    index: int
    key: str
    name: str
    description: str
    is_optional: bool = False
    blocks_navigation: bool = True
    required_fields: tuple[str, ...] = ()
    summary_fields: tuple[str, ...] = ()
    cross_step_dependency: str | None = None

    @property
    def field_paths(self) -> tuple[str, ...]:
        """Every schema path owned by this step."""

        return tuple(spec.path for spec in iter_field_specs(self.index))


STEPS: Final[tuple[StepDefinition, ...]] = (
    StepDefinition(
        index=0,
        key="website_import",
        name="Auto-fill",
        description="Enter a URL to automatically extract and pre-fill information",
        is_optional=True,
        blocks_navigation=False,
    ),
    StepDefinition(
        index=1,
        key="company_overview",
        name="Company",
        description="Provide basic information about your company to get started",
        required_fields=(
            VendorPaths.COMPANY_NAME,
            VendorPaths.COMPANY_TYPE,
            VendorPaths.LOCATION_STATE,
            VendorPaths.LOCATION_COUNTRY,
            VendorPaths.WEBSITE,
        ),
        summary_fields=(
            VendorPaths.COMPANY_NAME,
            VendorPaths.COMPANY_TYPE,
            VendorPaths.LOCATION,
            VendorPaths.WEBSITE,
        ),
    ),
    StepDefinition(
        index=2,
        key="product_information",
        name="Products",
        description="Tell us about the products you offer",
        required_fields=(VendorPaths.PRODUCTS,),
        summary_fields=(VendorPaths.PRODUCTS,),
    ),
    StepDefinition(
        index=3,
        key="integrations",
        name="Integrations",
        description="Select integration categories and specific integrations your product supports",
        required_fields=(VendorPaths.INTEGRATION_CATEGORIES,),
        summary_fields=(
            VendorPaths.INTEGRATION_CATEGORIES,
            VendorPaths.OTHER_INTEGRATIONS_BY_CATEGORY,
        ),
    ),
    StepDefinition(
        index=4,
        key="contact_information",
        name="Contact",
        description="Who should buyers reach out to",
        required_fields=(
            VendorPaths.PRIMARY_CONTACT_NAME,
            VendorPaths.PRIMARY_CONTACT_TITLE,
            VendorPaths.PRIMARY_CONTACT_EMAIL,
            VendorPaths.PRIMARY_CONTACT_PHONE,
        ),
        summary_fields=(VendorPaths.PRIMARY_CONTACT,),
    ),
    StepDefinition(
        index=5,
        key="compliance",
        name="Compliance",
        description="Select all compliance certifications and standards your product meets or adheres to",
        blocks_navigation=False,
        summary_fields=(
            VendorPaths.COMPLIANCE_CERTIFICATIONS,
            VendorPaths.COMPLIANCE_CERTIFICATIONS_OTHER,
        ),
    ),
    StepDefinition(
        index=6,
        key="summary",
        name="Review",
        description="Please review all the information you've provided",
        blocks_navigation=False,
        cross_step_dependency=ALL_REQUIRED_STEPS_VALID,
    ),
)

SUMMARY_STEP_INDEX: Final[int] = STEPS[-1].index
LAST_STEP_INDEX: Final[int] = len(STEPS) - 1


def get_step(index: int) -> StepDefinition | None:
    """Return the step at ``index`` or ``None`` when out of range."""

    if 0 <= index < len(STEPS):
        return STEPS[index]
    return None


def required_step_indices() -> tuple[int, ...]:
    """Indices of the steps the summary depends on (strictly between 0 and the summary)."""

    return tuple(
        step.index
        for step in STEPS
        if 0 < step.index < SUMMARY_STEP_INDEX and step.blocks_navigation and not step.is_optional
    )


__all__ = [
    "ALL_REQUIRED_STEPS_VALID",
    "LAST_STEP_INDEX",
    "STEPS",
    "SUMMARY_STEP_INDEX",
    "StepDefinition",
    "get_step",
    "required_step_indices",
]
