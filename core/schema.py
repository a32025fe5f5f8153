"""Static field catalog for the vendor intake document.

Every path the validator, the merge engine and the completion evaluator touch
is declared here exactly once. The catalog fixes the shape of the document:
:func:`empty_document` materialises every declared key with its empty value
and the merge engine refuses keys that are not listed.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import StrEnum
from functools import lru_cache
from typing import Any, Final

import config
from constants.keys import VendorPaths

OTHER_SENTINEL: Final[str] = "Other"

INTEGRATION_CATEGORIES: Final[tuple[str, ...]] = (
    "EHRs",
    "Payments",
    "Forms",
    "Communication",
    "Analytics",
)

COMPANY_TYPES: Final[tuple[str, ...]] = ("Startup", "SME", "Enterprise", OTHER_SENTINEL)

COMPLIANCE_OPTIONS: Final[tuple[str, ...]] = (
    "HIPAA",
    "HITECH",
    "GDPR",
    "SOC 2",
    "HITRUST",
    "ISO 27001",
    OTHER_SENTINEL,
)

# Anything with a dot counts as a website; an email needs one ``@`` followed
# by a dotted domain.
WEBSITE_PATTERN: Final[re.Pattern[str]] = re.compile(r".+\..+")
EMAIL_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class FieldKind(StrEnum):
    """Declared shape of a document value."""

    SCALAR = "scalar"
    LIST = "list"
    RECORD = "record"
    RECORD_LIST = "record_list"
    LIST_MAP = "list_map"
    TEXT_MAP = "text_map"


@dataclass(frozen=True)
class RequiredWhen:
    """Make a field required only while ``path`` holds ``equals``."""

    path: str
    equals: str = OTHER_SENTINEL


@dataclass(frozen=True)
class FieldSpec:
    """Metadata for a single document path."""

    path: str
    kind: FieldKind
    step: int
    required: bool = False
    required_message: str | None = None
    pattern: re.Pattern[str] | None = None
    match_untrimmed: bool = False
    invalid_message: str | None = None
    min_length: int | None = None
    min_length_message: str | None = None
    companion: str | None = None
    required_when: RequiredWhen | None = None
    error_key: str | None = None
    item_fields: tuple[FieldSpec, ...] = ()
    map_keys: tuple[str, ...] = ()

    @property
    def key(self) -> str:
        return self.path.rsplit(".", 1)[-1]

    @property
    def parent(self) -> str:
        head, _, _ = self.path.rpartition(".")
        return head

    @property
    def reported_path(self) -> str:
        """Path under which validation errors for this field are reported."""

        return self.error_key or self.path


_PRODUCT_ITEM_FIELDS: Final[tuple[FieldSpec, ...]] = (
    FieldSpec(
        "name",
        FieldKind.SCALAR,
        step=2,
        required=True,
        required_message="Product name is required",
    ),
    FieldSpec(
        "overview",
        FieldKind.SCALAR,
        step=2,
        required=True,
        required_message="Product overview is required",
        min_length=config.PRODUCT_OVERVIEW_MIN_LENGTH,
        min_length_message=f"Product overview must be at least {config.PRODUCT_OVERVIEW_MIN_LENGTH} characters",
    ),
    FieldSpec("url", FieldKind.SCALAR, step=2),
)


FIELD_SPECS: Final[tuple[FieldSpec, ...]] = (
    # Company overview
    FieldSpec(
        VendorPaths.COMPANY_NAME,
        FieldKind.SCALAR,
        step=1,
        required=True,
        required_message="Company name is required",
    ),
    FieldSpec(
        VendorPaths.COMPANY_TYPE,
        FieldKind.SCALAR,
        step=1,
        required=True,
        required_message="Company type is required",
    ),
    FieldSpec(
        VendorPaths.COMPANY_TYPE_OTHER,
        FieldKind.SCALAR,
        step=1,
        required_message="Please specify company type",
        required_when=RequiredWhen(VendorPaths.COMPANY_TYPE),
    ),
    FieldSpec(VendorPaths.LOCATION, FieldKind.RECORD, step=1),
    FieldSpec(
        VendorPaths.LOCATION_STATE,
        FieldKind.SCALAR,
        step=1,
        required=True,
        required_message="State is required",
    ),
    FieldSpec(
        VendorPaths.LOCATION_COUNTRY,
        FieldKind.SCALAR,
        step=1,
        required=True,
        required_message="Country is required",
    ),
    FieldSpec(
        VendorPaths.LOCATION_COUNTRY_OTHER,
        FieldKind.SCALAR,
        step=1,
        required_message="Please specify country",
        required_when=RequiredWhen(VendorPaths.LOCATION_COUNTRY),
    ),
    FieldSpec(
        VendorPaths.WEBSITE,
        FieldKind.SCALAR,
        step=1,
        required=True,
        required_message="Website is required",
        pattern=WEBSITE_PATTERN,
        invalid_message="Please enter a valid website URL",
    ),
    FieldSpec(VendorPaths.ADDRESS, FieldKind.SCALAR, step=1),
    # Products
    FieldSpec(
        VendorPaths.PRODUCTS,
        FieldKind.RECORD_LIST,
        step=2,
        required=True,
        required_message="At least one product is required",
        item_fields=_PRODUCT_ITEM_FIELDS,
    ),
    # Integrations
    FieldSpec(
        VendorPaths.INTEGRATION_CATEGORIES,
        FieldKind.LIST_MAP,
        step=3,
        required=True,
        required_message="Please select at least one integration or add other integrations",
        companion=VendorPaths.OTHER_INTEGRATIONS_BY_CATEGORY,
        error_key=VendorPaths.INTEGRATIONS,
        map_keys=INTEGRATION_CATEGORIES,
    ),
    FieldSpec(
        VendorPaths.OTHER_INTEGRATIONS_BY_CATEGORY,
        FieldKind.TEXT_MAP,
        step=3,
        map_keys=INTEGRATION_CATEGORIES,
    ),
    FieldSpec(VendorPaths.OTHER_INTEGRATIONS, FieldKind.SCALAR, step=3),
    # Contact
    FieldSpec(VendorPaths.PRIMARY_CONTACT, FieldKind.RECORD, step=4),
    FieldSpec(
        VendorPaths.PRIMARY_CONTACT_NAME,
        FieldKind.SCALAR,
        step=4,
        required=True,
        required_message="Contact name is required",
    ),
    FieldSpec(
        VendorPaths.PRIMARY_CONTACT_TITLE,
        FieldKind.SCALAR,
        step=4,
        required=True,
        required_message="Contact title is required",
    ),
    FieldSpec(
        VendorPaths.PRIMARY_CONTACT_EMAIL,
        FieldKind.SCALAR,
        step=4,
        required=True,
        required_message="Email is required",
        pattern=EMAIL_PATTERN,
        match_untrimmed=True,
        invalid_message="Please enter a valid email address",
    ),
    FieldSpec(
        VendorPaths.PRIMARY_CONTACT_PHONE,
        FieldKind.SCALAR,
        step=4,
        required=True,
        required_message="Phone number is required",
    ),
    # Compliance (optional)
    FieldSpec(
        VendorPaths.COMPLIANCE_CERTIFICATIONS,
        FieldKind.LIST,
        step=5,
        companion=VendorPaths.COMPLIANCE_CERTIFICATIONS_OTHER,
    ),
    FieldSpec(VendorPaths.COMPLIANCE_CERTIFICATIONS_OTHER, FieldKind.SCALAR, step=5),
)


@lru_cache(maxsize=1)
def _spec_index() -> dict[str, FieldSpec]:
    return {spec.path: spec for spec in FIELD_SPECS}


def get_field_spec(path: str) -> FieldSpec | None:
    """Return the :class:`FieldSpec` registered for ``path``."""

    return _spec_index().get(path)


def kind_for(path: str) -> FieldKind | None:
    spec = get_field_spec(path)
    return spec.kind if spec is not None else None


def iter_field_specs(step: int | None = None) -> Iterator[FieldSpec]:
    """Yield field specs in catalog order, optionally limited to ``step``."""

    for spec in FIELD_SPECS:
        if step is None or spec.step == step:
            yield spec


def child_specs(parent: str) -> tuple[FieldSpec, ...]:
    """Return the direct children of ``parent`` (``""`` for the document root)."""

    return tuple(spec for spec in FIELD_SPECS if spec.parent == parent)


def conditional_dependents(path: str) -> tuple[FieldSpec, ...]:
    """Return the fields whose requirement is switched by the value at ``path``."""

    return tuple(
        spec for spec in FIELD_SPECS if spec.required_when is not None and spec.required_when.path == path
    )


def empty_value(spec: FieldSpec) -> Any:
    """Return the declared empty value for ``spec``."""

    if spec.kind is FieldKind.SCALAR:
        return ""
    if spec.kind in (FieldKind.LIST, FieldKind.RECORD_LIST):
        return []
    if spec.kind is FieldKind.RECORD:
        return {child.key: empty_value(child) for child in child_specs(spec.path)}
    if spec.kind is FieldKind.LIST_MAP:
        return {key: [] for key in spec.map_keys}
    return {key: "" for key in spec.map_keys}


def empty_document() -> dict[str, Any]:
    """Return a fresh document with every declared key set to its empty value."""

    return {spec.key: empty_value(spec) for spec in child_specs("")}


def empty_item(spec: FieldSpec) -> dict[str, Any]:
    """Return an empty sub-record for a ``record_list`` field."""

    return {item.key: empty_value(item) for item in spec.item_fields}


def get_path_value(document: Any, dotted_path: str) -> Any:
    """Return the value for ``dotted_path`` in ``document`` when present.

    Numeric segments index into lists, so ``products.0.name`` resolves the
    name of the first product.
    """

    if not dotted_path:
        return document
    target: Any = document
    for part in dotted_path.split("."):
        if isinstance(target, Mapping):
            if part not in target:
                return None
            target = target[part]
            continue
        if isinstance(target, list) and part.isdigit():
            index = int(part)
            if index >= len(target):
                return None
            target = target[index]
            continue
        return None
    return target


__all__ = [
    "COMPANY_TYPES",
    "COMPLIANCE_OPTIONS",
    "EMAIL_PATTERN",
    "FIELD_SPECS",
    "FieldKind",
    "FieldSpec",
    "INTEGRATION_CATEGORIES",
    "OTHER_SENTINEL",
    "RequiredWhen",
    "WEBSITE_PATTERN",
    "child_specs",
    "conditional_dependents",
    "empty_document",
    "empty_item",
    "empty_value",
    "get_field_spec",
    "get_path_value",
    "iter_field_specs",
    "kind_for",
]
