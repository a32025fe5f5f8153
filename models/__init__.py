"""Pydantic models for the vendor intake document."""

from .vendor_profile import Location, PrimaryContact, Product, VendorProfile

__all__ = ["Location", "PrimaryContact", "Product", "VendorProfile"]
