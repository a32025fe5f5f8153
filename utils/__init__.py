"""Utility helpers for the vendor intake controller."""
