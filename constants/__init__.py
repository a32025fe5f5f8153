"""Shared constants for session keys and document paths."""
