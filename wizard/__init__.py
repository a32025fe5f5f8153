"""Vendor intake wizard: step registry, completion status and the controller."""
