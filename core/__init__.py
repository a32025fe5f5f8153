"""Document schema, merge engine and validation for vendor intake."""
