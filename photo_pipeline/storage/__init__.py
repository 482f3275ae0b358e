"""Per-commit CI log storage."""
