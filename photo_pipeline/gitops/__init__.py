"""Local git and gh CLI wrappers."""
