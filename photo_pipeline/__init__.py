"""Photo upload and CI pipeline tooling for GitHub repositories."""

__version__ = "0.1.0"
