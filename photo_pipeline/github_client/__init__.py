"""GitHub client package for API interaction."""

from .client import AuthRequiredError, GitHubClient, parse_repo_url
from .models import (
    ContentUploadResult,
    PullRequestDetails,
    WorkflowArtifact,
    WorkflowJob,
    WorkflowRun,
)

__all__ = [
    "AuthRequiredError",
    "GitHubClient",
    "parse_repo_url",
    "ContentUploadResult",
    "PullRequestDetails",
    "WorkflowArtifact",
    "WorkflowJob",
    "WorkflowRun",
]
