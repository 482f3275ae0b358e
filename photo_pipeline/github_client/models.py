"""Pydantic models for GitHub data structures.

These models map to GitHub's REST API v3 response structures, trimmed to
the fields the upload and CI tooling reads.
API Reference: https://docs.github.com/en/rest
"""

from datetime import datetime

from pydantic import BaseModel, Field


class ContentUploadResult(BaseModel):
    """Result of creating or updating a file through the Contents API.

    API Reference: https://docs.github.com/en/rest/repos/contents
    """

    sha: str = Field("", description="Blob SHA of the stored file")
    url: str = Field("", description="Raw download URL of the file")
    html_url: str = Field("", description="URL of the file in the GitHub UI")
    commit_sha: str | None = Field(None, description="SHA of the created commit")


class RepositoryHealth(BaseModel):
    """Whether the configured token can see the target repository."""

    has_access: bool = Field(..., description="Repository is reachable")
    message: str = Field(..., description="Human-readable status message")


class WorkflowRun(BaseModel):
    """GitHub Actions workflow run.

    API Reference: https://docs.github.com/en/rest/actions/workflow-runs
    """

    id: int = Field(..., description="Unique run identifier")
    name: str = Field(..., description="Workflow name")
    status: str = Field(
        ..., description="queued, in_progress, waiting, requested or completed"
    )
    conclusion: str | None = Field(
        None, description="success, failure, cancelled, ... once completed"
    )
    html_url: str = Field("", description="Run URL in the GitHub UI")
    head_sha: str | None = Field(None, description="Commit the run belongs to")
    head_branch: str | None = Field(None, description="Branch the run belongs to")
    created_at: datetime | None = Field(None, description="Creation timestamp")
    updated_at: datetime | None = Field(None, description="Last update timestamp")

    @property
    def is_complete(self) -> bool:
        return self.status == "completed"

    @property
    def display_status(self) -> str:
        """Conclusion for finished runs, status otherwise."""
        if self.is_complete:
            return self.conclusion or "unknown"
        return self.status

    @property
    def icon(self) -> str:
        if self.conclusion == "success":
            return "✅"
        if self.conclusion == "failure":
            return "❌"
        if self.conclusion == "cancelled":
            return "🚫"
        if self.status == "in_progress":
            return "🔄"
        if self.status == "queued":
            return "⏳"
        return "❓"


class WorkflowJob(BaseModel):
    """Job inside a workflow run.

    API Reference: https://docs.github.com/en/rest/actions/workflow-jobs
    """

    id: int = Field(..., description="Unique job identifier")
    name: str = Field(..., description="Job name")
    status: str = Field(..., description="Job status")
    conclusion: str | None = Field(None, description="Job conclusion")
    started_at: datetime | None = Field(None, description="Start timestamp")
    completed_at: datetime | None = Field(None, description="Completion timestamp")


class WorkflowArtifact(BaseModel):
    """Artifact uploaded by a workflow run.

    API Reference: https://docs.github.com/en/rest/actions/artifacts
    """

    id: int = Field(..., description="Unique artifact identifier")
    name: str = Field(..., description="Artifact name")
    size_in_bytes: int = Field(0, description="Size of the zipped artifact")
    expired: bool = Field(False, description="Artifact has expired")

    @property
    def size_kb(self) -> float:
        return self.size_in_bytes / 1024


class RepositorySettings(BaseModel):
    """Merge-related repository settings."""

    allow_auto_merge: bool = False
    allow_merge_commit: bool = True
    allow_squash_merge: bool = True
    allow_rebase_merge: bool = True


class StatusCheck(BaseModel):
    """One entry of a pull request's status check rollup."""

    name: str = Field(..., description="Check run name or status context")
    state: str = Field(..., description="Conclusion, state or status of the check")


class PullRequestDetails(BaseModel):
    """Pull request state relevant to auto-merge.

    API Reference: https://docs.github.com/en/rest/pulls/pulls
    """

    number: int = Field(..., description="Pull request number")
    title: str = Field(..., description="Pull request title")
    state: str = Field(..., description="OPEN, CLOSED or MERGED")
    url: str = Field("", description="Pull request URL")
    mergeable: bool | None = Field(None, description="GitHub's mergeability verdict")
    merge_state_status: str | None = Field(
        None, description="clean, blocked, behind, dirty, unstable, ..."
    )
    auto_merge_enabled: bool = Field(False, description="Auto-merge is requested")
    status_checks: list[StatusCheck] = Field(default_factory=list)

    @property
    def is_merged(self) -> bool:
        return self.state == "MERGED"


class CreatedPullRequest(BaseModel):
    """Pull request returned by a create call."""

    number: int
    url: str
