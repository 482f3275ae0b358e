"""GitHub Actions run context."""

import os
from collections.abc import Mapping

from pydantic import BaseModel, Field

REQUIRED_VARIABLES = "GITHUB_SHA, GITHUB_REF, GITHUB_REPOSITORY, GH_TOKEN/GITHUB_TOKEN"


class WorkflowContext(BaseModel):
    """Commit, ref and repository of the current Actions run."""

    sha: str = Field(..., description="Commit that triggered the run")
    ref: str = Field(..., description="Full ref, e.g. refs/heads/claude/feature")
    branch: str = Field(..., description="Ref without the refs/heads/ prefix")
    repository: str = Field(..., description="owner/name slug")
    token: str = Field(..., description="Token for gh and the REST API")

    @property
    def owner(self) -> str:
        return self.repository.split("/", 1)[0]

    @property
    def repo(self) -> str:
        return self.repository.split("/", 1)[-1]

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "WorkflowContext":
        """Read the context from the variables GitHub Actions sets.

        Raises:
            ValueError: If any required variable is missing
        """
        env = os.environ if environ is None else environ
        sha = env.get("GITHUB_SHA", "")
        ref = env.get("GITHUB_REF", "")
        repository = env.get("GITHUB_REPOSITORY", "")
        token = env.get("GH_TOKEN") or env.get("GITHUB_TOKEN", "")

        if not (sha and ref and repository and token):
            raise ValueError(f"Missing required environment variables: {REQUIRED_VARIABLES}")

        return cls(
            sha=sha,
            ref=ref,
            branch=ref.removeprefix("refs/heads/"),
            repository=repository,
            token=token,
        )
