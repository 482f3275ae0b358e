"""GitHub API client using PyGitHub."""

import logging
import os
import re
import time
from pathlib import Path

import httpx
from github import Github
from github.GithubException import GithubException, UnknownObjectException
from github.PullRequest import PullRequest
from github.Repository import Repository
from github.WorkflowRun import WorkflowRun as GithubWorkflowRun

from .models import (
    ContentUploadResult,
    CreatedPullRequest,
    PullRequestDetails,
    RepositoryHealth,
    RepositorySettings,
    StatusCheck,
    WorkflowArtifact,
    WorkflowJob,
    WorkflowRun,
)

logger = logging.getLogger(__name__)

API_BASE = "https://api.github.com"
USER_AGENT = "photo-pipeline/0.1.0"
MERGE_METHODS = {"merge": "MERGE", "squash": "SQUASH", "rebase": "REBASE"}

_REPO_URL_PATTERNS = [
    re.compile(r"github\.com/([^/]+)/([^/]+?)(?:\.git)?/?$"),
    re.compile(r"github\.com:([^/]+)/([^/]+?)(?:\.git)?/?$"),
    re.compile(r"/git/([^/]+)/([^/]+?)(?:\.git)?/?$"),
]


class AuthRequiredError(RuntimeError):
    """GitHub refused a download because the token lacks access."""


def parse_repo_url(url: str) -> tuple[str, str]:
    """Extract ``(owner, repo)`` from a git remote URL.

    Supports ``https://github.com/owner/repo.git``,
    ``git@github.com:owner/repo.git`` and local proxies of the form
    ``http://proxy@127.0.0.1:1234/git/owner/repo``.

    Raises:
        ValueError: If the URL matches none of the known shapes
    """
    cleaned = url.strip()
    for pattern in _REPO_URL_PATTERNS:
        match = pattern.search(cleaned)
        if match:
            return match.group(1), match.group(2)
    raise ValueError(f"Could not parse repository info from URL: {url}")


class GitHubClient:
    """GitHub API client with rate limiting and authentication."""

    def __init__(self, token: str | None = None, check_rate_limit: bool = True):
        """Initialize GitHub client with authentication.

        Args:
            token: GitHub personal access token. If None, reads from
                GITHUB_TOKEN env var.
            check_rate_limit: Query the rate limit right away
        """
        self.token = token or os.getenv("GITHUB_TOKEN")
        if not self.token:
            raise ValueError(
                "GitHub token is required. Set GITHUB_TOKEN environment variable."
            )

        self.github = Github(self.token)
        if check_rate_limit:
            self._check_rate_limit()

    def _check_rate_limit(self) -> None:
        """Check rate limit and sleep if necessary."""
        try:
            rate_limit = self.github.get_rate_limit()
            remaining = rate_limit.core.remaining

            logger.debug("GitHub API rate limit: %s requests remaining", remaining)

            if remaining < 10:
                reset_time = rate_limit.core.reset.timestamp()
                sleep_time = max(reset_time - time.time() + 1, 0)
                logger.warning(
                    "Rate limit low, sleeping for %.1f seconds...", sleep_time
                )
                time.sleep(sleep_time)

        except Exception as e:
            logger.warning("Could not check rate limit: %s", e)

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
            "User-Agent": USER_AGENT,
        }

    def get_repository(self, owner: str, repo: str) -> Repository:
        """Get repository object."""
        try:
            return self.github.get_repo(f"{owner}/{repo}")
        except UnknownObjectException:
            raise ValueError(f"Repository {owner}/{repo} not found")

    # Contents API

    def upload_file(
        self,
        owner: str,
        repo: str,
        path: str,
        content: bytes,
        message: str,
        branch: str,
    ) -> ContentUploadResult:
        """Create or update a file with a single commit.

        PyGitHub base64-encodes ``content`` for the Contents API PUT.

        Args:
            owner: Repository owner
            repo: Repository name
            path: File path inside the repository
            content: Raw file bytes
            message: Commit message
            branch: Target branch

        Returns:
            ContentUploadResult with blob SHA and URLs

        Raises:
            RuntimeError: If GitHub rejects the request
        """
        repository = self.get_repository(owner, repo)

        try:
            existing_sha = self._existing_blob_sha(repository, path, branch)
            if existing_sha:
                logger.info("File %s exists on %s, updating it", path, branch)
                response = repository.update_file(
                    path, message, content, existing_sha, branch=branch
                )
            else:
                response = repository.create_file(path, message, content, branch=branch)
        except GithubException as e:
            raise RuntimeError(f"GitHub API error: {e.data or e.status}") from e

        stored = response["content"]
        commit = response.get("commit")
        return ContentUploadResult(
            sha=stored.sha or "",
            url=stored.download_url or "",
            html_url=stored.html_url or "",
            commit_sha=commit.sha if commit is not None else None,
        )

    def _existing_blob_sha(self, repository: Repository, path: str, branch: str) -> str | None:
        try:
            existing = repository.get_contents(path, ref=branch)
        except UnknownObjectException:
            return None
        if isinstance(existing, list):
            raise RuntimeError(f"Path {path} is a directory")
        return existing.sha

    def file_exists(self, owner: str, repo: str, path: str, branch: str) -> bool:
        """Whether ``path`` exists on ``branch``. Errors other than 404 propagate."""
        repository = self.get_repository(owner, repo)
        try:
            repository.get_contents(path, ref=branch)
            return True
        except UnknownObjectException:
            return False

    def health_check(self, owner: str, repo: str) -> RepositoryHealth:
        """Verify the token can read the repository."""
        try:
            self.github.get_repo(f"{owner}/{repo}")
            return RepositoryHealth(has_access=True, message="GitHub API access verified")
        except Exception as e:
            return RepositoryHealth(has_access=False, message=f"GitHub API error: {e}")

    # Actions API

    def _convert_run(self, run: GithubWorkflowRun) -> WorkflowRun:
        return WorkflowRun(
            id=run.id,
            name=run.name or f"run {run.id}",
            status=run.status,
            conclusion=run.conclusion,
            html_url=run.html_url,
            head_sha=run.head_sha,
            head_branch=run.head_branch,
            created_at=run.created_at,
            updated_at=run.updated_at,
        )

    def list_workflow_runs(self, owner: str, repo: str, head_sha: str) -> list[WorkflowRun]:
        """All workflow runs triggered for ``head_sha``."""
        repository = self.get_repository(owner, repo)
        runs = repository.get_workflow_runs(head_sha=head_sha)
        return [self._convert_run(run) for run in runs]

    def list_workflow_jobs(self, owner: str, repo: str, run_id: int) -> list[WorkflowJob]:
        repository = self.get_repository(owner, repo)
        run = repository.get_workflow_run(run_id)
        return [
            WorkflowJob(
                id=job.id,
                name=job.name,
                status=job.status,
                conclusion=job.conclusion,
                started_at=job.started_at,
                completed_at=job.completed_at,
            )
            for job in run.jobs()
        ]

    def list_artifacts(self, owner: str, repo: str, run_id: int) -> list[WorkflowArtifact]:
        repository = self.get_repository(owner, repo)
        run = repository.get_workflow_run(run_id)
        return [
            WorkflowArtifact(
                id=artifact.id,
                name=artifact.name,
                size_in_bytes=artifact.size_in_bytes,
                expired=artifact.expired,
            )
            for artifact in run.get_artifacts()
        ]

    def _download(self, url: str, dest: Path) -> Path:
        """Stream ``url`` to ``dest`` following GitHub's storage redirect."""
        dest.parent.mkdir(parents=True, exist_ok=True)
        with httpx.Client(follow_redirects=True, timeout=60.0) as client:
            with client.stream("GET", url, headers=self._headers()) as response:
                if response.status_code in (401, 403):
                    raise AuthRequiredError(
                        f"Authentication required to download {url} "
                        f"(HTTP {response.status_code})"
                    )
                response.raise_for_status()
                with open(dest, "wb") as f:
                    for chunk in response.iter_bytes():
                        f.write(chunk)
        return dest

    def download_run_logs(self, owner: str, repo: str, run_id: int, dest: Path) -> Path:
        """Download the zipped logs of a workflow run to ``dest``.

        Raises:
            AuthRequiredError: If GitHub answers 401/403
            httpx.HTTPStatusError: For other HTTP failures
        """
        url = f"{API_BASE}/repos/{owner}/{repo}/actions/runs/{run_id}/logs"
        return self._download(url, dest)

    def download_artifact(self, owner: str, repo: str, artifact_id: int, dest: Path) -> Path:
        url = f"{API_BASE}/repos/{owner}/{repo}/actions/artifacts/{artifact_id}/zip"
        return self._download(url, dest)

    # Pull requests

    def get_repository_settings(self, owner: str, repo: str) -> RepositorySettings | None:
        try:
            repository = self.get_repository(owner, repo)
            return RepositorySettings(
                allow_auto_merge=bool(repository.allow_auto_merge),
                allow_merge_commit=bool(repository.allow_merge_commit),
                allow_squash_merge=bool(repository.allow_squash_merge),
                allow_rebase_merge=bool(repository.allow_rebase_merge),
            )
        except Exception as e:
            logger.error("Failed to get repository settings: %s", e)
            return None

    def find_pull_request(self, owner: str, repo: str, branch: str) -> int | None:
        """Number of the open pull request whose head is ``branch``, if any."""
        try:
            repository = self.get_repository(owner, repo)
            pulls = repository.get_pulls(state="open", head=f"{owner}:{branch}")
            for pull in pulls:
                logger.info("Found existing PR #%d for branch %s", pull.number, branch)
                return pull.number
        except Exception as e:
            logger.error("Failed to check for existing PR: %s", e)
            return None

        logger.info("No existing PR found for branch %s", branch)
        return None

    def _status_checks(self, repository: Repository, pull: PullRequest) -> list[StatusCheck]:
        commit = repository.get_commit(pull.head.sha)
        checks = [
            StatusCheck(name=run.name, state=run.conclusion or run.status)
            for run in commit.get_check_runs()
        ]
        checks.extend(
            StatusCheck(name=status.context, state=status.state)
            for status in commit.get_combined_status().statuses
        )
        return checks

    def get_pull_request_details(
        self, owner: str, repo: str, number: int
    ) -> PullRequestDetails | None:
        try:
            repository = self.get_repository(owner, repo)
            pull = repository.get_pull(number)
            state = "MERGED" if pull.merged else pull.state.upper()
            try:
                checks = self._status_checks(repository, pull)
            except GithubException as e:
                logger.debug("Could not load status checks for #%d: %s", number, e)
                checks = []

            details = PullRequestDetails(
                number=pull.number,
                title=pull.title,
                state=state,
                url=pull.html_url,
                mergeable=pull.mergeable,
                merge_state_status=pull.mergeable_state,
                auto_merge_enabled=pull.raw_data.get("auto_merge") is not None,
                status_checks=checks,
            )
            logger.debug("PR #%d details: %s", number, details.model_dump_json())
            return details
        except Exception as e:
            logger.error("Failed to get PR details: %s", e)
            return None

    def create_pull_request(
        self, owner: str, repo: str, title: str, body: str, base: str, head: str
    ) -> CreatedPullRequest | None:
        try:
            logger.info('Creating PR: "%s"', title)
            logger.debug("Base: %s, Head: %s", base, head)
            repository = self.get_repository(owner, repo)
            pull = repository.create_pull(base=base, head=head, title=title, body=body)
            return CreatedPullRequest(number=pull.number, url=pull.html_url)
        except Exception as e:
            logger.error("Failed to create PR: %s", e)
            return None

    def enable_auto_merge(
        self, owner: str, repo: str, number: int, merge_method: str = "merge"
    ) -> bool:
        """Request auto-merge for a pull request.

        Args:
            merge_method: merge, squash or rebase

        Returns:
            True if GitHub accepted the request
        """
        if merge_method not in MERGE_METHODS:
            raise ValueError(
                f"Invalid merge method '{merge_method}'. "
                f"Expected one of: {', '.join(MERGE_METHODS)}"
            )
        try:
            logger.info(
                "Enabling auto-merge for PR #%d with method: %s", number, merge_method
            )
            pull = self.get_repository(owner, repo).get_pull(number)
            pull.enable_automerge(merge_method=MERGE_METHODS[merge_method])
            return True
        except Exception as e:
            logger.warning("Auto-merge request failed: %s", e)
            return False
