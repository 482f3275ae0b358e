"""Pipeline status checks against the GitHub Actions REST API.

The checker polls the workflow runs triggered by one commit until they all
finish (or a timeout passes) and classifies the outcome. For failed runs it
downloads and extracts the run logs into ``ci-logs/<short-sha>/``, pulls the
key error lines out of them and fetches the run's artifacts into
``artifacts/<short-sha>/run-<id>/``.
"""

import logging
import time
from collections.abc import Callable
from pathlib import Path

from pydantic import BaseModel, Field

from ..github_client.client import AuthRequiredError, GitHubClient
from ..github_client.models import WorkflowRun
from ..storage.manager import LogStore, extract_errors_with_context, extract_zip, short_sha
from ..utils.logging import log_section, log_subsection, log_success

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 600
DEFAULT_POLL_INTERVAL = 10

FAILED_CONCLUSIONS = frozenset({"failure", "timed_out", "startup_failure"})
PASSED_CONCLUSIONS = frozenset({"success", "skipped", "neutral"})


class CheckResult(BaseModel):
    """Outcome of a pipeline check."""

    success: bool
    duration: int = Field(..., description="Seconds spent checking")
    conclusion: str = Field(
        ..., description="success, failure, cancelled, pending, no_runs or unknown"
    )
    workflow_runs: list[WorkflowRun] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    log_errors: list[str] = Field(
        default_factory=list, description="Error excerpts found in downloaded logs"
    )
    logs_dirs: list[str] = Field(default_factory=list)
    artifact_downloaded: bool = False


class PipelineChecker:
    """Polls workflow runs for a commit and gathers diagnostics on failure."""

    def __init__(
        self,
        client: GitHubClient,
        owner: str,
        repo: str,
        store: LogStore | None = None,
        artifacts_dir: Path | str = "artifacts",
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize pipeline checker.

        Args:
            client: Authenticated GitHub client
            owner: Repository owner
            repo: Repository name
            store: Where downloaded logs go (defaults to ./ci-logs)
            artifacts_dir: Where downloaded artifacts go
            poll_interval: Seconds between polls
            sleep: Sleep function, replaceable in tests
            clock: Monotonic clock in seconds, replaceable in tests
        """
        self.client = client
        self.owner = owner
        self.repo = repo
        self.store = store or LogStore()
        self.artifacts_dir = Path(artifacts_dir)
        self.poll_interval = poll_interval
        self._sleep = sleep
        self._clock = clock

    def wait_for_workflows(
        self, sha: str, timeout: float = DEFAULT_TIMEOUT, skip_wait: bool = False
    ) -> list[WorkflowRun]:
        """Poll until every run for ``sha`` has completed.

        Returns early with whatever is known when ``skip_wait`` is set or the
        timeout passes; an empty list means no runs were found at all.
        """
        start = self._clock()

        log_section(logger, "Waiting for Workflow Runs")
        logger.info("Commit: %s", short_sha(sha))
        logger.info("Repository: %s/%s", self.owner, self.repo)
        if skip_wait:
            logger.info("Checking current status only (no waiting)")
        else:
            logger.info("Timeout: %ss", int(timeout))
            logger.info("Poll interval: %ss", int(self.poll_interval))
        logger.info("")

        while True:
            elapsed = int(self._clock() - start)
            runs = self.client.list_workflow_runs(self.owner, self.repo, sha)

            if not runs:
                logger.warning("No workflow runs found for this commit yet")
                if skip_wait or elapsed >= timeout:
                    return []
                logger.info("[%ds] Waiting for workflows to start...", elapsed)
                self._sleep(self.poll_interval)
                continue

            pending = [run for run in runs if not run.is_complete]
            completed = len(runs) - len(pending)
            logger.info("[%ds] Workflows: %d/%d completed", elapsed, completed, len(runs))
            for run in runs:
                logger.info("  %s %s: %s", run.icon, run.name, run.display_status)

            if not pending:
                log_success(logger, "All workflows completed!")
                return runs

            if skip_wait:
                logger.warning("%d workflow(s) still in progress", len(pending))
                return runs

            if elapsed >= timeout:
                logger.warning(
                    "Timeout after %ds - %d workflow(s) still in progress",
                    int(timeout),
                    len(pending),
                )
                return runs

            self._sleep(self.poll_interval)

    def check(
        self,
        sha: str,
        branch: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        skip_wait: bool = False,
    ) -> CheckResult:
        """Wait for the commit's workflows and classify the result."""
        start = self._clock()
        log_section(logger, "Pipeline Status Checker (GitHub API)")
        if branch:
            logger.info("Branch: %s", branch)

        runs = self.wait_for_workflows(sha, timeout=timeout, skip_wait=skip_wait)

        def duration() -> int:
            return int(self._clock() - start)

        if not runs:
            logger.warning("No workflow runs found")
            return CheckResult(
                success=False,
                duration=duration(),
                conclusion="no_runs",
                errors=["No workflow runs found for this commit"],
            )

        failed = [run for run in runs if run.conclusion in FAILED_CONCLUSIONS]
        cancelled = [run for run in runs if run.conclusion == "cancelled"]
        in_progress = [run for run in runs if not run.is_complete]

        log_section(logger, "Final Result")

        if all(run.is_complete and run.conclusion in PASSED_CONCLUSIONS for run in runs):
            log_success(logger, "✅ All workflows passed! (%ds)", duration())
            return CheckResult(
                success=True, duration=duration(), conclusion="success", workflow_runs=runs
            )

        if failed:
            logger.error("❌ %d workflow(s) failed (%ds)", len(failed), duration())
            result = CheckResult(
                success=False,
                duration=duration(),
                conclusion="failure",
                workflow_runs=runs,
                errors=[f"Workflow '{run.name}' failed" for run in failed],
            )
            for run in failed:
                self._collect_failure_diagnostics(run, sha, result)

            if result.logs_dirs:
                log_section(logger, "Logs Location")
                logger.info("Downloaded logs are available at:")
                for logs_dir in result.logs_dirs:
                    logger.info("  📁 %s/", logs_dir)
            result.duration = duration()
            return result

        if cancelled:
            logger.warning("🚫 %d workflow(s) cancelled (%ds)", len(cancelled), duration())
            return CheckResult(
                success=False,
                duration=duration(),
                conclusion="cancelled",
                workflow_runs=runs,
                errors=[f"Workflow '{run.name}' was cancelled" for run in cancelled],
            )

        if in_progress:
            logger.warning(
                "⏱️  %d workflow(s) still in progress (%ds)", len(in_progress), duration()
            )
            logger.info("In progress: %s", ", ".join(run.name for run in in_progress))
            return CheckResult(
                success=False,
                duration=duration(),
                conclusion="pending",
                workflow_runs=runs,
                errors=[f"Workflow '{run.name}' did not complete" for run in in_progress],
            )

        # Completed with e.g. action_required or stale
        return CheckResult(
            success=False,
            duration=duration(),
            conclusion="unknown",
            workflow_runs=runs,
            errors=["Unknown pipeline state"],
        )

    def _collect_failure_diagnostics(self, run: WorkflowRun, sha: str, result: CheckResult) -> None:
        self._show_failed_jobs(run)

        logs_dir = self.download_logs(run, sha)
        if logs_dir is not None:
            result.logs_dirs.append(str(logs_dir))
            errors = extract_errors_with_context(logs_dir)
            if errors:
                log_subsection(logger, "Key Errors Found")
                for error in errors:
                    logger.error(error)
                result.log_errors.extend(errors)

        if self.download_artifacts(run, sha):
            result.artifact_downloaded = True

    def _show_failed_jobs(self, run: WorkflowRun) -> None:
        log_subsection(logger, f"Failed Workflow: {run.name}")
        logger.info("URL: %s", run.html_url)
        logger.info("Status: %s", run.status)
        logger.info("Conclusion: %s", run.conclusion)

        try:
            jobs = self.client.list_workflow_jobs(self.owner, self.repo, run.id)
        except Exception as e:
            logger.warning("Could not fetch job details: %s", e)
            return

        failed_jobs = [job for job in jobs if job.conclusion == "failure"]
        if failed_jobs:
            logger.info("Failed jobs:")
            for job in failed_jobs:
                logger.error("  ❌ %s", job.name)

    def download_logs(self, run: WorkflowRun, sha: str) -> Path | None:
        """Download a run's logs and extract them to ``<commit-dir>/run-<id>/``.

        Returns:
            The extraction directory, or None if the logs are unavailable
        """
        logger.info("Downloading workflow logs...")
        commit_dir = self.store.ensure_commit_dir(sha)
        zip_path = commit_dir / f"logs-{run.id}.zip"
        logs_dir = commit_dir / f"run-{run.id}"

        try:
            self.client.download_run_logs(self.owner, self.repo, run.id, zip_path)
        except AuthRequiredError:
            logger.warning("Cannot download logs: Authentication required")
            logger.warning(
                "Logs can be viewed manually at: https://github.com/%s/%s/actions/runs/%d",
                self.owner,
                self.repo,
                run.id,
            )
            return None
        except Exception as e:
            logger.error("Failed to download logs: %s", e)
            return None

        log_success(logger, "Logs saved to: %s", zip_path)
        try:
            extract_zip(zip_path, logs_dir)
            log_success(logger, "Logs extracted to: %s", logs_dir)
        except Exception as e:
            logger.warning("Could not extract logs: %s", e)
        return logs_dir

    def download_artifacts(self, run: WorkflowRun, sha: str) -> bool:
        """Download every artifact of ``run`` into ``artifacts/<short-sha>/run-<id>/``.

        Returns:
            True if at least one artifact was downloaded
        """
        try:
            artifacts = self.client.list_artifacts(self.owner, self.repo, run.id)
        except Exception as e:
            logger.warning("Could not fetch artifacts: %s", e)
            return False

        if not artifacts:
            return False

        logger.info("Found %d artifact(s):", len(artifacts))
        downloaded = False
        target_dir = self.artifacts_dir / short_sha(sha) / f"run-{run.id}"
        for artifact in artifacts:
            logger.info("  📦 %s (%.1f KB)", artifact.name, artifact.size_kb)
            logger.info("Downloading artifact: %s", artifact.name)
            dest = target_dir / f"{artifact.name}.zip"
            try:
                self.client.download_artifact(self.owner, self.repo, artifact.id, dest)
            except AuthRequiredError:
                logger.warning("Cannot download artifacts: Authentication required")
                logger.warning(
                    "Artifacts can be downloaded manually from: https://github.com/%s/%s/actions",
                    self.owner,
                    self.repo,
                )
                continue
            except Exception as e:
                logger.error("Failed to download artifact: %s", e)
                continue
            log_success(logger, "Saved to: %s", dest)
            downloaded = True
        return downloaded
