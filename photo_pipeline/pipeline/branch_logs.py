"""Pipeline check that reads the logs CI committed back to the branch.

Workflow status comes from ``gh run list``. When the gh CLI is missing or
not authenticated the check degrades to analysing whatever is under
``ci-logs/<short-sha>/`` after pulling the branch.
"""

import json
import logging
import time
from collections.abc import Callable

from pydantic import BaseModel, Field, ValidationError

from ..github_client.models import WorkflowRun
from ..gitops.git import GitClient
from ..gitops.process import run_gh
from ..storage.manager import LogStore, short_sha
from ..utils.logging import log_section, log_success

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60
DEFAULT_POLL_INTERVAL = 5
RUN_LIST_FIELDS = "databaseId,name,status,conclusion,headSha,createdAt,url"


class BranchLogResult(BaseModel):
    """Outcome of a branch-log pipeline check."""

    success: bool
    duration: int = Field(..., description="Seconds spent checking")
    conclusion: str = Field(..., description="success or failure")
    workflow_runs: list[WorkflowRun] = Field(default_factory=list)
    log_files: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


class BranchLogChecker:
    """Waits for the current commit's runs, then inspects its committed logs."""

    def __init__(
        self,
        git: GitClient,
        store: LogStore,
        token: str | None = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.git = git
        self.store = store
        self.token = token
        self.poll_interval = poll_interval
        self._sleep = sleep
        self._clock = clock

    def get_workflow_runs(self, branch: str, sha: str) -> list[WorkflowRun]:
        """Runs on ``branch`` whose head commit is ``sha``.

        Returns an empty list when gh fails or prints something unexpected.
        """
        result = run_gh(
            ["run", "list", "--branch", branch, "--json", RUN_LIST_FIELDS],
            token=self.token,
            cwd=self.git.cwd,
        )
        if not result.success:
            logger.warning("gh CLI not available or failed: %s", result.stderr)
            return []

        try:
            raw_runs = json.loads(result.stdout or "[]")
            return [
                WorkflowRun(
                    id=raw["databaseId"],
                    name=raw["name"],
                    status=raw["status"],
                    conclusion=raw.get("conclusion") or None,
                    html_url=raw.get("url", ""),
                    head_sha=raw.get("headSha"),
                    head_branch=branch,
                    created_at=raw.get("createdAt"),
                )
                for raw in raw_runs
                if raw.get("headSha") == sha
            ]
        except (json.JSONDecodeError, KeyError, TypeError, ValidationError) as e:
            logger.warning("Cannot parse gh run list output: %s", e)
            return []

    def wait_for_completion(
        self,
        branch: str,
        sha: str,
        timeout: float = DEFAULT_TIMEOUT,
        skip_wait: bool = False,
    ) -> list[WorkflowRun]:
        """Poll until every run has completed.

        Raises:
            TimeoutError: If runs are still missing or unfinished after
                ``timeout`` seconds (never raised with ``skip_wait``)
        """
        start = self._clock()

        log_section(logger, "Checking Workflow Status")
        logger.info("Branch: %s", branch)
        logger.info("Commit: %s", short_sha(sha))
        if skip_wait:
            logger.info("Checking current status only (no waiting)")
        else:
            logger.info("Timeout: %ss", int(timeout))
        logger.info("")

        while True:
            elapsed = int(self._clock() - start)
            if elapsed > timeout and not skip_wait:
                logger.error("Timeout after %ss", int(timeout))
                raise TimeoutError("Workflow check timeout")

            runs = self.get_workflow_runs(branch, sha)

            if not runs:
                if skip_wait:
                    logger.warning(
                        "No workflow runs found for this commit (gh CLI may not be available)"
                    )
                    return []
                logger.info("[%ds] No workflow runs found yet, waiting...", elapsed)
                self._sleep(self.poll_interval)
                continue

            completed = sum(1 for run in runs if run.is_complete)
            in_progress = sum(1 for run in runs if run.status == "in_progress")
            queued = sum(1 for run in runs if run.status == "queued")
            logger.info(
                "[%ds] Workflows: %d completed, %d in progress, %d queued",
                elapsed,
                completed,
                in_progress,
                queued,
            )

            all_complete = completed == len(runs)
            if all_complete or skip_wait:
                if all_complete:
                    log_success(logger, "All workflows completed!")
                logger.info("")
                return runs

            self._sleep(self.poll_interval)

    def check(self, skip_wait: bool = False, timeout: float = DEFAULT_TIMEOUT) -> BranchLogResult:
        """Check the checked-out commit: run status plus committed log files.

        The check succeeds when every run (if any were found) concluded
        ``success`` and no error lines appear in the commit's logs.

        Raises:
            ProcessError: If the current branch or SHA cannot be read
            TimeoutError: See :meth:`wait_for_completion`
        """
        start = self._clock()
        log_section(logger, "Pipeline Status Checker")

        branch = self.git.current_branch()
        sha = self.git.latest_commit_sha()

        runs = self.wait_for_completion(branch, sha, timeout=timeout, skip_wait=skip_wait)
        if runs:
            self._show_run_summary(runs)

        log_section(logger, "Pulling Logs from Branch")
        if self.git.pull("origin", branch):
            log_success(logger, "Logs pulled successfully")

        log_files = self.store.find_log_files(sha)
        self._show_log_summary(log_files)

        errors = self.store.scan_errors(log_files)
        if errors:
            log_section(logger, "Errors Found in Logs")
            for error in errors:
                logger.error(error)

        all_success = all(run.conclusion == "success" for run in runs)
        duration = int(self._clock() - start)

        log_section(logger, "Final Result")
        if not runs:
            if errors:
                logger.warning("No workflow API data, but errors found in logs (%ds)", duration)
            else:
                logger.info("No workflow API data available, logs look clean (%ds)", duration)
        elif all_success and not errors:
            log_success(logger, "All workflows passed! (%ds)", duration)
        elif not all_success:
            logger.error("Some workflows failed! (%ds)", duration)
        else:
            logger.warning("Workflows passed but errors found in logs (%ds)", duration)

        return BranchLogResult(
            success=all_success and not errors,
            duration=duration,
            conclusion="success" if all_success else "failure",
            workflow_runs=runs,
            log_files=[str(path) for path in log_files],
            errors=errors,
        )

    def _show_run_summary(self, runs: list[WorkflowRun]) -> None:
        log_section(logger, "Workflow Run Summary")
        for run in runs:
            logger.info("%s %s", run.icon, run.name)
            logger.info("   Status: %s", run.status)
            logger.info("   Conclusion: %s", run.conclusion or "N/A")
            logger.info("   URL: %s", run.html_url)
            logger.info("")

    def _show_log_summary(self, log_files) -> None:
        log_section(logger, "Log Files Available")
        if not log_files:
            logger.warning("No log files found in %s/", self.store.base_path)
            return
        for summary in self.store.summarize(log_files):
            logger.info("  📄 %s", summary.path)
            logger.info("     %d lines, %.1f KB", summary.lines, summary.size_kb)
