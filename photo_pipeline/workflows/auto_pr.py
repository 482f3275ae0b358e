"""Auto PR workflow for agent branches.

Runs on every push to a ``claude/**`` branch:

1. Logs to ``ci-logs/<short-sha>/auto-pr.log`` and prunes older commit logs.
2. Deletes other prefixed branches that have nothing left to merge.
3. Deletes the pushed branch itself when it has no commits ahead of base,
   or when its pull request has already been merged.
4. Otherwise opens a pull request (or reuses the open one) and requests
   auto-merge, then reports the PR's final state and status checks.

A pull request that cannot be created is not an error for the run: the
outcome records it so the logs can still be pushed afterwards.
"""

import logging
from datetime import UTC, datetime

from pydantic import BaseModel, Field

from ..github_client.client import GitHubClient
from ..github_client.models import PullRequestDetails
from ..gitops.git import GitClient
from ..storage.manager import LogStore
from ..utils.logging import add_file_handler, log_section, log_subsection, log_success
from .cleanup_branches import DEFAULT_BRANCH_PREFIX, BranchCleanup
from .context import WorkflowContext

logger = logging.getLogger(__name__)

LOG_FILE_NAME = "auto-pr.log"
AUTO_MERGE_FOOTER = "**Auto-merge**: This PR will automatically merge when all checks pass."


class AutoPROutcome(BaseModel):
    """What the auto PR workflow did."""

    action: str = Field(
        ...,
        description=(
            "branch_deleted, merged_branch_deleted, pr_created, pr_exists or no_pr"
        ),
    )
    pr_number: int | None = None
    pr_url: str | None = None
    auto_merge_enabled: bool = False
    branch_deleted: bool = False
    stale_branches_deleted: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    log_file: str | None = None


def build_pr_body(commit_message: str, commit_log: list[str], prefix: str = DEFAULT_BRANCH_PREFIX) -> str:
    """Markdown body for an automatically created pull request."""
    parts = [
        "## Automated PR",
        "",
        f"This PR was automatically created from a {prefix}** branch.",
        "",
        "### Changes",
    ]
    if commit_log:
        parts += [*commit_log, ""]
    else:
        parts += [f"- {commit_message}", ""]
    parts += ["---", AUTO_MERGE_FOOTER]
    return "\n".join(parts)


class AutoPRWorkflow:
    """Creates and auto-merges the pull request for the pushed branch."""

    def __init__(
        self,
        ctx: WorkflowContext,
        git: GitClient,
        github: GitHubClient,
        store: LogStore,
        base: str = "main",
        branch_prefix: str = DEFAULT_BRANCH_PREFIX,
        merge_method: str = "merge",
        write_log_file: bool = True,
    ):
        """Initialize the workflow.

        Args:
            ctx: Actions run context
            git: Git client for the checked-out repository
            github: Authenticated GitHub client
            store: Log directory manager
            base: Branch pull requests target
            branch_prefix: Branches subject to stale-branch cleanup
            merge_method: merge, squash or rebase
            write_log_file: Mirror log records into ``<commit-dir>/auto-pr.log``
        """
        self.ctx = ctx
        self.git = git
        self.github = github
        self.store = store
        self.base = base
        self.branch_prefix = branch_prefix
        self.merge_method = merge_method
        self.write_log_file = write_log_file

    @property
    def remote_base(self) -> str:
        return f"origin/{self.base}"

    def run(self) -> AutoPROutcome:
        """Execute the workflow.

        Raises:
            ProcessError: If a required git command fails (e.g. fetching base)
        """
        commit_dir = self.store.ensure_commit_dir(self.ctx.sha)
        log_file = add_file_handler(commit_dir / LOG_FILE_NAME) if self.write_log_file else None

        log_section(logger, "Auto PR Workflow Started")
        logger.info("Timestamp: %s", datetime.now(UTC).isoformat())
        logger.info("Commit: %s", self.ctx.sha)
        logger.info("")

        self.store.cleanup_old_logs(self.ctx.sha)

        log_section(logger, "Cleaning Up Stale Branches")
        stale_deleted = self._cleanup_stale_branches()

        log_section(logger, "Branch Information")
        logger.info("Branch: %s", self.ctx.branch)
        logger.info("Ref: %s", self.ctx.ref)

        self._show_repository_settings()

        outcome = self._process_branch()
        outcome.stale_branches_deleted = stale_deleted
        outcome.log_file = str(log_file) if log_file else None

        if outcome.errors:
            log_section(logger, "Workflow Complete (with errors)")
        else:
            log_section(logger, "Workflow Complete")
        return outcome

    def _cleanup_stale_branches(self) -> list[str]:
        cleanup = BranchCleanup(self.git, base=self.base, prefix=self.branch_prefix)
        try:
            report = cleanup.run(fetch=False, exclude=[self.ctx.branch])
        except Exception as e:
            logger.warning("Branch cleanup failed: %s", e)
            return []
        logger.info(
            "Cleanup complete: %d deleted, %d kept", len(report.deleted), len(report.kept)
        )
        return report.deleted

    def _show_repository_settings(self) -> None:
        log_section(logger, "Checking Repository Settings")
        settings = self.github.get_repository_settings(self.ctx.owner, self.ctx.repo)
        if settings:
            logger.info("Auto-merge allowed: %s", settings.allow_auto_merge)
            logger.info("Merge commit allowed: %s", settings.allow_merge_commit)
            logger.info("Squash merge allowed: %s", settings.allow_squash_merge)
            logger.info("Rebase merge allowed: %s", settings.allow_rebase_merge)

    def _process_branch(self) -> AutoPROutcome:
        log_section(logger, "Checking Branch Status")
        self.git.fetch("origin", self.base)

        ahead = self.git.commits_ahead(self.remote_base, "HEAD")
        if ahead < 0:
            logger.error(
                "Could not determine commits ahead of %s, leaving branch untouched", self.base
            )
            return AutoPROutcome(
                action="no_pr", errors=[f"Could not determine commits ahead of {self.base}"]
            )
        if ahead == 0:
            return self._delete_finished_branch()

        logger.info("Branch has commits ahead of %s", self.base)

        log_section(logger, "Checking for Existing PR")
        pr_number = self.github.find_pull_request(self.ctx.owner, self.ctx.repo, self.ctx.branch)

        if pr_number:
            logger.info("PR #%d already exists for branch %s", pr_number, self.ctx.branch)
            log_subsection(logger, "Existing PR Details")
            details = self.github.get_pull_request_details(self.ctx.owner, self.ctx.repo, pr_number)
            if details:
                self._show_pr_details(details)
                if details.is_merged:
                    log_subsection(logger, "Cleaning Up Merged Branch")
                    deleted = self._delete_current_branch("Merged branch deleted successfully")
                    return AutoPROutcome(
                        action="merged_branch_deleted",
                        pr_number=pr_number,
                        pr_url=details.url,
                        branch_deleted=deleted,
                    )
            outcome = AutoPROutcome(action="pr_exists", pr_number=pr_number)
        else:
            outcome = self._create_pull_request()
            if outcome.pr_number is None:
                return outcome

        self._enable_auto_merge(outcome)
        self._show_final_status(outcome)
        return outcome

    def _delete_finished_branch(self) -> AutoPROutcome:
        logger.warning("Branch has no commits ahead of %s", self.base)

        pr_number = self.github.find_pull_request(self.ctx.owner, self.ctx.repo, self.ctx.branch)
        if pr_number:
            details = self.github.get_pull_request_details(self.ctx.owner, self.ctx.repo, pr_number)
            if details and details.is_merged:
                logger.info("PR #%d is already merged, deleting branch", pr_number)
            else:
                logger.info("Branch is up-to-date with %s, deleting branch", self.base)
        else:
            logger.info("No commits to create PR, deleting branch")

        deleted = self._delete_current_branch("Branch deleted successfully")
        return AutoPROutcome(action="branch_deleted", pr_number=pr_number, branch_deleted=deleted)

    def _delete_current_branch(self, success_message: str) -> bool:
        if self.git.delete_branch("origin", self.ctx.branch):
            log_success(logger, success_message)
            return True
        logger.warning("Branch deletion failed, but continuing")
        return False

    def _create_pull_request(self) -> AutoPROutcome:
        logger.info("No existing PR found. Creating new PR...")

        commit_message = self.git.latest_commit_message()
        logger.info("Commit message: %s", commit_message)
        commit_log = self.git.commit_log(self.remote_base, "HEAD", "oneline")
        body = build_pr_body(commit_message, commit_log, self.branch_prefix)

        log_subsection(logger, "Creating PR")
        created = self.github.create_pull_request(
            self.ctx.owner, self.ctx.repo, commit_message, body, self.base, self.ctx.branch
        )
        if created:
            log_success(logger, "PR created: %s", created.url)
            logger.info("PR Number: %d", created.number)
            return AutoPROutcome(action="pr_created", pr_number=created.number, pr_url=created.url)

        logger.error("Failed to create PR")
        logger.info("Attempting to find PR another way...")
        pr_number = self.github.find_pull_request(self.ctx.owner, self.ctx.repo, self.ctx.branch)
        if pr_number:
            return AutoPROutcome(action="pr_exists", pr_number=pr_number)

        logger.error("Could not find or create PR. Workflow cannot continue.")
        return AutoPROutcome(action="no_pr", errors=["Could not find or create PR"])

    def _enable_auto_merge(self, outcome: AutoPROutcome) -> None:
        log_section(logger, "Enabling Auto-Merge")
        logger.info("Attempting to enable auto-merge for PR #%d...", outcome.pr_number)
        if self.github.enable_auto_merge(
            self.ctx.owner, self.ctx.repo, outcome.pr_number, self.merge_method
        ):
            log_success(logger, "Auto-merge enabled successfully")
            outcome.auto_merge_enabled = True
        else:
            logger.warning("Auto-merge command failed")

    def _show_final_status(self, outcome: AutoPROutcome) -> None:
        log_section(logger, "Final PR Status")
        details = self.github.get_pull_request_details(
            self.ctx.owner, self.ctx.repo, outcome.pr_number
        )
        if not details:
            return
        outcome.pr_url = outcome.pr_url or details.url
        self._show_pr_details(details)
        if details.status_checks:
            log_subsection(logger, "Status Checks")
            for check in details.status_checks:
                logger.info("  - %s: %s", check.name, check.state)

    def _show_pr_details(self, details: PullRequestDetails) -> None:
        logger.info("Title: %s", details.title)
        logger.info("State: %s", details.state)
        logger.info("Mergeable: %s", details.mergeable)
        logger.info("Merge state: %s", details.merge_state_status)
        logger.info("Auto-merge: %s", "enabled" if details.auto_merge_enabled else "disabled")
