"""Delete prefixed branches that have nothing left to merge."""

import logging

from pydantic import BaseModel, Field

from ..gitops.git import GitClient
from ..utils.logging import log_section, log_subsection, log_success

logger = logging.getLogger(__name__)

DEFAULT_BRANCH_PREFIX = "claude/"


class BranchStatus(BaseModel):
    name: str
    commits_ahead: int = Field(..., description="Commits not in the base branch; -1 if unknown")


class BranchCleanupReport(BaseModel):
    """Which branches a cleanup deleted, kept or could not assess."""

    deleted: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)
    kept: list[str] = Field(default_factory=list)
    unknown: list[str] = Field(default_factory=list)


class BranchCleanup:
    """Finds ``<prefix>*`` branches with zero commits ahead of base and deletes them."""

    def __init__(
        self,
        git: GitClient,
        base: str = "main",
        prefix: str = DEFAULT_BRANCH_PREFIX,
        remote: str = "origin",
    ):
        self.git = git
        self.base = base
        self.prefix = prefix
        self.remote = remote

    def analyze(self, exclude: list[str] | None = None) -> list[BranchStatus]:
        """Commit counts ahead of ``<remote>/<base>`` for every prefixed branch."""
        log_subsection(logger, f"Finding {self.prefix}* Branches")
        branches = [
            name
            for name in self.git.list_remote_branches(self.prefix, self.remote)
            if name not in (exclude or [])
        ]
        logger.info("Found %d %s* branch(es)", len(branches), self.prefix)

        statuses = []
        for name in branches:
            ahead = self.git.commits_ahead(
                f"{self.remote}/{self.base}", f"{self.remote}/{name}"
            )
            if ahead == 0:
                logger.info("❌ %s: 0 commits ahead (will delete)", name)
            elif ahead > 0:
                logger.info("✅ %s: %d commits ahead (keep)", name, ahead)
            else:
                logger.warning("⚠️  %s: Could not determine status", name)
            statuses.append(BranchStatus(name=name, commits_ahead=ahead))
        return statuses

    def run(self, fetch: bool = True, exclude: list[str] | None = None) -> BranchCleanupReport:
        """Delete every prefixed branch with exactly zero commits ahead.

        Args:
            fetch: Fetch base and all remote branches first
            exclude: Branch names never to touch (e.g. the current branch)

        Raises:
            ProcessError: If fetching fails
        """
        report = BranchCleanupReport()

        if fetch:
            log_subsection(logger, "Fetching Latest Changes")
            self.git.fetch(self.remote, self.base)
            self.git.fetch(self.remote)

        statuses = self.analyze(exclude=exclude)
        for status in statuses:
            if status.commits_ahead > 0:
                report.kept.append(status.name)
            elif status.commits_ahead < 0:
                report.unknown.append(status.name)

        to_delete = [status.name for status in statuses if status.commits_ahead == 0]
        if not to_delete:
            log_success(logger, "No branches to delete")
            return report

        log_section(logger, f"Deleting {len(to_delete)} Branch(es)")
        for name in to_delete:
            if self.git.delete_branch(self.remote, name):
                report.deleted.append(name)
            else:
                report.failed.append(name)

        log_success(logger, "Deleted: %d branch(es)", len(report.deleted))
        if report.failed:
            logger.warning("Failed: %d branch(es)", len(report.failed))
        return report
