"""CLI commands for the GitHub Actions workflows."""

import typer
from rich.console import Console
from rich.table import Table

from ..github_client.client import GitHubClient
from ..gitops.git import GitClient
from ..gitops.process import ProcessError
from ..storage.manager import LogStore
from ..utils.logging import configure_logging, log_section
from ..workflows.auto_pr import AutoPRWorkflow
from ..workflows.cleanup_branches import BranchCleanup
from ..workflows.context import WorkflowContext
from ..workflows.verify_deployment import (
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_RETRY_DELAY,
    DEFAULT_SITE_URL,
    DeploymentVerifier,
)
from .logs import resolve_sha
from .options import BASE_OPTION, LOG_DIR_OPTION, PREFIX_OPTION, SHA_OPTION, VERBOSE_OPTION

console = Console()


def auto_pr(
    base: str = BASE_OPTION,
    prefix: str = PREFIX_OPTION,
    merge_method: str = typer.Option(
        "merge", "--merge-method", help="Auto-merge method: merge, squash or rebase"
    ),
    log_dir: str = LOG_DIR_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Create a PR for the pushed branch and enable auto-merge.

    Reads GITHUB_SHA, GITHUB_REF, GITHUB_REPOSITORY and GH_TOKEN (or
    GITHUB_TOKEN). Logs go to ci-logs/<sha>/auto-pr.log. A PR that cannot
    be created does not fail the command, so the logs can still be pushed.
    """
    logger = configure_logging(verbose=verbose)

    try:
        ctx = WorkflowContext.from_env()
        workflow = AutoPRWorkflow(
            ctx,
            GitClient(),
            GitHubClient(token=ctx.token),
            LogStore(log_dir),
            base=base,
            branch_prefix=prefix,
            merge_method=merge_method,
        )
        outcome = workflow.run()
    except Exception as e:
        logger.error("Workflow failed: %s", e)
        log_section(logger, "Workflow Complete (with errors)")
        console.print(f"❌ Error: {e}")
        raise typer.Exit(1)

    table = Table(title="Auto PR Result")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Action", outcome.action)
    table.add_row("PR", f"#{outcome.pr_number}" if outcome.pr_number else "-")
    table.add_row("Auto-merge", "enabled" if outcome.auto_merge_enabled else "disabled")
    table.add_row("Stale branches deleted", str(len(outcome.stale_branches_deleted)))
    if outcome.log_file:
        table.add_row("Log file", outcome.log_file)
    console.print(table)


def cleanup_branches(
    base: str = BASE_OPTION,
    prefix: str = PREFIX_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Delete prefixed branches that have no commits ahead of the base branch."""
    logger = configure_logging(verbose=verbose)
    log_section(logger, "Branch Cleanup Started")

    try:
        report = BranchCleanup(GitClient(), base=base, prefix=prefix).run()
    except Exception as e:
        console.print(f"❌ Cleanup failed: {e}")
        raise typer.Exit(1)

    table = Table(title="Branch Cleanup")
    table.add_column("Result", style="cyan")
    table.add_column("Branches", style="green")
    table.add_row("Deleted", ", ".join(report.deleted) or "-")
    table.add_row("Kept", ", ".join(report.kept) or "-")
    table.add_row("Unknown", ", ".join(report.unknown) or "-")
    table.add_row("Failed", ", ".join(report.failed) or "-")
    console.print(table)


def verify_deployment(
    sha: str | None = SHA_OPTION,
    url: str = typer.Option(DEFAULT_SITE_URL, "--url", "-u", help="Deployed site URL"),
    attempts: int = typer.Option(
        DEFAULT_MAX_ATTEMPTS, "--attempts", min=1, help="Number of checks before giving up"
    ),
    delay: float = typer.Option(
        DEFAULT_RETRY_DELAY, "--delay", min=0, help="Seconds between checks"
    ),
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Wait until the deployed site serves the expected commit.

    The commit defaults to GITHUB_SHA, then to the checked-out HEAD.
    """
    configure_logging(verbose=verbose)

    try:
        verifier = DeploymentVerifier(
            resolve_sha(GitClient(), sha),
            site_url=url,
            max_attempts=attempts,
            retry_delay=delay,
        )
    except (ValueError, ProcessError) as e:
        console.print(f"❌ Error: {e}")
        raise typer.Exit(1)

    if not verifier.verify():
        console.print("❌ Verify deployment failed")
        raise typer.Exit(1)
    console.print("✅ Verification completed successfully")
