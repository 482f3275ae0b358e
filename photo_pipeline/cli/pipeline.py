"""CLI commands for checking pipeline status."""

import typer
from github import GithubException
from rich.console import Console
from rich.table import Table

from ..github_client.client import GitHubClient, parse_repo_url
from ..github_client.models import WorkflowRun
from ..gitops.git import GitClient
from ..gitops.process import ProcessError
from ..pipeline.branch_logs import BranchLogChecker
from ..pipeline.check import DEFAULT_TIMEOUT, PipelineChecker
from ..storage.manager import LogStore
from ..utils.logging import configure_logging
from .logs import resolve_branch, resolve_sha
from .options import (
    BRANCH_OPTION,
    LOG_DIR_OPTION,
    NO_WAIT_OPTION,
    OWNER_OPTION,
    REPO_OPTION,
    SHA_OPTION,
    TOKEN_OPTION,
    VERBOSE_OPTION,
)

console = Console()


def _runs_table(runs: list[WorkflowRun]) -> Table:
    table = Table(title="Workflow Runs")
    table.add_column("Workflow", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("URL", style="blue")
    for run in runs:
        table.add_row(f"{run.icon} {run.name}", run.display_status, run.html_url)
    return table


def check_pipeline(
    timeout: int = typer.Option(
        DEFAULT_TIMEOUT, "--timeout", "-t", min=1, help="Timeout in seconds"
    ),
    no_wait: bool = NO_WAIT_OPTION,
    sha: str | None = SHA_OPTION,
    branch: str | None = BRANCH_OPTION,
    owner: str | None = OWNER_OPTION,
    repo: str | None = REPO_OPTION,
    log_dir: str = LOG_DIR_OPTION,
    token: str | None = TOKEN_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Check GitHub Actions runs for a commit through the REST API.

    Polls every 10 seconds until all runs complete. For failed runs the
    logs are downloaded to ci-logs/<sha>/, key errors are printed and
    artifacts are downloaded to artifacts/<sha>/run-<id>/.

    Examples:
        photo-pipeline check-pipeline
        photo-pipeline check-pipeline --no-wait
        photo-pipeline check-pipeline --timeout 1200
    """
    configure_logging(verbose=verbose)

    try:
        git = GitClient()
        commit = resolve_sha(git, sha)
        ref = resolve_branch(git, branch)
        if not (owner and repo):
            remote_owner, remote_repo = parse_repo_url(git.remote_url())
            owner = owner or remote_owner
            repo = repo or remote_repo

        checker = PipelineChecker(GitHubClient(token=token), owner, repo, store=LogStore(log_dir))
        result = checker.check(commit, branch=ref, timeout=timeout, skip_wait=no_wait)
    except (ValueError, ProcessError, GithubException) as e:
        console.print(f"❌ Error: {e}")
        raise typer.Exit(1)

    if result.workflow_runs:
        console.print(_runs_table(result.workflow_runs))
    for error in result.errors:
        console.print(f"❌ {error}")
    console.print(f"Conclusion: {result.conclusion} ({result.duration}s)")

    if not result.success:
        raise typer.Exit(1)


def check_logs(
    timeout: int = typer.Option(60, "--timeout", "-t", min=1, help="Timeout in seconds"),
    no_wait: bool = NO_WAIT_OPTION,
    log_dir: str = LOG_DIR_OPTION,
    token: str | None = TOKEN_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Check the current commit using gh and the logs CI pushed to the branch.

    Without the gh CLI the workflow status is skipped and only the files
    in ci-logs/<sha>/ are analysed.

    Examples:
        photo-pipeline check-logs
        git push && photo-pipeline check-logs --no-wait
    """
    configure_logging(verbose=verbose)

    checker = BranchLogChecker(GitClient(), LogStore(log_dir), token=token)
    try:
        result = checker.check(skip_wait=no_wait, timeout=timeout)
    except (TimeoutError, ProcessError) as e:
        console.print(f"❌ Pipeline check failed: {e}")
        raise typer.Exit(1)

    if result.workflow_runs:
        console.print(_runs_table(result.workflow_runs))
    console.print(
        f"Conclusion: {result.conclusion}, {len(result.log_files)} log file(s), "
        f"{len(result.errors)} error line(s) ({result.duration}s)"
    )

    if not result.success:
        raise typer.Exit(1)
