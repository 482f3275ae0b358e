"""CLI commands for managing the ci-logs directory."""

import os
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from ..gitops.git import GitClient
from ..gitops.process import ProcessError
from ..storage.manager import LogStore, short_sha
from ..storage.pusher import LogPusher
from ..utils.logging import configure_logging
from .options import (
    BRANCH_OPTION,
    DRY_RUN_OPTION,
    LOG_DIR_OPTION,
    SHA_OPTION,
    TOKEN_OPTION,
    VERBOSE_OPTION,
)

console = Console()


def resolve_sha(git: GitClient, sha: str | None) -> str:
    return sha or os.getenv("GITHUB_SHA") or git.latest_commit_sha()


def resolve_branch(git: GitClient, branch: str | None) -> str:
    return branch or os.getenv("GITHUB_REF_NAME") or git.current_branch()


def cleanup_logs(
    sha: str | None = SHA_OPTION,
    dry_run: bool = DRY_RUN_OPTION,
    log_dir: str = LOG_DIR_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Delete the log directories of every commit except the current one."""
    configure_logging(verbose=verbose)

    try:
        commit = resolve_sha(GitClient(), sha)
    except ProcessError as e:
        console.print(f"❌ Error: {e}")
        raise typer.Exit(1)

    report = LogStore(log_dir).cleanup_old_logs(commit, dry_run=dry_run)

    verb = "Would delete" if dry_run else "Deleted"
    console.print(f"🧹 {verb}: {len(report.deleted)}, preserved: {len(report.preserved)}")
    for name in report.failed:
        console.print(f"⚠️  Failed to delete {name}")


def push_logs(
    description: str = typer.Argument("logs", help="Label used in the commit message"),
    pipeline_repo: str | None = typer.Option(
        None,
        "--pipeline-repo",
        help="owner/name of a separate repository to push logs to",
    ),
    sha: str | None = SHA_OPTION,
    branch: str | None = BRANCH_OPTION,
    log_dir: str = LOG_DIR_OPTION,
    token: str | None = TOKEN_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Commit ci-logs/ and push it to the current branch or a log repository.

    Pushing to the branch never fails the command. Pushing to a separate
    repository does.

    Examples:
        photo-pipeline push-logs "auto-PR logs"
        photo-pipeline push-logs "e2e logs" --pipeline-repo AppGates/PongPush.Pipeline
    """
    configure_logging(verbose=verbose)

    git = GitClient()
    try:
        commit = resolve_sha(git, sha)
        ref = resolve_branch(git, branch)
    except ProcessError as e:
        console.print(f"❌ Error: {e}")
        raise typer.Exit(1)

    pusher = LogPusher(git, LogStore(log_dir))

    if pipeline_repo is None:
        pushed = pusher.push_to_branch(commit, ref, description)
        console.print("✅ Logs push completed" if pushed else "ℹ️  No logs pushed")
        return

    try:
        pushed = pusher.push_to_pipeline_repo(
            pipeline_repo,
            commit,
            ref,
            description,
            token=token or os.getenv("GITHUB_TOKEN"),
            run_id=os.getenv("GITHUB_RUN_ID"),
            source_repository=os.getenv("GITHUB_REPOSITORY"),
        )
    except ProcessError as e:
        console.print(f"❌ Failed to push logs to {pipeline_repo}: {e}")
        raise typer.Exit(1)

    if pushed:
        console.print(f"✅ Logs pushed to {pipeline_repo}")
    else:
        console.print("ℹ️  No changes to commit")


def collect_artifacts(
    sources: list[Path] = typer.Argument(
        ..., help="Files or directories to copy (e.g. test-results playwright-report)"
    ),
    job_name: str = typer.Option("e2e", "--job-name", "-j", help="Name used for the summary file"),
    sha: str | None = SHA_OPTION,
    branch: str | None = BRANCH_OPTION,
    log_dir: str = LOG_DIR_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Copy test outputs into ci-logs/<sha>/ and write <job>-summary.txt."""
    configure_logging(verbose=verbose)

    git = GitClient()
    try:
        commit = resolve_sha(git, sha)
        ref = resolve_branch(git, branch)
    except ProcessError as e:
        console.print(f"❌ Error: {e}")
        raise typer.Exit(1)

    store = LogStore(log_dir)
    copied = store.collect_artifacts(commit, sources)
    summary = store.write_summary(commit, job_name, ref, [path.name for path in copied])

    table = Table(title=f"Collected Artifacts ({short_sha(commit)})")
    table.add_column("Source", style="cyan")
    table.add_column("Copied", style="green")
    copied_names = {path.name for path in copied}
    for source in sources:
        table.add_row(str(source), "yes" if source.name in copied_names else "missing")
    console.print(table)
    console.print(f"📁 Summary: {summary}")
