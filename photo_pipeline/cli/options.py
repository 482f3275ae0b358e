"""Standardized CLI option definitions for consistent shorthand mappings.

Shared by every command so flags mean the same thing everywhere.
"""

import typer

# Authentication and target repository
TOKEN_OPTION = typer.Option(
    None, "--token", help="GitHub API token (defaults to GITHUB_TOKEN env var)"
)

OWNER_OPTION = typer.Option(
    None, "--owner", "-o", help="Repository owner (defaults to the origin remote)"
)

REPO_OPTION = typer.Option(
    None, "--repo", "-r", help="Repository name (defaults to the origin remote)"
)

# Commit selection
SHA_OPTION = typer.Option(
    None, "--sha", help="Commit SHA (defaults to GITHUB_SHA, then git HEAD)"
)

BRANCH_OPTION = typer.Option(
    None, "--branch", "-b", help="Branch (defaults to GITHUB_REF_NAME, then git HEAD)"
)

BASE_OPTION = typer.Option("main", "--base", help="Base branch pull requests target")

PREFIX_OPTION = typer.Option(
    "claude/", "--prefix", "-p", help="Prefix of branches managed by the workflows"
)

# Behavior options
DRY_RUN_OPTION = typer.Option(
    False, "--dry-run", "-d", help="Preview changes without applying them"
)

NO_WAIT_OPTION = typer.Option(
    False, "--no-wait", help="Don't wait for completion, just check current status"
)

VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Show debug output")

# Storage options
LOG_DIR_OPTION = typer.Option(
    "ci-logs", "--log-dir", help="Directory holding per-commit log directories"
)
