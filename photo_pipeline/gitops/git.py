"""Git operations used by the CI workflows."""

import logging
import time
from collections.abc import Callable
from pathlib import Path

from .process import ProcessError, ProcessResult, run_git
from ..utils.logging import log_success
from ..utils.retry import BACKOFF_DELAYS, retry_with_backoff

logger = logging.getLogger(__name__)

BOT_NAME = "github-actions[bot]"
BOT_EMAIL = "github-actions[bot]@users.noreply.github.com"


class GitClient:
    """Thin wrapper over the ``git`` executable with logging and retries."""

    def __init__(
        self,
        cwd: Path | str | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize git client.

        Args:
            cwd: Repository working directory (defaults to the current one)
            sleep: Sleep function used between push/fetch retries
        """
        self.cwd = cwd
        self.sleep = sleep

    def _run(self, *args: str, log_command: bool = True) -> ProcessResult:
        return run_git(list(args), cwd=self.cwd, log_command=log_command)

    def _require(self, result: ProcessResult, what: str) -> str:
        if not result.success:
            logger.error("Failed to %s: %s", what, result.stderr)
            raise ProcessError(
                f"git {what} failed with exit code {result.exit_code}", result
            )
        return result.stdout

    def latest_commit_message(self) -> str:
        message = self._require(self._run("log", "-1", "--pretty=%s"), "get commit message")
        logger.debug("Latest commit message: %s", message)
        return message

    def latest_commit_sha(self) -> str:
        sha = self._require(self._run("rev-parse", "HEAD"), "get commit SHA")
        logger.debug("Latest commit SHA: %s", sha)
        return sha

    def current_branch(self) -> str:
        branch = self._require(
            self._run("rev-parse", "--abbrev-ref", "HEAD"), "get current branch"
        )
        logger.debug("Current branch: %s", branch)
        return branch

    def remote_url(self, remote: str = "origin") -> str:
        return self._require(self._run("remote", "get-url", remote), "get remote URL")

    def commit_log(self, from_ref: str, to_ref: str, fmt: str = "oneline") -> list[str]:
        """Commits in ``from_ref..to_ref``; an empty list if git fails.

        Args:
            from_ref: Exclusive start ref
            to_ref: Inclusive end ref
            fmt: One of oneline, short, full
        """
        result = self._run("log", f"{from_ref}..{to_ref}", f"--{fmt}")
        if not result.success:
            logger.error(
                "git log failed with exit code %d: %s", result.exit_code, result.stderr
            )
            return []
        return result.stdout.split("\n") if result.stdout else []

    def configure_user(self, name: str = BOT_NAME, email: str = BOT_EMAIL) -> None:
        self._require(self._run("config", "user.name", name), "configure user.name")
        self._require(self._run("config", "user.email", email), "configure user.email")
        logger.debug("Git user configured: %s <%s>", name, email)

    def add(self, paths: list[str]) -> None:
        """Stage paths, forcing past .gitignore (ci-logs are usually ignored)."""
        for path in paths:
            self._require(self._run("add", "-f", path), f"add {path}")
        logger.debug("Added %d path(s) to staging area", len(paths))

    def commit(self, message: str) -> bool:
        """Commit staged changes.

        Returns:
            True if a commit was created, False if there was nothing to commit
        """
        result = self._run("commit", "-m", message)
        if not result.success:
            if "nothing to commit" in result.stdout or "nothing to commit" in result.stderr:
                logger.info("No changes to commit")
                return False
            self._require(result, "commit")
        log_success(logger, "Committed: %s", message)
        return True

    def push(self, remote: str, ref: str, max_retries: int = 4) -> bool:
        """Push ``ref`` to ``remote``, retrying network failures with backoff.

        A 403 response is never retried: the remote rejected the branch name.

        Raises:
            ProcessError: When the push fails for good
        """

        def forbidden(result: ProcessResult) -> str | None:
            if "403" in result.stderr:
                return "Push failed with 403 - the remote rejected this branch"
            return None

        retry_with_backoff(
            lambda: self._run("push", "-u", remote, ref),
            f"Pushing to {remote} {ref}",
            max_retries=max_retries,
            delays=BACKOFF_DELAYS,
            sleep=self.sleep,
            fatal=forbidden,
        )
        log_success(logger, "Successfully pushed to %s %s", remote, ref)
        return True

    def fetch(self, remote: str = "origin", branch: str | None = None, max_retries: int = 4) -> bool:
        """Fetch from ``remote`` (optionally one branch) with retries.

        Raises:
            ProcessError: When the fetch fails for good
        """
        args = ["fetch", remote, branch] if branch else ["fetch", remote]
        retry_with_backoff(
            lambda: self._run(*args),
            f"Fetching from {remote} {branch or ''}".rstrip(),
            max_retries=max_retries,
            delays=BACKOFF_DELAYS,
            sleep=self.sleep,
        )
        log_success(logger, "Successfully fetched from %s", remote)
        return True

    def pull(self, remote: str, branch: str, rebase: bool = False) -> bool:
        args = ["pull", "--rebase", remote, branch] if rebase else ["pull", remote, branch]
        result = self._run(*args)
        if not result.success:
            logger.error("Failed to pull: %s", result.stderr)
            return False
        return True

    def list_remote_branches(self, prefix: str = "", remote: str = "origin") -> list[str]:
        """Remote branch names (without the ``<remote>/`` part) starting with ``prefix``."""
        result = self._run("branch", "-r", log_command=False)
        if not result.success:
            logger.warning("Could not list remote branches: %s", result.stderr)
            return []

        remote_prefix = f"{remote}/"
        branches = []
        for line in result.stdout.split("\n"):
            name = line.strip()
            if not name.startswith(remote_prefix) or " -> " in name:
                continue
            name = name[len(remote_prefix):]
            if name.startswith(prefix):
                branches.append(name)
        return branches

    def commits_ahead(self, base: str, head: str) -> int:
        """Number of commits in ``head`` that are not in ``base``; -1 if unknown."""
        result = self._run("rev-list", "--count", f"{base}..{head}", log_command=False)
        if not result.success:
            return -1
        try:
            return int(result.stdout)
        except ValueError:
            return -1

    def delete_branch(self, remote: str, branch: str) -> bool:
        result = self._run("push", remote, "--delete", branch)
        if not result.success:
            logger.error("Failed to delete %s/%s: %s", remote, branch, result.stderr)
            return False
        log_success(logger, "Deleted branch %s/%s", remote, branch)
        return True

    def clone(self, url: str, dest: Path | str, depth: int | None = 1) -> None:
        args = ["clone"]
        if depth:
            args += ["--depth", str(depth)]
        args += [url, str(dest)]
        # Clone runs outside self.cwd; the URL may carry a token, so don't log it.
        result = run_git(args, log_command=False)
        if not result.success:
            raise ProcessError(f"git clone failed with exit code {result.exit_code}", result)

    def set_remote_url(self, url: str, remote: str = "origin") -> None:
        self._require(
            self._run("remote", "set-url", remote, url, log_command=False),
            "set remote URL",
        )
