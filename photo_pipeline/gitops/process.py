"""Run external commands (git, gh) and capture their output."""

import logging
import os
import subprocess
from collections.abc import Mapping, Sequence
from pathlib import Path

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class ProcessResult(BaseModel):
    """Outcome of a finished process. Output is stripped of surrounding whitespace."""

    command: list[str] = Field(default_factory=list)
    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0

    @property
    def success(self) -> bool:
        return self.exit_code == 0


class ProcessError(RuntimeError):
    """Raised when a command that must succeed exits non-zero."""

    def __init__(self, message: str, result: ProcessResult | None = None):
        super().__init__(message)
        self.result = result


def run_process(
    command: Sequence[str],
    cwd: Path | str | None = None,
    env: Mapping[str, str] | None = None,
    log_command: bool = True,
    log_output: bool = False,
) -> ProcessResult:
    """Run a command to completion.

    Args:
        command: Program and arguments
        cwd: Working directory (defaults to the current one)
        env: Variables merged over the current environment
        log_command: Log the command line at DEBUG before running
        log_output: Log stdout at DEBUG after running

    Returns:
        ProcessResult. A missing executable yields exit code 127.
    """
    cmd = list(command)
    if log_command:
        logger.debug("Running: %s", " ".join(cmd))

    full_env = {**os.environ, **env} if env else None

    try:
        completed = subprocess.run(
            cmd,
            cwd=cwd,
            env=full_env,
            capture_output=True,
            text=True,
            check=False,
        )
    except FileNotFoundError as e:
        logger.debug("Executable not found: %s", e)
        return ProcessResult(command=cmd, stderr=str(e), exit_code=127)

    result = ProcessResult(
        command=cmd,
        stdout=(completed.stdout or "").strip(),
        stderr=(completed.stderr or "").strip(),
        exit_code=completed.returncode,
    )

    if log_output and result.stdout:
        logger.debug("stdout: %s", result.stdout)
    if result.stderr and not result.success:
        logger.debug("stderr: %s", result.stderr)

    return result


def run_git(
    args: Sequence[str],
    cwd: Path | str | None = None,
    log_command: bool = True,
) -> ProcessResult:
    return run_process(["git", *args], cwd=cwd, log_command=log_command)


def run_gh(
    args: Sequence[str],
    token: str | None,
    cwd: Path | str | None = None,
    log_command: bool = True,
) -> ProcessResult:
    """Run a gh CLI command authenticated with ``token``."""
    env = {"GH_TOKEN": token, "GITHUB_TOKEN": token} if token else None
    return run_process(["gh", *args], cwd=cwd, env=env, log_command=log_command)
