"""Storage manager for per-commit CI logs (``ci-logs/<short-sha>/``)."""

import json
import logging
import re
import shutil
import zipfile
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

SHORT_SHA_LENGTH = 7
LOG_SUFFIXES = (".log", ".txt")
ERROR_CONTEXT_LIMIT = 10
MORE_ERRORS_MARKER = "... (more errors in log files)"

# Markers for the quick scan of logs committed to the branch
SCAN_MARKERS = ("ERROR", "❌", "Failed")
# Patterns for downloaded workflow logs
_ERROR_PATTERN = re.compile(r"Error:|ERROR|Failed|FAILED|error TS\d+:|❌")


def short_sha(sha: str) -> str:
    """First seven characters of a commit SHA."""
    return sha[:SHORT_SHA_LENGTH]


class CleanupReport(BaseModel):
    """What a log cleanup removed and kept."""

    deleted: list[str] = Field(default_factory=list)
    preserved: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)
    dry_run: bool = False


class LogFileSummary(BaseModel):
    path: str
    lines: int
    size_kb: float


class LogMetadata(BaseModel):
    """Provenance written next to logs pushed to the pipeline repository."""

    commit: str
    branch: str
    description: str
    timestamp: str
    workflow_run_id: str = "unknown"
    workflow_run_url: str | None = None


class LogStore:
    """Manages CI log directories keyed by commit SHA."""

    def __init__(self, base_path: Path | str = "ci-logs"):
        """Initialize log store.

        Args:
            base_path: Directory holding one subdirectory per commit. It is
                not created until something is written.
        """
        self.base_path = Path(base_path)

    def commit_dir(self, sha: str) -> Path:
        return self.base_path / short_sha(sha)

    def ensure_commit_dir(self, sha: str) -> Path:
        commit_dir = self.commit_dir(sha)
        if not commit_dir.exists():
            logger.debug("Creating log directory: %s", commit_dir)
            commit_dir.mkdir(parents=True, exist_ok=True)
        return commit_dir

    def cleanup_old_logs(self, current_sha: str, dry_run: bool = False) -> CleanupReport:
        """Delete every commit directory except the current commit's.

        Both the short and the full SHA count as the current commit.

        Args:
            current_sha: Commit whose logs are kept
            dry_run: Only report what would be deleted

        Returns:
            CleanupReport
        """
        report = CleanupReport(dry_run=dry_run)
        short = short_sha(current_sha)

        logger.info("Log directory: %s", self.base_path)
        logger.info("Current commit: %s", short)
        logger.info("Dry run: %s", "yes" if dry_run else "no")

        if not self.base_path.exists():
            logger.info("Log directory does not exist yet, nothing to clean")
            return report

        directories = sorted(p for p in self.base_path.iterdir() if p.is_dir())
        if not directories:
            logger.info("No log subdirectories found")
            return report

        logger.info("Found %d log directory(ies)", len(directories))

        for directory in directories:
            name = directory.name
            if name in (short, current_sha):
                logger.debug("Preserving: %s (current commit)", name)
                report.preserved.append(name)
                continue

            if dry_run:
                logger.info("Would delete: %s", name)
                report.deleted.append(name)
                continue

            try:
                logger.debug("Deleting: %s", name)
                shutil.rmtree(directory)
                report.deleted.append(name)
            except OSError as e:
                logger.warning("Failed to delete %s: %s", name, e)
                report.failed.append(name)

        logger.info(
            "Cleanup complete: %d deleted, %d preserved",
            len(report.deleted),
            len(report.preserved),
        )
        return report

    def find_log_files(self, sha: str | None = None) -> list[Path]:
        """Log files (``.log``/``.txt``) of one commit, or of all commits.

        Only files directly inside a commit directory are returned.
        """
        if not self.base_path.exists():
            return []

        if sha:
            directories = [self.commit_dir(sha)]
        else:
            directories = sorted(p for p in self.base_path.iterdir() if p.is_dir())

        files: list[Path] = []
        for directory in directories:
            if not directory.is_dir():
                continue
            try:
                files.extend(
                    sorted(
                        p
                        for p in directory.iterdir()
                        if p.is_file() and p.suffix in LOG_SUFFIXES
                    )
                )
            except OSError as e:
                logger.debug("Skipping unreadable directory %s: %s", directory, e)
        return files

    def summarize(self, files: list[Path]) -> list[LogFileSummary]:
        """Line count and size of each readable file."""
        summaries = []
        for path in files:
            try:
                content = path.read_text(encoding="utf-8", errors="replace")
            except OSError:
                logger.warning("Could not read %s", path)
                continue
            summaries.append(
                LogFileSummary(
                    path=str(path),
                    lines=len(content.split("\n")),
                    size_kb=round(len(content) / 1024, 1),
                )
            )
        return summaries

    def scan_errors(self, files: list[Path]) -> list[str]:
        """Lines that look like failures, as ``<file>: <line>``."""
        errors = []
        for path in files:
            try:
                content = path.read_text(encoding="utf-8", errors="replace")
            except OSError:
                continue
            for line in content.split("\n"):
                if any(marker in line for marker in SCAN_MARKERS):
                    errors.append(f"{path}: {line.strip()}")
        return errors

    def write_summary(
        self,
        sha: str,
        job_name: str,
        ref: str,
        log_files: list[str] | None = None,
    ) -> Path:
        """Write ``<job>-summary.txt`` into the commit directory."""
        commit_dir = self.ensure_commit_dir(sha)
        lines = [
            f"=== {job_name} Workflow Log ===",
            f"Date: {datetime.now(UTC).isoformat()}",
            f"Commit: {sha}",
            f"Ref: {ref}",
            f"Job: {job_name}",
        ]
        if log_files:
            lines += ["", "=== Files ==="]
            lines += [f"Log file: {name}" for name in log_files]

        summary_path = commit_dir / f"{job_name}-summary.txt"
        summary_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        logger.info("Created %s", summary_path.name)
        return summary_path

    def write_metadata(
        self,
        sha: str,
        branch: str,
        description: str,
        run_id: str | None = None,
        repository: str | None = None,
    ) -> Path:
        """Write ``metadata.json`` describing where the commit's logs came from."""
        run = run_id or "unknown"
        metadata = LogMetadata(
            commit=sha,
            branch=branch,
            description=description,
            timestamp=datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ"),
            workflow_run_id=run,
            workflow_run_url=(
                f"https://github.com/{repository}/actions/runs/{run}"
                if repository
                else None
            ),
        )
        metadata_path = self.ensure_commit_dir(sha) / "metadata.json"
        with open(metadata_path, "w", encoding="utf-8") as f:
            json.dump(metadata.model_dump(), f, indent=2, ensure_ascii=False)
        return metadata_path

    def collect_artifacts(self, sha: str, sources: list[Path]) -> list[Path]:
        """Copy files or directories (test results, reports) into the commit directory.

        Missing sources are skipped.
        """
        commit_dir = self.ensure_commit_dir(sha)
        copied = []
        for source in sources:
            if not source.exists():
                logger.debug("Skipping missing artifact source %s", source)
                continue
            dest = commit_dir / source.name
            if source.is_dir():
                shutil.copytree(source, dest, dirs_exist_ok=True)
            else:
                shutil.copy2(source, dest)
            logger.info("Copied %s to %s", source, dest)
            copied.append(dest)
        return copied


def extract_zip(zip_path: Path, output_dir: Path) -> list[Path]:
    """Extract a downloaded log archive, overwriting existing files."""
    output_dir.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(zip_path) as archive:
        archive.extractall(output_dir)
        return [output_dir / name for name in archive.namelist() if not name.endswith("/")]


def extract_errors_with_context(logs_dir: Path, limit: int = ERROR_CONTEXT_LIMIT) -> list[str]:
    """Find error lines in extracted workflow logs with one line of context.

    Each entry is ``<file>:`` followed by the line before, the error line
    and the line after. After ``limit`` entries a final marker entry is
    appended and the search stops.
    """
    errors: list[str] = []
    if not logs_dir.exists():
        return errors

    files = sorted(
        p for p in logs_dir.rglob("*") if p.is_file() and p.suffix in LOG_SUFFIXES
    )
    for path in files:
        try:
            lines = path.read_text(encoding="utf-8", errors="replace").split("\n")
        except OSError:
            continue

        label = path.relative_to(logs_dir)
        for i, line in enumerate(lines):
            if not _ERROR_PATTERN.search(line):
                continue
            context = [text.strip() for text in lines[max(0, i - 1) : min(len(lines), i + 2)]]
            errors.append(f"{label}:\n  " + "\n  ".join(context))

            if len(errors) >= limit:
                errors.append(MORE_ERRORS_MARKER)
                return errors

    return errors
