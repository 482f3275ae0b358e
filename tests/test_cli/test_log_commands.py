"""Tests for the log management CLI commands."""

import os
from pathlib import Path
from unittest.mock import Mock, patch

from typer.testing import CliRunner

from photo_pipeline.cli.main import app
from photo_pipeline.gitops.process import ProcessError

SHA = "abc1234def5678"


class TestCleanupLogsCommand:
    def setup_method(self) -> None:
        self.runner = CliRunner(env={"NO_COLOR": "1", "TERM": "dumb"})

    @patch("photo_pipeline.cli.logs.GitClient")
    def test_cleanup(self, mock_git_class: Mock, tmp_path: Path) -> None:
        log_dir = tmp_path / "ci-logs"
        (log_dir / "abc1234").mkdir(parents=True)
        (log_dir / "1111111").mkdir()

        result = self.runner.invoke(
            app, ["cleanup-logs", "--sha", SHA, "--log-dir", str(log_dir)]
        )

        assert result.exit_code == 0
        assert "Deleted: 1, preserved: 1" in result.stdout
        assert not (log_dir / "1111111").exists()
        mock_git_class.return_value.latest_commit_sha.assert_not_called()

    @patch("photo_pipeline.cli.logs.GitClient")
    def test_dry_run_uses_git_head(self, mock_git_class: Mock, tmp_path: Path) -> None:
        mock_git_class.return_value.latest_commit_sha.return_value = SHA
        log_dir = tmp_path / "ci-logs"
        (log_dir / "1111111").mkdir(parents=True)

        with patch.dict(os.environ, {}, clear=True):
            result = self.runner.invoke(
                app, ["cleanup-logs", "--dry-run", "--log-dir", str(log_dir)]
            )

        assert result.exit_code == 0
        assert "Would delete: 1" in result.stdout
        assert (log_dir / "1111111").exists()


class TestPushLogsCommand:
    def setup_method(self) -> None:
        self.runner = CliRunner(env={"NO_COLOR": "1", "TERM": "dumb"})

    @patch("photo_pipeline.cli.logs.LogPusher")
    @patch("photo_pipeline.cli.logs.GitClient")
    def test_push_to_branch(self, mock_git_class: Mock, mock_pusher_class: Mock) -> None:
        mock_pusher_class.return_value.push_to_branch.return_value = True

        result = self.runner.invoke(
            app, ["push-logs", "auto-PR logs", "--sha", SHA, "--branch", "claude/x"]
        )

        assert result.exit_code == 0
        mock_pusher_class.return_value.push_to_branch.assert_called_once_with(
            SHA, "claude/x", "auto-PR logs"
        )

    @patch("photo_pipeline.cli.logs.LogPusher")
    @patch("photo_pipeline.cli.logs.GitClient")
    def test_push_to_branch_failure_still_exits_0(
        self, mock_git_class: Mock, mock_pusher_class: Mock
    ) -> None:
        mock_pusher_class.return_value.push_to_branch.return_value = False

        result = self.runner.invoke(app, ["push-logs", "--sha", SHA, "--branch", "main"])

        assert result.exit_code == 0

    @patch.dict(os.environ, {"GITHUB_RUN_ID": "77", "GITHUB_REPOSITORY": "AppGates/PongPush"})
    @patch("photo_pipeline.cli.logs.LogPusher")
    @patch("photo_pipeline.cli.logs.GitClient")
    def test_push_to_pipeline_repo(self, mock_git_class: Mock, mock_pusher_class: Mock) -> None:
        mock_pusher_class.return_value.push_to_pipeline_repo.return_value = True

        result = self.runner.invoke(
            app,
            [
                "push-logs",
                "e2e logs",
                "--pipeline-repo",
                "AppGates/PongPush.Pipeline",
                "--sha",
                SHA,
                "--branch",
                "main",
                "--token",
                "secret",
            ],
        )

        assert result.exit_code == 0
        mock_pusher_class.return_value.push_to_pipeline_repo.assert_called_once_with(
            "AppGates/PongPush.Pipeline",
            SHA,
            "main",
            "e2e logs",
            token="secret",
            run_id="77",
            source_repository="AppGates/PongPush",
        )

    @patch("photo_pipeline.cli.logs.LogPusher")
    @patch("photo_pipeline.cli.logs.GitClient")
    def test_push_to_pipeline_repo_failure(self, mock_git_class: Mock, mock_pusher_class: Mock) -> None:
        mock_pusher_class.return_value.push_to_pipeline_repo.side_effect = ProcessError(
            "git clone failed"
        )

        result = self.runner.invoke(
            app, ["push-logs", "--pipeline-repo", "o/logs", "--sha", SHA, "--branch", "main"]
        )

        assert result.exit_code == 1

    @patch("photo_pipeline.cli.logs.GitClient")
    def test_unresolvable_sha(self, mock_git_class: Mock) -> None:
        mock_git_class.return_value.latest_commit_sha.side_effect = ProcessError("not a repo")

        with patch.dict(os.environ, {}, clear=True):
            result = self.runner.invoke(app, ["push-logs"])

        assert result.exit_code == 1


class TestCollectArtifactsCommand:
    def setup_method(self) -> None:
        self.runner = CliRunner(env={"NO_COLOR": "1", "TERM": "dumb"})

    @patch("photo_pipeline.cli.logs.GitClient")
    def test_collect(self, mock_git_class: Mock, tmp_path: Path) -> None:
        results = tmp_path / "test-results"
        results.mkdir()
        (results / "trace.zip").write_bytes(b"zip")
        log_dir = tmp_path / "ci-logs"

        result = self.runner.invoke(
            app,
            [
                "collect-artifacts",
                str(results),
                str(tmp_path / "playwright-report"),
                "--sha",
                SHA,
                "--branch",
                "main",
                "--log-dir",
                str(log_dir),
            ],
        )

        assert result.exit_code == 0
        commit_dir = log_dir / "abc1234"
        assert (commit_dir / "test-results" / "trace.zip").exists()
        summary = (commit_dir / "e2e-summary.txt").read_text(encoding="utf-8")
        assert "Log file: test-results" in summary
        assert "Ref: main" in summary
