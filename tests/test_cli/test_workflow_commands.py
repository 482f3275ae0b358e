"""Tests for the workflow CLI commands."""

import os
from unittest.mock import Mock, patch

from typer.testing import CliRunner

from photo_pipeline.cli.main import app
from photo_pipeline.gitops.process import ProcessError
from photo_pipeline.workflows.auto_pr import AutoPROutcome
from photo_pipeline.workflows.cleanup_branches import BranchCleanupReport

ACTIONS_ENV = {
    "GITHUB_SHA": "abc1234def5678",
    "GITHUB_REF": "refs/heads/claude/feature",
    "GITHUB_REPOSITORY": "AppGates/PongPush",
    "GH_TOKEN": "gh_token",
}


class TestAutoPRCommand:
    def setup_method(self) -> None:
        self.runner = CliRunner(env={"NO_COLOR": "1", "TERM": "dumb"})

    @patch.dict(os.environ, ACTIONS_ENV, clear=True)
    @patch("photo_pipeline.cli.workflows.AutoPRWorkflow")
    @patch("photo_pipeline.cli.workflows.GitHubClient")
    @patch("photo_pipeline.cli.workflows.GitClient")
    def test_pr_created(
        self, mock_git_class: Mock, mock_client_class: Mock, mock_workflow_class: Mock
    ) -> None:
        mock_workflow_class.return_value.run.return_value = AutoPROutcome(
            action="pr_created", pr_number=42, auto_merge_enabled=True
        )

        result = self.runner.invoke(app, ["auto-pr", "--merge-method", "squash"])

        assert result.exit_code == 0
        assert "pr_created" in result.stdout
        assert "#42" in result.stdout
        mock_client_class.assert_called_once_with(token="gh_token")
        ctx = mock_workflow_class.call_args.args[0]
        assert ctx.branch == "claude/feature"
        assert mock_workflow_class.call_args.kwargs["merge_method"] == "squash"

    @patch.dict(os.environ, ACTIONS_ENV, clear=True)
    @patch("photo_pipeline.cli.workflows.AutoPRWorkflow")
    @patch("photo_pipeline.cli.workflows.GitHubClient")
    @patch("photo_pipeline.cli.workflows.GitClient")
    def test_no_pr_still_exits_0(
        self, mock_git_class: Mock, mock_client_class: Mock, mock_workflow_class: Mock
    ) -> None:
        mock_workflow_class.return_value.run.return_value = AutoPROutcome(
            action="no_pr", errors=["Could not find or create PR"]
        )

        result = self.runner.invoke(app, ["auto-pr"])

        assert result.exit_code == 0
        assert "no_pr" in result.stdout

    @patch.dict(os.environ, ACTIONS_ENV, clear=True)
    @patch("photo_pipeline.cli.workflows.AutoPRWorkflow")
    @patch("photo_pipeline.cli.workflows.GitHubClient")
    @patch("photo_pipeline.cli.workflows.GitClient")
    def test_git_failure_exits_1(
        self, mock_git_class: Mock, mock_client_class: Mock, mock_workflow_class: Mock
    ) -> None:
        mock_workflow_class.return_value.run.side_effect = ProcessError("git fetch failed")

        result = self.runner.invoke(app, ["auto-pr"])

        assert result.exit_code == 1
        assert "git fetch failed" in result.stdout

    @patch.dict(os.environ, {}, clear=True)
    def test_missing_environment(self) -> None:
        result = self.runner.invoke(app, ["auto-pr"])

        assert result.exit_code == 1
        assert "Missing required" in result.stdout


class TestCleanupBranchesCommand:
    def setup_method(self) -> None:
        self.runner = CliRunner(env={"NO_COLOR": "1", "TERM": "dumb"})

    @patch("photo_pipeline.cli.workflows.BranchCleanup")
    @patch("photo_pipeline.cli.workflows.GitClient")
    def test_cleanup(self, mock_git_class: Mock, mock_cleanup_class: Mock) -> None:
        mock_cleanup_class.return_value.run.return_value = BranchCleanupReport(
            deleted=["claude/done"], kept=["claude/wip"]
        )

        result = self.runner.invoke(app, ["cleanup-branches", "--prefix", "bot/"])

        assert result.exit_code == 0
        assert "claude/done" in result.stdout
        assert "claude/wip" in result.stdout
        mock_cleanup_class.assert_called_once_with(
            mock_git_class.return_value, base="main", prefix="bot/"
        )

    @patch("photo_pipeline.cli.workflows.BranchCleanup")
    @patch("photo_pipeline.cli.workflows.GitClient")
    def test_fetch_failure(self, mock_git_class: Mock, mock_cleanup_class: Mock) -> None:
        mock_cleanup_class.return_value.run.side_effect = ProcessError("git fetch failed")

        result = self.runner.invoke(app, ["cleanup-branches"])

        assert result.exit_code == 1
        assert "Cleanup failed" in result.stdout


class TestVerifyDeploymentCommand:
    def setup_method(self) -> None:
        self.runner = CliRunner(env={"NO_COLOR": "1", "TERM": "dumb"})

    @patch("photo_pipeline.cli.workflows.DeploymentVerifier")
    def test_verified(self, mock_verifier_class: Mock) -> None:
        mock_verifier_class.return_value.verify.return_value = True

        result = self.runner.invoke(
            app,
            ["verify-deployment", "--sha", "abc123", "--url", "https://example.test/", "--attempts", "3"],
        )

        assert result.exit_code == 0
        assert "Verification completed successfully" in result.stdout
        mock_verifier_class.assert_called_once_with(
            "abc123", site_url="https://example.test/", max_attempts=3, retry_delay=10.0
        )

    @patch.dict(os.environ, {"GITHUB_SHA": "fromenv"})
    @patch("photo_pipeline.cli.workflows.DeploymentVerifier")
    def test_not_deployed(self, mock_verifier_class: Mock) -> None:
        mock_verifier_class.return_value.verify.return_value = False

        result = self.runner.invoke(app, ["verify-deployment"])

        assert result.exit_code == 1
        assert "Verify deployment failed" in result.stdout
        assert mock_verifier_class.call_args.args[0] == "fromenv"

    @patch.dict(os.environ, {}, clear=True)
    @patch("photo_pipeline.cli.workflows.DeploymentVerifier")
    @patch("photo_pipeline.cli.workflows.GitClient")
    def test_falls_back_to_git_head(self, mock_git_class: Mock, mock_verifier_class: Mock) -> None:
        mock_git_class.return_value.latest_commit_sha.return_value = "headsha"
        mock_verifier_class.return_value.verify.return_value = True

        result = self.runner.invoke(app, ["verify-deployment"])

        assert result.exit_code == 0
        assert mock_verifier_class.call_args.args[0] == "headsha"

    @patch.dict(os.environ, {}, clear=True)
    @patch("photo_pipeline.cli.workflows.GitClient")
    def test_unresolvable_sha(self, mock_git_class: Mock) -> None:
        mock_git_class.return_value.latest_commit_sha.side_effect = ProcessError(
            "git get commit SHA failed"
        )

        result = self.runner.invoke(app, ["verify-deployment"])

        assert result.exit_code == 1
        assert "git get commit SHA failed" in result.stdout

    @patch.dict(os.environ, {}, clear=True)
    @patch("photo_pipeline.cli.workflows.GitClient")
    def test_empty_sha(self, mock_git_class: Mock) -> None:
        mock_git_class.return_value.latest_commit_sha.return_value = ""

        result = self.runner.invoke(app, ["verify-deployment"])

        assert result.exit_code == 1
        assert "Expected commit SHA is required" in result.stdout
