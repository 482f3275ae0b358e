"""Tests for the Actions run context."""

import pytest

from photo_pipeline.workflows.context import WorkflowContext

ENV = {
    "GITHUB_SHA": "abc1234",
    "GITHUB_REF": "refs/heads/claude/feature-x",
    "GITHUB_REPOSITORY": "AppGates/PongPush",
    "GITHUB_TOKEN": "gh-token",
}


class TestWorkflowContext:
    def test_from_env(self) -> None:
        ctx = WorkflowContext.from_env(ENV)

        assert ctx.sha == "abc1234"
        assert ctx.branch == "claude/feature-x"
        assert ctx.owner == "AppGates"
        assert ctx.repo == "PongPush"
        assert ctx.token == "gh-token"

    def test_gh_token_preferred(self) -> None:
        ctx = WorkflowContext.from_env({**ENV, "GH_TOKEN": "preferred"})

        assert ctx.token == "preferred"

    @pytest.mark.parametrize("missing", ["GITHUB_SHA", "GITHUB_REF", "GITHUB_REPOSITORY", "GITHUB_TOKEN"])
    def test_missing_variable(self, missing: str) -> None:
        env = {k: v for k, v in ENV.items() if k != missing}

        with pytest.raises(ValueError, match="GITHUB_SHA, GITHUB_REF, GITHUB_REPOSITORY"):
            WorkflowContext.from_env(env)

    def test_non_branch_ref_kept(self) -> None:
        ctx = WorkflowContext.from_env({**ENV, "GITHUB_REF": "refs/tags/v1"})

        assert ctx.branch == "refs/tags/v1"
