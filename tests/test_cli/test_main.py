"""Test main CLI functionality."""

from typer.testing import CliRunner

from photo_pipeline.cli.main import app

runner = CliRunner(env={"NO_COLOR": "1", "TERM": "dumb"})

COMMANDS = [
    "upload",
    "health",
    "check-pipeline",
    "check-logs",
    "auto-pr",
    "cleanup-branches",
    "cleanup-logs",
    "push-logs",
    "collect-artifacts",
    "verify-deployment",
    "version",
]


def test_version_command() -> None:
    """Test version command."""
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "Photo Pipeline v" in result.stdout


def test_help_shorthand_works_on_all_commands() -> None:
    """Test that -h works for --help on the app and every command."""
    for cmd in [["-h"], *[[name, "-h"] for name in COMMANDS]]:
        result = runner.invoke(app, cmd)
        assert result.exit_code == 0, f"Command {' '.join(cmd)} failed: {result.stdout}"
        assert "Usage:" in result.stdout


def test_main_help_lists_commands() -> None:
    result = runner.invoke(app, ["--help"])

    assert result.exit_code == 0
    for name in COMMANDS:
        assert name in result.stdout
