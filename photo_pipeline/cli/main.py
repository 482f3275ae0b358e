"""Main CLI entry point."""

import typer
from dotenv import load_dotenv
from rich.console import Console

from .logs import cleanup_logs, collect_artifacts, push_logs
from .pipeline import check_logs, check_pipeline
from .upload import health, upload
from .workflows import auto_pr, cleanup_branches, verify_deployment

# Load environment variables from .env file
load_dotenv()

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}

app = typer.Typer(
    name="photo-pipeline",
    help="Photo uploads to GitHub and CI automation for the upload repository",
    add_completion=False,
    context_settings=CONTEXT_SETTINGS,
)
console = Console()


app.command(name="upload", context_settings=CONTEXT_SETTINGS)(upload)
app.command(name="health", context_settings=CONTEXT_SETTINGS)(health)
app.command(name="check-pipeline", context_settings=CONTEXT_SETTINGS)(check_pipeline)
app.command(name="check-logs", context_settings=CONTEXT_SETTINGS)(check_logs)
app.command(name="auto-pr", context_settings=CONTEXT_SETTINGS)(auto_pr)
app.command(name="cleanup-branches", context_settings=CONTEXT_SETTINGS)(cleanup_branches)
app.command(name="cleanup-logs", context_settings=CONTEXT_SETTINGS)(cleanup_logs)
app.command(name="push-logs", context_settings=CONTEXT_SETTINGS)(push_logs)
app.command(name="collect-artifacts", context_settings=CONTEXT_SETTINGS)(collect_artifacts)
app.command(name="verify-deployment", context_settings=CONTEXT_SETTINGS)(verify_deployment)


@app.command(context_settings=CONTEXT_SETTINGS)
def version() -> None:
    """Show version information."""
    from photo_pipeline import __version__

    console.print(f"Photo Pipeline v{__version__}")


if __name__ == "__main__":
    app()
