"""CLI commands for uploading photos."""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from ..config import load_config
from ..upload.models import UploadRequest
from ..upload.service import UploadService
from ..utils.logging import configure_logging
from .options import TOKEN_OPTION, VERBOSE_OPTION

console = Console()


def upload(
    file: Path = typer.Argument(..., help="Photo to upload"),
    description: str | None = typer.Option(
        None, "--description", help="Optional note shown in the log (not persisted)"
    ),
    token: str | None = TOKEN_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Validate a photo and commit it to the configured repository.

    The file is renamed to spielbericht_<date>_<time>_<name> and stored
    under UPLOAD_PATH on UPLOAD_BRANCH.

    Examples:
        photo-pipeline upload match-report.jpg
        photo-pipeline upload "Spiel gegen Köln.png" --description "Heimspiel"
    """
    configure_logging(verbose=verbose)

    if not file.is_file():
        console.print(f"❌ Error: File not found: {file}")
        raise typer.Exit(1)

    try:
        config = load_config(token=token)
        service = UploadService(config)
    except ValueError as e:
        console.print(f"❌ Error: {e}")
        raise typer.Exit(1)

    console.print(f"📤 Uploading {file.name} to {config.github.slug}...")
    response = service.upload(UploadRequest.from_path(file, description=description))

    if not response.success:
        console.print(f"❌ {response.message}")
        if response.error:
            console.print(f"   {response.error.code}: {response.error.details}")
        raise typer.Exit(1)

    console.print(f"✅ {response.message}")
    if response.data:
        table = Table(title="Upload Result")
        table.add_column("Field", style="cyan")
        table.add_column("Value", style="green")
        table.add_row("File name", response.data.file_name)
        table.add_row("Path", response.data.file_path)
        table.add_row("URL", response.data.url)
        table.add_row("SHA", response.data.sha or "")
        console.print(table)


def health(
    token: str | None = TOKEN_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Check that the upload target repository is reachable."""
    configure_logging(verbose=verbose)

    try:
        config = load_config(token=token)
        service = UploadService(config)
    except ValueError as e:
        console.print(f"❌ Error: {e}")
        raise typer.Exit(1)

    status = service.health_check()
    if status.healthy:
        console.print(f"✅ {status.message}")
    else:
        console.print(f"❌ {status.message}")
        raise typer.Exit(1)
