"""Application configuration loaded from environment variables."""

import os

from pydantic import BaseModel, Field

DEFAULT_ALLOWED_EXTENSIONS = [".jpg", ".jpeg", ".png", ".gif", ".webp"]
DEFAULT_ALLOWED_MIME_TYPES = ["image/jpeg", "image/png", "image/gif", "image/webp"]


class GitHubSettings(BaseModel):
    """Target repository for uploaded files."""

    owner: str = Field("AppGates", description="Repository owner (user or org)")
    repository: str = Field("PongPush", description="Repository name")
    branch: str = Field("main", description="Branch that receives uploads")
    upload_path: str = Field("uploads", description="Directory inside the repo")
    token: str | None = Field(None, description="GitHub token with contents:write")

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repository}"


class UploadSettings(BaseModel):
    """Limits applied to uploaded files."""

    max_size_bytes: int = Field(10 * 1024 * 1024, description="Maximum file size")
    allowed_extensions: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ALLOWED_EXTENSIONS),
        description="Lowercase extensions including the leading dot",
    )
    allowed_mime_types: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ALLOWED_MIME_TYPES),
        description="Accepted MIME types",
    )

    @property
    def max_size_mb(self) -> float:
        return self.max_size_bytes / (1024 * 1024)


class AppConfig(BaseModel):
    """Top-level configuration."""

    github: GitHubSettings = Field(default_factory=GitHubSettings)
    upload: UploadSettings = Field(default_factory=UploadSettings)


def load_config(token: str | None = None) -> AppConfig:
    """Build configuration from environment variables.

    Args:
        token: Explicit GitHub token. Overrides GITHUB_TOKEN when given.

    Returns:
        AppConfig populated from the environment

    Raises:
        ValueError: If UPLOAD_MAX_SIZE_MB is not a positive number
    """
    github = GitHubSettings(
        owner=os.getenv("GITHUB_OWNER", "AppGates"),
        repository=os.getenv("GITHUB_REPOSITORY_NAME", "PongPush"),
        branch=os.getenv("UPLOAD_BRANCH", "main"),
        upload_path=os.getenv("UPLOAD_PATH", "uploads").strip("/"),
        token=token or os.getenv("GITHUB_TOKEN"),
    )

    max_size_raw = os.getenv("UPLOAD_MAX_SIZE_MB", "10")
    try:
        max_size_mb = float(max_size_raw)
    except ValueError:
        raise ValueError(f"UPLOAD_MAX_SIZE_MB must be a number, got '{max_size_raw}'")
    if max_size_mb <= 0:
        raise ValueError("UPLOAD_MAX_SIZE_MB must be positive")

    upload = UploadSettings(max_size_bytes=int(max_size_mb * 1024 * 1024))
    return AppConfig(github=github, upload=upload)
