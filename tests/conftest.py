"""Test configuration and fixtures."""

from pathlib import Path

import pytest

from photo_pipeline.config import AppConfig, GitHubSettings
from photo_pipeline.storage.manager import LogStore

SHA = "abc1234def5678abc1234def5678abc1234def56"


@pytest.fixture
def config() -> AppConfig:
    """Configuration pointing at a test repository."""
    return AppConfig(
        github=GitHubSettings(
            owner="testorg",
            repository="testrepo",
            branch="main",
            upload_path="uploads",
            token="test_token",
        )
    )


@pytest.fixture
def log_store(tmp_path: Path) -> LogStore:
    """Log store rooted in a temporary ci-logs directory."""
    return LogStore(tmp_path / "ci-logs")


@pytest.fixture
def sha() -> str:
    return SHA
