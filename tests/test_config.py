"""Tests for environment-based configuration."""

import os
from unittest.mock import patch

import pytest

from photo_pipeline.config import AppConfig, load_config


class TestLoadConfig:
    @patch.dict(os.environ, {}, clear=True)
    def test_defaults(self) -> None:
        config = load_config()

        assert config.github.slug == "AppGates/PongPush"
        assert config.github.branch == "main"
        assert config.github.upload_path == "uploads"
        assert config.github.token is None
        assert config.upload.max_size_bytes == 10 * 1024 * 1024
        assert ".png" in config.upload.allowed_extensions

    @patch.dict(
        os.environ,
        {
            "GITHUB_OWNER": "someone",
            "GITHUB_REPOSITORY_NAME": "photos",
            "UPLOAD_BRANCH": "uploads-branch",
            "UPLOAD_PATH": "/images/",
            "UPLOAD_MAX_SIZE_MB": "2.5",
            "GITHUB_TOKEN": "env_token",
        },
        clear=True,
    )
    def test_environment_overrides(self) -> None:
        config = load_config()

        assert config.github.slug == "someone/photos"
        assert config.github.branch == "uploads-branch"
        assert config.github.upload_path == "images"
        assert config.github.token == "env_token"
        assert config.upload.max_size_mb == 2.5

    @patch.dict(os.environ, {"GITHUB_TOKEN": "env_token"}, clear=True)
    def test_explicit_token_wins(self) -> None:
        assert load_config(token="cli_token").github.token == "cli_token"

    @pytest.mark.parametrize("value", ["abc", "0", "-1"])
    def test_invalid_max_size(self, value: str) -> None:
        with patch.dict(os.environ, {"UPLOAD_MAX_SIZE_MB": value}, clear=True):
            with pytest.raises(ValueError, match="UPLOAD_MAX_SIZE_MB"):
                load_config()

    def test_model_defaults(self) -> None:
        config = AppConfig()

        assert config.upload.allowed_mime_types == [
            "image/jpeg",
            "image/png",
            "image/gif",
            "image/webp",
        ]
