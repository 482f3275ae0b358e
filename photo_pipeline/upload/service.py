"""Upload orchestration: validate, name, commit through the Contents API."""

import logging

from ..config import AppConfig
from ..github_client.client import GitHubClient
from .models import (
    HealthStatus,
    ProcessedUpload,
    UploadData,
    UploadErrorInfo,
    UploadRequest,
    UploadResponse,
)
from .validation import ValidationService

logger = logging.getLogger(__name__)


class UploadService:
    """Uploads photos to the configured GitHub repository."""

    def __init__(self, config: AppConfig, client: GitHubClient | None = None):
        """Initialize upload service.

        Args:
            config: Application configuration
            client: GitHub client. If None, one is built from the configured
                token (raises ValueError when no token is available).
        """
        self.config = config
        self.validation = ValidationService(config)
        self.client = client or GitHubClient(token=config.github.token)

    def upload(self, request: UploadRequest) -> UploadResponse:
        """Validate and commit a photo. Never raises; failures are in the response."""
        try:
            validation = self.validation.validate_file(
                request.filename, request.content_type, request.size
            )
            if not validation.is_valid:
                details = ", ".join(error.message for error in validation.errors)
                logger.warning("Rejected upload %s: %s", request.filename, details)
                return UploadResponse(
                    success=False,
                    message="Validierung fehlgeschlagen",
                    error=UploadErrorInfo(code="VALIDATION_ERROR", details=details),
                )

            processed = self._process(request)
            github = self.config.github
            file_path = f"{github.upload_path}/{processed.file_name}"

            result = self.client.upload_file(
                github.owner,
                github.repository,
                file_path,
                processed.file_content,
                f"Upload: {processed.file_name}",
                github.branch,
            )
            logger.info("File uploaded successfully: %s", file_path)
            if request.description:
                logger.info("Description: %s", request.description)

            return UploadResponse(
                success=True,
                message="Spielbericht erfolgreich hochgeladen!",
                data=UploadData(
                    file_name=processed.file_name,
                    file_path=file_path,
                    url=result.html_url,
                    sha=result.sha,
                ),
            )

        except Exception as e:
            logger.exception("Error uploading file")
            return UploadResponse(
                success=False,
                message="Upload fehlgeschlagen",
                error=UploadErrorInfo(
                    code="UPLOAD_ERROR", details=str(e) or "Unbekannter Fehler"
                ),
            )

    def _process(self, request: UploadRequest) -> ProcessedUpload:
        assert request.filename is not None  # guaranteed by validation
        return ProcessedUpload(
            file_name=self.validation.generate_filename(request.filename),
            file_content=request.content,
            content_type=request.content_type,
            size=request.size,
        )

    def health_check(self) -> HealthStatus:
        github = self.config.github
        try:
            result = self.client.health_check(github.owner, github.repository)
            return HealthStatus(healthy=result.has_access, message=result.message)
        except Exception as e:
            return HealthStatus(healthy=False, message=str(e))
