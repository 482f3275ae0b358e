"""Tests for the upload service."""

from pathlib import Path
from unittest.mock import Mock

from photo_pipeline.config import AppConfig
from photo_pipeline.github_client.models import ContentUploadResult, RepositoryHealth
from photo_pipeline.upload.models import UploadRequest
from photo_pipeline.upload.service import UploadService


def make_request(**overrides) -> UploadRequest:
    values = {
        "filename": "Spiel 1.jpg",
        "content_type": "image/jpeg",
        "content": b"\xff\xd8\xff\xe0 jpeg bytes",
    }
    values.update(overrides)
    return UploadRequest(**values)


class TestUploadService:
    """Test UploadService.upload."""

    def setup_method(self) -> None:
        self.client = Mock()
        self.client.upload_file.return_value = ContentUploadResult(
            sha="blobsha",
            url="https://raw.githubusercontent.com/testorg/testrepo/main/uploads/x.jpg",
            html_url="https://github.com/testorg/testrepo/blob/main/uploads/x.jpg",
        )

    def test_successful_upload(self, config: AppConfig) -> None:
        service = UploadService(config, client=self.client)

        response = service.upload(make_request())

        assert response.success
        assert response.message == "Spielbericht erfolgreich hochgeladen!"
        assert response.error is None
        assert response.data.file_name.startswith("spielbericht_")
        assert response.data.file_name.endswith("_Spiel_1.jpg")
        assert response.data.file_path == f"uploads/{response.data.file_name}"
        assert response.data.url.startswith("https://github.com/")
        assert response.data.sha == "blobsha"

        args = self.client.upload_file.call_args.args
        assert args[0] == "testorg"
        assert args[1] == "testrepo"
        assert args[2] == response.data.file_path
        assert args[3] == b"\xff\xd8\xff\xe0 jpeg bytes"
        assert args[4] == f"Upload: {response.data.file_name}"
        assert args[5] == "main"

    def test_validation_failure_skips_api(self, config: AppConfig) -> None:
        service = UploadService(config, client=self.client)

        response = service.upload(make_request(filename="notes.txt", content_type="text/plain"))

        assert not response.success
        assert response.message == "Validierung fehlgeschlagen"
        assert response.error.code == "VALIDATION_ERROR"
        assert response.error.details == (
            "Dateiformat nicht erlaubt. Erlaubt: .jpg, .jpeg, .png, .gif, .webp, "
            "Nur Bilddateien sind erlaubt"
        )
        self.client.upload_file.assert_not_called()

    def test_missing_file(self, config: AppConfig) -> None:
        service = UploadService(config, client=self.client)

        response = service.upload(make_request(filename=None))

        assert response.error.code == "VALIDATION_ERROR"
        assert response.error.details == "Keine Datei ausgewählt"

    def test_api_error_is_reported(self, config: AppConfig) -> None:
        self.client.upload_file.side_effect = RuntimeError("GitHub API error: 422")
        service = UploadService(config, client=self.client)

        response = service.upload(make_request())

        assert not response.success
        assert response.message == "Upload fehlgeschlagen"
        assert response.error.code == "UPLOAD_ERROR"
        assert response.error.details == "GitHub API error: 422"

    def test_error_without_message(self, config: AppConfig) -> None:
        self.client.upload_file.side_effect = RuntimeError()
        service = UploadService(config, client=self.client)

        response = service.upload(make_request())

        assert response.error.details == "Unbekannter Fehler"

    def test_health_check(self, config: AppConfig) -> None:
        self.client.health_check.return_value = RepositoryHealth(
            has_access=True, message="GitHub API access verified"
        )
        service = UploadService(config, client=self.client)

        status = service.health_check()

        assert status.healthy
        self.client.health_check.assert_called_once_with("testorg", "testrepo")

    def test_health_check_exception(self, config: AppConfig) -> None:
        self.client.health_check.side_effect = RuntimeError("boom")

        status = UploadService(config, client=self.client).health_check()

        assert not status.healthy
        assert status.message == "boom"


class TestUploadRequest:
    """Test building requests from files."""

    def test_from_path(self, tmp_path: Path) -> None:
        photo = tmp_path / "match.png"
        photo.write_bytes(b"\x89PNG data")

        request = UploadRequest.from_path(photo, description="Heimspiel")

        assert request.filename == "match.png"
        assert request.content_type == "image/png"
        assert request.size == 9
        assert request.description == "Heimspiel"

    def test_from_path_unknown_type(self, tmp_path: Path) -> None:
        blob = tmp_path / "data.zzunknown"
        blob.write_bytes(b"x")

        request = UploadRequest.from_path(blob)

        assert request.content_type == "application/octet-stream"
