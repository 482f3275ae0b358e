"""Validation and file naming for uploaded photos."""

import re
from datetime import UTC, datetime

from ..config import AppConfig
from .models import FieldError, ValidationResult

_UMLAUTS = {
    "ä": "ae",
    "ö": "oe",
    "ü": "ue",
    "ß": "ss",
    "Ä": "Ae",
    "Ö": "Oe",
    "Ü": "Ue",
}
_WHITESPACE = re.compile(r"\s+")
_UNSAFE = re.compile(r"[^a-zA-Z0-9._-]")

FILENAME_PREFIX = "spielbericht"


class ValidationService:
    """Checks uploads against the configured limits and names stored files."""

    def __init__(self, config: AppConfig):
        self.config = config

    def validate_file(
        self, filename: str | None, content_type: str, size: int
    ) -> ValidationResult:
        """Validate an upload's name, size, extension and MIME type.

        A missing file short-circuits; otherwise every failed check adds
        its own error.

        Args:
            filename: Original file name (None or empty if nothing was chosen)
            content_type: MIME type reported for the file
            size: File size in bytes

        Returns:
            ValidationResult listing all problems found
        """
        if not filename:
            return ValidationResult(
                is_valid=False,
                errors=[
                    FieldError(
                        field="file",
                        message="Keine Datei ausgewählt",
                        code="FILE_REQUIRED",
                    )
                ],
            )

        settings = self.config.upload
        errors: list[FieldError] = []

        if size > settings.max_size_bytes:
            errors.append(
                FieldError(
                    field="file",
                    message=f"Datei ist zu groß (Maximum {settings.max_size_mb:g}MB)",
                    code="FILE_TOO_LARGE",
                )
            )

        extension = self.get_file_extension(filename)
        if extension not in settings.allowed_extensions:
            errors.append(
                FieldError(
                    field="file",
                    message=(
                        "Dateiformat nicht erlaubt. Erlaubt: "
                        f"{', '.join(settings.allowed_extensions)}"
                    ),
                    code="INVALID_FILE_TYPE",
                )
            )

        if content_type not in settings.allowed_mime_types:
            errors.append(
                FieldError(
                    field="file",
                    message="Nur Bilddateien sind erlaubt",
                    code="INVALID_MIME_TYPE",
                )
            )

        return ValidationResult(is_valid=not errors, errors=errors)

    def sanitize_filename(self, filename: str) -> str:
        name = _WHITESPACE.sub("_", filename)
        for umlaut, replacement in _UMLAUTS.items():
            name = name.replace(umlaut, replacement)
        return _UNSAFE.sub("", name)

    def generate_filename(self, original_filename: str, now: datetime | None = None) -> str:
        """Build a unique, repository-safe name for an uploaded file.

        Example: ``Spiel 1.JPG`` -> ``spielbericht_2024-05-01_14-03-22_Spiel_1.jpg``
        """
        timestamp = (now or datetime.now(UTC)).strftime("%Y-%m-%d_%H-%M-%S")
        extension = self.get_file_extension(original_filename)
        last_dot = original_filename.rfind(".")
        stem = original_filename[:last_dot] if last_dot > 0 else original_filename
        sanitized = self.sanitize_filename(stem)
        return f"{FILENAME_PREFIX}_{timestamp}_{sanitized}{extension}"

    @staticmethod
    def get_file_extension(filename: str) -> str:
        last_dot = filename.rfind(".")
        return filename[last_dot:].lower() if last_dot != -1 else ""
