"""Request, response and validation models for photo uploads."""

import mimetypes
from pathlib import Path

from pydantic import BaseModel, Field


class FieldError(BaseModel):
    """A single validation problem."""

    field: str = Field(..., description="Name of the offending input")
    message: str = Field(..., description="User-facing message")
    code: str = Field(..., description="Machine-readable error code")


class ValidationResult(BaseModel):
    """Outcome of validating an upload."""

    is_valid: bool
    errors: list[FieldError] = Field(default_factory=list)


class UploadRequest(BaseModel):
    """A photo to upload, as received from the user."""

    filename: str | None = Field(..., description="Original file name")
    content_type: str = Field("", description="MIME type reported for the file")
    content: bytes = Field(b"", description="Raw file bytes")
    description: str | None = Field(
        None, description="Optional free-text note; logged, not stored in the repository"
    )

    @property
    def size(self) -> int:
        return len(self.content)

    @classmethod
    def from_path(cls, path: Path | str, description: str | None = None) -> "UploadRequest":
        """Build a request from a file on disk, guessing its MIME type."""
        file_path = Path(path)
        content_type, _ = mimetypes.guess_type(file_path.name)
        return cls(
            filename=file_path.name,
            content_type=content_type or "application/octet-stream",
            content=file_path.read_bytes(),
            description=description,
        )


class ProcessedUpload(BaseModel):
    """Upload after validation, ready to be committed."""

    file_name: str
    file_content: bytes
    content_type: str
    size: int


class UploadData(BaseModel):
    file_name: str
    file_path: str
    url: str
    sha: str | None = None


class UploadErrorInfo(BaseModel):
    code: str
    details: str


class UploadResponse(BaseModel):
    """Result returned to the caller of an upload."""

    success: bool
    message: str
    data: UploadData | None = None
    error: UploadErrorInfo | None = None


class HealthStatus(BaseModel):
    healthy: bool
    message: str
