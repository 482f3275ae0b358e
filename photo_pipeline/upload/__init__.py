"""Photo upload to a GitHub repository."""

from .models import UploadRequest, UploadResponse, ValidationResult
from .service import UploadService
from .validation import ValidationService

__all__ = [
    "UploadRequest",
    "UploadResponse",
    "UploadService",
    "ValidationResult",
    "ValidationService",
]
