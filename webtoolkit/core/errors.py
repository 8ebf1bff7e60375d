"""
Application errors for clean API error handling.

Services raise these; the API layer maps them to HTTP status codes. Upload
errors carry the records persisted before the failure so callers can see
what succeeded.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from webtoolkit.services.upload_service import UploadedFile


class ToolkitError(Exception):
    """Base class for toolkit failures."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class UploadError(ToolkitError):
    """Raised when an upload call fails. `uploaded` holds files stored before the failure."""

    def __init__(self, message: str, uploaded: list[UploadedFile] | None = None) -> None:
        self.uploaded: list[UploadedFile] = list(uploaded or [])
        super().__init__(message)


class SizeExceededError(UploadError):
    """Raised when the multipart body is larger than the configured maximum."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"the uploaded file is too large (limit {limit} bytes)")


class FormParseError(UploadError):
    """Raised when the request body is not valid multipart/form-data."""


class FileTypeNotAllowedError(UploadError):
    """Raised when a part's sniffed content type is not in the allow-list."""

    def __init__(self, file_name: str, content_type: str, uploaded: list[UploadedFile] | None = None) -> None:
        self.file_name = file_name
        self.content_type = content_type
        super().__init__(f"the uploaded file type is not allowed: {file_name} ({content_type})", uploaded)


class InvalidFileNameError(UploadError):
    """Raised when a part's stored name cannot be used on the filesystem (e.g. it holds a NUL byte)."""

    def __init__(self, file_name: str, uploaded: list[UploadedFile] | None = None) -> None:
        self.file_name = file_name
        super().__init__(f"the uploaded file name is not usable: {file_name!r}", uploaded)


class UploadIOError(UploadError):
    """Raised when creating, reading, writing or seeking fails. The OSError is the __cause__."""


class NoFilesAttachedError(UploadError):
    """Raised by the single-file variant when the form has no file parts."""

    def __init__(self) -> None:
        super().__init__("no file was attached to the request")


class SlugifyError(ToolkitError):
    """Base class for slugify failures."""


class EmptyInputError(SlugifyError):
    """Raised when slugify gets an empty string."""

    def __init__(self) -> None:
        super().__init__("empty string not allowed")


class InvalidResultError(SlugifyError):
    """Raised when normalization leaves nothing behind."""

    def __init__(self, text: str) -> None:
        self.text = text
        super().__init__(f"slugify failed: no usable characters in {text!r}")
