"""
Application configuration (env, settings, constants).

Responsibility: Centralize config loading, environment variables, and app-wide
constants. Keeps the rest of the app decoupled from how config is sourced.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Project root (directory holding the webtoolkit package)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent.parent

# Upload and download storage (relative paths resolve against PROJECT_ROOT)
UPLOAD_DIR_NAME: str = os.getenv("UPLOAD_DIR", "data/uploads").strip() or "data/uploads"
DOWNLOAD_DIR_NAME: str = os.getenv("DOWNLOAD_DIR", "data/static").strip() or "data/static"

# Upload limits: 1 GiB total multipart body unless overridden
DEFAULT_MAX_UPLOAD_BYTES: int = 1024 * 1024 * 1024
MAX_UPLOAD_BYTES: int = int(os.getenv("MAX_UPLOAD_BYTES", str(DEFAULT_MAX_UPLOAD_BYTES)))

# Comma-separated sniffed content types, e.g. "image/png,image/jpeg". Empty allows all.
ALLOWED_CONTENT_TYPES: tuple[str, ...] = tuple(
    t.strip() for t in os.getenv("ALLOWED_CONTENT_TYPES", "").split(",") if t.strip()
)

# Random stored-name length (extension is appended after it)
RANDOM_NAME_LENGTH: int = 25

# Bytes read from each part to detect its content type
SNIFF_LEN: int = 512

# Copy buffer when persisting a part
COPY_CHUNK_SIZE: int = 1024 * 1024

# Upper bound accepted by GET /random-string
MAX_RANDOM_STRING_LENGTH: int = 1024


def resolve_dir(name: str) -> Path:
    """Absolute path for a configured directory; relative names hang off PROJECT_ROOT."""
    path = Path(name)
    if not path.is_absolute():
        path = PROJECT_ROOT / path
    return path


@dataclass(frozen=True)
class UploadConfig:
    """Limits applied to one upload call. max_file_size <= 0 means the 1 GiB default."""

    max_file_size: int = DEFAULT_MAX_UPLOAD_BYTES
    allowed_file_types: tuple[str, ...] = ()

    @property
    def max_bytes(self) -> int:
        return self.max_file_size if self.max_file_size > 0 else DEFAULT_MAX_UPLOAD_BYTES

    def is_allowed(self, content_type: str) -> bool:
        if not self.allowed_file_types:
            return True
        wanted = content_type.casefold()
        return any(wanted == t.casefold() for t in self.allowed_file_types)

    @classmethod
    def from_settings(cls) -> "UploadConfig":
        return cls(max_file_size=MAX_UPLOAD_BYTES, allowed_file_types=ALLOWED_CONTENT_TYPES)
