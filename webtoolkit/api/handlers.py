"""
API handlers: call services with request data, map results/errors to HTTP.

Responsibility: Bridge HTTP types and services. Marshalling and exception-to-HTTP mapping.
Lives in the API layer so services stay free of FastAPI response types.
"""

import logging
from pathlib import Path

from fastapi import HTTPException, Request
from fastapi.responses import FileResponse

from webtoolkit.core.config import (
    DOWNLOAD_DIR_NAME,
    MAX_RANDOM_STRING_LENGTH,
    UPLOAD_DIR_NAME,
    UploadConfig,
    resolve_dir,
)
from webtoolkit.core.errors import (
    FileTypeNotAllowedError,
    FormParseError,
    InvalidFileNameError,
    NoFilesAttachedError,
    SizeExceededError,
    SlugifyError,
    UploadError,
)
from webtoolkit.schemas.tools import RandomStringResponse, SlugifyRequest, SlugifyResponse
from webtoolkit.schemas.upload import UploadedFileOut, UploadResponse
from webtoolkit.services.random_token import random_string
from webtoolkit.services.text_processing import slugify
from webtoolkit.services.upload_service import UploadedFile, upload_files, upload_one_file

logger = logging.getLogger(__name__)

UPLOAD_DIR: Path = resolve_dir(UPLOAD_DIR_NAME)
DOWNLOAD_DIR: Path = resolve_dir(DOWNLOAD_DIR_NAME)
UPLOAD_CONFIG: UploadConfig = UploadConfig.from_settings()

_UPLOAD_ERROR_STATUS: dict[type[UploadError], int] = {
    SizeExceededError: 413,
    FileTypeNotAllowedError: 415,
    FormParseError: 400,
    InvalidFileNameError: 400,
    NoFilesAttachedError: 400,
}


def _to_out(f: UploadedFile) -> UploadedFileOut:
    return UploadedFileOut(
        new_file_name=f.new_file_name,
        original_file_name=f.original_file_name,
        file_size=f.file_size,
    )


def _upload_http_error(e: UploadError) -> HTTPException:
    """Map an upload failure to an HTTPException whose detail keeps the partial result."""
    status = _UPLOAD_ERROR_STATUS.get(type(e), 500)
    if status == 500:
        logger.exception("Upload failed")
    return HTTPException(
        status_code=status,
        detail={"message": e.message, "uploaded": [_to_out(f).model_dump() for f in e.uploaded]},
    )


async def handle_upload(request: Request, rename: bool) -> UploadResponse:
    """Store all file parts of the request under UPLOAD_DIR."""
    try:
        files = await upload_files(request, UPLOAD_DIR, rename=rename, config=UPLOAD_CONFIG)
    except UploadError as e:
        raise _upload_http_error(e) from e
    return UploadResponse(files_saved=len(files), files=[_to_out(f) for f in files])


async def handle_upload_one(request: Request, rename: bool) -> UploadedFileOut:
    """Store a single file part under UPLOAD_DIR."""
    try:
        f = await upload_one_file(request, UPLOAD_DIR, rename=rename, config=UPLOAD_CONFIG)
    except UploadError as e:
        raise _upload_http_error(e) from e
    return _to_out(f)


def handle_random_string(length: int) -> RandomStringResponse:
    if length < 0 or length > MAX_RANDOM_STRING_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"length must be between 0 and {MAX_RANDOM_STRING_LENGTH}",
        )
    return RandomStringResponse(value=random_string(length))


def handle_slugify(body: SlugifyRequest) -> SlugifyResponse:
    try:
        return SlugifyResponse(slug=slugify(body.text))
    except SlugifyError as e:
        raise HTTPException(status_code=400, detail=e.message) from e


def _safe_join(base_dir: Path, name: str) -> Path:
    """Join name under base_dir; raise ValueError if the result escapes it."""
    base_dir = base_dir.resolve()
    resolved = (base_dir / name).resolve()
    if base_dir not in resolved.parents:
        raise ValueError("Path traversal attempt")
    return resolved


def download_static_file(directory: Path, file: str, display_name: str) -> FileResponse:
    """
    Serve directory/file as an attachment named display_name.

    Content type, Content-Length and status come from FileResponse. Names that
    cannot go into a latin-1 header fall back to FileResponse's RFC 5987
    filename* encoding.
    """
    try:
        path = _safe_join(directory, file)
    except ValueError:
        raise HTTPException(status_code=404, detail="Not found")
    if not path.is_file():
        raise HTTPException(status_code=404, detail="Not found")

    logger.info("[handlers:download_static_file] file=%s display_name=%r", file, display_name)
    try:
        display_name.encode("latin-1")
    except UnicodeEncodeError:
        return FileResponse(path, filename=display_name)
    return FileResponse(path, headers={"Content-Disposition": f'attachment; filename="{display_name}"'})


def handle_download(file_name: str, display_name: str | None) -> FileResponse:
    """Serve a file from DOWNLOAD_DIR; the download name defaults to the file's own name."""
    return download_static_file(DOWNLOAD_DIR, file_name, display_name or Path(file_name).name)
