"""
Upload ingestion: parse a multipart request, validate and persist each file part.

Responsibility: Bound the request body, sniff each part's content type against
the allow-list, pick the stored name, and copy the bytes to the upload
directory. Called by the API layer; HTTP status mapping lives there.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, BinaryIO, Iterable, Protocol

from starlette.datastructures import FormData, UploadFile
from starlette.formparsers import MultiPartException, MultiPartParser
from starlette.requests import Request

from webtoolkit.core.config import COPY_CHUNK_SIZE, RANDOM_NAME_LENGTH, SNIFF_LEN, UploadConfig
from webtoolkit.core.errors import (
    FileTypeNotAllowedError,
    FormParseError,
    InvalidFileNameError,
    NoFilesAttachedError,
    SizeExceededError,
    UploadError,
    UploadIOError,
)
from webtoolkit.core.fs import ensure_dir
from webtoolkit.services.random_token import random_string
from webtoolkit.services.sniffing import detect_content_type

logger = logging.getLogger(__name__)

_PATH_SEPARATORS = re.compile(r"[\\/]")


@dataclass(frozen=True)
class UploadedFile:
    """One file persisted by an upload call."""

    new_file_name: str
    original_file_name: str
    file_size: int


class FilePart(Protocol):
    """A form file part: declared name plus a seekable binary stream."""

    filename: str | None
    file: BinaryIO


def _base_name(filename: str) -> str:
    """Last path component of a client-supplied file name ("./a/img.png" -> "img.png")."""
    return _PATH_SEPARATORS.split(filename)[-1]


def _extension(filename: str) -> str:
    """Suffix from the last dot, dot included and case kept; "" when there is none."""
    idx = filename.rfind(".")
    return filename[idx:] if idx >= 0 else ""


def _prepare_dir(upload_dir: str | Path) -> Path:
    try:
        return ensure_dir(upload_dir)
    except OSError as exc:
        raise UploadIOError(f"cannot create upload directory {upload_dir}: {exc}") from exc


def _copy(infile: BinaryIO, outfile: BinaryIO) -> int:
    copied = 0
    while True:
        chunk = infile.read(COPY_CHUNK_SIZE)
        if not chunk:
            return copied
        outfile.write(chunk)
        copied += len(chunk)


def _store_part(part: FilePart, target: Path, rename: bool, config: UploadConfig) -> UploadedFile:
    """Sniff, name and write one part. The part stream is closed on every path."""
    original = _base_name(part.filename or "")
    infile = part.file
    try:
        infile.seek(0)
        content_type = detect_content_type(infile.read(SNIFF_LEN))
        if not config.is_allowed(content_type):
            logger.warning(
                "[upload_service:_store_part] rejected file=%r content_type=%s", original, content_type
            )
            raise FileTypeNotAllowedError(original, content_type)
        infile.seek(0)

        if rename:
            new_name = f"{random_string(RANDOM_NAME_LENGTH)}{_extension(original)}"
        else:
            new_name = original

        try:
            outfile = open(target / new_name, "wb")
        except ValueError as exc:
            # open() rejects names with embedded NUL bytes
            raise InvalidFileNameError(original) from exc
        with outfile:
            size = _copy(infile, outfile)
    finally:
        infile.close()

    logger.info(
        "[upload_service:_store_part] stored file=%r as=%s content_type=%s size=%d",
        original, new_name, content_type, size,
    )
    return UploadedFile(new_file_name=new_name, original_file_name=original, file_size=size)


def ingest_parts(
    parts: Iterable[FilePart],
    target: Path,
    rename: bool = True,
    config: UploadConfig | None = None,
) -> list[UploadedFile]:
    """
    Persist file parts into target, in order, stopping at the first failure.

    Args:
        parts: File parts in the order they appeared in the form.
        target: Existing destination directory (see core.fs.ensure_dir).
        rename: Store under a random 25-char name plus the original extension.
            When False the original name is used verbatim and collisions are
            the caller's concern.
        config: Limits; defaults to UploadConfig().

    Returns:
        One UploadedFile per part.

    Raises:
        FileTypeNotAllowedError: A part's sniffed type is not allowed.
        InvalidFileNameError: The stored name is not a usable file name.
        UploadIOError: Creating, reading or writing failed.
        All carry the files already stored in `uploaded`. Files stored before
        the failure stay on disk.
    """
    config = config or UploadConfig()
    uploaded: list[UploadedFile] = []
    for part in parts:
        try:
            uploaded.append(_store_part(part, target, rename, config))
        except UploadError as exc:
            exc.uploaded = list(uploaded)
            raise
        except OSError as exc:
            raise UploadIOError(f"failed to store {part.filename!r}: {exc}", uploaded) from exc
    return uploaded


async def _bounded_stream(request: Request, max_bytes: int) -> AsyncIterator[bytes]:
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > max_bytes:
            raise SizeExceededError(max_bytes)
        yield chunk


async def _parse_form(request: Request, max_bytes: int) -> FormData:
    """Parse a multipart body, refusing more than max_bytes in total."""
    content_type = request.headers.get("content-type", "")
    media_type, _, params = content_type.partition(";")
    if media_type.strip().lower() != "multipart/form-data" or "boundary=" not in params.lower():
        raise FormParseError(f"expected multipart/form-data, got {content_type or 'no content type'!r}")

    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > max_bytes:
        raise SizeExceededError(max_bytes)

    parser = MultiPartParser(request.headers, _bounded_stream(request, max_bytes))
    try:
        return await parser.parse()
    except (MultiPartException, KeyError, ValueError) as exc:
        raise FormParseError(f"malformed multipart body: {exc}") from exc


async def upload_files(
    request: Request,
    upload_dir: str | Path,
    rename: bool = True,
    config: UploadConfig | None = None,
) -> list[UploadedFile]:
    """
    Store every file part of a multipart request into upload_dir.

    The directory is ensured first, then the body is parsed under
    config.max_bytes (SizeExceededError, nothing examined), then parts are
    handed to ingest_parts in form order. Disk work runs in a worker thread;
    parts are still handled one at a time. The parsed form is closed before
    returning.
    """
    config = config or UploadConfig()
    logger.info(
        "[upload_service:upload_files] IN  dir=%s rename=%s max_bytes=%d allowed=%s",
        upload_dir, rename, config.max_bytes, list(config.allowed_file_types),
    )
    target = await asyncio.to_thread(_prepare_dir, upload_dir)
    form = await _parse_form(request, config.max_bytes)
    try:
        parts = [value for _, value in form.multi_items() if isinstance(value, UploadFile)]
        uploaded = await asyncio.to_thread(ingest_parts, parts, target, rename, config)
    finally:
        await form.close()
    logger.info("[upload_service:upload_files] OUT files=%d", len(uploaded))
    return uploaded


async def upload_one_file(
    request: Request,
    upload_dir: str | Path,
    rename: bool = True,
    config: UploadConfig | None = None,
) -> UploadedFile:
    """
    Same pipeline as upload_files, returning the first stored file.

    Raises:
        NoFilesAttachedError: The form had no file parts.
    """
    uploaded = await upload_files(request, upload_dir, rename=rename, config=config)
    if not uploaded:
        raise NoFilesAttachedError()
    if len(uploaded) > 1:
        logger.warning(
            "[upload_service:upload_one_file] expected one file, got %d; returning the first", len(uploaded)
        )
    return uploaded[0]
