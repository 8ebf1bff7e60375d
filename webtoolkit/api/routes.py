"""
API route aggregator: register endpoints; no logic, only delegate to handlers.
"""

import logging

from fastapi import APIRouter, Query, Request
from fastapi.responses import FileResponse

from webtoolkit.api.handlers import (
    handle_download,
    handle_random_string,
    handle_slugify,
    handle_upload,
    handle_upload_one,
)
from webtoolkit.schemas.tools import RandomStringResponse, SlugifyRequest, SlugifyResponse
from webtoolkit.schemas.upload import UploadedFileOut, UploadResponse

logger = logging.getLogger(__name__)
router = APIRouter()


# --- System ---

@router.get("/", tags=["system"])
def root():
    return {"status": "webtoolkit running"}


@router.get("/health", tags=["system"])
def health():
    return {"ok": True}


# --- Uploads ---

@router.post(
    "/upload",
    response_model=UploadResponse,
    tags=["uploads"],
    summary="Upload and persist files",
    description="Accept a multipart/form-data body with one or more files; save them to the upload directory. "
    "413 if the body is too large, 415 if a file's sniffed type is not allowed (earlier files stay stored and are "
    "listed in the error detail), 400 if the body is not multipart.",
)
async def upload_and_persist_files(
    request: Request,
    rename: bool = Query(True, description="Store under a random name plus the original extension."),
) -> UploadResponse:
    return await handle_upload(request, rename)


@router.post(
    "/upload/one",
    response_model=UploadedFileOut,
    tags=["uploads"],
    summary="Upload and persist a single file",
    description="Same as /upload but returns one file; 400 when no file is attached.",
)
async def upload_and_persist_one_file(
    request: Request,
    rename: bool = Query(True, description="Store under a random name plus the original extension."),
) -> UploadedFileOut:
    return await handle_upload_one(request, rename)


# --- Downloads ---

@router.get(
    "/download/{file_name:path}",
    tags=["downloads"],
    summary="Download a static file as an attachment",
    description="Serve a file from the download directory with Content-Disposition: attachment. 404 if missing.",
)
def download_file(
    file_name: str,
    display_name: str | None = Query(None, description="File name offered to the browser."),
) -> FileResponse:
    return handle_download(file_name, display_name)


# --- Helpers ---

@router.get(
    "/random-string",
    response_model=RandomStringResponse,
    tags=["helpers"],
    summary="Generate a random string",
)
def get_random_string(length: int = Query(25, description="Number of characters.")) -> RandomStringResponse:
    return handle_random_string(length)


@router.post(
    "/slugify",
    response_model=SlugifyResponse,
    tags=["helpers"],
    summary="Turn text into a URL/file-name safe slug",
    description="400 if the text is empty or has no [a-z0-9] characters.",
)
def post_slugify(body: SlugifyRequest) -> SlugifyResponse:
    logger.info("[api:post_slugify] IN  text_len=%d", len(body.text))
    return handle_slugify(body)
